"""
Lexical scanning of ``.env`` sources.

Two shapes are exposed: :func:`scan_definitions` walks a whole file and yields one
:class:`Definition` per ``KEY=VALUE`` line, while :func:`scan_occurrences` walks a
single value and yields the variable references and escape sequences found in it.
Both report 1-based line/column locations.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator

from .errors import DotenvSyntaxError

_BLANK = re.compile(r"[ \t]*")
_ASSIGNMENT = re.compile(r"(?:export[ \t]+)?([A-Za-z_][A-Za-z0-9_.]*)[ \t]*=")
_TRAILER = re.compile(r"[ \t]*(?:#[^\n]*)?(?=\n|\Z)")
_INLINE_COMMENT = re.compile(r"[ \t]#")
_OCCURRENCE = re.compile(
    r"\\(?P<escape>.)"
    r"|\$\{(?P<braced>[A-Za-z_][A-Za-z0-9_.]*)\}"
    r"|\$(?P<bare>[A-Za-z_][A-Za-z0-9_]*)",
    re.DOTALL,
)

_ESCAPES: Dict[str, str] = {
    "n": "\n",
    "t": "\t",
    "r": "\r",
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "f": "\f",
    "v": "\v",
}


class OccurrenceKind(Enum):
    REFERENCE = "reference"
    ESCAPE = "escape"


@dataclass(frozen=True)
class Definition:
    key: str
    value: str
    line: int
    column: int


@dataclass(frozen=True)
class Occurrence:
    """
    A reference or escape token inside a value.

    ``payload`` is the referenced key for references and the escaped character for
    escapes. ``start``/``end`` index into the scanned value.
    """

    kind: OccurrenceKind
    payload: str
    start: int
    end: int
    line: int
    column: int


def decode_escape(char: str) -> str:
    """Return the literal text an escaped ``char`` stands for."""

    return _ESCAPES.get(char, char)


def _find_closing_quote(text: str, start: int, quote: str) -> int:
    index = start
    while index < len(text):
        char = text[index]
        if char == "\\":
            index += 2
            continue
        if char == quote:
            return index
        index += 1
    return -1


def scan_definitions(text: str) -> Iterator[Definition]:
    """Yield every definition in ``text``; raise :class:`DotenvSyntaxError` on bad lines."""

    text = text.replace("\r\n", "\n")
    pos = 0
    line = 1
    line_start = 0

    while pos < len(text):
        pos = _BLANK.match(text, pos).end()
        if pos >= len(text):
            break
        char = text[pos]
        if char == "\n":
            pos += 1
            line += 1
            line_start = pos
            continue
        if char == "#":
            newline = text.find("\n", pos)
            pos = len(text) if newline < 0 else newline
            continue

        assignment = _ASSIGNMENT.match(text, pos)
        if assignment is None:
            raise DotenvSyntaxError("expected KEY=VALUE", line=line, column=pos - line_start + 1)
        key = assignment.group(1)
        separator = assignment.end()
        pos = _BLANK.match(text, separator).end()

        if pos < len(text) and text[pos] in "\"'":
            quote = text[pos]
            closing = _find_closing_quote(text, pos + 1, quote)
            if closing < 0:
                raise DotenvSyntaxError(
                    f"unterminated quoted value for '{key}'",
                    key=key,
                    line=line,
                    column=pos - line_start + 1,
                )
            value = text[pos + 1 : closing]
            definition = Definition(key=key, value=value, line=line, column=pos - line_start + 2)
            line += value.count("\n")
            if "\n" in value:
                line_start = pos + 1 + value.rindex("\n") + 1
            pos = closing + 1
            trailer = _TRAILER.match(text, pos)
            if trailer is None:
                raise DotenvSyntaxError(
                    f"unexpected characters after quoted value for '{key}'",
                    key=key,
                    line=line,
                    column=pos - line_start + 1,
                )
            pos = trailer.end()
            yield definition
            continue

        newline = text.find("\n", pos)
        end = len(text) if newline < 0 else newline
        # a '#' only opens a comment when whitespace precedes it
        raw = text[separator:end]
        comment = _INLINE_COMMENT.search(raw)
        if comment is not None:
            raw = raw[: comment.start()]
        yield Definition(key=key, value=raw.strip(), line=line, column=pos - line_start + 1)
        pos = end


def scan_occurrences(value: str, line: int = 1, column: int = 1) -> Iterator[Occurrence]:
    """
    Lazily yield the references and escapes found in ``value``.

    ``line``/``column`` give the location of the first character of ``value`` so the
    reported locations are absolute within the source file.
    """

    for match in _OCCURRENCE.finditer(value):
        start = match.start()
        newlines = value.count("\n", 0, start)
        if newlines:
            occ_line = line + newlines
            occ_column = start - value.rindex("\n", 0, start)
        else:
            occ_line = line
            occ_column = column + start

        if match.group("escape") is not None:
            kind, payload = OccurrenceKind.ESCAPE, match.group("escape")
        else:
            kind, payload = OccurrenceKind.REFERENCE, match.group("braced") or match.group("bare")
        yield Occurrence(
            kind=kind,
            payload=payload,
            start=start,
            end=match.end(),
            line=occ_line,
            column=occ_column,
        )


__all__ = [
    "Definition",
    "Occurrence",
    "OccurrenceKind",
    "decode_escape",
    "scan_definitions",
    "scan_occurrences",
]
