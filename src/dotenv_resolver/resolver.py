"""
Interpolation engine: substitutes references between symbols until a fixed point.

A parse goes through four stages, all operating on the same :class:`SymbolTable`:

1. :meth:`Resolver.scan_dependencies` counts the pending references of every local
   symbol, records where each referenced key was first seen and blanks references
   to keys that exist nowhere.
2. :meth:`Resolver.resolve` sweeps the incomplete symbols, substituting complete
   ones into them, until nothing is left or a sweep makes no progress.
3. :meth:`Resolver.break_cycles` runs on a stall: every key still incomplete is
   reported as circular and its remaining references are emptied.
4. :meth:`Resolver.expand_escapes` decodes escape sequences in the final values.
"""

from __future__ import annotations

import logging
from typing import Callable, List, Mapping, Optional

from .errors import CircularReferenceError, Diagnostics, UndefinedVariableError
from .scanner import Occurrence, OccurrenceKind, decode_escape, scan_occurrences
from .symbols import Origin, ReferenceTable, SymbolRecord, SymbolTable

logger = logging.getLogger(__name__)

Replacement = Callable[[Occurrence], Optional[str]]


def _protect(text: str) -> str:
    """Escape ``text`` so later scans see no tokens and decoding restores it verbatim."""

    return text.replace("\\", "\\\\").replace("$", "\\$")


class Resolver:
    """Runs the interpolation stages over tables owned by the current parse."""

    def __init__(
        self,
        symbols: SymbolTable,
        references: ReferenceTable,
        diagnostics: Diagnostics,
        environ: Mapping[str, str] | None = None,
    ):
        self.symbols = symbols
        self.references = references
        self.diagnostics = diagnostics
        self.environ = environ if environ is not None else {}
        self.unresolved = 0
        self.history: List[int] = []

    @property
    def sweeps(self) -> int:
        return len(self.history)

    def _rewrite(self, record: SymbolRecord, replace: Replacement) -> int:
        """
        Rebuild ``record.value`` applying ``replace`` to every occurrence.

        ``replace`` returns the text to put in place of the occurrence, or ``None`` to
        leave it untouched. Returns how many reference occurrences were left.
        """

        value = record.value
        pieces: List[str] = []
        last = 0
        left = 0
        for occurrence in scan_occurrences(value, record.line, record.column):
            replacement = replace(occurrence)
            if replacement is None:
                if occurrence.kind is OccurrenceKind.REFERENCE:
                    left += 1
                continue
            pieces.append(value[last : occurrence.start])
            pieces.append(replacement)
            last = occurrence.end
        pieces.append(value[last:])
        record.value = "".join(pieces)
        return left

    def _dependency_note(self, owner: str) -> Replacement:
        def note(occurrence: Occurrence) -> Optional[str]:
            if occurrence.kind is not OccurrenceKind.REFERENCE:
                return None
            key = occurrence.payload
            if key not in self.symbols:
                if key not in self.environ:
                    self.diagnostics.report(
                        UndefinedVariableError(key, occurrence.line, occurrence.column, owner=owner)
                    )
                    return ""
                self.symbols.define(key, self.environ[key], Origin.EXTERNAL)
            self.references.note(key, occurrence.line, occurrence.column)
            return None

        return note

    def scan_dependencies(self) -> int:
        """Count pending references of every local symbol and return how many are incomplete."""

        self.unresolved = 0
        for record in self.symbols.locals():
            record.pending_references = self._rewrite(record, self._dependency_note(record.key))
            if not record.complete:
                self.unresolved += 1
        logger.debug("Dependency scan found %d incomplete symbol(s)", self.unresolved)
        return self.unresolved

    def substitute(self, record: SymbolRecord, force: bool = False) -> bool:
        """
        Substitute every complete target referenced by ``record``.

        References to incomplete targets are kept for a later sweep, or emptied when
        ``force`` is set. Returns whether the record is now complete.
        """

        def replace(occurrence: Occurrence) -> Optional[str]:
            if occurrence.kind is not OccurrenceKind.REFERENCE:
                return None
            target = self.symbols.get(occurrence.payload)
            if target is None:
                return ""
            if target.complete:
                return target.value if target.local else _protect(target.value)
            return "" if force else None

        record.pending_references = self._rewrite(record, replace)
        return record.complete

    def resolve(self) -> int:
        """Sweep until every local symbol is complete. Returns the number of sweeps."""

        self.history = []
        while self.unresolved > 0:
            before = self.unresolved
            for record in self.symbols:
                if not record.local or record.complete:
                    continue
                if self.substitute(record):
                    self.unresolved -= 1
                    if self.unresolved == 0:
                        break
            self.history.append(self.unresolved)
            logger.debug("Sweep %d left %d incomplete symbol(s)", self.sweeps, self.unresolved)

            if self.unresolved == before:
                logger.debug("No progress after sweep %d; breaking cycles", self.sweeps)
                self.break_cycles()
        return self.sweeps

    def break_cycles(self) -> None:
        """Report keys stuck in a cycle and force every incomplete symbol to complete."""

        for reference in self.references:
            record = self.symbols.get(reference.key)
            if record is not None and not record.complete:
                self.diagnostics.report(CircularReferenceError(reference.key, reference.line, reference.column))

        for record in self.symbols:
            if record.local and not record.complete:
                self.substitute(record, force=True)
                self.unresolved -= 1

    def expand_escapes(self) -> None:
        """Decode escape sequences in local symbols that were not expanded yet."""

        def decode(occurrence: Occurrence) -> Optional[str]:
            if occurrence.kind is OccurrenceKind.ESCAPE:
                return decode_escape(occurrence.payload)
            return None

        for record in self.symbols.locals():
            if record.expanded:
                continue
            self._rewrite(record, decode)
            record.expanded = True


__all__ = ["Resolver"]
