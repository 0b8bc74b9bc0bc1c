"""
Entry points tying the scanner, the resolver and the environment publisher together.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, MutableMapping, TextIO, Tuple

from .errors import Diagnostics, DotenvError
from .publisher import EnvironmentPublisher
from .resolver import Resolver
from .scanner import scan_definitions
from .symbols import Origin, ReferenceTable, SymbolTable

logger = logging.getLogger(__name__)


@dataclass
class ParseResult:
    """Outcome of one parse: final local values plus the diagnostics batch."""

    values: Dict[str, str]
    diagnostics: Tuple[DotenvError, ...] = ()
    published: List[str] = field(default_factory=list)
    sweeps: int = 0

    @property
    def ok(self) -> bool:
        return not self.diagnostics

    def raise_for_errors(self) -> None:
        """Raise the first collected diagnostic, if any."""

        if self.diagnostics:
            raise self.diagnostics[0]


class DotenvParser:
    """
    Parses ``.env`` sources and registers the result in an environment mapping.

    The parser owns its symbol and reference tables for the duration of a call and
    resets them at the start of every call, so an instance can be reused for several
    sources as long as calls are not made concurrently.
    """

    def __init__(
        self,
        environ: MutableMapping[str, str] | None = None,
        publisher: EnvironmentPublisher | None = None,
    ):
        self.environ = environ if environ is not None else os.environ
        self.publisher = publisher or EnvironmentPublisher(self.environ)
        self.symbols = SymbolTable()
        self.references = ReferenceTable()
        self.diagnostics = Diagnostics()

    def _reset(self) -> None:
        self.symbols.clear()
        self.references.clear()
        self.diagnostics.clear()

    def _load_definitions(self, text: str, overwrite: bool) -> None:
        for definition in scan_definitions(text):
            if not overwrite and definition.key in self.environ:
                # the environment keeps its value; expose it for interpolation only
                self.symbols.define(definition.key, self.environ[definition.key], Origin.EXTERNAL, overwrite=False)
                continue
            self.symbols.define(
                definition.key,
                definition.value,
                Origin.LOCAL,
                overwrite=overwrite,
                line=definition.line,
                column=definition.column,
            )

    def _run(self, source: str | TextIO, overwrite: bool, interpolate: bool) -> ParseResult:
        self._reset()
        text = source if isinstance(source, str) else source.read()
        self._load_definitions(text, overwrite)

        resolver = Resolver(self.symbols, self.references, self.diagnostics, self.environ)
        if interpolate:
            resolver.scan_dependencies()
            resolver.resolve()
        resolver.expand_escapes()

        return ParseResult(
            values={record.key: record.value for record in self.symbols.locals()},
            diagnostics=self.diagnostics.flush(),
            sweeps=resolver.sweeps,
        )

    def resolve(self, source: str | TextIO, overwrite: bool = False, interpolate: bool = True) -> ParseResult:
        """Resolve ``source`` without touching the environment."""

        try:
            return self._run(source, overwrite, interpolate)
        finally:
            self._reset()

    def parse(self, source: str | TextIO, overwrite: bool = False, interpolate: bool = True) -> ParseResult:
        """
        Resolve ``source`` and register its variables.

        With ``interpolate`` false, references are kept as raw text and only escape
        sequences are decoded. With ``overwrite`` false, variables already present in the
        environment keep their value.
        """

        try:
            result = self._run(source, overwrite, interpolate)
            result.published = self.publisher.publish(self.symbols.locals(), overwrite)
            return result
        finally:
            self._reset()


def load_dotenv(
    dotenv_path: str | Path = ".env",
    overwrite: bool = False,
    interpolate: bool = True,
    environ: MutableMapping[str, str] | None = None,
) -> ParseResult:
    """
    Populate ``os.environ`` (or ``environ``) from ``dotenv_path`` if it exists.

    Existing environment variables win unless ``overwrite`` is set so shell exports or
    CI secrets are never replaced by accidental entries in the file.
    """

    path = Path(dotenv_path)
    if not path.exists():
        logger.debug("No dotenv file at %s", path)
        return ParseResult(values={})

    with path.open("r", encoding="utf-8") as handle:
        return DotenvParser(environ=environ).parse(handle, overwrite=overwrite, interpolate=interpolate)


def dotenv_values(
    dotenv_path: str | Path = ".env",
    interpolate: bool = True,
    environ: MutableMapping[str, str] | None = None,
) -> Dict[str, str]:
    """Return the resolved values of ``dotenv_path`` without registering them."""

    path = Path(dotenv_path)
    if not path.exists():
        return {}
    with path.open("r", encoding="utf-8") as handle:
        return DotenvParser(environ=environ).resolve(handle, overwrite=True, interpolate=interpolate).values


__all__ = ["DotenvParser", "ParseResult", "dotenv_values", "load_dotenv"]
