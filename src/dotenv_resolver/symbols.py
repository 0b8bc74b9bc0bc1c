"""
Symbol and reference tables owned by the resolution engine for one parse.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Iterator, List


class Origin(Enum):
    LOCAL = "local"
    EXTERNAL = "external"


@dataclass
class SymbolRecord:
    """One binding and how far its interpolation has progressed."""

    key: str
    value: str
    origin: Origin = Origin.LOCAL
    pending_references: int = 0
    line: int = 1
    column: int = 1
    expanded: bool = False

    @property
    def local(self) -> bool:
        return self.origin is Origin.LOCAL

    @property
    def complete(self) -> bool:
        return self.pending_references == 0


@dataclass(frozen=True)
class ReferenceRecord:
    """Where a referenced key was first seen."""

    key: str
    line: int
    column: int


class SymbolTable:
    """Insertion-ordered mapping of key to :class:`SymbolRecord`."""

    def __init__(self) -> None:
        self._records: Dict[str, SymbolRecord] = {}

    def define(
        self,
        key: str,
        value: str,
        origin: Origin = Origin.LOCAL,
        overwrite: bool = True,
        line: int = 1,
        column: int = 1,
    ) -> SymbolRecord:
        """
        Insert ``key`` or replace its record.

        When the key already exists and ``overwrite`` is false the new definition is
        ignored and the existing record is returned.
        """

        existing = self._records.get(key)
        if existing is not None and not overwrite:
            return existing
        record = SymbolRecord(key=key, value=value, origin=origin, line=line, column=column)
        self._records[key] = record
        return record

    def get(self, key: str) -> SymbolRecord | None:
        return self._records.get(key)

    def locals(self) -> List[SymbolRecord]:
        return [record for record in self._records.values() if record.local]

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[SymbolRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)


class ReferenceTable:
    """First-seen location of every referenced key, used for diagnostics only."""

    def __init__(self) -> None:
        self._records: Dict[str, ReferenceRecord] = {}

    def note(self, key: str, line: int, column: int) -> ReferenceRecord:
        if key not in self._records:
            self._records[key] = ReferenceRecord(key=key, line=line, column=column)
        return self._records[key]

    def get(self, key: str) -> ReferenceRecord | None:
        return self._records.get(key)

    def clear(self) -> None:
        self._records.clear()

    def __contains__(self, key: object) -> bool:
        return key in self._records

    def __iter__(self) -> Iterator[ReferenceRecord]:
        return iter(list(self._records.values()))

    def __len__(self) -> int:
        return len(self._records)


__all__ = ["Origin", "ReferenceRecord", "ReferenceTable", "SymbolRecord", "SymbolTable"]
