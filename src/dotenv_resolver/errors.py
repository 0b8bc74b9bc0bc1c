"""
Error kinds raised or collected while parsing a ``.env`` source.
"""

from __future__ import annotations

import logging
from typing import Iterator, List, Tuple

logger = logging.getLogger(__name__)


class DotenvError(Exception):
    """Base class for every problem found in a ``.env`` source."""

    kind = "error"

    def __init__(
        self,
        message: str,
        key: str | None = None,
        line: int = 0,
        column: int = 0,
        owner: str | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.key = key
        # the definition the problem was found in
        self.owner = owner if owner is not None else key
        self.line = line
        self.column = column

    def __str__(self) -> str:
        return f"{self.line}:{self.column}: {self.kind}: {self.message}"


class DotenvSyntaxError(DotenvError, ValueError):
    """Raised when a definition line is malformed. Fatal to the parse."""

    kind = "syntax error"


class UndefinedVariableError(DotenvError):
    """A reference names a key that is neither defined nor in the environment."""

    kind = "undefined variable"

    def __init__(self, key: str, line: int = 0, column: int = 0, owner: str | None = None):
        super().__init__(f"'{key}' is not defined", key=key, line=line, column=column, owner=owner)


class CircularReferenceError(DotenvError):
    """A key is trapped in a circular chain of references."""

    kind = "circular reference"

    def __init__(self, key: str, line: int = 0, column: int = 0):
        super().__init__(f"'{key}' is part of a circular reference", key=key, line=line, column=column)


class Diagnostics:
    """Ordered, append-only batch of errors collected during one parse."""

    def __init__(self) -> None:
        self._errors: List[DotenvError] = []

    def report(self, error: DotenvError) -> None:
        self._errors.append(error)

    def clear(self) -> None:
        self._errors.clear()

    def flush(self) -> Tuple[DotenvError, ...]:
        """Log every collected error and hand the batch back to the caller."""

        batch = tuple(self._errors)
        for error in batch:
            logger.warning("%s", error)
        self._errors.clear()
        return batch

    def __len__(self) -> int:
        return len(self._errors)

    def __iter__(self) -> Iterator[DotenvError]:
        return iter(self._errors)


__all__ = [
    "CircularReferenceError",
    "Diagnostics",
    "DotenvError",
    "DotenvSyntaxError",
    "UndefinedVariableError",
]
