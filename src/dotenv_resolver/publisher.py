"""
Writes resolved symbols into the process environment.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, List, MutableMapping

from .symbols import SymbolRecord

logger = logging.getLogger(__name__)


class EnvironmentPublisher:
    """Thin adapter around a mutable environment mapping (``os.environ`` by default)."""

    def __init__(self, environ: MutableMapping[str, str] | None = None):
        self.environ = environ if environ is not None else os.environ

    def set(self, key: str, value: str, overwrite: bool) -> bool:
        """
        Set ``key`` to ``value``.

        An existing variable is only replaced when ``overwrite`` is true. Returns whether
        the variable was written.
        """

        if not overwrite and key in self.environ:
            logger.debug("Keeping existing value of %s", key)
            return False
        self.environ[key] = value
        return True

    def publish(self, records: Iterable[SymbolRecord], overwrite: bool) -> List[str]:
        """Register every local record and return the keys that were written."""

        written = [record.key for record in records if record.local and self.set(record.key, record.value, overwrite)]
        logger.debug("Published %d variable(s)", len(written))
        return written


__all__ = ["EnvironmentPublisher"]
