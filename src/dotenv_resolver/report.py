"""
Tabular views of parse results for the command line.
"""

from __future__ import annotations

from typing import Iterable

import pandas as pd

from .parser import ParseResult

VALUE_COLUMNS = ["source", "key", "value", "published", "diagnostics"]
DIAGNOSTIC_COLUMNS = ["source", "line", "column", "kind", "key", "message"]


def build_values_frame(results: Iterable[tuple[str, ParseResult]]) -> pd.DataFrame:
    """One row per local key, with how many diagnostics name it."""

    rows = []
    for source, result in results:
        published = set(result.published)
        for key, value in result.values.items():
            rows.append(
                {
                    "source": source,
                    "key": key,
                    "value": value,
                    "published": key in published,
                    "diagnostics": sum(1 for error in result.diagnostics if error.owner == key),
                }
            )
    return pd.DataFrame(rows, columns=VALUE_COLUMNS)


def build_diagnostics_frame(results: Iterable[tuple[str, ParseResult]]) -> pd.DataFrame:
    rows = [
        {
            "source": source,
            "line": error.line,
            "column": error.column,
            "kind": error.kind,
            "key": error.key,
            "message": error.message,
        }
        for source, result in results
        for error in result.diagnostics
    ]
    return pd.DataFrame(rows, columns=DIAGNOSTIC_COLUMNS)


__all__ = ["build_diagnostics_frame", "build_values_frame"]
