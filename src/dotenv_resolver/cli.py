"""
Command line interface for resolving dotenv files.
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import shlex
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .config import ConfigError, LoaderConfig, SourceConfig, load_config
from .errors import DotenvSyntaxError
from .parser import DotenvParser, ParseResult
from .report import build_diagnostics_frame, build_values_frame

logger = logging.getLogger(__name__)


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Resolve and load .env files with nested interpolation")
    parser.add_argument("paths", nargs="*", help="Dotenv files to load (default: .env)")
    parser.add_argument(
        "--config",
        default=os.getenv("DOTENV_RESOLVER_CONFIG"),
        help="Path to a YAML config listing the sources to load. Ignored when paths are given.",
    )
    parser.add_argument("--overwrite", action="store_true", help="Replace variables that already exist")
    parser.add_argument("--no-interpolate", action="store_true", help="Keep ${VAR} references as raw text")
    parser.add_argument(
        "--format",
        choices=["table", "env", "json"],
        default="table",
        help="How to print the resolved variables",
    )
    parser.add_argument("--strict", action="store_true", help="Exit with status 1 when diagnostics were reported")
    parser.add_argument("--dry-run", action="store_true", help="Resolve without registering variables")
    parser.add_argument("--verbose", action="store_true", help="Log every resolver sweep")
    return parser.parse_args(argv)


def _build_config(args: argparse.Namespace) -> LoaderConfig:
    if args.paths or not args.config:
        sources = [
            SourceConfig(path=path, overwrite=args.overwrite, interpolate=not args.no_interpolate, required=True)
            for path in (args.paths or [".env"])
        ]
        return LoaderConfig(sources=sources, strict=args.strict)
    config = load_config(args.config)
    config.strict = config.strict or args.strict
    for source in config.sources:
        source.overwrite = source.overwrite or args.overwrite
        source.interpolate = source.interpolate and not args.no_interpolate
    return config


def _print_results(results: List[tuple[str, ParseResult]], output_format: str) -> None:
    if output_format == "env":
        for _, result in results:
            for key, value in result.values.items():
                print(f"{key}={shlex.quote(value)}")
        return

    if output_format == "json":
        payload = {
            source: {
                "values": result.values,
                "published": result.published,
                "diagnostics": [
                    {"line": error.line, "column": error.column, "kind": error.kind, "message": error.message}
                    for error in result.diagnostics
                ],
            }
            for source, result in results
        }
        print(json.dumps(payload, indent=2))
        return

    print("\nResolved variables\n------------------")
    print(build_values_frame(results).to_string(index=False))
    diagnostics = build_diagnostics_frame(results)
    if not diagnostics.empty:
        print("\nDiagnostics\n-----------")
        print(diagnostics.to_string(index=False))


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    try:
        config = _build_config(args)
    except ConfigError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else getattr(logging, config.log_level),
        format="%(levelname)s %(name)s: %(message)s",
    )

    parser = DotenvParser()
    results: List[tuple[str, ParseResult]] = []
    for source in config.sources:
        path = Path(source.path)
        if not path.exists():
            if source.required:
                print(f"error: dotenv file not found: {path}", file=sys.stderr)
                return 2
            logger.info("Skipping missing dotenv file %s", path)
            continue

        with path.open("r", encoding="utf-8") as handle:
            try:
                if args.dry_run:
                    result = parser.resolve(handle, overwrite=source.overwrite, interpolate=source.interpolate)
                else:
                    result = parser.parse(handle, overwrite=source.overwrite, interpolate=source.interpolate)
            except DotenvSyntaxError as exc:
                print(f"{path}:{exc}", file=sys.stderr)
                return 1
        results.append((str(path), result))

    _print_results(results, args.format)

    if config.strict and any(not result.ok for _, result in results):
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
