from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable
from pathlib import Path

from .cache import CacheManager
from .config import ImportOrderConfig
from .errors import ImportOrderError
from .sorter import ImportSorter, SortResult

ROOT_MARKERS = ("pyproject.toml", "package.json")


def _project_root(target: Path) -> Path:
    current = target if target.is_dir() else target.parent
    for ancestor in [current, *current.parents]:
        if any((ancestor / marker).exists() for marker in ROOT_MARKERS):
            return ancestor
    return current


def _iter_source_files(
    targets: Iterable[Path], config: ImportOrderConfig
) -> list[Path]:
    excluded = set(config.exclude)
    files: set[Path] = set()
    for target in targets:
        candidates = target.rglob("*") if target.is_dir() else [target]
        for candidate in candidates:
            if excluded.intersection(candidate.parts):
                continue
            if candidate.is_file() and config.matches(candidate):
                files.add(candidate)
    return sorted(files)


def _print_result(result: SortResult) -> None:
    if result.skipped or result.changed or result.violations:
        status = result.reason or "UPDATED"
    else:
        status = "UNCHANGED"
    print(f"[{status}] {result.path}")
    for violation in result.violations:
        print(f"{result.path}:{violation.line}:{violation.column}: {violation.message}")


def main(argv: list[str] | None = None) -> int:
    """Exit 0 when every file ends sorted, 1 when some stay unsorted, 2 on errors."""
    parser = argparse.ArgumentParser(
        prog="importorder",
        description="Sort JavaScript and TypeScript import declarations.",
    )
    parser.add_argument("paths", nargs="*", default=["."], type=Path)
    parser.add_argument(
        "--check", action="store_true", help="report unsorted files, write nothing"
    )
    parser.add_argument("--no-cache", action="store_true")
    parser.add_argument("--clear-cache", action="store_true")
    parser.add_argument(
        "--root", type=Path, help="directory holding pyproject.toml and the cache"
    )
    args = parser.parse_args(argv)

    targets = [path.resolve() for path in args.paths]
    root = (args.root or _project_root(targets[0])).resolve()
    config = ImportOrderConfig.load(root)
    cache = None if args.no_cache else CacheManager(root / config.cache_file)
    if cache and args.clear_cache:
        cache.clear()

    source_files = _iter_source_files(targets, config)
    if not source_files:
        print("No JavaScript or TypeScript files found.")
        return 0

    sorter = ImportSorter(config, cache)
    unsorted = failed = False
    for file_path in source_files:
        try:
            result = sorter.process_file(file_path, check=args.check)
        except (ImportOrderError, OSError, UnicodeDecodeError) as exc:
            failed = True
            print(f"[ERROR] {file_path}: {exc}", file=sys.stderr)
            continue
        _print_result(result)
        unsorted = unsorted or bool(result.violations)

    if cache:
        cache.flush()
    if failed:
        return 2
    return 1 if unsorted else 0


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
