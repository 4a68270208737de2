from __future__ import annotations

import textwrap
from pathlib import Path

import pytest

from importorder import ImportOrderConfig, ImportOrderRule, ImportSorter, fix_source
from importorder.cache import CacheManager
from importorder.cli import main
from importorder.edits import RemoveRange
from importorder.parser import parse_imports
from importorder.rule import Violation
from importorder.source import SourceCode

DASHBOARD_PATH = Path(__file__).parent / "data" / "dashboard.tsx"

EXPECTED_IMPORTS = textwrap.dedent(
    """\
    import type Theme from './theme';
    import type { Layout, Widget } from './types';
    import './dashboard.css';
    import 'normalize.css';
    import * as api from './api';
    import Button from './Button';
    import Chart from './Chart'; // default export
    import {
        clamp,
        Duration,
        formatDate,
    } from '@acme/utils';
    import { useEffect, useMemo, useState } from 'react';
    """
)


def _import_signature(text: str) -> list[tuple[str, str, tuple[str, ...]]]:
    declarations = parse_imports(SourceCode.from_text(text))
    return sorted(
        (
            item.import_kind,
            item.source,
            tuple(sorted(spec.local for spec in item.specifiers)),
        )
        for item in declarations
    )


def test_dashboard_fixture_is_fully_sorted() -> None:
    original = DASHBOARD_PATH.read_text(encoding="utf-8")
    header = original[: original.index("import")]
    body = original[original.index("\nconst TEMPLATE") :]

    fixed, remaining = fix_source(original, DASHBOARD_PATH.name)

    assert remaining == []
    assert fixed == f"{header}{EXPECTED_IMPORTS}{body}"
    assert _import_signature(fixed) == _import_signature(original)
    assert ImportOrderRule().check(fixed, DASHBOARD_PATH.name) == []


def test_process_file_rewrites_and_caches(tmp_path: Path) -> None:
    path = tmp_path / "index.ts"
    path.write_text(
        "import { b, a } from 'mod';\nimport c from 'x';\n", encoding="utf-8"
    )
    config = ImportOrderConfig.load(tmp_path)
    cache = CacheManager(tmp_path / config.cache_file)
    sorter = ImportSorter(config, cache)

    checked = sorter.process_file(path, check=True)
    assert checked.changed
    assert checked.reason == "needs-sorting"
    assert len(checked.violations) == 2
    assert path.read_text(encoding="utf-8").startswith("import { b, a }")

    updated = sorter.process_file(path)
    assert updated.reason == "updated"
    assert path.read_text(encoding="utf-8") == (
        "import c from 'x';\nimport { a, b } from 'mod';\n"
    )

    again = sorter.process_file(path)
    assert again.skipped
    assert again.reason == "cache-hit"


def test_config_reads_pyproject(tmp_path: Path) -> None:
    (tmp_path / "pyproject.toml").write_text(
        textwrap.dedent(
            """
            [tool.importorder]
            extensions = ["ts", ".TSX", "ts"]
            exclude = ["dist/"]
            cache_file = "build/.cache.json"
            max_passes = 0
            """
        ),
        encoding="utf-8",
    )
    config = ImportOrderConfig.load(tmp_path)
    assert config.extensions == [".ts", ".tsx"]
    assert "dist" in config.exclude
    assert "node_modules" in config.exclude
    assert config.cache_file == "build/.cache.json"
    assert config.max_passes == 1
    assert config.matches(Path("component.TSX"))
    assert not config.matches(Path("script.js"))
    assert config.signature != ImportOrderConfig().signature


def test_cache_discards_corrupt_file(tmp_path: Path) -> None:
    cache_path = tmp_path / ".importorder_cache.json"
    cache_path.write_text("{not json", encoding="utf-8")
    cache = CacheManager(cache_path)
    target = tmp_path / "a.ts"
    assert not cache.is_clean(target, "digest", "signature")

    cache.mark_clean(target, "digest", "signature")
    cache.flush()
    reloaded = CacheManager(cache_path)
    assert reloaded.is_clean(target, "digest", "signature")
    assert not reloaded.is_clean(target, "other", "signature")


def test_cli_check_and_fix(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    source_dir = tmp_path / "src"
    source_dir.mkdir()
    unsorted = source_dir / "app.js"
    unsorted.write_text("import b from 'b';\nimport a from 'a';\n", encoding="utf-8")
    (source_dir / "notes.txt").write_text("import z from 'z';\n", encoding="utf-8")
    vendored = tmp_path / "node_modules" / "lib.js"
    vendored.parent.mkdir()
    vendored.write_text("import b from 'b';\nimport a from 'a';\n", encoding="utf-8")

    root = ["--root", str(tmp_path)]
    assert main([str(tmp_path), "--check", *root]) == 1
    output = capsys.readouterr().out
    assert f"[needs-sorting] {unsorted.resolve()}" in output
    assert f"{unsorted.resolve()}:2:1: Import declarations should be sorted." in output
    assert "lib.js" not in output

    assert main([str(tmp_path), *root]) == 0
    assert unsorted.read_text(encoding="utf-8") == (
        "import a from 'a';\nimport b from 'b';\n"
    )
    assert vendored.read_text(encoding="utf-8").startswith("import b")

    assert main([str(tmp_path), "--check", *root]) == 0
    assert "[cache-hit]" in capsys.readouterr().out

    assert main([str(tmp_path), "--check", "--clear-cache", *root]) == 0
    assert "[UNCHANGED]" in capsys.readouterr().out


def test_cli_reports_errors_per_file(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    broken = tmp_path / "broken.ts"
    broken.write_text("import { a from 'x';\n", encoding="utf-8")
    fine = tmp_path / "fine.ts"
    fine.write_text("import b from 'b';\nimport a from 'a';\n", encoding="utf-8")

    assert main([str(tmp_path), "--no-cache", "--root", str(tmp_path)]) == 2
    captured = capsys.readouterr()
    assert f"[ERROR] {broken.resolve()}" in captured.err
    assert broken.read_text(encoding="utf-8") == "import { a from 'x';\n"
    assert fine.read_text(encoding="utf-8") == (
        "import a from 'a';\nimport b from 'b';\n"
    )
    assert not (tmp_path / ".importorder_cache.json").exists()


def test_cli_without_sources(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    assert main([str(tmp_path), "--no-cache"]) == 0
    assert "No JavaScript or TypeScript files found." in capsys.readouterr().out


class _NoProgressRule(ImportOrderRule):
    """Reports the usual violations but offers fixes that change nothing."""

    def check(self, text: str, filename: str = "<input>") -> list[Violation]:
        violations = super().check(text, filename)
        for violation in violations:
            violation.edits = lambda: [RemoveRange(0, 0)]
        return violations


UNSORTED = "import b from 'b';\nimport a from 'a';\n"


def test_fix_source_stops_when_passes_make_no_progress() -> None:
    text, remaining = fix_source(UNSORTED, rule=_NoProgressRule(), max_passes=1)
    assert text == UNSORTED
    assert [violation.node.source for violation in remaining] == ["a"]


def test_process_file_reports_partially_sorted(tmp_path: Path) -> None:
    path = tmp_path / "app.ts"
    path.write_text(UNSORTED, encoding="utf-8")
    cache = CacheManager(tmp_path / ".importorder_cache.json")
    cache.mark_clean(path, "stale", "stale")
    sorter = ImportSorter(ImportOrderConfig(), cache, _NoProgressRule())

    result = sorter.process_file(path)

    assert result.reason == "partially-sorted"
    assert not result.changed
    assert len(result.violations) == 1
    assert not cache.is_clean(path, "stale", "stale")
    assert path.read_text(encoding="utf-8") == UNSORTED


def test_cli_fails_when_a_file_stays_unsorted(
    tmp_path: Path,
    capsys: pytest.CaptureFixture[str],
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setattr("importorder.sorter.ImportOrderRule", _NoProgressRule)
    target = tmp_path / "app.ts"
    target.write_text(UNSORTED, encoding="utf-8")

    assert main([str(target), "--no-cache", "--root", str(tmp_path)]) == 1
    assert f"[partially-sorted] {target.resolve()}" in capsys.readouterr().out


def test_long_specifier_list_is_sorted_by_the_cli(tmp_path: Path) -> None:
    names = [f"n{letter}" for letter in "nmlkjihgfedcba"]
    target = tmp_path / "long.ts"
    target.write_text(f"import {{ {', '.join(names)} }} from 'm';\n", encoding="utf-8")

    assert main([str(target), "--no-cache", "--root", str(tmp_path)]) == 0
    assert target.read_text(encoding="utf-8") == (
        f"import {{ {', '.join(sorted(names))} }} from 'm';\n"
    )
