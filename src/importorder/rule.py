from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from functools import partial
from typing import Any

from .differ import DiffResult, diff_sequences
from .edits import (
    EditOperation,
    EditScriptBuilder,
    Fix,
    SpecifierEditBuilder,
    StatementEditBuilder,
    merge_operations,
)
from .ordering import sort_import_declarations, sort_specifiers
from .parser import ImportDeclaration, ImportSpecifier, parse_imports
from .source import SourceCode, language_for

DECLARATIONS_MESSAGE = "Import declarations should be sorted."
SPECIFIERS_MESSAGE = "Import specifiers should be sorted."

_SCRIPT_BLOCK = re.compile(
    r"<script\b[^>]*>(.*?)</script\s*>", re.DOTALL | re.IGNORECASE
)


@dataclass
class Violation:
    node: ImportDeclaration | ImportSpecifier
    message: str
    line: int
    column: int
    edits: Callable[[], list[EditOperation]]

    def fix(self, text: str) -> Fix:
        return merge_operations(text, self.edits())


def is_svelte_file(filename: str) -> bool:
    return ".svelte" in filename


def script_regions(text: str) -> list[tuple[int, int]]:
    return [match.span(1) for match in _SCRIPT_BLOCK.finditer(text)]


def import_groups(
    source: SourceCode, regions: list[tuple[int, int]] | None = None
) -> list[list[ImportDeclaration]]:
    """Split the file's imports into independently ordered sequences.

    Plain modules form a single sequence. Components with several script
    blocks (a Svelte instance script next to a ``context="module"`` one)
    get one sequence per block so imports never move between blocks.
    """
    declarations = parse_imports(source)
    if regions is None:
        return [declarations] if declarations else []
    groups: list[list[ImportDeclaration]] = []
    for start, end in regions:
        group = [item for item in declarations if start <= item.start < end]
        if group:
            groups.append(group)
    return groups


class ImportOrderRule:
    fixable = True

    def check(self, text: str, filename: str = "<input>") -> list[Violation]:
        regions = script_regions(text) if is_svelte_file(filename) else None
        source = SourceCode.from_text(
            text, regions=regions, language=language_for(filename)
        )

        violations: list[Violation] = []
        for declarations in import_groups(source, regions):
            for declaration in declarations:
                violations.extend(self._check_specifiers(source, declaration))
            violations.extend(self._check_declarations(source, declarations))
        return violations

    def _check_specifiers(
        self, source: SourceCode, declaration: ImportDeclaration
    ) -> list[Violation]:
        named = declaration.named_specifiers
        if not named:
            return []
        diff = diff_sequences(named, sort_specifiers(named))
        if not diff.distance:
            return []
        builder = SpecifierEditBuilder(source, declaration, named)
        return self._report(source, builder, diff, SPECIFIERS_MESSAGE)

    def _check_declarations(
        self, source: SourceCode, declarations: list[ImportDeclaration]
    ) -> list[Violation]:
        diff = diff_sequences(declarations, sort_import_declarations(declarations))
        if not diff.distance:
            return []
        builder = StatementEditBuilder(source, declarations)
        return self._report(source, builder, diff, DECLARATIONS_MESSAGE)

    def _report(
        self,
        source: SourceCode,
        builder: EditScriptBuilder[Any],
        diff: DiffResult[Any],
        message: str,
    ) -> list[Violation]:
        # Edits are computed lazily, only when the caller asks for a fix.
        return [
            Violation(
                node=node,
                message=message,
                line=source.line_number(node.start),
                column=source.column(node.start),
                edits=partial(builder.edits_for, diff, position, node),
            )
            for position, node in diff.moves
        ]
