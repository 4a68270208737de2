from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import NoReturn

from tree_sitter import Node

from .errors import SourceSyntaxError
from .source import SourceCode, Token


class SpecifierKind(Enum):
    DEFAULT = "default"
    NAMESPACE = "namespace"
    NAMED = "named"


@dataclass(eq=False)
class ImportSpecifier:
    kind: SpecifierKind
    local: str
    start: int
    end: int
    imported: str | None = None
    type_only: bool = False

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)


@dataclass(eq=False)
class ImportDeclaration:
    """One ``import`` statement. Instances compare by identity."""

    source: str
    start: int
    end: int
    import_kind: str = "value"
    specifiers: list[ImportSpecifier] = field(default_factory=lambda: [])
    tokens: list[Token] = field(default_factory=lambda: [], repr=False)

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    @property
    def named_specifiers(self) -> list[ImportSpecifier]:
        return [spec for spec in self.specifiers if spec.kind is SpecifierKind.NAMED]


def _first_leaf(node: Node) -> Node:
    while node.children:
        node = node.children[0]
    return node


def _string_value(source: SourceCode, node: Node) -> str:
    return source.node_text(node)[1:-1]


class _DeclarationBuilder:
    def __init__(self, source: SourceCode, node: Node) -> None:
        self.source = source
        self.node = node

    def _fail(self, reason: str) -> NoReturn:
        start, _ = self.source.node_range(self.node)
        line = self.source.line_number(start)
        raise SourceSyntaxError(
            f"Malformed import declaration on line {line}: {reason}"
        )

    def build(self) -> ImportDeclaration | None:
        node = self.node
        if node.has_error:
            self._fail("unexpected or missing token")
        if any(child.type == "import_require_clause" for child in node.children):
            # TypeScript ``import x = require("y")`` is not an import declaration.
            return None
        source_node = node.child_by_field_name("source")
        if source_node is None:
            self._fail("expected a module source string")

        import_kind = "value"
        specifiers: list[ImportSpecifier] = []
        for child in node.children:
            if child.type in {"type", "typeof"}:
                import_kind = "type"
            elif child.type == "import_clause":
                specifiers = self._clause(child)

        start, end = self.source.node_range(node)
        return ImportDeclaration(
            source=_string_value(self.source, source_node),
            start=start,
            end=end,
            import_kind=import_kind,
            specifiers=specifiers,
            tokens=list(self.source.leaves(node)),
        )

    def _clause(self, clause: Node) -> list[ImportSpecifier]:
        specifiers: list[ImportSpecifier] = []
        for child in clause.named_children:
            if child.type == "identifier":
                specifiers.append(self._specifier(SpecifierKind.DEFAULT, child, child))
            elif child.type == "namespace_import":
                local = next(
                    item for item in child.named_children if item.type == "identifier"
                )
                specifiers.append(
                    self._specifier(SpecifierKind.NAMESPACE, child, local)
                )
            elif child.type == "named_imports":
                specifiers.extend(
                    self._named(item)
                    for item in child.named_children
                    if item.type == "import_specifier"
                )
        return specifiers

    def _specifier(
        self, kind: SpecifierKind, node: Node, local: Node
    ) -> ImportSpecifier:
        start, end = self.source.node_range(node)
        return ImportSpecifier(
            kind=kind, local=self.source.node_text(local), start=start, end=end
        )

    def _named(self, node: Node) -> ImportSpecifier:
        name = node.child_by_field_name("name")
        if name is None:
            self._fail("expected an imported name")
        alias = node.child_by_field_name("alias")
        if name.type == "string":
            imported = _string_value(self.source, name)
        else:
            imported = self.source.node_text(name)
        start, end = self.source.node_range(node)
        return ImportSpecifier(
            kind=SpecifierKind.NAMED,
            local=self.source.node_text(alias) if alias is not None else imported,
            imported=imported,
            start=start,
            end=end,
            type_only=any(
                child.type in {"type", "typeof"} and not child.is_named
                for child in node.children
            ),
        )


def parse_imports(source: SourceCode) -> list[ImportDeclaration]:
    """Return every top-level import declaration in source order."""
    declarations: list[ImportDeclaration] = []
    for tree in source.trees:
        for node in tree.root_node.children:
            if node.type != "import_statement":
                if node.has_error and _first_leaf(node).type == "import":
                    _DeclarationBuilder(source, node)._fail("unexpected token")
                continue
            declaration = _DeclarationBuilder(source, node).build()
            if declaration is not None:
                declarations.append(declaration)
    return declarations
