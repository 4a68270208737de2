from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import tree_sitter_languages
from tree_sitter import Node, Range, Tree

# JSX is legal in plain JavaScript modules, so they go through the tsx grammar.
# The typescript grammar is kept for files where ``<T>value`` is a type cast.
_TYPESCRIPT_SUFFIXES = (".ts", ".mts", ".cts", ".svelte")


def language_for(filename: str) -> str:
    """Name of the tree-sitter grammar used to parse ``filename``."""
    return "typescript" if filename.lower().endswith(_TYPESCRIPT_SUFFIXES) else "tsx"


@dataclass(frozen=True)
class Token:
    kind: str
    value: str
    start: int
    end: int

    @property
    def range(self) -> tuple[int, int]:
        return (self.start, self.end)

    def is_punctuator(self, value: str) -> bool:
        return self.kind == value


def is_comma(token: Token) -> bool:
    return token.is_punctuator(",")


def _char_offsets(text: str) -> list[int] | None:
    if text.isascii():
        return None
    offsets: list[int] = []
    for index, char in enumerate(text):
        offsets.extend([index] * len(char.encode("utf-8")))
    offsets.append(len(text))
    return offsets


def _point(data: bytes, offset: int) -> tuple[int, int]:
    row = data.count(b"\n", 0, offset)
    last_nl = data.rfind(b"\n", 0, offset)
    return (row, offset - last_nl - 1)


@dataclass
class SourceCode:
    """A source buffer with its syntax trees and line lookups.

    Offsets handed out by this class are ``str`` indices into ``text``;
    tree-sitter byte offsets are translated on the way out.
    """

    text: str
    trees: list[Tree] = field(default_factory=lambda: [])
    _offsets: list[int] | None = field(default=None, repr=False)

    @classmethod
    def from_text(
        cls,
        text: str,
        *,
        regions: list[tuple[int, int]] | None = None,
        language: str = "tsx",
    ) -> SourceCode:
        """Parse ``text``, one tree per region.

        ``regions`` are ``(start, end)`` character spans, such as the bodies
        of Svelte ``<script>`` blocks. ``None`` parses the whole text.
        """
        if regions is None:
            regions = [(1 if text.startswith("\ufeff") else 0, len(text))]
        data = text.encode("utf-8")
        parser = tree_sitter_languages.get_parser(language)
        trees: list[Tree] = []
        for start, end in regions:
            start_byte = len(text[:start].encode("utf-8"))
            end_byte = start_byte + len(text[start:end].encode("utf-8"))
            if start_byte == end_byte:
                continue
            parser.set_included_ranges(
                [
                    Range(
                        _point(data, start_byte),
                        _point(data, end_byte),
                        start_byte,
                        end_byte,
                    )
                ]
            )
            trees.append(parser.parse(data))
        return cls(text=text, trees=trees, _offsets=_char_offsets(text))

    def offset(self, byte_offset: int) -> int:
        if self._offsets is None:
            return byte_offset
        return self._offsets[byte_offset]

    def node_range(self, node: Node) -> tuple[int, int]:
        return (self.offset(node.start_byte), self.offset(node.end_byte))

    def node_text(self, node: Node) -> str:
        return self.get_text(*self.node_range(node))

    def leaves(self, node: Node) -> Iterator[Token]:
        """Yield the tokens under ``node`` in source order."""
        if not node.children:
            start, end = self.node_range(node)
            yield Token(node.type, self.text[start:end], start, end)
            return
        for child in node.children:
            yield from self.leaves(child)

    def get_text(self, start: int, end: int) -> str:
        return self.text[start:end]

    def line_start(self, offset: int) -> int:
        return self.text.rfind("\n", 0, offset) + 1

    def line_number(self, offset: int) -> int:
        return self.text.count("\n", 0, offset) + 1

    def column(self, offset: int) -> int:
        return offset - self.line_start(offset) + 1
