from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Generic, TypeVar

from .differ import DiffResult
from .errors import ImportOrderError, MissingTokenError
from .parser import ImportDeclaration, ImportSpecifier
from .source import SourceCode, Token, is_comma

E = TypeVar("E", ImportDeclaration, ImportSpecifier)


@dataclass(frozen=True)
class RemoveRange:
    start: int
    end: int


@dataclass(frozen=True)
class InsertAfter:
    anchor: tuple[int, int]
    text: str

    @property
    def offset(self) -> int:
        return self.anchor[1]


EditOperation = RemoveRange | InsertAfter


@dataclass(frozen=True)
class Fix:
    """A single replacement of ``text[start:end]`` built from one violation."""

    start: int
    end: int
    text: str


def merge_operations(text: str, operations: Sequence[EditOperation]) -> Fix:
    spans: list[tuple[int, int, str]] = []
    for operation in operations:
        if isinstance(operation, RemoveRange):
            spans.append((operation.start, operation.end, ""))
        else:
            spans.append((operation.offset, operation.offset, operation.text))
    if not spans:
        raise ImportOrderError("cannot merge an empty edit script")
    spans.sort(key=lambda span: (span[0], span[1]))

    start = spans[0][0]
    end = max(span[1] for span in spans)
    parts: list[str] = []
    cursor = start
    for span_start, span_end, replacement in spans:
        if span_start < cursor:
            raise ImportOrderError(
                f"overlapping edits at offsets {span_start}-{span_end}"
            )
        parts.append(text[cursor:span_start])
        parts.append(replacement)
        cursor = span_end
    parts.append(text[cursor:end])
    return Fix(start=start, end=end, text="".join(parts))


def apply_fixes(text: str, fixes: Iterable[Fix]) -> tuple[str, list[Fix]]:
    """Apply non-overlapping fixes in source order.

    Returns the new text and the fixes that were deferred because they
    touch a range already claimed by an earlier fix.
    """
    output: list[str] = []
    deferred: list[Fix] = []
    cursor = 0
    last_end = -1
    for fix in sorted(fixes, key=lambda item: (item.start, item.end)):
        if fix.start <= last_end:
            deferred.append(fix)
            continue
        output.append(text[cursor : fix.start])
        output.append(fix.text)
        cursor = fix.end
        last_end = fix.end
    output.append(text[cursor:])
    return "".join(output), deferred


class EditScriptBuilder(ABC, Generic[E]):
    """Turns a diff into remove/insert pairs, one per moved element."""

    def __init__(self, source: SourceCode, original: Sequence[E]) -> None:
        self.source = source
        self.original = list(original)

    def build(self, diff: DiffResult[E]) -> list[tuple[E, list[EditOperation]]]:
        return [
            (element, self.edits_for(diff, position, element))
            for position, element in diff.moves
        ]

    def edits_for(
        self, diff: DiffResult[E], position: int, element: E
    ) -> list[EditOperation]:
        removal, text = self.removal(element)
        anchor = diff.anchor_for(position)
        if anchor is None:
            insertion = self.insert_at_start(text)
        else:
            insertion = self.insert_after(anchor, text)
        return [removal, insertion]

    @abstractmethod
    def removal(self, element: E) -> tuple[RemoveRange, str]:
        """Range that deletes ``element`` and the text to re-insert."""

    @abstractmethod
    def insert_at_start(self, text: str) -> InsertAfter: ...

    @abstractmethod
    def insert_after(self, anchor: E, text: str) -> InsertAfter: ...


@dataclass(frozen=True)
class _LineExtent:
    remove_start: int
    remove_end: int
    content_end: int
    indent: str


class StatementEditBuilder(EditScriptBuilder[ImportDeclaration]):
    """Moves whole import declarations between lines."""

    def __init__(
        self, source: SourceCode, original: Sequence[ImportDeclaration]
    ) -> None:
        super().__init__(source, original)
        self.newline = "\r\n" if "\r\n" in source.text else "\n"

    def removal(self, element: ImportDeclaration) -> tuple[RemoveRange, str]:
        extent = self._extent(element)
        text = self.source.get_text(element.start, extent.content_end)
        return RemoveRange(extent.remove_start, extent.remove_end), text

    def insert_at_start(self, text: str) -> InsertAfter:
        first = self.original[0]
        indent = self._extent(first).indent
        return InsertAfter(
            (first.start, first.start), f"{text}{self.newline}{indent}"
        )

    def insert_after(self, anchor: ImportDeclaration, text: str) -> InsertAfter:
        extent = self._extent(anchor)
        return InsertAfter(
            (anchor.start, extent.content_end),
            f"{self.newline}{extent.indent}{text}",
        )

    def _extent(self, node: ImportDeclaration) -> _LineExtent:
        text = self.source.text
        line_start = self.source.line_start(node.start)
        leading = text[line_start : node.start]
        content_end = self._skip_trailing_comments(node.end)

        cursor = content_end
        while cursor < len(text) and text[cursor] in " \t":
            cursor += 1
        at_eof = cursor == len(text)
        if text.startswith("\r\n", cursor):
            line_break = 2
        elif text.startswith("\n", cursor):
            line_break = 1
        else:
            line_break = 0

        if leading.strip() or not (line_break or at_eof):
            return _LineExtent(node.start, node.end, node.end, "")

        if not at_eof:
            return _LineExtent(line_start, cursor + line_break, content_end, leading)
        if line_start > 0:
            # Last line without a final newline: take the preceding break instead.
            previous = 2 if text[line_start - 2 : line_start] == "\r\n" else 1
            return _LineExtent(line_start - previous, cursor, content_end, leading)
        return _LineExtent(line_start, cursor, content_end, leading)

    def _skip_trailing_comments(self, offset: int) -> int:
        text = self.source.text
        end = offset
        cursor = offset
        while True:
            while cursor < len(text) and text[cursor] in " \t":
                cursor += 1
            if text.startswith("//", cursor):
                stop = text.find("\n", cursor)
                stop = len(text) if stop == -1 else stop
                return stop - 1 if text[stop - 1] == "\r" else stop
            if text.startswith("/*", cursor):
                stop = text.find("*/", cursor)
                if stop == -1 or "\n" in text[cursor:stop]:
                    return end
                cursor = end = stop + 2
                continue
            return end


class SpecifierEditBuilder(EditScriptBuilder[ImportSpecifier]):
    """Moves named specifiers between the braces of one declaration."""

    def __init__(
        self,
        source: SourceCode,
        declaration: ImportDeclaration,
        original: Sequence[ImportSpecifier],
    ) -> None:
        super().__init__(source, original)
        self.declaration = declaration
        self.open_brace, self.close_brace = self._braces()
        self.separator = self._separator()

    def removal(self, element: ImportSpecifier) -> tuple[RemoveRange, str]:
        text = self.source.get_text(element.start, element.end)
        index = self.original.index(element)
        following = self._tokens_between(element.end, self.close_brace.start, is_comma)
        if following and index + 1 < len(self.original):
            return RemoveRange(element.start, self.original[index + 1].start), text

        preceding = self._tokens_between(self.open_brace.end, element.start, is_comma)
        if not preceding:
            raise MissingTokenError(
                f"No comma next to import specifier {element.local!r} "
                f"on line {self.source.line_number(element.start)}"
            )
        return RemoveRange(preceding[-1].start, element.end), text

    def insert_at_start(self, text: str) -> InsertAfter:
        first = self.original[0]
        return InsertAfter((first.start, first.start), f"{text}{self.separator}")

    def insert_after(self, anchor: ImportSpecifier, text: str) -> InsertAfter:
        # Prefixing the separator gives an anchor without a trailing comma one.
        return InsertAfter(anchor.range, f"{self.separator}{text}")

    def _tokens_between(
        self, start: int, end: int, token_filter: Callable[[Token], bool]
    ) -> list[Token]:
        return [
            token
            for token in self.declaration.tokens
            if token.start >= start and token.end <= end and token_filter(token)
        ]

    def _braces(self) -> tuple[Token, Token]:
        start, end = self.declaration.range
        line = self.source.line_number(start)
        opening = self._tokens_between(
            start, end, lambda token: token.is_punctuator("{")
        )
        if not opening:
            raise MissingTokenError(
                f"Expected '{{' in import declaration on line {line}"
            )
        closing = self._tokens_between(
            opening[0].end, end, lambda token: token.is_punctuator("}")
        )
        if not closing:
            raise MissingTokenError(
                f"Expected '}}' in import declaration on line {line}"
            )
        return opening[0], closing[0]

    def _separator(self) -> str:
        if len(self.original) >= 2:
            between = self.source.get_text(self.original[0].end, self.original[1].start)
            if between.strip() == ",":
                return between
        return ", "
