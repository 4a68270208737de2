from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Generic, TypeVar

from .errors import DiffMismatchError

T = TypeVar("T")


@dataclass
class DiffResult(Generic[T]):
    """Alignment of two orderings of the same elements.

    ``unchanged`` and ``added`` are keyed by position in the target sequence,
    ``removed`` by position in the original one.
    """

    unchanged: dict[int, T] = field(default_factory=lambda: {})
    removed: dict[int, T] = field(default_factory=lambda: {})
    added: dict[int, T] = field(default_factory=lambda: {})

    @property
    def distance(self) -> int:
        return len(self.removed) + len(self.added)

    @property
    def moves(self) -> list[tuple[int, T]]:
        return sorted(self.added.items(), key=lambda item: item[0])

    def anchor_for(self, position: int) -> T | None:
        """Nearest unchanged element whose target position precedes ``position``."""
        preceding = [index for index in self.unchanged if index < position]
        if not preceding:
            return None
        return self.unchanged[max(preceding)]


def _lcs_table(original: Sequence[T], target: Sequence[T]) -> list[list[int]]:
    rows, cols = len(original), len(target)
    table = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(1, rows + 1):
        for j in range(1, cols + 1):
            if original[i - 1] is target[j - 1]:
                table[i][j] = table[i - 1][j - 1] + 1
            else:
                table[i][j] = max(table[i - 1][j], table[i][j - 1])
    return table


def diff_sequences(original: Sequence[T], target: Sequence[T]) -> DiffResult[T]:
    """Diff ``original`` against ``target``, a permutation of the same objects.

    Elements are compared by identity, so equal-looking elements at different
    positions stay distinct. The longest common subsequence is reported as
    unchanged; everything else appears once in ``removed`` and once in
    ``added``.
    """
    result: DiffResult[T] = DiffResult()
    if len(original) == len(target) and all(
        first is second for first, second in zip(original, target)
    ):
        result.unchanged = dict(enumerate(target))
        return result

    table = _lcs_table(original, target)
    kept_original: set[int] = set()
    i, j = len(original), len(target)
    while i > 0 and j > 0:
        if original[i - 1] is target[j - 1]:
            result.unchanged[j - 1] = target[j - 1]
            kept_original.add(i - 1)
            i -= 1
            j -= 1
        elif table[i - 1][j] >= table[i][j - 1]:
            i -= 1
        else:
            j -= 1

    result.unchanged = dict(sorted(result.unchanged.items()))
    result.removed = {
        index: item for index, item in enumerate(original) if index not in kept_original
    }
    result.added = {
        index: item
        for index, item in enumerate(target)
        if index not in result.unchanged
    }

    if len(result.added) != len(result.removed):
        raise DiffMismatchError(len(result.added), len(result.removed))
    return result
