"""Canonical ordering of import declarations and their named specifiers."""

from __future__ import annotations

import unicodedata
from collections.abc import Callable, Sequence
from enum import IntEnum

from .parser import ImportDeclaration, ImportSpecifier, SpecifierKind

IMPORT_KINDS: list[str] = ["type", "value"]

CollationKey = tuple[tuple[tuple[int, str], ...], str]

# Primary weights of the ICU root collation for ASCII punctuation and symbols.
_PUNCTUATION_ORDER = "_-,;:!?.'\"()[]{}@*/\\&#%`^+<=>|~$"
_PUNCTUATION_RANKS: dict[str, int] = {
    char: rank for rank, char in enumerate(_PUNCTUATION_ORDER)
}
_OTHER_SYMBOL_RANK = len(_PUNCTUATION_ORDER)
_DIGIT_RANK = _OTHER_SYMBOL_RANK + 1
_LETTER_RANK = _DIGIT_RANK + 1


class Bucket(IntEnum):
    SIDE_EFFECT = 0
    NAMESPACE = 1
    DEFAULT = 2
    NAMED = 3


def collation_key(value: str) -> CollationKey:
    """Case-insensitive, accent-folding sort key for identifiers and sources.

    Characters are weighted as in the ICU root collation: whitespace, then
    punctuation and symbols in ``_PUNCTUATION_ORDER``, then any other symbol,
    then digits, then letters. The casefolded text breaks ties between
    strings that differ only in accents.
    """
    folded = value.casefold()
    base = "".join(
        char
        for char in unicodedata.normalize("NFKD", folded)
        if not unicodedata.combining(char)
    )
    primary = tuple((_char_rank(char), char) for char in base)
    return (primary, folded)


def _char_rank(char: str) -> int:
    if char.isspace():
        return -1
    rank = _PUNCTUATION_RANKS.get(char)
    if rank is not None:
        return rank
    if char.isalpha():
        return _LETTER_RANK
    if char.isdigit():
        return _DIGIT_RANK
    return _OTHER_SYMBOL_RANK


def classify(declaration: ImportDeclaration) -> Bucket:
    specifiers = declaration.specifiers
    if not specifiers:
        return Bucket.SIDE_EFFECT
    first = specifiers[0].kind
    if first is SpecifierKind.DEFAULT:
        return Bucket.DEFAULT
    if first is SpecifierKind.NAMESPACE:
        return Bucket.NAMESPACE
    return Bucket.NAMED


def _source_key(declaration: ImportDeclaration) -> CollationKey:
    return collation_key(declaration.source)


def _binding_key(declaration: ImportDeclaration) -> CollationKey:
    return collation_key(declaration.specifiers[0].local)


_BUCKET_KEYS: dict[Bucket, Callable[[ImportDeclaration], CollationKey]] = {
    Bucket.SIDE_EFFECT: _source_key,
    Bucket.NAMESPACE: _binding_key,
    Bucket.DEFAULT: _binding_key,
    Bucket.NAMED: _source_key,
}


def sort_import_declarations(
    declarations: Sequence[ImportDeclaration],
) -> list[ImportDeclaration]:
    """Return ``declarations`` in canonical order.

    Type imports precede value imports; within each kind the buckets follow
    :class:`Bucket` order and each bucket is sorted by its own key. ``sorted``
    is stable, so declarations with equal keys keep their source order.
    """
    partitions: dict[str, dict[Bucket, list[ImportDeclaration]]] = {
        kind: {bucket: [] for bucket in Bucket} for kind in IMPORT_KINDS
    }
    for declaration in declarations:
        kind = "type" if declaration.import_kind == "type" else "value"
        partitions[kind][classify(declaration)].append(declaration)

    ordered: list[ImportDeclaration] = []
    for kind in IMPORT_KINDS:
        for bucket in Bucket:
            ordered.extend(sorted(partitions[kind][bucket], key=_BUCKET_KEYS[bucket]))
    return ordered


def specifier_key(specifier: ImportSpecifier) -> CollationKey:
    return collation_key(specifier.imported or specifier.local)


def sort_specifiers(specifiers: Sequence[ImportSpecifier]) -> list[ImportSpecifier]:
    return sorted(specifiers, key=specifier_key)
