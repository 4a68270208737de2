"""importorder sorts JavaScript and TypeScript import declarations in place."""

from .config import ImportOrderConfig
from .differ import DiffResult, diff_sequences
from .errors import (
    DiffMismatchError,
    ImportOrderError,
    MissingTokenError,
    SourceSyntaxError,
)
from .ordering import sort_import_declarations, sort_specifiers
from .rule import ImportOrderRule, Violation
from .sorter import ImportSorter, SortResult, fix_source

__all__ = [
    "DiffMismatchError",
    "DiffResult",
    "ImportOrderConfig",
    "ImportOrderError",
    "ImportOrderRule",
    "ImportSorter",
    "MissingTokenError",
    "SortResult",
    "SourceSyntaxError",
    "Violation",
    "diff_sequences",
    "fix_source",
    "sort_import_declarations",
    "sort_specifiers",
]
