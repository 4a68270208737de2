from __future__ import annotations


class ImportOrderError(Exception):
    """Base class for failures that abort processing of a single file."""


class SourceSyntaxError(ImportOrderError):
    pass


class MissingTokenError(ImportOrderError):
    pass


class DiffMismatchError(ImportOrderError):
    def __init__(self, added: int, removed: int) -> None:
        super().__init__(
            "import-order: diff mismatch: number of additions and deletions "
            f"should be the same (added={added}, removed={removed})"
        )
        self.added = added
        self.removed = removed
