from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from pathlib import Path

from .cache import CacheManager
from .config import DEFAULT_MAX_PASSES, ImportOrderConfig
from .edits import apply_fixes
from .rule import ImportOrderRule, Violation


def _sha256(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


@dataclass
class SortResult:
    path: Path
    changed: bool
    skipped: bool
    reason: str | None = None
    violations: list[Violation] = field(default_factory=lambda: [])


def fix_source(
    text: str,
    filename: str = "<input>",
    *,
    rule: ImportOrderRule | None = None,
    max_passes: int = DEFAULT_MAX_PASSES,
) -> tuple[str, list[Violation]]:
    """Apply import-order fixes until the text is stable.

    Every pass checks the current text, prepares one fix per violation and
    applies those that do not overlap; the rest are picked up by the next
    pass. Passing continues while the number of violations keeps falling;
    ``max_passes`` bounds the passes in a row that do not reduce it.
    Returns the final text and the violations still present.
    """
    rule = rule or ImportOrderRule()
    fewest: int | None = None
    stalled = 0
    while True:
        violations = rule.check(text, filename)
        if not violations:
            return text, []
        if fewest is None or len(violations) < fewest:
            fewest = len(violations)
            stalled = 0
        else:
            stalled += 1
            if stalled >= max_passes:
                return text, violations
        fixes = [violation.fix(text) for violation in violations]
        new_text, _deferred = apply_fixes(text, fixes)
        if new_text == text:
            return text, violations
        text = new_text


class ImportSorter:
    def __init__(
        self,
        config: ImportOrderConfig,
        cache: CacheManager | None = None,
        rule: ImportOrderRule | None = None,
    ) -> None:
        self.config = config
        self.cache = cache
        self.rule = rule or ImportOrderRule()

    def process_file(self, path: Path, *, check: bool = False) -> SortResult:
        text = path.read_text(encoding="utf-8")
        original_digest = _sha256(text)

        if self.cache and self.cache.is_clean(
            path, original_digest, self.config.signature
        ):
            return SortResult(
                path=path, changed=False, skipped=True, reason="cache-hit"
            )

        violations = self.rule.check(text, path.name)
        if not violations:
            if self.cache:
                self.cache.mark_clean(path, original_digest, self.config.signature)
            return SortResult(path=path, changed=False, skipped=False, reason=None)

        if check:
            return SortResult(
                path=path,
                changed=True,
                skipped=False,
                reason="needs-sorting",
                violations=violations,
            )

        new_text, remaining = fix_source(
            text, path.name, rule=self.rule, max_passes=self.config.max_passes
        )
        if new_text != text:
            path.write_text(new_text, encoding="utf-8")
        if remaining:
            if self.cache:
                self.cache.forget(path)
            return SortResult(
                path=path,
                changed=new_text != text,
                skipped=False,
                reason="partially-sorted",
                violations=remaining,
            )

        if self.cache:
            self.cache.mark_clean(path, _sha256(new_text), self.config.signature)
        return SortResult(path=path, changed=True, skipped=False, reason="updated")
