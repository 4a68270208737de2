from __future__ import annotations

import hashlib
import json
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_EXTENSIONS: list[str] = [
    ".js",
    ".jsx",
    ".mjs",
    ".cjs",
    ".ts",
    ".tsx",
    ".mts",
    ".cts",
    ".svelte",
]
DEFAULT_EXCLUDE: list[str] = [".git", ".venv", "__pycache__", "node_modules"]
# Fix passes in a row that may leave the violation count unchanged.
DEFAULT_MAX_PASSES = 10


def _normalize_extensions(extensions: list[str] | None) -> list[str]:
    if not extensions:
        return DEFAULT_EXTENSIONS.copy()
    cleaned: list[str] = []
    for raw in extensions:
        item = raw.strip().lower()
        if not item:
            continue
        if not item.startswith("."):
            item = f".{item}"
        if item not in cleaned:
            cleaned.append(item)
    return cleaned or DEFAULT_EXTENSIONS.copy()


def _merge_exclude(extra: list[str] | None) -> list[str]:
    merged = DEFAULT_EXCLUDE.copy()
    if extra:
        for raw in extra:
            name = raw.strip().strip("/")
            if name and name not in merged:
                merged.append(name)
    return merged


@dataclass
class ImportOrderConfig:
    extensions: list[str] = field(default_factory=lambda: DEFAULT_EXTENSIONS.copy())
    exclude: list[str] = field(default_factory=lambda: DEFAULT_EXCLUDE.copy())
    cache_file: str = ".importorder_cache.json"
    max_passes: int = DEFAULT_MAX_PASSES

    @classmethod
    def load(cls, root: Path) -> ImportOrderConfig:
        pyproject = root / "pyproject.toml"
        extensions: list[str] | None = None
        exclude: list[str] | None = None
        cache_file = ".importorder_cache.json"
        max_passes = DEFAULT_MAX_PASSES

        if pyproject.exists():
            with pyproject.open("rb") as handle:
                data = tomllib.load(handle)
            tool_cfg = data.get("tool", {}).get("importorder", {})
            extensions = tool_cfg.get("extensions")
            exclude = tool_cfg.get("exclude")
            cache_file = tool_cfg.get("cache_file", cache_file)
            max_passes = int(tool_cfg.get("max_passes", max_passes))

        return cls(
            extensions=_normalize_extensions(extensions),
            exclude=_merge_exclude(exclude),
            cache_file=cache_file,
            max_passes=max(1, max_passes),
        )

    @property
    def signature(self) -> str:
        payload: dict[str, str | int | list[str]] = {
            "extensions": self.extensions,
            "exclude": self.exclude,
            "max_passes": self.max_passes,
        }
        serialized = json.dumps(payload, sort_keys=True).encode("utf-8")
        return hashlib.sha256(serialized).hexdigest()

    def matches(self, path: Path) -> bool:
        name = path.name.lower()
        return any(name.endswith(extension) for extension in self.extensions)
