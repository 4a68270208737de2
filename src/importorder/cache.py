from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any

CACHE_VERSION = 1


def _empty() -> dict[str, Any]:
    return {"version": CACHE_VERSION, "files": {}}


class CacheManager:
    """Remembers files that were already in canonical import order."""

    def __init__(self, cache_path: Path) -> None:
        self._path = cache_path
        self._data: dict[str, Any] = _empty()
        self._loaded = False
        self._dirty = False

    def load(self) -> None:
        if self._loaded:
            return
        if self._path.exists():
            try:
                data = json.loads(self._path.read_text(encoding="utf-8"))
            except (json.JSONDecodeError, OSError):
                data = _empty()
            if not isinstance(data, dict) or data.get("version") != CACHE_VERSION:
                data = _empty()
            self._data = data
        self._loaded = True

    def clear(self) -> None:
        self._data = _empty()
        self._loaded = True
        self._dirty = True

    def _key(self, file_path: Path) -> str:
        try:
            return file_path.relative_to(self._path.parent).as_posix()
        except ValueError:
            return str(file_path)

    def is_clean(self, file_path: Path, digest: str, signature: str) -> bool:
        self.load()
        entry = self._data.get("files", {}).get(self._key(file_path))
        return bool(
            entry
            and entry.get("hash") == digest
            and entry.get("signature") == signature
        )

    def mark_clean(self, file_path: Path, digest: str, signature: str) -> None:
        self.load()
        files = self._data.setdefault("files", {})
        files[self._key(file_path)] = {
            "hash": digest,
            "signature": signature,
            "timestamp": time.time(),
        }
        self._dirty = True

    def forget(self, file_path: Path) -> None:
        self.load()
        if self._data.get("files", {}).pop(self._key(file_path), None) is not None:
            self._dirty = True

    def flush(self) -> None:
        if not self._dirty:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        text = json.dumps(self._data, indent=2, sort_keys=True)
        self._path.write_text(text, encoding="utf-8")
        self._dirty = False
