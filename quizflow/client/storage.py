"""Durable key/value storage backends for the quiz client.

`LocalStorage` mirrors the browser localStorage surface (string keys and
string values). `FileStorage` keeps one file per key, named by the
percent-encoded key, and writes atomically; `MemoryStorage` is
process-local and can simulate a disabled or full store.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, Optional, Protocol
from urllib.parse import quote, unquote

from quizflow.errors import PersistenceUnavailable

logger = logging.getLogger(__name__)


class LocalStorage(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    def __init__(self, *, available: bool = True, quota_bytes: Optional[int] = None) -> None:
        self.available = available
        self.quota_bytes = quota_bytes
        self._items: Dict[str, str] = {}

    def _check(self) -> None:
        if not self.available:
            raise PersistenceUnavailable("storage is disabled")

    def get_item(self, key: str) -> Optional[str]:
        self._check()
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._check()
        if self.quota_bytes is not None:
            used = sum(len(v) for k, v in self._items.items() if k != key)
            if used + len(value) > self.quota_bytes:
                raise PersistenceUnavailable("storage quota exceeded")
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._check()
        self._items.pop(key, None)

    def keys(self) -> list[str]:
        return sorted(self._items)


class FileStorage:
    def __init__(self, directory: str | os.PathLike[str]) -> None:
        self.directory = Path(directory)

    def _path(self, key: str) -> Path:
        # Percent-encoded so distinct keys never share a file
        return self.directory / f"{quote(key, safe='')}.json"

    def keys(self) -> list[str]:
        if not self.directory.is_dir():
            return []
        return sorted(unquote(p.name[: -len(".json")]) for p in self.directory.glob("*.json"))

    def get_item(self, key: str) -> Optional[str]:
        path = self._path(key)
        if not path.exists():
            return None
        return path.read_text(encoding="utf-8")

    def set_item(self, key: str, value: str) -> None:
        self.directory.mkdir(parents=True, exist_ok=True)
        path = self._path(key)
        tmp_path = path.with_suffix(path.suffix + ".tmp")
        tmp_path.write_text(value, encoding="utf-8")
        os.replace(tmp_path, path)

    def remove_item(self, key: str) -> None:
        try:
            self._path(key).unlink()
        except FileNotFoundError:
            pass


__all__ = ["LocalStorage", "MemoryStorage", "FileStorage"]
