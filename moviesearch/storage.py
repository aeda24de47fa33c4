"""
MovieSearch — Local Store

Durable key-value persistence for the identity registry, the current
identity and favorites. Values are opaque strings; callers encode them
as JSON.

Design patterns:
  - Repository: get / set / remove behind an abstract interface
  - Factory: create_store() picks the implementation from settings
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from moviesearch.config import Settings

logger = logging.getLogger(__name__)


class LocalStore(ABC):
    """Synchronous string KV store. A missing key is a valid empty state."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def remove(self, key: str) -> None:
        ...


class MemoryStore(LocalStore):
    """Process-local store, lost on restart. Used in tests and by default."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(LocalStore):
    """
    Store backed by a single JSON object on disk.

    The whole file is rewritten on every mutation through a temp file
    and os.replace(), so a crash mid-write never leaves a torn file.
    """

    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)
        self._data: Dict[str, str] = self._load()

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Local store %s unreadable, starting empty: %s", self.path, exc)
            return {}
        if not isinstance(raw, dict):
            logger.warning("Local store %s is not a JSON object, starting empty", self.path)
            return {}
        return {str(k): v for k, v in raw.items() if isinstance(v, str)}

    def _flush(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                json.dump(self._data, fh, ensure_ascii=False, indent=2)
            os.replace(tmp, self.path)
        except BaseException:
            if os.path.exists(tmp):
                os.unlink(tmp)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value
        self._flush()

    def remove(self, key: str) -> None:
        if self._data.pop(key, None) is not None:
            self._flush()


def create_store(cfg: Settings) -> LocalStore:
    """Factory: JSON file store when a path is configured, memory otherwise."""
    if cfg.storage_path:
        logger.info("Local store: %s", cfg.storage_path)
        return JsonFileStore(cfg.storage_path)
    logger.info("Local store: in-memory (set STORAGE_PATH to persist)")
    return MemoryStore()
