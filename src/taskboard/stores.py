from __future__ import annotations

import json
import logging
import os
from abc import ABC, abstractmethod
from threading import RLock
from typing import Dict, Optional

from .errors import StoreUnavailableError
from .settings import Settings, get_settings

logger = logging.getLogger(__name__)


# PUBLIC_INTERFACE
class KeyValueStore(ABC):
    """Abstract contract for the opaque key-value medium the board persists into."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the raw value stored under key, or None if absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def has(self, key: str) -> bool:
        """Return True if a value exists under key."""


class InMemoryStore(KeyValueStore):
    """
    Thread-safe in-memory store suitable for testing and default runtime.
    """

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self._lock = RLock()
        self._items: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._items.get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            self._items[key] = value

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._items


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object file mapping keys to raw string values.

    The whole file is read on every access and rewritten on every set, which
    matches the whole-collection read/write pattern of the board.
    """

    def __init__(self, path: str) -> None:
        try:
            os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
        except OSError as e:
            raise StoreUnavailableError("<file>", str(e)) from e
        self._path = path
        self._lock = RLock()

    def _read_all(self, key: str, discard_corrupt: bool = False) -> Dict[str, str]:
        if not os.path.exists(self._path):
            return {}
        try:
            with open(self._path, "rb") as f:
                raw = f.read()
        except OSError as e:
            raise StoreUnavailableError(key, str(e)) from e
        try:
            data = json.loads(raw.decode("utf-8"))
            if not isinstance(data, dict):
                raise ValueError("store file does not hold a JSON object")
        except ValueError as e:
            if not discard_corrupt:
                raise StoreUnavailableError(key, str(e)) from e
            logger.warning("Discarding unreadable store file", extra={"path": self._path, "reason": str(e)})
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        with self._lock:
            return self._read_all(key).get(key)

    def set(self, key: str, value: str) -> None:
        with self._lock:
            # A corrupt file is replaced; unreadable or unwritable files still raise.
            data = self._read_all(key, discard_corrupt=True)
            data[key] = value
            tmp_path = f"{self._path}.tmp"
            try:
                with open(tmp_path, "w", encoding="utf-8") as f:
                    json.dump(data, f, indent=2, ensure_ascii=False)
                os.replace(tmp_path, self._path)
            except OSError as e:
                raise StoreUnavailableError(key, str(e)) from e

    def has(self, key: str) -> bool:
        with self._lock:
            return key in self._read_all(key)


# PUBLIC_INTERFACE
def get_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """
    Factory to return the configured store based on settings.
    - memory: InMemoryStore
    - file: JsonFileStore
    - sqlite: SQLiteStore
    Falls back to InMemoryStore if the configured backend cannot be opened.
    """
    settings = settings or get_settings()
    try:
        if settings.store_backend == "sqlite":
            from .db import SQLiteStore

            return SQLiteStore(settings.sqlite_db_path)
        if settings.store_backend == "file":
            return JsonFileStore(settings.file_store_path)
    except StoreUnavailableError as e:
        logger.error(
            "Store backend unavailable, falling back to memory",
            extra={"backend": settings.store_backend, "reason": e.reason},
        )
    return InMemoryStore()
