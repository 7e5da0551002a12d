"""
Key-value backends for scene storage.

The scene store only needs two async operations, get and put, with
per-key atomicity. Two implementations:

- InMemoryKVBackend: process-local dict (tests, local development)
- SQLKVBackend: kv_entries table via SQLModel, blocking calls run in a
  worker thread
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy.engine import Engine

from scenesync.config import settings
from scenesync.core.async_utils import run_sync
from scenesync.core.database import get_engine, get_session_context
from scenesync.models.kv_entry import KVEntry

logger = logging.getLogger(__name__)


class KVBackend(ABC):
    """Minimal async key-value interface."""

    @abstractmethod
    async def get(self, key: str) -> Optional[str]:
        """Return the stored value, or None if *key* is absent."""

    @abstractmethod
    async def put(self, key: str, value: str) -> None:
        """Replace the value at *key*."""


class InMemoryKVBackend(KVBackend):
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    async def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    async def put(self, key: str, value: str) -> None:
        self._data[key] = value

    def keys(self) -> list[str]:
        return list(self._data.keys())

    def __len__(self) -> int:
        return len(self._data)


class SQLKVBackend(KVBackend):
    """kv_entries table on the configured database."""

    def __init__(self, engine: Optional[Engine] = None):
        self._engine = engine

    def _get_sync(self, key: str) -> Optional[str]:
        with get_session_context(self._engine) as session:
            entry = session.get(KVEntry, key)
            return entry.value if entry is not None else None

    def _put_sync(self, key: str, value: str) -> None:
        with get_session_context(self._engine) as session:
            entry = session.get(KVEntry, key)
            if entry is None:
                entry = KVEntry(key=key, value=value)
            else:
                entry.value = value
                entry.updated_at = datetime.now(timezone.utc)
            session.add(entry)
            session.commit()

    async def get(self, key: str) -> Optional[str]:
        return await run_sync(self._get_sync, key)

    async def put(self, key: str, value: str) -> None:
        await run_sync(self._put_sync, key, value)


_backend: Optional[KVBackend] = None


def get_kv_backend() -> KVBackend:
    """Process-wide backend selected by SCENESYNC_KV_BACKEND."""
    global _backend
    if _backend is None:
        if settings.kv_backend == "memory":
            _backend = InMemoryKVBackend()
        else:
            _backend = SQLKVBackend(get_engine())
        logger.info("KV backend initialized: %s", type(_backend).__name__)
    return _backend
