"""
Record Cache

Keeps recently read Odoo records in memory so repeated `GET /{resource}/{id}`
calls skip the RPC round trip. Entries expire after a fixed TTL.
"""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Any, Callable


@dataclass
class _CacheEntry:
    value: Any
    expires_at: float


class RecordCache:
    def __init__(
        self,
        *,
        ttl_seconds: float,
        max_entries: int = 5000,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl_seconds = max(1.0, float(ttl_seconds or 0.0))
        self._max_entries = max(1, int(max_entries))
        self._clock = clock
        self._lock = asyncio.Lock()
        self._entries: dict[str, _CacheEntry] = {}

    @staticmethod
    def key(model: str, record_id: int) -> str:
        return f"{model}:{record_id}"

    async def get(self, model: str, record_id: int) -> Any | None:
        now = self._clock()
        async with self._lock:
            self._prune_locked(now)
            entry = self._entries.get(self.key(model, record_id))
            return entry.value if entry is not None else None

    async def set(self, model: str, record_id: int, value: Any) -> None:
        now = self._clock()
        async with self._lock:
            self._entries[self.key(model, record_id)] = _CacheEntry(
                value=value, expires_at=now + self._ttl_seconds
            )
            self._prune_locked(now)

    async def invalidate(self, model: str, record_id: int) -> None:
        async with self._lock:
            self._entries.pop(self.key(model, record_id), None)

    async def clear(self, model: str | None = None) -> None:
        async with self._lock:
            if model is None:
                self._entries.clear()
                return
            prefix = f"{model}:"
            for key in [k for k in self._entries if k.startswith(prefix)]:
                del self._entries[key]

    def __len__(self) -> int:
        return len(self._entries)

    def _prune_locked(self, now: float) -> None:
        stale = [k for k, e in self._entries.items() if e.expires_at <= now]
        for key in stale:
            del self._entries[key]
        # Oldest insertions go first once over capacity.
        overflow = len(self._entries) - self._max_entries
        if overflow > 0:
            for key in list(self._entries)[:overflow]:
                del self._entries[key]
