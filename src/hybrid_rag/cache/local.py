"""In-process bounded cache tier."""

import logging
import time
from dataclasses import dataclass
from typing import Any, Callable

from .base import Cache

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    value: Any
    inserted_at: float
    expires_at: float | None


class LocalCache(Cache):
    """Bounded dictionary cache.

    Entries expire by TTL. Once the entry count exceeds max_entries the
    oldest-inserted entries are dropped in bulk, down to half capacity.
    Reads do not touch insertion order (this is not an LRU).

    Args:
        max_entries: Capacity bound
        default_ttl: TTL in seconds for set() without ttl; None never expires
        clock: Monotonic time source, injectable for tests
    """

    def __init__(
        self,
        max_entries: int = 1000,
        default_ttl: int | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        if max_entries < 1:
            raise ValueError("max_entries must be positive")
        self.max_entries = max_entries
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and self._clock() >= entry.expires_at:
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        now = self._clock()
        ttl = ttl if ttl is not None else self.default_ttl
        expires_at = now + ttl if ttl else None

        # Re-setting a key counts as a fresh insertion
        self._entries.pop(key, None)
        self._entries[key] = _Entry(value, now, expires_at)

        if len(self._entries) > self.max_entries:
            self._evict()

    def _evict(self) -> None:
        keep = self.max_entries // 2
        oldest_first = sorted(self._entries.items(), key=lambda item: item[1].inserted_at)
        drop = len(oldest_first) - keep
        for key, _ in oldest_first[:drop]:
            del self._entries[key]
        logger.debug(f"Local cache evicted {drop} entries (kept {keep})")

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def clear(self, prefix: str = "") -> int:
        keys = [k for k in self._entries if k.startswith(prefix)]
        for key in keys:
            del self._entries[key]
        return len(keys)
