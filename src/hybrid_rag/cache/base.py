"""Cache interface shared by the local and remote tiers."""

from abc import ABC, abstractmethod
from typing import Any


class Cache(ABC):
    """Async key/value cache with per-entry TTL.

    Values must be JSON-serializable so any tier can hold them.
    """

    @abstractmethod
    async def get(self, key: str) -> Any | None:
        """Return the cached value, or None if missing or expired."""
        ...

    @abstractmethod
    async def set(self, key: str, value: Any, ttl: int | None = None) -> None:
        """Store a value. ttl is in seconds; None uses the cache default."""
        ...

    @abstractmethod
    async def delete(self, key: str) -> None:
        ...

    @abstractmethod
    async def clear(self, prefix: str = "") -> int:
        """Remove every key starting with prefix. Returns how many were removed."""
        ...

    async def health(self) -> bool:
        return True

    async def close(self) -> None:
        pass
