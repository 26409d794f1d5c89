"""Response cache keyed by a hash of the normalized request.

Entries expire after ``ttl_seconds``. Expiry is checked on read, and every
write drops all expired entries; there is no background sweep.
"""

import hashlib
import json
import logging
import time
from collections.abc import Callable
from typing import Any, Protocol

from src.core.config import CacheConfig

logger = logging.getLogger(__name__)


def make_cache_key(payload: dict[str, Any]) -> str:
    """SHA-256 of the payload serialized with sorted keys."""
    normalized = json.dumps(payload, sort_keys=True, default=str)
    return hashlib.sha256(normalized.encode()).hexdigest()


class Cache(Protocol):
    def get(self, key: str) -> Any | None: ...

    def set(self, key: str, value: Any) -> None: ...


class ResponseCache:
    """In-process TTL cache with hit/miss counters.

    Usage::

        cache = ResponseCache(ttl_seconds=300)
        if (hit := cache.get(key)) is None:
            cache.set(key, compute())
    """

    def __init__(
        self,
        ttl_seconds: int = 300,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: dict[str, tuple[float, Any]] = {}
        self.hits = 0
        self.misses = 0

    def get(self, key: str) -> Any | None:
        entry = self._entries.get(key)
        if entry is not None:
            created_at, value = entry
            if self._clock() - created_at < self._ttl:
                self.hits += 1
                return value
            del self._entries[key]
        self.misses += 1
        return None

    def set(self, key: str, value: Any) -> None:
        now = self._clock()
        self._purge_expired(now)
        self._entries[key] = (now, value)

    def _purge_expired(self, now: float) -> None:
        expired = [
            k for k, (created_at, _) in self._entries.items()
            if now - created_at >= self._ttl
        ]
        for k in expired:
            del self._entries[k]
        if expired:
            logger.debug("Purged %d expired cache entries", len(expired))

    def clear(self) -> None:
        self._entries.clear()
        self.hits = 0
        self.misses = 0

    def stats(self) -> dict[str, float]:
        total = self.hits + self.misses
        return {
            "size": len(self._entries),
            "hits": self.hits,
            "misses": self.misses,
            "hit_rate": round(self.hits / total * 100, 1) if total else 0.0,
        }


class NullCache:
    """Cache that never stores anything."""

    def get(self, key: str) -> Any | None:
        return None

    def set(self, key: str, value: Any) -> None:
        return None


def create_cache(config: CacheConfig) -> Cache:
    """Build the cache described by settings."""
    if not config.enabled:
        logger.debug("Response cache disabled")
        return NullCache()
    return ResponseCache(ttl_seconds=config.ttl_seconds)
