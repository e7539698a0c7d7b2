from __future__ import annotations

import fnmatch
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Protocol, TypeVar

logger = logging.getLogger(__name__)

DEFAULT_TTL_S = 5 * 60.0

T = TypeVar("T")


class _Miss:
    _instance: "_Miss | None" = None

    def __new__(cls) -> "_Miss":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MISS"

    def __bool__(self) -> bool:
        return False


MISS: Any = _Miss()


class ResponseCache(Protocol):
    def get(self, key: str) -> Any:
        """Cached value, or `MISS`."""
        raise NotImplementedError

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        raise NotImplementedError

    def invalidate(self, pattern: str = "*") -> int:
        """Drop keys matching a glob pattern; returns the number removed."""
        raise NotImplementedError


@dataclass
class _Entry:
    value: Any
    expires_at: float


class TTLCache:
    """In-process key/value cache with per-entry expiry. Safe to share across threads."""

    def __init__(self, *, default_ttl: float = DEFAULT_TTL_S, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = float(default_ttl)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Any:
        now = self._clock()
        with self._lock:
            e = self._entries.get(key)
            if e is None:
                logger.debug("Cache miss: %s", key)
                return MISS
            if now >= e.expires_at:
                del self._entries[key]
                logger.debug("Cache expired: %s", key)
                return MISS
        logger.debug("Cache hit: %s", key)
        return e.value

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        ttl_s = self.default_ttl if ttl is None else float(ttl)
        with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=self._clock() + ttl_s)

    def invalidate(self, pattern: str = "*") -> int:
        with self._lock:
            keys = [k for k in self._entries if fnmatch.fnmatchcase(k, pattern)]
            for k in keys:
                del self._entries[k]
        logger.debug("Cache invalidate %r: %d entries", pattern, len(keys))
        return len(keys)


class NullCache:
    """Never stores anything; every lookup recomputes."""

    def get(self, key: str) -> Any:
        return MISS

    def set(self, key: str, value: Any, ttl: float | None = None) -> None:
        return None

    def invalidate(self, pattern: str = "*") -> int:
        return 0


def cached(cache: ResponseCache, key: str, fetcher: Callable[[], T], ttl: float | None = None) -> T:
    hit = cache.get(key)
    if hit is not MISS:
        return hit
    value = fetcher()
    cache.set(key, value, ttl)
    return value
