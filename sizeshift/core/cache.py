"""Time-bounded in-memory cache for crawled product records.

Entries are never served past their expiry: reads drop expired entries
lazily and a daemon sweeper thread removes the rest every
``sweep_interval_seconds``. ``get_or_compute`` runs the computation at most
once per key at a time; failures are propagated and never cached.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from .config import CacheConfig

logger = logging.getLogger(__name__)

V = TypeVar("V")


@dataclass
class CacheEntry(Generic[V]):
    key: str
    value: V
    expires_at: float

    def expired(self, now: float) -> bool:
        return now >= self.expires_at


class TTLCache(Generic[V]):
    def __init__(
        self,
        config: CacheConfig | None = None,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.config = config or CacheConfig()
        self._clock = clock
        self._lock = threading.RLock()
        self._entries: dict[str, CacheEntry[V]] = {}
        self._key_locks: dict[str, threading.Lock] = {}
        self._hits = 0
        self._misses = 0
        self._stop = threading.Event()
        self._sweeper: threading.Thread | None = None

    @property
    def default_ttl(self) -> float:
        return self.config.ttl_seconds

    def _live_entry(self, key: str) -> CacheEntry[V] | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expired(self._clock()):
            del self._entries[key]
            return None
        return entry

    def get(self, key: str) -> V | None:
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def get_with_ttl(self, key: str) -> tuple[V, float] | None:
        """Return ``(value, seconds_remaining)`` for a live entry."""
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return None
            return entry.value, max(0.0, entry.expires_at - self._clock())

    def set(self, key: str, value: V, ttl: float | None = None) -> None:
        ttl = self.default_ttl if ttl is None else ttl
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            self._entries[key] = CacheEntry(key=key, value=value, expires_at=self._clock() + ttl)

    def _key_lock(self, key: str) -> threading.Lock:
        with self._lock:
            lock = self._key_locks.get(key)
            if lock is None:
                lock = threading.Lock()
                self._key_locks[key] = lock
            return lock

    def get_or_compute(self, key: str, compute: Callable[[], V], ttl: float | None = None) -> V:
        with self._lock:
            entry = self._live_entry(key)
            if entry is not None:
                self._hits += 1
                return entry.value

        with self._key_lock(key):
            # Another thread may have filled the entry while we waited.
            with self._lock:
                entry = self._live_entry(key)
                if entry is not None:
                    self._hits += 1
                    return entry.value
                self._misses += 1
            value = compute()
            self.set(key, value, ttl)
            return value

    def invalidate(self, key: str) -> bool:
        with self._lock:
            removed = self._entries.pop(key, None) is not None
        if removed:
            logger.debug("Cache invalidated %s", key)
        return removed

    def update_ttl(self, key: str, ttl: float) -> bool:
        """Give a live entry a new expiry of ``ttl`` seconds from now."""
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        with self._lock:
            entry = self._live_entry(key)
            if entry is None:
                return False
            entry.expires_at = self._clock() + ttl
            return True

    def sweep(self) -> int:
        with self._lock:
            now = self._clock()
            expired = [key for key, entry in self._entries.items() if entry.expired(now)]
            for key in expired:
                del self._entries[key]
            for key in list(self._key_locks):
                lock = self._key_locks[key]
                if key not in self._entries and not lock.locked():
                    del self._key_locks[key]
        if expired:
            logger.debug("Cache sweep removed %d expired entries", len(expired))
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def keys(self) -> list[str]:
        with self._lock:
            now = self._clock()
            return sorted(key for key, entry in self._entries.items() if not entry.expired(now))

    def __len__(self) -> int:
        return len(self.keys())

    def __contains__(self, key: object) -> bool:
        if not isinstance(key, str):
            return False
        with self._lock:
            return self._live_entry(key) is not None

    def stats(self) -> dict[str, Any]:
        with self._lock:
            lookups = self._hits + self._misses
            return {
                "size": sum(1 for entry in self._entries.values() if not entry.expired(self._clock())),
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": self._hits / lookups if lookups else 0.0,
                "ttl_seconds": self.default_ttl,
            }

    def _sweep_loop(self) -> None:
        interval = self.config.sweep_interval_seconds
        while not self._stop.wait(interval):
            try:
                self.sweep()
            except Exception:
                logger.exception("Cache sweep failed")

    def start(self) -> None:
        with self._lock:
            if self._sweeper is not None and self._sweeper.is_alive():
                return
            self._stop.clear()
            self._sweeper = threading.Thread(target=self._sweep_loop, name="sizeshift-cache-sweeper", daemon=True)
            self._sweeper.start()

    def close(self) -> None:
        self._stop.set()
        sweeper = self._sweeper
        if sweeper is not None and sweeper is not threading.current_thread():
            sweeper.join(timeout=1.0)
        self._sweeper = None

    @property
    def running(self) -> bool:
        return self._sweeper is not None and self._sweeper.is_alive()


__all__ = ["CacheEntry", "TTLCache"]
