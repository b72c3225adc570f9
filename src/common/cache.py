# ABOUTME: Provides a thread-safe in-memory TTL cache for expensive analytics rollups.
# ABOUTME: Expires entries lazily on read; an optional sweeper thread reclaims memory.

from __future__ import annotations

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_MISSING = object()


@dataclass
class CacheEntry:
    value: Any
    created_at: float
    ttl: float

    def is_expired(self, now: float) -> bool:
        return self.ttl <= 0 or now - self.created_at > self.ttl


def analytics_key(restaurant_id: str, kind: str, params: Optional[Mapping[str, Any]] = None) -> str:
    """Build a stable key of the form analytics:{restaurantId}:{kind}:{paramsHash}."""
    params_hash = ""
    if params:
        encoded = json.dumps(params, sort_keys=True, default=str).encode("utf-8")
        params_hash = hashlib.sha1(encoded).hexdigest()[:16]
    return f"analytics:{restaurant_id}:{kind}:{params_hash}"


def restaurant_prefix(restaurant_id: str) -> str:
    return f"analytics:{restaurant_id}:"


class TTLCache:
    """
    Generic key/value store whose entries expire after a per-entry TTL.

    Reads evict expired entries. Concurrent callers that miss on the same key
    may both compute; the last write wins.
    """

    def __init__(self, default_ttl: float = 300.0, clock: Callable[[], float] = time.monotonic):
        self.default_ttl = default_ttl
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.RLock()

    def set(self, key: str, value: Any, ttl: Optional[float] = None) -> None:
        entry = CacheEntry(
            value=value,
            created_at=self._clock(),
            ttl=self.default_ttl if ttl is None else ttl,
        )
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str, default: Any = None) -> Any:
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return default
            if entry.is_expired(self._clock()):
                del self._entries[key]
                return default
            return entry.value

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def delete_prefix(self, prefix: str) -> int:
        with self._lock:
            doomed = [key for key in self._entries if key.startswith(prefix)]
            for key in doomed:
                del self._entries[key]
        return len(doomed)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def clear_expired(self) -> int:
        now = self._clock()
        with self._lock:
            expired = [key for key, entry in self._entries.items() if entry.is_expired(now)]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def stats(self) -> Dict[str, int]:
        now = self._clock()
        with self._lock:
            expired = sum(1 for entry in self._entries.values() if entry.is_expired(now))
            return {"total_entries": len(self._entries), "expired_entries": expired}

    def get_or_compute(self, key: str, ttl: Optional[float], compute_fn: Callable[[], T]) -> T:
        """
        Return the cached value for key, computing and storing it on a miss.

        The cache is never a correctness dependency: if the lookup or the
        write fails, the freshly computed value is still returned.
        """
        try:
            cached = self.get(key, _MISSING)
        except Exception as exc:
            logger.warning("Cache lookup failed for %s, computing fresh: %s", key, exc)
            cached = _MISSING

        if cached is not _MISSING:
            return cached

        value = compute_fn()
        try:
            self.set(key, value, ttl)
        except Exception as exc:
            logger.warning("Cache write failed for %s: %s", key, exc)
        return value

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class CacheSweeper:
    """Background thread that periodically drops expired cache entries."""

    def __init__(self, cache: TTLCache, interval_seconds: float = 600.0):
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self.cache = cache
        self.interval_seconds = interval_seconds
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    def start(self) -> None:
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="cache-sweeper", daemon=True)
        self._thread.start()

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            removed = self.cache.clear_expired()
            if removed:
                logger.debug("Swept %d expired cache entries", removed)
