"""Correlation cache - short-lived map from transaction ID to query time
"""

import threading
import time
from typing import Callable, Dict, NamedTuple, Optional

from .constants import DEFAULT_CACHE_TTL
from .utils.logger import get_logger


class CacheEntry(NamedTuple):
    timestamp: float
    expires_at: float


class CorrelationCache:
    """Thread-safe key/value store whose entries expire after a fixed TTL.

    Expired entries are never returned by ``get``. They are reclaimed when a
    lookup runs into them, by ``delete_expired``, or by the janitor thread if
    ``cleanup_interval`` is set and the cache has been started.
    """

    def __init__(self, ttl: float = DEFAULT_CACHE_TTL,
                 cleanup_interval: Optional[float] = None,
                 clock: Callable[[], float] = time.monotonic):
        if ttl <= 0:
            raise ValueError(f"ttl must be positive, got {ttl}")
        self.ttl = ttl
        self.cleanup_interval = cleanup_interval
        self.clock = clock
        self.logger = get_logger(__name__)

        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

        self._stop_event = threading.Event()
        self._janitor: Optional[threading.Thread] = None

    def put(self, key: str, timestamp: float) -> None:
        """Record ``timestamp`` under ``key``, replacing any previous entry."""
        entry = CacheEntry(timestamp, self.clock() + self.ttl)
        with self._lock:
            self._entries[key] = entry

    def get(self, key: str) -> Optional[float]:
        """Return the timestamp stored under ``key``, or None if absent or expired."""
        now = self.clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if now >= entry.expires_at:
                del self._entries[key]
                return None
            return entry.timestamp

    def delete_expired(self) -> int:
        """Drop every expired entry, returning how many were removed."""
        now = self.clock()
        with self._lock:
            expired = [k for k, e in self._entries.items() if now >= e.expires_at]
            for key in expired:
                del self._entries[key]
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        now = self.clock()
        with self._lock:
            return sum(1 for e in self._entries.values() if now < e.expires_at)

    def __contains__(self, key: str) -> bool:
        return self.get(key) is not None

    # --- janitor ---

    def start(self) -> None:
        """Start the background sweep if a cleanup interval is configured."""
        if not self.cleanup_interval or self.running:
            return
        self._stop_event.clear()
        self._janitor = threading.Thread(
            target=self._janitor_worker, name="dnsdog_cache_janitor", daemon=True
        )
        self._janitor.start()
        self.logger.debug(f"Cache janitor started (interval={self.cleanup_interval}s)")

    def stop(self) -> None:
        if not self.running:
            return
        self._stop_event.set()
        self._janitor.join(timeout=2)
        self._janitor = None
        self.logger.debug("Cache janitor stopped")

    @property
    def running(self) -> bool:
        return self._janitor is not None and self._janitor.is_alive()

    def _janitor_worker(self) -> None:
        while not self._stop_event.wait(self.cleanup_interval):
            removed = self.delete_expired()
            if removed:
                self.logger.debug(f"Expired {removed} unanswered queries")

    def __enter__(self) -> 'CorrelationCache':
        self.start()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.stop()
