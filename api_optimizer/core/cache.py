"""
In-memory response cache.

Entries live for a fixed time-to-live from insertion. The store is owned by
whoever creates it and is safe to share between threads. Failures inside
the store never reach the caller; a failed insert just means "not cached".
"""

import hashlib
import json
import logging
import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from .request import CompletionRequest

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 300


def generate_cache_key(request: CompletionRequest) -> str:
    """Generate a deterministic cache key for a request.

    Only provider, model, messages, temperature and max_tokens contribute.
    Message order is significant.

    Args:
        request: Request to fingerprint

    Returns:
        SHA-256 hex digest of the canonical request document
    """
    key_data = json.dumps(
        {
            "provider": request.provider,
            "model": request.model,
            "messages": request.message_dicts(),
            "temperature": request.temperature,
            "max_tokens": request.max_tokens,
        },
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    return hashlib.sha256(key_data.encode("utf-8")).hexdigest()


@dataclass
class CacheEntry:
    """Cached value with its expiry bookkeeping."""
    key: str
    value: Any
    inserted_at: float
    ttl_seconds: float

    @property
    def expires_at(self) -> float:
        return self.inserted_at + self.ttl_seconds

    def is_live(self, now: float) -> bool:
        return now < self.expires_at


@dataclass(frozen=True)
class CacheStats:
    """Point-in-time cache counters."""
    entry_count: int
    hit_count: int
    miss_count: int

    @property
    def hit_rate(self) -> float:
        lookups = self.hit_count + self.miss_count
        if lookups == 0:
            return 0.0
        return self.hit_count / lookups


class CacheStore:
    """Thread-safe key-value store with per-entry TTL.

    Expired entries are purged lazily on access, and eagerly when the store
    is at capacity. With `max_entries` set, the entry closest to expiry is
    evicted to make room.
    """

    def __init__(
        self,
        default_ttl_seconds: float = DEFAULT_TTL_SECONDS,
        max_entries: Optional[int] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the store.

        Args:
            default_ttl_seconds: TTL used when put() is given none
            max_entries: Optional capacity limit
            clock: Monotonic time source in seconds

        Raises:
            ValueError: If ttl or capacity is not positive
        """
        if default_ttl_seconds <= 0:
            raise ValueError("default_ttl_seconds must be > 0")
        if max_entries is not None and max_entries <= 0:
            raise ValueError("max_entries must be > 0")

        self.default_ttl_seconds = default_ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._entries: Dict[str, CacheEntry] = {}
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    def get(self, key: str) -> Optional[Any]:
        """Return the live value for key, or None."""
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                self._misses += 1
                return None
            if not entry.is_live(self._clock()):
                del self._entries[key]
                self._misses += 1
                return None
            self._hits += 1
            return entry.value

    def put(self, key: str, value: Any, ttl_seconds: Optional[float] = None) -> bool:
        """Insert or overwrite an entry.

        Returns:
            True if the value was cached, False if the insert failed
        """
        ttl = self.default_ttl_seconds if ttl_seconds is None else ttl_seconds
        if ttl <= 0:
            logger.debug("Not caching %s: ttl %s is not positive", key, ttl)
            return False

        try:
            with self._lock:
                now = self._clock()
                if self.max_entries is not None and key not in self._entries:
                    self._make_room(now)
                self._entries[key] = CacheEntry(
                    key=key,
                    value=value,
                    inserted_at=now,
                    ttl_seconds=ttl,
                )
            return True
        except MemoryError:
            logger.warning("Cache insert failed for %s; continuing uncached", key)
            return False

    def delete(self, key: str) -> None:
        """Remove an entry if present."""
        with self._lock:
            self._entries.pop(key, None)

    def clear(self) -> None:
        """Remove all entries. Counters are kept."""
        with self._lock:
            self._entries.clear()

    def purge_expired(self) -> int:
        """Drop every expired entry and return how many were removed."""
        with self._lock:
            return self._purge_expired(self._clock())

    def stats(self) -> CacheStats:
        """Return entry count and hit/miss counters."""
        with self._lock:
            self._purge_expired(self._clock())
            return CacheStats(
                entry_count=len(self._entries),
                hit_count=self._hits,
                miss_count=self._misses,
            )

    def __len__(self) -> int:
        return self.stats().entry_count

    def _purge_expired(self, now: float) -> int:
        expired = [key for key, entry in self._entries.items() if not entry.is_live(now)]
        for key in expired:
            del self._entries[key]
        return len(expired)

    def _make_room(self, now: float) -> None:
        # Caller holds the lock
        if len(self._entries) < self.max_entries:
            return
        self._purge_expired(now)
        while len(self._entries) >= self.max_entries:
            victim = min(self._entries.values(), key=lambda e: e.expires_at)
            del self._entries[victim.key]
            logger.debug("Evicted cache entry %s", victim.key)
