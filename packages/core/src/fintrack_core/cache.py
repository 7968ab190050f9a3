"""In-process TTL cache for narrated insight results.

Entries are immutable: a write always replaces the whole entry, and a read
past the TTL drops the entry and reports a miss so the caller recomputes.
"""

import threading
from datetime import datetime, timedelta, timezone
from typing import Callable, Iterable, Optional, Protocol, Union, runtime_checkable

import structlog

from .exceptions import ConfigurationError
from .models import CacheEntry, InsightResult, Timeframe

logger = structlog.get_logger()

DEFAULT_TTL = timedelta(minutes=30)
DEFAULT_MAX_ENTRIES = 1024

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    """Return current UTC datetime with timezone info."""
    return datetime.now(timezone.utc)


def insight_cache_key(
    user_id: Union[int, str],
    timeframe: Union[Timeframe, str],
    category_filter: Optional[Iterable[int]] = None,
) -> str:
    """Cache key for one user, timeframe and (order-independent) category filter."""
    timeframe_value = timeframe.value if isinstance(timeframe, Timeframe) else str(timeframe)
    categories = ",".join(str(c) for c in sorted(set(category_filter or ())))
    return f"insights:{user_id}:{timeframe_value}:{categories or 'all'}"


def _user_prefix(user_id: Union[int, str]) -> str:
    return f"insights:{user_id}:"


@runtime_checkable
class InsightStore(Protocol):
    """Any key-value store with TTL semantics that can hold insight results."""

    def get(self, key: str) -> Optional[InsightResult]:
        ...

    def put(self, key: str, value: InsightResult, ttl: Optional[timedelta] = None) -> None:
        ...


class InsightCache:
    """Thread-safe TTL cache keyed by user, timeframe and category filter.

    The entry count is capped; once full, the oldest entries are evicted
    first. Expired entries are removed lazily on read.
    """

    def __init__(
        self,
        ttl: timedelta = DEFAULT_TTL,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        clock: Optional[Clock] = None,
    ):
        if ttl <= timedelta(0):
            raise ConfigurationError(
                "Cache TTL must be positive",
                config_key="cache_ttl",
                expected="timedelta > 0",
                actual=str(ttl),
            )
        if max_entries < 1:
            raise ConfigurationError(
                "Cache must hold at least one entry",
                config_key="cache_max_entries",
                expected="integer >= 1",
                actual=max_entries,
            )
        self.ttl = ttl
        self.max_entries = max_entries
        self._clock = clock or _utc_now
        self._entries: dict[str, CacheEntry] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def get(self, key: str) -> Optional[InsightResult]:
        """Cached value for ``key``, or None on a miss or an expired entry."""
        now = self._clock()
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if entry.is_expired(now):
                del self._entries[key]
                logger.debug("insight_cache_expired", key=key)
                return None
            return entry.value

    def put(self, key: str, value: InsightResult, ttl: Optional[timedelta] = None) -> None:
        """Store a value, replacing any existing entry for the key."""
        entry = CacheEntry(
            key=key,
            value=value,
            created_at=self._clock(),
            ttl=ttl or self.ttl,
        )
        with self._lock:
            self._entries.pop(key, None)
            self._entries[key] = entry
            while len(self._entries) > self.max_entries:
                oldest = min(self._entries.values(), key=lambda e: e.created_at)
                del self._entries[oldest.key]
                logger.debug("insight_cache_evicted", key=oldest.key)

    def invalidate_user(self, user_id: Union[int, str]) -> int:
        """Drop every cached result for a user. Returns the number removed."""
        prefix = _user_prefix(user_id)
        with self._lock:
            stale = [key for key in self._entries if key.startswith(prefix)]
            for key in stale:
                del self._entries[key]
        logger.info("insight_cache_cleared", user_id=str(user_id), removed=len(stale))
        return len(stale)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
