"""Tests for the insight cache."""

import threading
from datetime import datetime, timedelta, timezone

import pytest

from fintrack_core.cache import InsightCache, InsightStore, insight_cache_key
from fintrack_core.exceptions import ConfigurationError
from fintrack_core.models import InsightResult, Timeframe


class ManualClock:
    """A clock that only moves when told to."""

    def __init__(self):
        self.now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def cache(clock: ManualClock) -> InsightCache:
    return InsightCache(clock=clock)


def result(text: str = "Spending looks steady.") -> InsightResult:
    return InsightResult(timeframe=Timeframe.MONTH, narrative_text=text)


class TestCacheKey:
    """Test suite for insight_cache_key."""

    def test_key_format(self):
        assert insight_cache_key(7, Timeframe.MONTH) == "insights:7:month:all"

    def test_filter_order_does_not_matter(self):
        assert insight_cache_key(7, "week", [3, 1, 3]) == insight_cache_key(7, "week", [1, 3])
        assert insight_cache_key(7, "week", [3, 1]) == "insights:7:week:1,3"

    def test_empty_filter_is_all(self):
        assert insight_cache_key("u1", "year", []) == "insights:u1:year:all"


class TestInsightCache:
    """Test suite for InsightCache."""

    def test_satisfies_store_protocol(self, cache):
        assert isinstance(cache, InsightStore)

    def test_miss_on_empty_cache(self, cache):
        assert cache.get("insights:1:month:all") is None

    def test_hit_within_ttl(self, cache, clock):
        value = result()
        cache.put("k", value)
        clock.advance(minutes=29, seconds=59)

        assert cache.get("k") == value

    def test_expires_after_thirty_minutes(self, cache, clock):
        """An entry read at exactly the TTL should be a miss and be dropped."""
        cache.put("k", result())
        clock.advance(minutes=30)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_put_replaces_entry_and_restarts_ttl(self, cache, clock):
        cache.put("k", result("old"))
        clock.advance(minutes=20)
        cache.put("k", result("new"))
        clock.advance(minutes=20)

        assert cache.get("k").narrative_text == "new"
        assert len(cache) == 1

    def test_per_entry_ttl(self, cache, clock):
        cache.put("k", result(), ttl=timedelta(minutes=1))
        clock.advance(minutes=2)

        assert cache.get("k") is None

    def test_evicts_oldest_when_full(self, clock):
        cache = InsightCache(max_entries=2, clock=clock)
        cache.put("a", result())
        clock.advance(seconds=1)
        cache.put("b", result())
        clock.advance(seconds=1)
        cache.put("c", result())

        assert cache.get("a") is None
        assert cache.get("b") is not None
        assert cache.get("c") is not None

    def test_invalidate_user(self, cache):
        cache.put(insight_cache_key(1, "month"), result())
        cache.put(insight_cache_key(1, "week", [2]), result())
        cache.put(insight_cache_key(12, "month"), result())

        removed = cache.invalidate_user(1)

        assert removed == 2
        assert cache.get(insight_cache_key(12, "month")) is not None

    def test_clear(self, cache):
        cache.put("k", result())
        cache.clear()

        assert len(cache) == 0

    def test_rejects_non_positive_ttl(self):
        with pytest.raises(ConfigurationError) as exc_info:
            InsightCache(ttl=timedelta(0))

        assert exc_info.value.config_key == "cache_ttl"

    def test_rejects_zero_capacity(self):
        with pytest.raises(ConfigurationError):
            InsightCache(max_entries=0)


class TestConcurrentAccess:
    """Test suite for InsightCache shared across threads."""

    WORKERS = 8
    ROUNDS = 200

    def run_workers(self, target):
        errors = []

        def guarded(worker):
            try:
                target(worker)
            except Exception as exc:  # surfaced through the errors list
                errors.append(exc)

        threads = [threading.Thread(target=guarded, args=(w,)) for w in range(self.WORKERS)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        return errors

    def test_parallel_puts_and_gets(self, cache):
        written = {f"worker {w}" for w in range(self.WORKERS)}

        def work(worker):
            text = f"worker {worker}"
            for _ in range(self.ROUNDS):
                cache.put("shared", result(text))
                cache.put(f"own:{worker}", result(text))
                shared = cache.get("shared")
                assert shared is not None and shared.narrative_text in written
                assert cache.get(f"own:{worker}").narrative_text == text

        assert self.run_workers(work) == []
        assert len(cache) == self.WORKERS + 1
        assert cache.get("shared").narrative_text in written

        cache.put("shared", result("final"))
        assert cache.get("shared").narrative_text == "final"

    def test_capacity_holds_under_parallel_writes(self, clock):
        cache = InsightCache(max_entries=5, clock=clock)

        def work(worker):
            for i in range(self.ROUNDS):
                cache.put(f"{worker}:{i}", result())

        assert self.run_workers(work) == []
        assert len(cache) == 5

    def test_invalidate_while_writing(self, cache):
        def work(worker):
            for i in range(self.ROUNDS):
                if worker == 0:
                    cache.invalidate_user(1)
                else:
                    cache.put(insight_cache_key(1, "month", [worker, i % 10]), result())
                    cache.put(insight_cache_key(2, "month", [worker]), result())

        assert self.run_workers(work) == []

        cache.invalidate_user(1)
        assert len(cache) == self.WORKERS - 1
