from __future__ import annotations

from nav_analytics.cache import MISS, NullCache, TTLCache, cached


class FakeClock:
    def __init__(self, t: float = 1000.0):
        self.t = t

    def __call__(self) -> float:
        return self.t


def test_entries_expire_after_ttl():
    clock = FakeClock()
    c = TTLCache(default_ttl=300, clock=clock)
    c.set("benchmark-1-QQQ-all", {"x": 1})
    clock.t += 299
    assert c.get("benchmark-1-QQQ-all") == {"x": 1}
    clock.t += 1
    assert c.get("benchmark-1-QQQ-all") is MISS
    assert len(c) == 0


def test_per_entry_ttl_overrides_default():
    clock = FakeClock()
    c = TTLCache(default_ttl=300, clock=clock)
    c.set("a", 1, ttl=10)
    clock.t += 11
    assert c.get("a") is MISS


def test_pattern_invalidation():
    c = TTLCache()
    c.set("cohort|1,2|QQQ|all", 1)
    c.set("cohort|1,2|QLD|all", 2)
    c.set("cohort|3|QQQ|2024", 3)
    assert c.invalidate("cohort|*|QQQ|*") == 2
    assert c.get("cohort|1,2|QLD|all") == 2
    assert c.invalidate() == 1
    assert len(c) == 0


def test_cached_fetches_once_until_invalidated():
    c = TTLCache()
    calls = []

    def fetch():
        calls.append(1)
        return [1, 2, 3]

    assert cached(c, "k", fetch) == [1, 2, 3]
    assert cached(c, "k", fetch) == [1, 2, 3]
    assert len(calls) == 1
    c.invalidate("k")
    cached(c, "k", fetch)
    assert len(calls) == 2


def test_falsy_values_are_cached():
    c = TTLCache()
    calls = []

    def fetch():
        calls.append(1)
        return []

    cached(c, "empty", fetch)
    cached(c, "empty", fetch)
    assert len(calls) == 1


def test_null_cache_never_hits():
    c = NullCache()
    c.set("k", 1)
    assert c.get("k") is MISS
    assert c.invalidate("*") == 0
    assert not MISS
