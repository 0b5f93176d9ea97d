from __future__ import annotations

from app.events_engine.caches import DedupCache, EmptyBucketCache


class FakeClock:
    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


def test_dedup_cache_stays_bounded_and_keeps_newest_half() -> None:
    cache = DedupCache(max_size=10)
    ids = [f"e{i}" for i in range(23)]
    for event_id in ids:
        cache.add(event_id)
        assert cache.size() <= 10

    # Every id inserted after the last truncation, plus the survivors of it, is present.
    for event_id in ids[-5:]:
        assert cache.contains(event_id)
    assert not cache.contains("e0")


def test_dedup_cache_truncates_at_capacity() -> None:
    cache = DedupCache(max_size=4)
    for event_id in ("a", "b", "c"):
        cache.add(event_id)
    assert len(cache) == 3

    cache.add("d")
    assert len(cache) == 2
    assert "c" in cache and "d" in cache
    assert "a" not in cache


def test_dedup_cache_ignores_repeated_ids() -> None:
    cache = DedupCache(max_size=4)
    cache.add("a")
    cache.add("a")
    assert cache.size() == 1


def test_empty_bucket_ttl_boundary() -> None:
    clock = FakeClock()
    cache = EmptyBucketCache(ttl_seconds=300, clock=clock)
    cache.mark_empty("run.0", "run.logged.0", "20250101100000")

    clock.now += 299.999
    assert cache.is_recently_empty("run.0", "run.logged.0", "20250101100000")

    clock.now = 1000.0 + 300
    assert not cache.is_recently_empty("run.0", "run.logged.0", "20250101100000")


def test_empty_bucket_clear_and_scope() -> None:
    cache = EmptyBucketCache(ttl_seconds=300, clock=FakeClock())
    cache.mark_empty("run.0", "run.logged.0", "20250101100000")

    assert not cache.is_recently_empty("run.0", "run.updated.0", "20250101100000")
    assert not cache.is_recently_empty("run.0", "run.logged.0", "20250101110000")

    cache.clear("run.0", "run.logged.0", "20250101100000")
    assert not cache.is_recently_empty("run.0", "run.logged.0", "20250101100000")


def test_empty_bucket_sweep_drops_expired_entries() -> None:
    clock = FakeClock()
    cache = EmptyBucketCache(ttl_seconds=60, clock=clock)
    cache.mark_empty("run.0", "run.logged.0", "20250101100000")
    clock.now += 30
    cache.mark_empty("club.0", "club.created.0", "20250101100000")

    clock.now += 30
    assert cache.sweep() == 1
    assert len(cache) == 1
    assert cache.is_recently_empty("club.0", "club.created.0", "20250101100000")
