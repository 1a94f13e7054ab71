"""Tests du cache de résultats invalidable par tags (mémoire et Redis)."""

import threading

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from bilemo.infra.cache import InMemoryTaggedCache, RedisTaggedCache, fingerprint
from tests.fakes import FakeRedis

TTL = 60
THREADS = 8


class Clock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


class Counter:
    def __init__(self, payload: bytes = b"payload") -> None:
        self.calls = 0
        self.payload = payload

    def __call__(self) -> bytes:
        self.calls += 1
        return self.payload + str(self.calls).encode()


@pytest.fixture(params=["memory", "redis"])
def env(request):
    clock = Clock()
    if request.param == "memory":
        cache = InMemoryTaggedCache(clock=clock)
    else:
        cache = RedisTaggedCache(client=FakeRedis(clock=clock))
    return cache, clock


def test_fingerprint_is_deterministic():
    a = fingerprint("getAllCustomers", owner=1, page=1, limit=3, groups=frozenset({"b", "a"}), version="1.0")
    b = fingerprint("getAllCustomers", version="1.0", groups=frozenset({"a", "b"}), limit=3, page=1, owner=1)
    assert a == b
    assert a.startswith("getAllCustomers:")
    assert a != fingerprint("getAllCustomers", owner=2, page=1, limit=3, groups=frozenset({"a", "b"}), version="1.0")
    assert a != fingerprint("getAllCustomers", owner=1, page=1, limit=3, groups=frozenset({"a", "b"}), version="2.0")


def test_hit_skips_compute(env):
    cache, _ = env
    compute = Counter()
    first = cache.get_or_compute("k:1", ["t"], TTL, compute)
    second = cache.get_or_compute("k:1", ["t"], TTL, compute)
    assert first == second == b"payload1"
    assert compute.calls == 1


def test_entry_expires_after_ttl(env):
    cache, clock = env
    compute = Counter()
    cache.get_or_compute("k:1", ["t"], TTL, compute)
    clock.now += TTL - 1
    cache.get_or_compute("k:1", ["t"], TTL, compute)
    assert compute.calls == 1
    clock.now += 1
    assert cache.get_or_compute("k:1", ["t"], TTL, compute) == b"payload2"


def test_invalidate_forces_recompute_for_tagged_entries_only(env):
    cache, _ = env
    customers, phones = Counter(), Counter()
    cache.get_or_compute("count:1", ["cacheCustomers"], TTL, customers)
    cache.get_or_compute("page:1", ["cacheCustomers"], TTL, customers)
    cache.get_or_compute("phones:1", ["cachePhones"], TTL, phones)

    cache.invalidate("cacheCustomers")

    assert cache.get_or_compute("count:1", ["cacheCustomers"], TTL, customers) == b"payload3"
    assert cache.get_or_compute("page:1", ["cacheCustomers"], TTL, customers) == b"payload4"
    assert cache.get_or_compute("phones:1", ["cachePhones"], TTL, phones) == b"payload1"


def test_failed_compute_publishes_nothing(env):
    cache, _ = env

    def _boom() -> bytes:
        raise RuntimeError("database gone")

    with pytest.raises(RuntimeError):
        cache.get_or_compute("k:1", ["t"], TTL, _boom)
    compute = Counter()
    cache.get_or_compute("k:1", ["t"], TTL, compute)
    assert compute.calls == 1


def test_invalidation_during_compute_leaves_entry_stale(env):
    cache, _ = env

    def _racing() -> bytes:
        # Une écriture concurrente est acquittée pendant le calcul
        cache.invalidate("t")
        return b"old"

    assert cache.get_or_compute("k:1", ["t"], TTL, _racing) == b"old"
    compute = Counter()
    assert cache.get_or_compute("k:1", ["t"], TTL, compute) == b"payload1"
    assert compute.calls == 1


def test_concurrent_misses_compute_once():
    cache = InMemoryTaggedCache()
    release = threading.Event()
    calls = []

    def _slow() -> bytes:
        calls.append(1)
        release.wait(timeout=5)
        return b"page"

    results = []
    threads = [
        threading.Thread(target=lambda: results.append(cache.get_or_compute("k:1", ["t"], TTL, _slow)))
        for _ in range(THREADS)
    ]
    for t in threads:
        t.start()
    release.set()
    for t in threads:
        t.join(timeout=5)

    assert results == [b"page"] * THREADS
    assert len(calls) == 1


def test_redis_layout_uses_entry_hash_and_tag_counters():
    redis = FakeRedis()
    cache = RedisTaggedCache(client=redis, prefix="test")
    cache.get_or_compute("k:1", ["t"], TTL, lambda: b"data")
    assert redis.store[b"test:entry:k:1"][b"payload"] == b"data"
    assert b"test:entry:k:1" in redis.expiry

    cache.invalidate("t")
    assert redis.store[b"test:tag:t"] == b"1"


def test_redis_outage_fails_open_on_reads():
    redis = FakeRedis()
    cache = RedisTaggedCache(client=redis)
    redis.down = True
    compute = Counter()
    assert cache.get_or_compute("k:1", ["t"], TTL, compute) == b"payload1"
    assert cache.get_or_compute("k:1", ["t"], TTL, compute) == b"payload2"


def test_redis_outage_propagates_on_invalidate():
    redis = FakeRedis()
    redis.down = True
    with pytest.raises(RedisConnectionError):
        RedisTaggedCache(client=redis).invalidate("t")


def test_redis_cache_requires_url_or_client():
    with pytest.raises(ValueError):
        RedisTaggedCache()


def test_expired_entries_are_swept_on_store():
    clock = Clock()
    cache = InMemoryTaggedCache(clock=clock, sweep_interval=TTL)
    compute = Counter()
    for i in range(1000):
        cache.get_or_compute(f"k:{i}", ["t"], TTL, compute)
    assert len(cache._entries) == 1000

    clock.now += 3600
    cache.get_or_compute("k:new", ["t"], TTL, compute)
    assert list(cache._entries) == ["k:new"]


def test_stale_entries_are_swept_on_store():
    clock = Clock()
    cache = InMemoryTaggedCache(clock=clock, sweep_interval=TTL)
    cache.get_or_compute("k:1", ["t"], TTL * 10, Counter())
    cache.get_or_compute("k:2", ["other"], TTL * 10, Counter())
    # Le compteur de version avance sans passer par `invalidate`
    cache._tag_versions["t"] = 5
    clock.now += TTL
    cache.get_or_compute("k:3", ["t"], TTL * 10, Counter())
    assert sorted(cache._entries) == ["k:2", "k:3"]


def test_size_is_capped_by_evicting_oldest_entries():
    cache = InMemoryTaggedCache(clock=Clock(), max_entries=5)
    compute = Counter()
    for i in range(8):
        cache.get_or_compute(f"k:{i}", ["t"], TTL, compute)
    assert list(cache._entries) == ["k:3", "k:4", "k:5", "k:6", "k:7"]
    # Une entrée évincée est recalculée
    cache.get_or_compute("k:0", ["t"], TTL, compute)
    assert compute.calls == 9
