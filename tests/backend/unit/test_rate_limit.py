import asyncio
from types import SimpleNamespace

import pytest

from casedash.infrastructure.security import rate_limit


class Clock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now


class FakeRedis:
    instances = []

    def __init__(self, url):
        self.url = url
        self.counts = {}
        self.closed = False

    @classmethod
    def from_url(cls, url, **kwargs):
        client = cls(url)
        cls.instances.append(client)
        return client

    async def incr(self, key):
        self.counts[key] = self.counts.get(key, 0) + 1
        return self.counts[key]

    async def expire(self, key, seconds):
        return True

    async def aclose(self):
        self.closed = True


@pytest.fixture
def clock(monkeypatch):
    fake = Clock()
    monkeypatch.setattr(rate_limit, "monotonic", fake)
    return fake


@pytest.fixture
def fake_redis(monkeypatch):
    FakeRedis.instances = []
    monkeypatch.setattr(rate_limit, "aioredis", SimpleNamespace(Redis=FakeRedis))
    yield FakeRedis
    asyncio.run(rate_limit.close())


def _hit(ip, bucket="login", limit=10, window=1, redis_url=None):
    asyncio.run(rate_limit.enforce(bucket, ip, limit, window, redis_url=redis_url))


def test_blocks_after_limit_until_window_passes(clock):
    _hit("10.0.0.1", limit=2, window=60)
    clock.now += 1
    _hit("10.0.0.1", limit=2, window=60)

    with pytest.raises(rate_limit.RateLimitExceeded):
        _hit("10.0.0.1", limit=2, window=60)
    _hit("10.0.0.2", limit=2, window=60)

    clock.now += 61
    _hit("10.0.0.1", limit=2, window=60)


def test_idle_clients_are_forgotten_after_window(clock):
    for n in range(500):
        _hit(f"10.1.{n // 256}.{n % 256}")
    assert len(rate_limit._fallback_buckets) == 500

    clock.now += 1.5
    _hit("10.9.9.9")

    assert list(rate_limit._fallback_buckets) == ["rl:login:10.9.9.9"]


def test_collection_leaves_recent_clients_and_other_buckets(clock):
    _hit("10.0.0.1", window=10)
    _hit("10.0.0.5", bucket="export", window=600)
    clock.now += 8
    _hit("10.0.0.2", window=10)

    clock.now += 5
    _hit("10.0.0.3", window=10)

    assert sorted(rate_limit._fallback_buckets) == [
        "rl:export:10.0.0.5",
        "rl:login:10.0.0.2",
        "rl:login:10.0.0.3",
    ]


def test_redis_counter_enforces_limit(fake_redis):
    _hit("10.0.0.1", limit=1, redis_url="redis://cache:6379/0")

    with pytest.raises(rate_limit.RateLimitExceeded):
        _hit("10.0.0.1", limit=1, redis_url="redis://cache:6379/0")
    assert rate_limit._fallback_buckets == {}


def test_switching_redis_url_closes_previous_client(fake_redis):
    _hit("10.0.0.1", redis_url="redis://cache-a:6379/0")
    _hit("10.0.0.1", redis_url="redis://cache-a:6379/0")
    _hit("10.0.0.1", redis_url="redis://cache-b:6379/0")

    first, second = fake_redis.instances
    assert first.url == "redis://cache-a:6379/0"
    assert first.closed is True
    assert second.closed is False
    assert rate_limit._client is second
