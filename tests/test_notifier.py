from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from flowtrack.services.notifier import MemoryNotifier, ToastLevel, create_notifier


@pytest.mark.asyncio
async def test_memory_notifier_drains_in_order():
    notifier = MemoryNotifier()

    await notifier.error("first")
    await notifier.push("second", ToastLevel.WARNING)

    toasts = await notifier.drain()
    assert [(t["message"], t["level"]) for t in toasts] == [("first", "error"), ("second", "warning")]
    assert await notifier.drain() == []


@pytest.mark.asyncio
async def test_memory_notifier_drops_expired_toasts():
    notifier = MemoryNotifier(ttl_seconds=30)
    stale = await notifier.error("stale")
    stale["created_at"] = (datetime.now(timezone.utc) - timedelta(seconds=60)).isoformat()
    await notifier.error("fresh")

    assert [t["message"] for t in await notifier.drain()] == ["fresh"]


def test_factory_defaults_to_memory(monkeypatch):
    monkeypatch.delenv("NOTIFICATION_BACKEND", raising=False)

    assert isinstance(create_notifier(), MemoryNotifier)


def test_factory_rejects_unknown_backend(monkeypatch):
    monkeypatch.setenv("NOTIFICATION_BACKEND", "carrier-pigeon")

    with pytest.raises(ValueError, match="Unsupported NOTIFICATION_BACKEND"):
        create_notifier()


def test_factory_rejects_bad_ttl(monkeypatch):
    monkeypatch.setenv("NOTIFICATION_TTL_SECONDS", "soon")

    with pytest.raises(ValueError, match="NOTIFICATION_TTL_SECONDS"):
        create_notifier()


def test_redis_backend_requires_configuration(monkeypatch):
    monkeypatch.setenv("NOTIFICATION_BACKEND", "redis")
    for name in ("REDIS_URL", "REDIS_HOST", "REDIS_PORT", "REDIS_PASSWORD"):
        monkeypatch.delenv(name, raising=False)

    with pytest.raises(ValueError, match="Redis configuration is missing"):
        create_notifier()


class FakePipeline:
    def __init__(self, redis):
        self.redis = redis
        self.commands = []

    async def __aenter__(self):
        return self

    async def __aexit__(self, *exc_info):
        return False

    def lrange(self, key, start, end):
        self.commands.append(lambda: list(self.redis.lists.get(key, [])))

    def delete(self, key):
        self.commands.append(lambda: int(self.redis.lists.pop(key, None) is not None))

    async def execute(self):
        return [command() for command in self.commands]


class FakeRedis:
    """In-memory stand-in for the handful of list commands the notifier uses"""

    def __init__(self, ping_error=None):
        self.lists = {}
        self.ttls = {}
        self.ping_error = ping_error
        self.closed = False

    async def ping(self):
        if self.ping_error:
            raise self.ping_error
        return True

    async def rpush(self, key, value):
        self.lists.setdefault(key, []).append(value)

    async def expire(self, key, seconds):
        self.ttls[key] = seconds

    def pipeline(self, transaction=True):
        return FakePipeline(self)

    async def aclose(self):
        self.closed = True


@pytest.fixture
def fake_redis(monkeypatch):
    from flowtrack.services.notifier import redis_store

    connections = []

    def from_url(url, **kwargs):
        connections.append((url, kwargs))
        return fake

    fake = FakeRedis()
    monkeypatch.setattr(redis_store, "aioredis", SimpleNamespace(from_url=from_url))
    return fake, connections


@pytest.mark.asyncio
async def test_redis_notifier_push_and_drain(fake_redis):
    from flowtrack.services.notifier.redis_store import RedisNotifier

    fake, connections = fake_redis
    notifier = RedisNotifier(redis_url="redis://cache:6379", ttl_seconds=45)

    await notifier.error("Name: is required")
    await notifier.push("Saved", ToastLevel.SUCCESS)

    assert fake.ttls == {"flowtrack:toasts": 45}
    toasts = await notifier.drain()
    assert [(t["message"], t["level"]) for t in toasts] == [("Name: is required", "error"), ("Saved", "success")]
    assert await notifier.drain() == []

    # one connection reused across calls
    assert len(connections) == 1
    assert connections[0][0] == "redis://cache:6379"

    await notifier.close()
    assert fake.closed
    assert notifier.redis is None


@pytest.mark.asyncio
async def test_redis_notifier_failed_ping_raises_connection_error(fake_redis):
    from flowtrack.services.notifier.redis_store import RedisNotifier

    fake, _ = fake_redis
    fake.ping_error = OSError("connection refused")
    notifier = RedisNotifier(redis_url="redis://cache:6379")

    with pytest.raises(ConnectionError, match="connection refused"):
        await notifier.error("lost")
    assert notifier.redis is None


def test_redis_url_assembled_from_host_settings(monkeypatch):
    from flowtrack.services.notifier.redis_store import redis_url_from_env

    monkeypatch.delenv("REDIS_URL", raising=False)
    monkeypatch.setenv("REDIS_HOST", "cache")
    monkeypatch.delenv("REDIS_PORT", raising=False)
    monkeypatch.setenv("REDIS_PASSWORD", "s3cret")

    assert redis_url_from_env() == "redis://:s3cret@cache:6379"
