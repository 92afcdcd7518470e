"""Tests for the optional Redis history cache."""

import json
from types import SimpleNamespace

import pytest

import llm.history_cache as history_cache_mod
from conftest import FakeRedis
from llm.conversation_store import Turn
from llm.history_cache import HistoryCache


@pytest.mark.asyncio
async def test_miss_returns_none(fake_redis):
    cache = HistoryCache(fake_redis)
    assert await cache.get("c1") is None


@pytest.mark.asyncio
async def test_put_keeps_most_recent_turns(fake_redis):
    cache = HistoryCache(fake_redis, ttl_seconds=60, max_turns=3)
    turns = [Turn("user", f"m{i}") for i in range(5)]

    await cache.put("c1", turns)

    assert fake_redis.ttls["conv:c1"] == 60
    assert [t.text for t in await cache.get("c1")] == ["m2", "m3", "m4"]


@pytest.mark.asyncio
@pytest.mark.parametrize("raw", ["not json", json.dumps({"sender": "user"}), json.dumps(["x"])])
async def test_malformed_entries_are_misses(fake_redis, raw):
    fake_redis.data["conv:c1"] = raw
    assert await HistoryCache(fake_redis).get("c1") is None


@pytest.mark.asyncio
async def test_redis_errors_are_swallowed():
    cache = HistoryCache(FakeRedis(fail=True))

    await cache.put("c1", [Turn("user", "hi")])
    assert await cache.get("c1") is None
    assert await cache.ping() is False


@pytest.mark.asyncio
async def test_connect_returns_none_when_unreachable(monkeypatch):
    client = FakeRedis(fail=True)
    monkeypatch.setattr(history_cache_mod, "aioredis", SimpleNamespace(from_url=lambda url, **kw: client))

    assert await HistoryCache.connect("redis://nowhere:6379") is None
    assert client.closed


@pytest.mark.asyncio
async def test_connect_returns_cache_when_reachable(monkeypatch, fake_redis):
    monkeypatch.setattr(history_cache_mod, "aioredis", SimpleNamespace(from_url=lambda url, **kw: fake_redis))

    cache = await HistoryCache.connect("redis://localhost:6379", max_turns=5)

    assert cache.client is fake_redis
    assert cache.max_turns == 5


# ── Chat route integration ────────────────────────────

@pytest.fixture
def cached_client(services, client, fake_redis):
    services.cache = HistoryCache(fake_redis)
    return client


def test_chat_writes_sanitized_history_to_cache(cached_client, fake_redis):
    sid = cached_client.post("/chat/message", json={"message": "a<b"}).json()["sessionId"]

    cached = json.loads(fake_redis.data[f"conv:{sid}"])
    assert cached == [
        {"sender": "user", "text": "a&lt;b"},
        {"sender": "ai", "text": "Happy to help!"},
    ]


def test_cached_history_used_when_lengths_match(cached_client, fake_redis, fake_backend):
    sid = cached_client.post("/chat/message", json={"message": "Hi"}).json()["sessionId"]
    fake_redis.data[f"conv:{sid}"] = json.dumps([
        {"sender": "user", "text": "cached question"},
        {"sender": "ai", "text": "cached answer"},
    ])

    cached_client.post("/chat/message", json={"message": "Again", "sessionId": sid})

    assert "User: cached question\nAssistant: cached answer" in fake_backend.calls[1]["prompt"]


def test_store_history_used_when_cache_is_out_of_step(cached_client, fake_redis, fake_backend):
    sid = cached_client.post("/chat/message", json={"message": "Hi"}).json()["sessionId"]
    fake_redis.data[f"conv:{sid}"] = json.dumps([{"sender": "user", "text": "stale"}])

    cached_client.post("/chat/message", json={"message": "Again", "sessionId": sid})

    prompt = fake_backend.calls[1]["prompt"]
    assert "stale" not in prompt
    assert "User: Hi\nAssistant: Happy to help!" in prompt


def test_chat_survives_cache_outage(services, client, fake_backend):
    services.cache = HistoryCache(FakeRedis(fail=True))

    resp = client.post("/chat/message", json={"message": "Hello"})

    assert resp.status_code == 200
    assert resp.json()["reply"] == "Happy to help!"


def test_health_reports_cache_state(cached_client, services):
    assert cached_client.get("/health").json()["redis"] == "enabled"

    services.cache = None
    assert cached_client.get("/health").json()["redis"] == "disabled"
