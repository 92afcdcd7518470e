"""Shared fixtures for Support Chat tests."""

import asyncio
import os
from typing import List

import pytest
from fastapi.testclient import TestClient

# Ensure we use test/mock settings
os.environ.setdefault("LLM_PROVIDER", "openai")
os.environ.setdefault("OPENAI_API_KEY", "test-key")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("REDIS_URL", None)


HANG = object()


class FakeBackend:
    """
    Scripted LLM backend.

    Each call consumes the next outcome: a string is returned, an exception
    is raised, ``HANG`` never finishes. The last outcome repeats.
    """

    name = "fake"

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes) or ["ok"]
        self.calls: List[dict] = []

    async def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        self.calls.append({"prompt": prompt, "max_tokens": max_tokens, "temperature": temperature})
        index = min(len(self.calls) - 1, len(self.outcomes) - 1)
        outcome = self.outcomes[index]

        if outcome is HANG:
            await asyncio.sleep(3600)
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class FakeRedis:
    """In-process stand-in for the few async Redis calls the history cache makes."""

    def __init__(self, fail: bool = False):
        self.data = {}
        self.ttls = {}
        self.fail = fail
        self.closed = False

    def _check(self):
        if self.fail:
            raise ConnectionError("redis down")

    async def ping(self):
        self._check()
        return True

    async def get(self, key):
        self._check()
        return self.data.get(key)

    async def setex(self, key, ttl, value):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl

    async def aclose(self):
        self.closed = True


class SleepRecorder:
    """Stands in for asyncio.sleep; records requested delays."""

    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, seconds: float) -> None:
        self.delays.append(seconds)


@pytest.fixture
def sleeper():
    return SleepRecorder()


@pytest.fixture
def fake_backend():
    return FakeBackend("Happy to help!")


@pytest.fixture
def services(monkeypatch, fake_backend):
    """Fresh, initialized services with a fake backend and in-memory store."""
    import api.services as services_mod
    from llm.conversation_store import InMemoryConversationStore

    fresh = services_mod.Services()
    asyncio.run(fresh.initialize(backend=fake_backend, store=InMemoryConversationStore()))
    monkeypatch.setattr(services_mod, "_services", fresh)
    return fresh


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def client(services):
    """Create a FastAPI test client around a fresh app."""
    from api.main import create_app
    return TestClient(create_app())


@pytest.fixture
def sample_history():
    return [
        {"sender": "user", "text": "Hi"},
        {"sender": "ai", "text": "Hello! How can I help you today?"},
        {"sender": "user", "text": "Do you ship to Canada?"},
        {"sender": "ai", "text": "Yes, we ship worldwide in 5-7 business days."},
    ]
