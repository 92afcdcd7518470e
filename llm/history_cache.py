"""
Optional Redis read-through cache of recent conversation turns.

The conversation store stays the source of truth. A cached history is used
only when it has as many turns as the store returned; every read or write
failure is logged and treated as a miss.
"""

import asyncio
import json
import logging
from typing import List, Optional, Sequence

import redis.asyncio as aioredis

from .conversation_store import Turn

logger = logging.getLogger(__name__)

KEY_PREFIX = "conv:"


class HistoryCache:
    """Recent-turn cache keyed by conversation id."""

    def __init__(
        self,
        client,
        ttl_seconds: int = 3600,
        max_turns: int = 20,
        op_timeout_ms: int = 2000,
    ):
        """
        Args:
            client: ``redis.asyncio.Redis`` (or compatible) with decoded responses
            ttl_seconds: Expiry of each cached history
            max_turns: Most recent turns kept per conversation
            op_timeout_ms: Bound on every Redis round-trip
        """
        self.client = client
        self.ttl_seconds = ttl_seconds
        self.max_turns = max_turns
        self._timeout = op_timeout_ms / 1000

    @classmethod
    async def connect(cls, redis_url: str, **kwargs) -> Optional["HistoryCache"]:
        """Connect and ping; returns None when Redis is unreachable."""
        client = aioredis.from_url(
            redis_url,
            decode_responses=True,
            socket_connect_timeout=3,
            retry_on_timeout=False,
        )
        cache = cls(client, **kwargs)
        if await cache.ping():
            logger.info("Redis: connected")
            return cache

        logger.info("Redis: unreachable, operating without cache")
        await cache.close()
        return None

    async def ping(self) -> bool:
        try:
            return bool(await asyncio.wait_for(self.client.ping(), timeout=self._timeout))
        except Exception as e:
            logger.debug(f"Redis ping failed: {e}")
            return False

    async def get(self, conversation_id: str) -> Optional[List[Turn]]:
        """Cached turns, oldest first, or None on miss or error."""
        try:
            raw = await asyncio.wait_for(
                self.client.get(KEY_PREFIX + conversation_id), timeout=self._timeout
            )
        except Exception as e:
            logger.warning(f"Redis: error reading cache: {e}")
            return None

        if not raw:
            return None

        try:
            data = json.loads(raw)
        except ValueError as e:
            logger.warning(f"Redis: error parsing cached messages: {e}")
            return None

        if not isinstance(data, list):
            return None
        try:
            return [Turn.coerce(item) for item in data]
        except AttributeError:
            return None

    async def put(self, conversation_id: str, turns: Sequence[Turn]):
        """Cache the most recent ``max_turns`` turns."""
        payload = json.dumps(
            [{"sender": t.sender, "text": t.text} for t in list(turns)[-self.max_turns:]]
        )
        try:
            await asyncio.wait_for(
                self.client.setex(KEY_PREFIX + conversation_id, self.ttl_seconds, payload),
                timeout=self._timeout,
            )
        except Exception as e:
            logger.warning(f"Redis: error caching messages: {e}")

    async def close(self):
        try:
            await self.client.aclose()
        except Exception as e:
            logger.warning(f"Redis: error closing connection: {e}")
