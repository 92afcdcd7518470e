"""
Rate limiting middleware for the Support Chat API.

Sliding-window counters per client IP. Every limited route shares a loose
long window; chat messages additionally get a tight per-minute limit.
"""

import logging
import time
from typing import Dict, List, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

EXEMPT_PATHS = ("/health", "/docs", "/openapi.json", "/redoc")
CHAT_MESSAGE_PATH = "/chat/message"

API_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
CHAT_LIMIT_MESSAGE = "Please wait a moment before sending another message."


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Sliding-window rate limiter."""

    def __init__(
        self,
        app,
        chat_requests_per_minute: int = 20,
        requests_per_window: int = 100,
        window_seconds: int = 15 * 60,
    ):
        super().__init__(app)
        self.chat_limit = (chat_requests_per_minute, 60)
        self.api_limit = (requests_per_window, window_seconds)
        self._requests: Dict[str, List[float]] = {}
        self._last_sweep = time.time()

    async def dispatch(self, request: Request, call_next):
        if request.url.path in EXEMPT_PATHS:
            return await call_next(request)

        client_id = self._get_client_id(request)
        self._sweep()

        checks = [(f"api:{client_id}", self.api_limit, API_LIMIT_MESSAGE)]
        if request.method == "POST" and request.url.path == CHAT_MESSAGE_PATH:
            checks.append((f"chat:{client_id}", self.chat_limit, CHAT_LIMIT_MESSAGE))

        for bucket, (limit, window), message in checks:
            allowed, remaining = self._hit(bucket, limit, window)
            if not allowed:
                logger.warning(f"Rate limit exceeded for {bucket}")
                return JSONResponse(
                    status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                    content={"error": "Too many requests", "message": message},
                    headers={"Retry-After": str(window)},
                )

        # Headers describe the tightest limit that applied
        response = await call_next(request)
        response.headers["RateLimit-Limit"] = str(limit)
        response.headers["RateLimit-Remaining"] = str(remaining)
        return response

    def _hit(self, bucket: str, limit: int, window: int) -> Tuple[bool, int]:
        now = time.time()
        window_start = now - window
        hits = [t for t in self._requests.get(bucket, ()) if t > window_start]

        if len(hits) >= limit:
            self._requests[bucket] = hits
            return False, 0

        hits.append(now)
        self._requests[bucket] = hits
        return True, max(0, limit - len(hits))

    def _sweep(self):
        """Drop buckets with no hits left inside the longest window."""
        now = time.time()
        horizon = max(self.chat_limit[1], self.api_limit[1])
        if now - self._last_sweep < horizon:
            return

        cutoff = now - horizon
        for bucket in [b for b, hits in self._requests.items() if not hits or hits[-1] <= cutoff]:
            del self._requests[bucket]
        self._last_sweep = now

    def _get_client_id(self, request: Request) -> str:
        """Identify client by IP."""
        return request.client.host if request.client else "unknown"
