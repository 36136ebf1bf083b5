"""Fixed-window rate limit on mutating requests, counted in Redis."""

import time
from typing import Any

import structlog
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from sparks.middleware.request_id import CALLER_HEADER
from sparks.redis_client import get_redis

logger = structlog.get_logger()

# Reads are cheap and idempotent; only coin-moving calls are limited
_LIMITED_METHODS = frozenset({"POST", "PUT", "PATCH", "DELETE"})


def rate_limit_key(caller: str, window_seconds: int, now: float | None = None) -> str:
    """Counter key for the caller's current window."""
    if now is None:
        now = time.time()
    return f"ratelimit:{caller}:{int(now) // window_seconds}"


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Limit mutating requests per caller (X-Caller-Id, else client IP)."""

    def __init__(self, app: Any, requests_per_window: int = 120, window_seconds: int = 60) -> None:  # noqa: ANN401
        super().__init__(app)
        self.requests_per_window = requests_per_window
        self.window_seconds = window_seconds

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if request.method not in _LIMITED_METHODS:
            return await call_next(request)

        caller = request.headers.get(CALLER_HEADER) or (request.client.host if request.client else "unknown")
        key = rate_limit_key(caller, self.window_seconds)

        try:
            redis = get_redis()
            pipe = redis.pipeline()
            pipe.incr(key)
            pipe.expire(key, self.window_seconds + 1)
            results: list[Any] = await pipe.execute()
        except RuntimeError:
            # Redis not initialized (tests, tooling): no limiting
            return await call_next(request)
        except RedisError:
            logger.warning("rate_limit_unavailable", caller=caller, exc_info=True)
            return await call_next(request)

        current_count: int = results[0]
        if current_count > self.requests_per_window:
            return JSONResponse(
                status_code=429,
                content={"detail": "Rate limit exceeded. Try again later.", "code": "RATE_LIMITED"},
                headers={
                    "Retry-After": str(self.window_seconds),
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Limit": str(self.requests_per_window),
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Remaining"] = str(max(0, self.requests_per_window - current_count))
        response.headers["X-RateLimit-Limit"] = str(self.requests_per_window)
        return response
