"""
Rate Limiting Middleware

Protects the API from abuse using Redis-based fixed-window counters.

Features:
- Per-client-IP limiting on /api/ routes
- CORS preflight (OPTIONS) and health checks are never counted
- Automatic window expiry using Redis TTL
- Fails open when Redis is unreachable

Configuration:
- RATE_LIMIT_ENABLED: Master switch
- RATE_LIMIT_WINDOW_SECONDS: Window length (default 15 minutes)
- RATE_LIMIT_MAX_REQUESTS: Requests allowed per client per window
"""

import logging

from redis.asyncio import Redis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

import config
from utils.error_handler import error_body

logger = logging.getLogger(__name__)

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later."
EXEMPT_PATHS = ("/api/health",)


def build_redis() -> Redis:
    return Redis(host=config.REDIS_HOST, port=config.REDIS_PORT, password=config.REDIS_PASSWORD,
                 decode_responses=True)


class RateLimiter:
    """
    Redis-based fixed-window rate limiter.

    Usage:
        limiter = RateLimiter(redis)
        is_limited, current, remaining = await limiter.is_rate_limited("api", "10.0.0.1", 500, 900)
    """

    def __init__(self, redis: Redis):
        self.redis = redis

    async def is_rate_limited(
        self,
        operation: str,
        client_id: str,
        max_count: int,
        window_seconds: int
    ) -> tuple[bool, int, int]:
        """
        Count one request for the client and check it against the limit.

        Returns:
            Tuple of (is_limited, current_count, remaining_count)
        """
        key = f"rate_limit:{operation}:{client_id}"

        try:
            current_count = await self.redis.incr(key)

            # First hit opens the window
            if current_count == 1:
                await self.redis.expire(key, window_seconds)

            is_limited = current_count > max_count
            remaining = max(0, max_count - current_count)

            if is_limited:
                ttl = await self.redis.ttl(key)
                logger.warning(
                    f"Rate limit exceeded: client={client_id}, operation={operation}, "
                    f"count={current_count}/{max_count}, resets_in={ttl}s"
                )

            return is_limited, current_count, remaining

        except Exception as e:
            # If Redis fails, don't block the request (fail open)
            logger.error(f"Rate limiter error: {e}")
            return False, 0, max_count

    async def reset_limit(self, operation: str, client_id: str):
        key = f"rate_limit:{operation}:{client_id}"
        await self.redis.delete(key)
        logger.info(f"Rate limit reset: client={client_id}, operation={operation}")

    async def get_remaining_time(self, operation: str, client_id: str) -> int:
        """Seconds until the client's window resets (0 if no window is open)."""
        key = f"rate_limit:{operation}:{client_id}"
        ttl = await self.redis.ttl(key)
        return ttl if ttl > 0 else 0


class RateLimitMiddleware(BaseHTTPMiddleware):
    """Applies RateLimiter to every /api/ request."""

    def __init__(self, app, redis: Redis, max_requests: int | None = None, window_seconds: int | None = None):
        super().__init__(app)
        self.limiter = RateLimiter(redis)
        self.max_requests = max_requests or config.RATE_LIMIT_MAX_REQUESTS
        self.window_seconds = window_seconds or config.RATE_LIMIT_WINDOW_SECONDS

    @staticmethod
    def _is_exempt(request: Request) -> bool:
        path = request.url.path
        return (request.method == "OPTIONS"
                or not path.startswith("/api/")
                or path.rstrip("/") in EXEMPT_PATHS)

    async def dispatch(self, request: Request, call_next) -> Response:
        if self._is_exempt(request):
            return await call_next(request)

        client_id = request.client.host if request.client else "unknown"
        is_limited, _, remaining = await self.limiter.is_rate_limited(
            "api", client_id, self.max_requests, self.window_seconds
        )
        if is_limited:
            retry_after = await self.limiter.get_remaining_time("api", client_id)
            return JSONResponse(
                status_code=429,
                content=error_body(RATE_LIMIT_MESSAGE),
                headers={"Retry-After": str(retry_after)},
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(self.max_requests)
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
