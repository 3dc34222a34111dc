"""Fixed-window rate limiting for the auth endpoints.

Rule: `limit` requests per minute per client IP on paths under `path_prefix`
(register/login, anti brute-force). Counting uses Redis INCR + EXPIRE with
key "ratelimit:{ip}:{path_prefix}". The client IP is the first
X-Forwarded-For hop when present (reverse proxy aware).

If Redis is unreachable the request is let through and a warning is logged.
"""

import logging
from collections.abc import Awaitable, Callable

import redis.asyncio as aioredis
from redis.exceptions import RedisError
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

from src.tm_common.errors import RateLimitError
from src.tm_common.response import error_response

logger = logging.getLogger(__name__)

_WINDOW_SECONDS = 60

RedisFactory = Callable[[], Awaitable[aioredis.Redis]]


def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.client.host if request.client else "unknown"


class RateLimitMiddleware(BaseHTTPMiddleware):
    def __init__(
        self,
        app: ASGIApp,
        redis_factory: RedisFactory,
        limit: int = 5,
        path_prefix: str = "/api/v1/users",
        enabled: bool = True,
    ) -> None:
        super().__init__(app)
        self._redis_factory = redis_factory
        self._limit = limit
        self._path_prefix = path_prefix
        self._enabled = enabled

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self._enabled or not request.url.path.startswith(self._path_prefix):
            return await call_next(request)

        key = f"ratelimit:{client_ip(request)}:{self._path_prefix}"
        try:
            redis = await self._redis_factory()
            count = await redis.incr(key)
            if count == 1:
                await redis.expire(key, _WINDOW_SECONDS)
        except RedisError as exc:
            logger.warning("Rate limiter unavailable, allowing request: %s", exc)
            return await call_next(request)

        if count > self._limit:
            err = RateLimitError()
            resp = error_response(err.code, err.message)
            resp.request_id = getattr(request.state, "request_id", resp.request_id)
            return JSONResponse(
                status_code=err.http_status,
                content=resp.model_dump(),
                headers={"Retry-After": str(_WINDOW_SECONDS)},
            )
        return await call_next(request)
