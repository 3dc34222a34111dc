"""FastAPI application entry point.

Run with: uvicorn src.main:app --reload --port 8000
"""

# ruff: noqa: E402  -- uvloop.install() must run before other imports

import uvloop

uvloop.install()

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from functools import partial

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy import text

from config.settings import Settings, get_settings
from src.tm_common.database import build_engine, build_session_factory
from src.tm_common.errors import AppError, InternalError, InvalidRequestError
from src.tm_common.redis_client import close_redis, get_redis
from src.tm_common.response import error_response
from src.tm_gateway.api.router import router as users_router
from src.tm_gateway.auth.jwt_handler import JwtHandler
from src.tm_gateway.middleware.rate_limit import RateLimitMiddleware
from src.tm_gateway.middleware.request_log import RequestLogMiddleware
from src.tm_ledger.api.router import router as accounts_router

logger = logging.getLogger(__name__)

VERSION = "0.1.0"


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _envelope(request: Request, status_code: int, code: int, message: str, data: object = None) -> JSONResponse:
    resp = error_response(code, message, data)
    resp.request_id = getattr(request.state, "request_id", resp.request_id)
    return JSONResponse(status_code=status_code, content=jsonable_encoder(resp.model_dump()))


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application from an explicit Settings object.

    The DB engine, session factory and JwtHandler are created here and kept on
    app.state; nothing reads configuration from module globals at request time.
    """
    settings = settings or get_settings()
    _configure_logging(settings.LOG_LEVEL)

    engine = build_engine(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Startup: verify DB connection. Shutdown: dispose engine + Redis."""
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        logger.info("%s started (version %s)", settings.APP_NAME, VERSION)
        yield
        await engine.dispose()
        await close_redis()

    app = FastAPI(title=settings.APP_NAME, version=VERSION, lifespan=lifespan)
    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.jwt_handler = JwtHandler.from_settings(settings)

    # Last added runs first: RequestLog assigns request_id before rate limiting
    app.add_middleware(
        RateLimitMiddleware,
        redis_factory=partial(get_redis, settings.REDIS_URL),
        limit=settings.AUTH_RATE_LIMIT_PER_MINUTE,
        path_prefix="/api/v1/users",
        enabled=settings.RATE_LIMIT_ENABLED,
    )
    app.add_middleware(RequestLogMiddleware)

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError) -> JSONResponse:
        message = exc.message
        if exc.http_status >= 500:
            logger.error("AppError %d: %s", exc.code, exc.message)
            if not settings.DEBUG:
                message = "Internal server error"
        return _envelope(request, exc.http_status, exc.code, message)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        err = InvalidRequestError()
        errors = [
            {"loc": list(e.get("loc", ())), "msg": e.get("msg", ""), "type": e.get("type", "")}
            for e in exc.errors()
        ]
        return _envelope(request, err.http_status, err.code, err.message, errors)

    @app.exception_handler(Exception)
    async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        err = InternalError()
        message = f"{type(exc).__name__}: {exc}" if settings.DEBUG else err.message
        return _envelope(request, err.http_status, err.code, message)

    app.include_router(users_router, prefix="/api/v1")
    app.include_router(accounts_router, prefix="/api/v1")

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok", "version": VERSION}

    return app


app = create_app()
