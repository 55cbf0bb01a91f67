"""
FastAPI application factory.

create_app() wires routers, exception handlers and middleware; run.py
serves the module-level `app` with uvicorn.
"""

import logging
import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from redis.asyncio import Redis
from starlette.exceptions import HTTPException as StarletteHTTPException

import config
from db import create_db_and_tables
from exceptions.base import ExpressKartException
from middleware.rate_limit import RateLimitMiddleware, build_redis
from middleware.security_headers import SecurityHeadersMiddleware
from utils.error_handler import error_body, handle_unexpected_error, map_exception, map_validation_error
from web.routers import admin, cart, health, orders, products, reviews, users, vendors, wishlist

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    await create_db_and_tables()
    logger.info(f"[Startup] {config.APP_NAME} ready ({config.RUNTIME_ENVIRONMENT.value})")
    yield
    logger.warning("[Shutdown] Bye!")


def create_app(redis: Redis | None = None, rate_limit_enabled: bool | None = None) -> FastAPI:
    """
    Build the application.

    Args:
        redis: Client for the rate limiter; built from config when omitted
        rate_limit_enabled: Overrides config.RATE_LIMIT_ENABLED (tests)
    """
    app = FastAPI(title=config.APP_NAME, version=config.API_VERSION, lifespan=lifespan)

    @app.exception_handler(ExpressKartException)
    async def handle_service_error(request: Request, exc: ExpressKartException):
        status_code, message = map_exception(exc)
        return JSONResponse(status_code=status_code, content=error_body(message))

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException):
        if exc.status_code == 404 and exc.detail == "Not Found":
            message = f"Route {request.url.path} not found"
        else:
            message = str(exc.detail)
        return JSONResponse(status_code=exc.status_code, content=error_body(message), headers=exc.headers)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, exc: RequestValidationError):
        return JSONResponse(status_code=400, content=error_body(map_validation_error(exc)))

    @app.exception_handler(Exception)
    async def handle_any_error(request: Request, exc: Exception):
        return JSONResponse(status_code=500, content=error_body(handle_unexpected_error(exc)))

    # Middleware added last runs first: rate limiting sits inside CORS so
    # rejected requests still carry CORS headers.
    if config.SECURITY_HEADERS_ENABLED:
        app.add_middleware(SecurityHeadersMiddleware)
        logger.info("[Startup] Security headers middleware enabled")
    else:
        logger.debug("[Startup] Security headers middleware disabled")

    if config.RATE_LIMIT_ENABLED if rate_limit_enabled is None else rate_limit_enabled:
        app.add_middleware(RateLimitMiddleware, redis=redis or build_redis())
        logger.info(f"[Startup] Rate limiting enabled: {config.RATE_LIMIT_MAX_REQUESTS} requests "
                    f"per {config.RATE_LIMIT_WINDOW_SECONDS}s")
    else:
        logger.debug("[Startup] Rate limiting disabled")

    if config.CORS_ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=config.CORS_ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-Request-ID"],
            expose_headers=["X-Request-ID", "X-API-Version", "X-RateLimit-Limit", "X-RateLimit-Remaining"],
        )
        logger.info(f"[Startup] CORS middleware enabled for origins: {config.CORS_ALLOWED_ORIGINS}")

    @app.middleware("http")
    async def correlate(request: Request, call_next):
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.info(f"[{request_id}] {request.method} {request.url.path} -> {response.status_code} "
                    f"({elapsed_ms:.1f} ms)")
        response.headers["X-Request-ID"] = request_id
        response.headers["X-API-Version"] = config.API_VERSION
        return response

    for router in (health, orders, cart, products, vendors, reviews, wishlist, users, admin):
        app.include_router(router.router)

    return app


app = create_app()
