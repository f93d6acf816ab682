"""FastAPI application for the irrigation planner.

Postgres is required at startup.  Redis is not: without it the per-field
generation lock and request quotas are simply switched off, which
``/health`` reports alongside whether the AI advisor has a credential.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from redis.asyncio import Redis
from redis.exceptions import RedisError
from sqlalchemy import text

from app.config import get_settings
from app.database import engine
from app.middleware.logging import RequestLoggingMiddleware, configure_structured_logging
from app.middleware.rate_limit import RateLimitMiddleware
from app.routes import auth, fields, irrigation, notifications, weather

API_PREFIX = "/api/v1"
VERSION = "0.1.0"

logger = structlog.get_logger("planner")


async def _connect_redis(url: str) -> Redis | None:
    client = Redis.from_url(url, decode_responses=True)
    try:
        await client.ping()
    except (RedisError, OSError) as exc:
        logger.warning("redis_unavailable", error=str(exc), effect="generation lock and quotas disabled")
        await client.aclose()
        return None
    return client


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    settings = get_settings()
    configure_structured_logging(settings)

    try:
        async with engine.connect() as connection:
            await connection.execute(text("SELECT 1"))
    except Exception:
        logger.exception("database_unreachable")
        raise

    app.state.redis = await _connect_redis(settings.redis_url)
    logger.info(
        "planner_started",
        version=VERSION,
        redis=app.state.redis is not None,
        ai_advisor=settings.advisor_configured,
    )

    yield

    if app.state.redis is not None:
        await app.state.redis.aclose()
    await engine.dispose()
    logger.info("planner_stopped")


app = FastAPI(
    title="Irrigation Planner API",
    description=(
        "Per-field irrigation schedules built from crop and soil reference data, "
        "weather forecasts and an optional AI water-profile advisor."
    ),
    version=VERSION,
    lifespan=lifespan,
)

# Starlette runs the last-added middleware first: logging wraps rate limiting.
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RateLimitMiddleware)
app.add_middleware(RequestLoggingMiddleware)


@app.get("/health", tags=["system"])
async def health_check(request: Request) -> dict[str, str]:
    return {
        "status": "ok",
        "version": VERSION,
        "redis": "connected" if getattr(request.app.state, "redis", None) is not None else "disabled",
        "ai_advisor": "configured" if get_settings().advisor_configured else "not_configured",
    }


for module in (auth, fields, irrigation, weather, notifications):
    app.include_router(module.router, prefix=API_PREFIX)
