from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from dm_service.api.middleware.correlation_id import CorrelationIdMiddleware
from dm_service.api.middleware.timing import RequestTimingMiddleware
from dm_service.api.v1.routers import (
    conversations,
    health,
    messages,
    ws,
)
from dm_service.application.exceptions import (
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from dm_service.config import settings
from dm_service.infrastructure.bus.redis_pubsub import RedisPubSubSubscriber
from dm_service.infrastructure.db.capabilities import probe_procedures
from dm_service.infrastructure.db.session import AsyncSessionLocal, engine
from dm_service.infrastructure.realtime.notifier import ChangeNotifier
from dm_service.services.strategies import select_strategy

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    app.state.redis = aioredis.from_url(
        settings.REDIS_URL,
        decode_responses=True,
    )
    logger.info("Redis connection pool created")

    available = await probe_procedures(AsyncSessionLocal)
    app.state.strategy = select_strategy(settings.DM_ACCESS_MODE, available)
    logger.info("Messaging access strategy: %s", app.state.strategy.name)

    app.state.notifier = ChangeNotifier(
        queue_size=settings.REALTIME_QUEUE_SIZE,
        overflow=settings.REALTIME_OVERFLOW,
        typing_ttl=settings.TYPING_TTL_SECONDS,
    )
    subscriber = RedisPubSubSubscriber(
        app.state.redis,
        settings.REDIS_PUBSUB_CHANNEL,
        app.state.notifier.dispatch,
    )
    await subscriber.start()
    app.state.pubsub_subscriber = subscriber

    yield

    await subscriber.stop()
    await app.state.notifier.close()
    await app.state.redis.aclose()
    await engine.dispose()
    logger.info("Redis connection pool closed")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Skill Exchange DM Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(RequestTimingMiddleware)
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(conversations.router)
    app.include_router(messages.router)
    app.include_router(ws.router)

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(NotFoundError)
    async def _not_found(_req: Request, exc: NotFoundError) -> JSONResponse:
        return JSONResponse(status_code=404, content={"detail": exc.detail})

    @app.exception_handler(ForbiddenError)
    async def _forbidden(_req: Request, exc: ForbiddenError) -> JSONResponse:
        return JSONResponse(status_code=403, content={"detail": exc.detail})

    @app.exception_handler(ValidationError)
    async def _validation(_req: Request, exc: ValidationError) -> JSONResponse:
        return JSONResponse(status_code=422, content={"detail": exc.detail})
