"""FastAPI application factory."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from redis.asyncio import Redis

from api.middleware import ActivityMiddleware
from api.v1 import api_router
from core import configure_logging, settings
from db.session import AsyncSessionMaker
from services.notifications import (
    ActivityTracker,
    NotificationDispatcher,
    RedisActivityTracker,
    SqlActivityTracker,
)
from services.notifications.push import create_push_provider

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    configure_logging(settings.log_level)

    push_provider = await create_push_provider(settings)
    redis_client: Redis | None = None
    activity_tracker: ActivityTracker
    if settings.activity_backend == "redis":
        redis_client = Redis.from_url(settings.redis_url, decode_responses=False)
        activity_tracker = RedisActivityTracker(redis_client)
    else:
        activity_tracker = SqlActivityTracker(AsyncSessionMaker)

    app.state.push_provider = push_provider
    app.state.activity_tracker = activity_tracker
    app.state.dispatcher = NotificationDispatcher(
        AsyncSessionMaker,
        push_provider,
        activity_tracker,
    )
    logger.info(
        "Notification services ready",
        extra={
            "provider": push_provider.name,
            "activity_backend": settings.activity_backend,
        },
    )
    try:
        yield
    finally:
        await push_provider.aclose()
        if redis_client is not None:
            await redis_client.aclose()


def create_app() -> FastAPI:
    application = FastAPI(title="Notifications", lifespan=lifespan)
    application.add_middleware(
        ActivityMiddleware,
        debounce_seconds=settings.activity_debounce_seconds,
    )
    application.include_router(api_router)

    @application.get("/health", tags=["health"])
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return application


app = create_app()
