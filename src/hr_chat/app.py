from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

import redis.asyncio as aioredis
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles

from hr_chat.api.deps import build_verifier
from hr_chat.api.middleware.correlation_id import CorrelationIdMiddleware
from hr_chat.api.v1.routers import (
    groups,
    health,
    notifications,
    private_messages,
    unread,
    ws,
)
from hr_chat.application.exceptions import (
    AuthError,
    ForbiddenError,
    NotFoundError,
    PersistenceError,
    PersistenceTimeout,
    ValidationError,
)
from hr_chat.application.ports.auth import TokenVerifier
from hr_chat.application.ports.bus import EventPublisher
from hr_chat.application.ports.unread import UnreadStore
from hr_chat.application.uow import UowFactory
from hr_chat.config import settings
from hr_chat.infrastructure.bus.redis_pubsub import (
    OnEventCallback,
    RedisPubSubPublisher,
    RedisPubSubSubscriber,
)
from hr_chat.infrastructure.cache.redis_unread import RedisUnreadStore
from hr_chat.infrastructure.db.uow import sqlalchemy_uow_factory
from hr_chat.infrastructure.ws.protocol import NEW_NOTIFICATION
from hr_chat.realtime.hub import ChatHub, build_hub
from hr_chat.realtime.unread import InMemoryUnreadStore
from hr_chat.services.notification_service import GroupMessageNotifier, NotificationSink
from hr_chat.services.persistence import UowChatStore

logger = logging.getLogger(__name__)


def _local_sink(hub: ChatHub) -> NotificationSink:
    async def _deliver(user_id: int, payload: dict[str, Any]) -> None:
        hub.router.push_to_user(user_id, NEW_NOTIFICATION, payload)

    return _deliver


def _pubsub_sink(publisher: EventPublisher) -> NotificationSink:
    async def _deliver(user_id: int, payload: dict[str, Any]) -> None:
        await publisher.publish(
            settings.REDIS_PUBSUB_CHANNEL,
            {"event_type": NEW_NOTIFICATION, "user_id": user_id, "notification": payload},
        )

    return _deliver


def _on_pubsub_event(hub: ChatHub) -> OnEventCallback:
    """Push notifications published by any process to local sockets."""

    async def _dispatch(event_type: str, data: dict[str, Any]) -> None:
        if event_type != NEW_NOTIFICATION:
            return
        try:
            user_id = int(data["user_id"])
        except (KeyError, TypeError, ValueError):
            logger.warning("Dropping %s event without a valid user_id", event_type)
            return
        notification = data.get("notification")
        if not isinstance(notification, dict):
            logger.warning("Dropping %s event for user %s without a body", event_type, user_id)
            return
        hub.router.push_to_user(user_id, NEW_NOTIFICATION, notification)

    return _dispatch


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Startup / shutdown lifecycle."""
    hub: ChatHub = app.state.hub
    subscriber: RedisPubSubSubscriber | None = None

    if settings.REDIS_PUBSUB_ENABLED:
        subscriber = RedisPubSubSubscriber(
            app.state.redis,
            settings.REDIS_PUBSUB_CHANNEL,
            _on_pubsub_event(hub),
        )
        await subscriber.start()
        sink = _pubsub_sink(RedisPubSubPublisher(app.state.redis))
    else:
        sink = _local_sink(hub)
    hub.router.notifier = GroupMessageNotifier(app.state.uow_factory, sink)

    yield

    await hub.router.wait_idle()
    if subscriber is not None:
        await subscriber.stop()
    await app.state.redis.aclose()
    logger.info("Redis connection pool closed")


def create_app(
    *,
    uow_factory: UowFactory | None = None,
    unread_store: UnreadStore | None = None,
    verifier: TokenVerifier | None = None,
    upload_dir: str | Path | None = None,
) -> FastAPI:
    uow_factory = uow_factory or sqlalchemy_uow_factory

    app = FastAPI(
        title="HR Chat Service",
        version="0.1.0",
        lifespan=lifespan,
    )

    # The client connects lazily, so building the app never touches Redis.
    app.state.redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    if unread_store is None:
        if settings.UNREAD_BACKEND == "redis":
            unread_store = RedisUnreadStore(app.state.redis)
        else:
            unread_store = InMemoryUnreadStore()

    store = UowChatStore(uow_factory)
    app.state.uow_factory = uow_factory
    app.state.verifier = verifier or build_verifier()
    app.state.hub = build_hub(store, store, app.state.verifier, unread=unread_store)
    app.state.upload_dir = Path(upload_dir or settings.UPLOAD_DIR)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.CORS_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_middleware(CorrelationIdMiddleware)

    _register_exception_handlers(app)

    app.include_router(health.router)
    app.include_router(private_messages.router)
    app.include_router(groups.router)
    app.include_router(notifications.router)
    app.include_router(unread.router)
    app.include_router(ws.router)
    app.mount(
        "/uploads",
        StaticFiles(directory=app.state.upload_dir, check_dir=False),
        name="uploads",
    )

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

    @app.exception_handler(AuthError)
    async def _auth(_req: Request, exc: AuthError) -> JSONResponse:
        return JSONResponse(status_code=401, content={"detail": exc.detail})

    @app.exception_handler(PersistenceTimeout)
    async def _persistence_timeout(_req: Request, exc: PersistenceTimeout) -> JSONResponse:
        return JSONResponse(status_code=504, content={"detail": exc.detail})

    @app.exception_handler(PersistenceError)
    async def _persistence(_req: Request, exc: PersistenceError) -> JSONResponse:
        return JSONResponse(status_code=503, content={"detail": exc.detail})
