"""FastAPI application: GraphQL over HTTP and WebSocket.

Run with:
    uvicorn mealsync.app:app --reload
"""

from __future__ import annotations

import logging as _logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from strawberry.fastapi import GraphQLRouter

from mealsync.application.entity_service import build_entity_services
from mealsync.graphql_api.context import create_context_getter
from mealsync.graphql_api.schema import create_schema
from mealsync.infrastructure.auth.auth_middleware import AuthMiddleware
from mealsync.infrastructure.auth.jwt_auth_service import JwtAuthService
from mealsync.infrastructure.config import Settings, load_settings
from mealsync.infrastructure.events.in_memory_notifier import InMemoryChangeNotifier
from mealsync.infrastructure.persistence.factory import RecordStores, create_record_stores
from mealsync.scripts.seed import seed_user

logger = _logging.getLogger("startup")


def configure_logging(level: str) -> None:
    """Basic root logging configuration."""
    _logging.basicConfig(
        level=getattr(_logging, level.upper(), _logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def create_app(
    settings: Optional[Settings] = None,
    stores: Optional[RecordStores] = None,
    notifier: Optional[InMemoryChangeNotifier] = None,
) -> FastAPI:
    """Wire stores, notifier, services and auth into a FastAPI app.

    Args:
        settings: Defaults to ``load_settings()``
        stores: Record stores by kind; defaults to the configured backend
        notifier: Shared change notifier; a fresh one by default

    Example:
        >>> app = create_app(Settings(jwt_secret="test"), stores=in_memory_stores)
    """
    settings = settings or load_settings()
    stores = stores if stores is not None else create_record_stores(settings.repository_backend)
    notifier = notifier or InMemoryChangeNotifier()

    services = build_entity_services(
        stores, notifier, allow_dev_override=settings.allow_dev_override
    )
    auth_service = JwtAuthService(
        secret=settings.jwt_secret,
        ttl_seconds=settings.jwt_ttl_seconds,
        allow_dev_override=settings.allow_dev_override,
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "startup.config",
            extra={
                "app_env": settings.app_env,
                "repository_backend": settings.repository_backend,
                "auth_required": settings.auth_required,
                "dev_override": settings.allow_dev_override,
            },
        )
        for store in stores.values():
            ensure_indexes = getattr(store, "ensure_indexes", None)
            if ensure_indexes is not None:
                await ensure_indexes()

        if settings.seed_user_id:
            await seed_user(services, settings.seed_user_id)

        logger.info("lifespan.ready", extra={"status": "serving"})
        yield

        logger.info("lifespan.shutdown", extra={"status": "cleanup"})
        notifier.clear()
        for store in stores.values():
            close = getattr(store, "close", None)
            if close is not None:
                await close()

    app = FastAPI(title="mealsync", version=settings.app_version, lifespan=lifespan)
    app.state.settings = settings
    app.state.services = services
    app.state.notifier = notifier
    app.state.auth_service = auth_service

    app.add_middleware(
        AuthMiddleware, auth_service=auth_service, auth_required=settings.auth_required
    )
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/version")
    async def version() -> dict[str, str]:
        return {"version": settings.app_version}

    graphql_app: GraphQLRouter[Any, Any] = GraphQLRouter(
        create_schema(), context_getter=create_context_getter(services, auth_service)
    )
    app.include_router(graphql_app, prefix="/graphql")

    return app


_settings = load_settings()
configure_logging(_settings.log_level)
app = create_app(_settings)
