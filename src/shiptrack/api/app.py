"""
shiptrack.api.app

FastAPI app factory for the shiptrack service.

Responsibilities:
- Build the FastAPI application and register routers/middleware/error handlers.
- Initialize and dispose shared infrastructure (DB engine, session factory, broadcaster).
- Bootstrap the default admin account on an empty database.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shiptrack import __version__
from shiptrack.api.errors import register_error_handlers
from shiptrack.api.routers.auth import router as auth_router
from shiptrack.api.routers.health import router as health_router
from shiptrack.api.routers.shipments import router as shipments_router
from shiptrack.api.routers.subscriptions import router as subscriptions_router
from shiptrack.api.routers.users import router as users_router
from shiptrack.db.init_db import init_db
from shiptrack.db.seed import ensure_default_admin
from shiptrack.db.session import create_engine, create_sessionmaker
from shiptrack.observability.logging import configure_logging, get_logger
from shiptrack.observability.middleware import RequestContextMiddleware
from shiptrack.realtime.broadcaster import EventBroadcaster
from shiptrack.settings import Settings

log = get_logger(__name__)


def create_app(*, settings: Settings) -> FastAPI:
    # Configure structured logging once at process startup (before app serves requests).
    configure_logging(service_name=settings.service_name, level=settings.log_level)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        log.info("startup", env=settings.env)
        # Shared infrastructure lives on app.state; routers reach it via `api.deps`.
        engine = create_engine(settings)
        app.state.engine = engine
        app.state.sessionmaker = create_sessionmaker(engine)
        app.state.broadcaster = EventBroadcaster(queue_size=settings.subscription_queue_size)
        if settings.env in ("dev", "test"):
            # Dev/test convenience: create tables automatically. Prod should use Alembic migrations.
            await init_db(engine)
        if settings.seed_default_admin:
            await ensure_default_admin(app.state.sessionmaker, settings)
        try:
            yield
        finally:
            # Dispose the engine to close pools/FDs gracefully.
            await engine.dispose()
            log.info("shutdown")

    app = FastAPI(
        title="Shipment Tracking Service",
        version=__version__,
        docs_url="/docs",
        openapi_url="/openapi.json",
        lifespan=lifespan,
    )
    app.state.settings = settings

    app.add_middleware(RequestContextMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    register_error_handlers(app)
    app.include_router(health_router, tags=["health"])
    app.include_router(auth_router)
    app.include_router(users_router)
    app.include_router(shipments_router)
    app.include_router(subscriptions_router)

    return app


# --- Module Notes -----------------------------------------------------------
# App composition stays here; business logic stays in services.
