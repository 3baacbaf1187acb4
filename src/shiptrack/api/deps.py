"""
shiptrack.api.deps

FastAPI dependency wiring for the API layer.

Responsibilities:
- Provide dependency functions for settings, DB sessions and services.
- Encapsulate app.state access patterns (settings/sessionmaker/broadcaster).
"""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shiptrack.realtime.broadcaster import EventBroadcaster
from shiptrack.services.shipment_service import ShipmentService
from shiptrack.services.user_service import UserService
from shiptrack.settings import Settings


def settings_dep(request: Request) -> Settings:
    # The settings the app was created with (tests pass their own).
    return request.app.state.settings  # type: ignore[attr-defined]


def sessionmaker_from_app(request: Request) -> async_sessionmaker[AsyncSession]:
    # The sessionmaker is created on app startup in `shiptrack.api.app.create_app`.
    return request.app.state.sessionmaker  # type: ignore[attr-defined]


def broadcaster_dep(request: Request) -> EventBroadcaster:
    return request.app.state.broadcaster  # type: ignore[attr-defined]


async def db_session(
    session_factory: async_sessionmaker[AsyncSession] = Depends(sessionmaker_from_app),
) -> AsyncIterator[AsyncSession]:
    # Request-scoped DB session. Commit/rollback is managed explicitly by the service layer.
    async with session_factory() as session:
        yield session


def user_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
) -> UserService:
    return UserService(session=session, settings=settings)


def shipment_service(
    session: AsyncSession = Depends(db_session),
    settings: Settings = Depends(settings_dep),
    broadcaster: EventBroadcaster = Depends(broadcaster_dep),
) -> ShipmentService:
    return ShipmentService(session=session, settings=settings, broadcaster=broadcaster)


# --- Module Notes -----------------------------------------------------------
# FastAPI caches dependencies per request, so the principal lookup and the service
# share one session.
