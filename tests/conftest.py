"""
tests.conftest

Shared fixtures: per-test SQLite database, seeded admin, services and an API client.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from typing import Any

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shiptrack.api.app import create_app
from shiptrack.auth.models import Principal
from shiptrack.db.init_db import init_db
from shiptrack.db.repositories.users import UserRepo
from shiptrack.db.seed import ensure_default_admin
from shiptrack.db.session import create_engine, create_sessionmaker
from shiptrack.realtime.broadcaster import EventBroadcaster
from shiptrack.schemas import RegisterInput, ShipmentInput
from shiptrack.services.shipment_service import ShipmentService
from shiptrack.services.user_service import UserService
from shiptrack.settings import Settings

ADMIN_PASSWORD = "admin123"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        env="test",
        database_url=f"sqlite+aiosqlite:///{tmp_path / 'shiptrack.db'}",
        jwt_secret="test-secret-0123456789abcdef-0123456789",
        bcrypt_rounds=4,
        log_level="WARNING",
        default_admin_password=ADMIN_PASSWORD,
    )


@pytest_asyncio.fixture
async def sessionmaker(settings: Settings) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    engine = create_engine(settings)
    await init_db(engine)
    factory = create_sessionmaker(engine)
    await ensure_default_admin(factory, settings)
    try:
        yield factory
    finally:
        await engine.dispose()


@pytest_asyncio.fixture
async def session(sessionmaker: async_sessionmaker[AsyncSession]) -> AsyncIterator[AsyncSession]:
    async with sessionmaker() as s:
        yield s


@pytest.fixture
def broadcaster() -> EventBroadcaster:
    return EventBroadcaster(queue_size=10)


@pytest.fixture
def users(session: AsyncSession, settings: Settings) -> UserService:
    return UserService(session=session, settings=settings)


@pytest.fixture
def shipments(
    session: AsyncSession, settings: Settings, broadcaster: EventBroadcaster
) -> ShipmentService:
    return ShipmentService(session=session, settings=settings, broadcaster=broadcaster)


@pytest_asyncio.fixture
async def admin(session: AsyncSession) -> Principal:
    user = await UserRepo(session).get_by_username("admin")
    assert user is not None
    return Principal.from_user(user)


@pytest_asyncio.fixture
async def employee(users: UserService, admin: Principal) -> Principal:
    payload = await users.register(
        admin,
        RegisterInput(
            username="clerk",
            email="clerk@tms.com",
            password="clerk-pass",
            scopes=["shipments:write"],
        ),
    )
    return Principal(
        id=payload.user.id,
        username=payload.user.username,
        role=payload.user.role,
        scopes=frozenset(payload.user.scopes),
    )


def shipment_input(**overrides: Any) -> ShipmentInput:
    data: dict[str, Any] = {
        "tracking_number": "TN1",
        "origin": "Berlin",
        "destination": "Paris",
        "status": "PENDING",
        "carrier": "DHL Express",
        "weight": 2.5,
        "dimensions": "30x20x10",
        "estimated_delivery": "2030-01-15T12:00:00Z",
        "customer_name": "Ada Lovelace",
        "customer_email": "ada@example.com",
    }
    data.update(overrides)
    return ShipmentInput(**data)


@pytest_asyncio.fixture
async def client(settings: Settings) -> AsyncIterator[httpx.AsyncClient]:
    app = create_app(settings=settings)
    # httpx ASGITransport does not run the lifespan; drive it explicitly.
    async with app.router.lifespan_context(app):
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as c:
            yield c


async def login_token(client: httpx.AsyncClient, **creds: str) -> str:
    r = await client.post("/v1/auth/login", json=creds)
    assert r.status_code == 200, r.text
    return r.json()["token"]


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}
