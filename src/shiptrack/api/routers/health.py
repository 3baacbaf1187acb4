"""
shiptrack.api.routers.health

Liveness and readiness probes.

Responsibilities:
- `/healthz`: the process answers HTTP.
- `/readyz`: the store answers a round trip; reports open subscription channels.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack import __version__
from shiptrack.api.deps import broadcaster_dep, db_session
from shiptrack.realtime.broadcaster import EventBroadcaster, EventKind

router = APIRouter()


@router.get("/healthz")
async def healthz() -> dict[str, str]:
    return {"status": "ok", "version": __version__}


@router.get("/readyz")
async def readyz(
    session: AsyncSession = Depends(db_session),
    broadcaster: EventBroadcaster = Depends(broadcaster_dep),
) -> dict[str, Any]:
    # A store failure surfaces through the SQLAlchemyError handler as a 500.
    await session.execute(text("SELECT 1"))
    return {
        "status": "ready",
        "database": "ok",
        "subscriptions": {kind.value: broadcaster.subscription_count(kind) for kind in EventKind},
    }


# --- Module Notes -----------------------------------------------------------
# Probes are unauthenticated and never touch the users/shipments tables.
