"""
shiptrack.api.routers.subscriptions

WebSocket channel delivering shipment events in real time.

Responsibilities:
- Authenticate the connection from its handshake payload.
- Register a broadcaster subscription for the requested event kinds.
- Forward events until the client disconnects, then unsubscribe.
"""

from __future__ import annotations

import asyncio
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import BaseModel, Field, ValidationError

from shiptrack.auth.guard import Action, Decision, evaluate
from shiptrack.auth.resolver import PrincipalResolver, extract_bearer
from shiptrack.db.session import session_scope
from shiptrack.observability.logging import get_logger
from shiptrack.realtime.broadcaster import EventBroadcaster, EventKind, Subscription

log = get_logger(__name__)

router = APIRouter(tags=["subscriptions"])

# Application-defined close codes (4000-4999), mirroring HTTP 401/400.
CLOSE_UNAUTHENTICATED = 4401
CLOSE_BAD_HANDSHAKE = 4400


class Handshake(BaseModel):
    authorization: str | None = None
    token: str | None = None
    events: list[EventKind] = Field(default_factory=lambda: list(EventKind))

    def bearer(self) -> str | None:
        return extract_bearer(self.authorization) or extract_bearer(self.token)


async def _pump(websocket: WebSocket, sub: Subscription) -> None:
    while True:
        event = await sub.get()
        await websocket.send_json(event.to_message())


async def _drain(websocket: WebSocket) -> None:
    # Client messages after the handshake are ignored; this only watches for disconnect.
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


async def _reject(websocket: WebSocket, *, code: int, detail: str) -> None:
    await websocket.send_json({"type": "error", "detail": detail})
    await websocket.close(code=code)


@router.websocket("/v1/subscriptions")
async def subscriptions(websocket: WebSocket) -> None:
    await websocket.accept()
    app_state: Any = websocket.app.state
    broadcaster: EventBroadcaster = app_state.broadcaster

    try:
        handshake = Handshake.model_validate(await websocket.receive_json())
    except WebSocketDisconnect:
        return
    except (ValidationError, ValueError) as e:
        await _reject(websocket, code=CLOSE_BAD_HANDSHAKE, detail=f"Invalid handshake: {e}")
        return

    # Principal resolution uses a short-lived session; the stream itself holds no connection.
    async with session_scope(app_state.sessionmaker) as session:
        principal = await PrincipalResolver(session=session, settings=app_state.settings).resolve(
            handshake.bearer()
        )
    if evaluate(principal, Action.subscribe_shipments) is not Decision.allow:
        await _reject(websocket, code=CLOSE_UNAUTHENTICATED, detail="Authentication required")
        return

    sub = broadcaster.subscribe(handshake.events)
    log_ctx = log.bind(subscription_id=sub.id, user_id=principal.id)
    try:
        await websocket.send_json(
            {"type": "ack", "events": sorted(kind.value for kind in sub.kinds)}
        )
        log_ctx.info("subscription_started")

        pump = asyncio.create_task(_pump(websocket, sub))
        drain = asyncio.create_task(_drain(websocket))
        try:
            await asyncio.wait({pump, drain}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            # Neither child outlives the handler, including when the handler is cancelled.
            for task in (pump, drain):
                task.cancel()
            await asyncio.wait({pump, drain})
        for task in (pump, drain):
            if task.cancelled():
                continue
            exc = task.exception()
            if exc is not None and not isinstance(exc, WebSocketDisconnect):
                log_ctx.warning("subscription_error", error=str(exc))
    finally:
        # The subscription lives exactly as long as the connection.
        broadcaster.unsubscribe(sub)
        log_ctx.info("subscription_ended")


# --- Module Notes -----------------------------------------------------------
# Handshake shape: {"authorization": "Bearer <jwt>"} or {"token": "<jwt>"},
# plus an optional "events" list (defaults to every shipment event).
