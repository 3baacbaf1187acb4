"""
tests.test_subscriptions

WebSocket subscription channel: handshake, auth and event delivery.
"""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

from shiptrack.api.app import create_app
from shiptrack.api.routers.subscriptions import CLOSE_BAD_HANDSHAKE, CLOSE_UNAUTHENTICATED
from shiptrack.realtime.broadcaster import EventKind
from tests.conftest import ADMIN_PASSWORD, bearer

SHIPMENT = {
    "tracking_number": "WS-1",
    "origin": "Rome",
    "destination": "Vienna",
    "carrier": "GLS",
    "weight": 3,
    "dimensions": "10x10x10",
    "estimated_delivery": "2030-03-01T00:00:00Z",
    "customer_name": "Edsger",
    "customer_email": "edsger@example.com",
}


@pytest.fixture
def api(settings):
    with TestClient(create_app(settings=settings)) as c:
        yield c


@pytest.fixture
def token(api: TestClient) -> str:
    r = api.post("/v1/auth/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert r.status_code == 200
    return r.json()["token"]


def test_subscriber_receives_shipment_added(api: TestClient, token: str) -> None:
    with api.websocket_connect("/v1/subscriptions") as ws:
        ws.send_json({"authorization": f"Bearer {token}"})
        ack = ws.receive_json()
        assert ack == {
            "type": "ack",
            "events": ["shipment_added", "shipment_deleted", "shipment_updated"],
        }

        r = api.post("/v1/shipments", json=SHIPMENT, headers=bearer(token))
        assert r.status_code == 200

        message = ws.receive_json()
        assert message["type"] == "event"
        assert message["event"] == "shipment_added"
        assert message["data"]["tracking_number"] == "WS-1"
        assert message["data"]["status"] == "PENDING"
        assert message["data"]["id"] == r.json()["id"]


def test_subscriber_only_receives_requested_kinds(api: TestClient, token: str) -> None:
    with api.websocket_connect("/v1/subscriptions") as ws:
        ws.send_json({"token": token, "events": ["shipment_deleted"]})
        assert ws.receive_json() == {"type": "ack", "events": ["shipment_deleted"]}

        created = api.post("/v1/shipments", json=SHIPMENT, headers=bearer(token)).json()
        api.delete(f"/v1/shipments/{created['id']}", headers=bearer(token))

        message = ws.receive_json()
        assert message == {"type": "event", "event": "shipment_deleted", "data": created["id"]}


@pytest.mark.parametrize("handshake", [{}, {"token": "garbage"}, {"authorization": "Bearer x.y.z"}])
def test_unauthenticated_subscription_is_closed(api: TestClient, handshake) -> None:
    with api.websocket_connect("/v1/subscriptions") as ws:
        ws.send_json(handshake)
        assert ws.receive_json() == {"type": "error", "detail": "Authentication required"}
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
        assert exc.value.code == CLOSE_UNAUTHENTICATED


def test_malformed_handshake_is_closed(api: TestClient, token: str) -> None:
    with api.websocket_connect("/v1/subscriptions") as ws:
        ws.send_json({"token": token, "events": ["shipment_exploded"]})
        error = ws.receive_json()
        assert error["type"] == "error"
        assert error["detail"].startswith("Invalid handshake")
        with pytest.raises(WebSocketDisconnect) as exc:
            ws.receive_json()
        assert exc.value.code == CLOSE_BAD_HANDSHAKE


def test_disconnect_removes_the_subscription(api: TestClient, token: str) -> None:
    broadcaster = api.app.state.broadcaster

    with api.websocket_connect("/v1/subscriptions") as ws:
        ws.send_json({"token": token, "events": ["shipment_added"]})
        ws.receive_json()
        assert broadcaster.subscription_count(EventKind.shipment_added) == 1
        assert api.get("/readyz").json()["subscriptions"]["shipment_added"] == 1

    assert broadcaster.subscription_count(EventKind.shipment_added) == 0

    # Publishing after the channel closed reaches nobody and does not fail the mutation.
    r = api.post("/v1/shipments", json=SHIPMENT, headers=bearer(token))
    assert r.status_code == 200
    assert api.get("/readyz").json()["subscriptions"]["shipment_added"] == 0
