"""
tests.test_shipment_service

Shipment listing, mutations and the events they publish.
"""

from __future__ import annotations

import asyncio
from datetime import UTC, datetime

import pytest

from shiptrack.db.models import ShipmentStatus
from shiptrack.db.repositories.shipments import ShipmentRepo
from shiptrack.errors import (
    AuthenticationRequired,
    AuthorizationDenied,
    Conflict,
    NotFound,
    ValidationFailed,
)
from shiptrack.realtime.broadcaster import EventKind
from shiptrack.schemas import (
    ShipmentFilter,
    ShipmentUpdate,
    ShipmentView,
    SortField,
    SortInput,
    SortOrder,
)
from shiptrack.services.shipment_service import ShipmentService
from tests.conftest import shipment_input


async def _seed(shipments, principal, count: int) -> list[int]:
    ids = []
    for i in range(count):
        view = await shipments.add_shipment(
            principal,
            shipment_input(tracking_number=f"TN{i:03d}", weight=i + 1, customer_name=f"Cust {i}"),
        )
        ids.append(view.id)
    return ids


@pytest.mark.asyncio
async def test_add_shipment_formats_and_records_creator(shipments, employee) -> None:
    view = await shipments.add_shipment(employee, shipment_input())

    assert view.tracking_number == "TN1"
    assert view.status == ShipmentStatus.pending
    assert view.weight == 2.5
    assert view.creator_email == "clerk@tms.com"
    assert view.estimated_delivery == datetime(2030, 1, 15, 12, 0, tzinfo=UTC)
    assert view.actual_delivery is None
    assert view.created_at.tzinfo is not None

    fetched = await shipments.get_shipment(employee, view.id)
    assert fetched == view


@pytest.mark.asyncio
async def test_anonymous_callers_cannot_touch_shipments(shipments) -> None:
    with pytest.raises(AuthenticationRequired):
        await shipments.list_shipments(None)
    with pytest.raises(AuthenticationRequired):
        await shipments.get_shipment(None, 1)
    with pytest.raises(AuthenticationRequired):
        await shipments.add_shipment(None, shipment_input())


@pytest.mark.asyncio
async def test_get_missing_shipment_is_none(shipments, admin) -> None:
    assert await shipments.get_shipment(admin, 4242) is None


@pytest.mark.asyncio
async def test_duplicate_tracking_number_is_a_conflict(shipments, admin) -> None:
    await shipments.add_shipment(admin, shipment_input(tracking_number="DUP"))
    with pytest.raises(Conflict, match="Tracking number already exists"):
        await shipments.add_shipment(admin, shipment_input(tracking_number="DUP"))


@pytest.mark.asyncio
async def test_unique_constraint_catches_a_missed_precheck(
    shipments, admin, monkeypatch
) -> None:
    # Simulates two concurrent creates that both passed the existence check.
    async def never_exists(self, tracking_number, *, exclude_id=None):
        return False

    monkeypatch.setattr(ShipmentRepo, "exists_by_tracking_number", never_exists)

    await shipments.add_shipment(admin, shipment_input(tracking_number="RACE"))
    with pytest.raises(Conflict, match="Tracking number already exists"):
        await shipments.add_shipment(admin, shipment_input(tracking_number="RACE"))

    listed = await shipments.list_shipments(admin, flt=ShipmentFilter(search="RACE"))
    assert listed.total_count == 1


@pytest.mark.asyncio
async def test_concurrent_duplicate_adds_store_exactly_one(
    sessionmaker, settings, broadcaster, admin
) -> None:
    async def add() -> ShipmentView:
        async with sessionmaker() as s:
            svc = ShipmentService(session=s, settings=settings, broadcaster=broadcaster)
            return await svc.add_shipment(admin, shipment_input(tracking_number="SAME"))

    results = await asyncio.gather(*(add() for _ in range(5)), return_exceptions=True)

    assert sum(isinstance(r, ShipmentView) for r in results) == 1
    assert all(isinstance(r, ShipmentView | Conflict) for r in results), results
    async with sessionmaker() as s:
        assert await ShipmentRepo(s).count(ShipmentFilter(search="SAME")) == 1


@pytest.mark.asyncio
async def test_pages_cover_the_filtered_set_exactly_once(shipments, admin) -> None:
    ids = await _seed(shipments, admin, 7)

    seen: list[int] = []
    for page in (1, 2, 3):
        conn = await shipments.list_shipments(admin, page=page, limit=3)
        assert conn.total_count == 7
        assert conn.page_info.total_pages == 3
        assert conn.page_info.current_page == page
        assert conn.page_info.has_previous_page is (page > 1)
        assert conn.page_info.has_next_page is (page < 3)
        seen.extend(s.id for s in conn.shipments)

    assert sorted(seen) == sorted(ids)
    assert len(seen) == len(set(seen))

    beyond = await shipments.list_shipments(admin, page=4, limit=3)
    assert beyond.shipments == []
    assert beyond.page_info.has_next_page is False


@pytest.mark.asyncio
async def test_listing_defaults_to_newest_first(shipments, admin) -> None:
    ids = await _seed(shipments, admin, 3)
    conn = await shipments.list_shipments(admin)
    assert [s.id for s in conn.shipments] == list(reversed(ids))


@pytest.mark.asyncio
async def test_sorting_by_weight_ascending(shipments, admin) -> None:
    await _seed(shipments, admin, 4)
    conn = await shipments.list_shipments(
        admin, sort=SortInput(field=SortField.weight, order=SortOrder.asc)
    )
    weights = [s.weight for s in conn.shipments]
    assert weights == sorted(weights)


@pytest.mark.asyncio
async def test_filters_combine_with_and_and_search_spans_fields(shipments, admin) -> None:
    await shipments.add_shipment(
        admin, shipment_input(tracking_number="A1", carrier="DHL Express", origin="Berlin")
    )
    await shipments.add_shipment(
        admin,
        shipment_input(
            tracking_number="B2", carrier="UPS", origin="Munich", status="IN_TRANSIT"
        ),
    )
    await shipments.add_shipment(
        admin,
        shipment_input(tracking_number="C3", carrier="dhl freight", customer_name="Grace Hopper"),
    )

    dhl = await shipments.list_shipments(admin, flt=ShipmentFilter(carrier="DHL"))
    assert {s.tracking_number for s in dhl.shipments} == {"A1", "C3"}
    assert dhl.total_count == 2

    in_transit = await shipments.list_shipments(
        admin, flt=ShipmentFilter(status=ShipmentStatus.in_transit, carrier="ups")
    )
    assert [s.tracking_number for s in in_transit.shipments] == ["B2"]

    none = await shipments.list_shipments(
        admin, flt=ShipmentFilter(status=ShipmentStatus.in_transit, carrier="dhl")
    )
    assert none.total_count == 0
    assert none.page_info.total_pages == 0

    by_customer = await shipments.list_shipments(admin, flt=ShipmentFilter(search="hopper"))
    assert [s.tracking_number for s in by_customer.shipments] == ["C3"]

    by_origin = await shipments.list_shipments(admin, flt=ShipmentFilter(search="munich"))
    assert [s.tracking_number for s in by_origin.shipments] == ["B2"]


@pytest.mark.asyncio
async def test_search_treats_wildcards_literally(shipments, admin) -> None:
    await shipments.add_shipment(admin, shipment_input(tracking_number="PCT%1"))
    await shipments.add_shipment(admin, shipment_input(tracking_number="PLAIN1"))

    conn = await shipments.list_shipments(admin, flt=ShipmentFilter(search="%"))
    assert [s.tracking_number for s in conn.shipments] == ["PCT%1"]


@pytest.mark.asyncio
async def test_pagination_bounds_are_validated(shipments, admin, settings) -> None:
    with pytest.raises(ValidationFailed):
        await shipments.list_shipments(admin, page=0)
    with pytest.raises(ValidationFailed):
        await shipments.list_shipments(admin, limit=0)
    with pytest.raises(ValidationFailed):
        await shipments.list_shipments(admin, limit=settings.max_page_size + 1)


@pytest.mark.asyncio
async def test_update_writes_only_supplied_fields(shipments, employee) -> None:
    created = await shipments.add_shipment(employee, shipment_input())

    updated = await shipments.update_shipment(
        employee,
        ShipmentUpdate(
            id=created.id,
            status=ShipmentStatus.delivered,
            actual_delivery="2030-01-14T08:30:00+02:00",
            origin=None,
        ),
    )
    assert updated.status == ShipmentStatus.delivered
    assert updated.actual_delivery == datetime(2030, 1, 14, 6, 30, tzinfo=UTC)
    assert updated.origin == created.origin
    assert updated.carrier == created.carrier
    assert updated.updated_at >= created.updated_at

    cleared = await shipments.update_shipment(
        employee, ShipmentUpdate(id=created.id, dimensions=None)
    )
    assert cleared.dimensions is None


@pytest.mark.asyncio
async def test_update_errors(shipments, admin) -> None:
    first = await shipments.add_shipment(admin, shipment_input(tracking_number="ONE"))
    await shipments.add_shipment(admin, shipment_input(tracking_number="TWO"))

    with pytest.raises(NotFound, match="Shipment not found"):
        await shipments.update_shipment(admin, ShipmentUpdate(id=999, carrier="UPS"))
    with pytest.raises(Conflict):
        await shipments.update_shipment(admin, ShipmentUpdate(id=first.id, tracking_number="TWO"))

    # Re-sending its own tracking number is not a collision.
    same = await shipments.update_shipment(
        admin, ShipmentUpdate(id=first.id, tracking_number="ONE")
    )
    assert same.tracking_number == "ONE"


@pytest.mark.asyncio
async def test_delete_is_admin_only(shipments, admin, employee) -> None:
    created = await shipments.add_shipment(employee, shipment_input())

    with pytest.raises(AuthorizationDenied):
        await shipments.delete_shipment(employee, created.id)

    assert await shipments.delete_shipment(admin, created.id) is True
    assert await shipments.get_shipment(admin, created.id) is None

    with pytest.raises(NotFound, match="Shipment not found"):
        await shipments.delete_shipment(admin, created.id)


@pytest.mark.asyncio
async def test_mutations_publish_events(shipments, broadcaster, admin) -> None:
    sub = broadcaster.subscribe()

    created = await shipments.add_shipment(admin, shipment_input())
    await shipments.update_shipment(
        admin, ShipmentUpdate(id=created.id, status=ShipmentStatus.in_transit)
    )
    await shipments.delete_shipment(admin, created.id)

    added = await sub.get()
    assert added.kind is EventKind.shipment_added
    assert added.payload["id"] == created.id
    assert added.payload["status"] == "PENDING"
    assert added.payload["estimated_delivery"] == "2030-01-15T12:00:00Z"

    updated = await sub.get()
    assert updated.kind is EventKind.shipment_updated
    assert updated.payload["status"] == "IN_TRANSIT"

    deleted = await sub.get()
    assert deleted.kind is EventKind.shipment_deleted
    assert deleted.payload == created.id


@pytest.mark.asyncio
async def test_failed_mutations_publish_nothing(shipments, broadcaster, admin) -> None:
    await shipments.add_shipment(admin, shipment_input(tracking_number="X"))
    sub = broadcaster.subscribe()

    with pytest.raises(Conflict):
        await shipments.add_shipment(admin, shipment_input(tracking_number="X"))
    with pytest.raises(NotFound):
        await shipments.delete_shipment(admin, 777)

    assert sub.pending() == 0
