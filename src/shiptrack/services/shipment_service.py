"""
shiptrack.services.shipment_service

Shipment queries and mutations.

Responsibilities:
- Filtered, sorted, paginated listing with counts over the filtered set.
- Create/update/delete with tracking-number uniqueness and not-found reporting.
- Publish shipment events after each successful commit.
"""

from __future__ import annotations

import math
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.auth.guard import Action, authorize
from shiptrack.auth.models import Principal
from shiptrack.db.repositories.shipments import ShipmentRepo
from shiptrack.db.repositories.users import UserRepo
from shiptrack.errors import Conflict, NotFound, ValidationFailed
from shiptrack.observability.logging import get_logger
from shiptrack.realtime.broadcaster import EventBroadcaster, EventKind
from shiptrack.schemas import (
    PageInfo,
    ShipmentConnection,
    ShipmentFilter,
    ShipmentInput,
    ShipmentUpdate,
    ShipmentView,
    SortInput,
    to_utc_naive,
)
from shiptrack.settings import Settings

log = get_logger(__name__)

# Columns that may be cleared with an explicit null on update.
_NULLABLE_FIELDS = frozenset({"dimensions", "estimated_delivery", "actual_delivery"})
_DATE_FIELDS = frozenset({"estimated_delivery", "actual_delivery"})


class ShipmentService:
    def __init__(
        self,
        *,
        session: AsyncSession,
        settings: Settings,
        broadcaster: EventBroadcaster,
    ) -> None:
        self._session = session
        self._settings = settings
        self._broadcaster = broadcaster

        self._shipments = ShipmentRepo(session)
        self._users = UserRepo(session)

    async def list_shipments(
        self,
        principal: Principal | None,
        *,
        page: int = 1,
        limit: int = 10,
        flt: ShipmentFilter | None = None,
        sort: SortInput | None = None,
    ) -> ShipmentConnection:
        authorize(principal, Action.read_shipments)
        if page < 1:
            raise ValidationFailed("page must be >= 1")
        if limit < 1 or limit > self._settings.max_page_size:
            raise ValidationFailed(f"limit must be between 1 and {self._settings.max_page_size}")

        total = await self._shipments.count(flt)
        rows = await self._shipments.list_page(
            flt, sort=sort, limit=limit, offset=(page - 1) * limit
        )
        total_pages = math.ceil(total / limit)
        return ShipmentConnection(
            shipments=[ShipmentView.from_model(s) for s in rows],
            total_count=total,
            page_info=PageInfo(
                current_page=page,
                total_pages=total_pages,
                has_next_page=page < total_pages,
                has_previous_page=page > 1,
            ),
        )

    async def get_shipment(
        self, principal: Principal | None, shipment_id: int
    ) -> ShipmentView | None:
        authorize(principal, Action.read_shipments)
        shipment = await self._shipments.get(shipment_id)
        return ShipmentView.from_model(shipment) if shipment is not None else None

    async def add_shipment(self, principal: Principal | None, data: ShipmentInput) -> ShipmentView:
        actor = authorize(principal, Action.create_shipment)

        # Fast path only; the unique constraint is what actually guarantees uniqueness.
        if await self._shipments.exists_by_tracking_number(data.tracking_number):
            raise Conflict("Tracking number already exists")

        # Read the creator's email from the row, not from the token.
        creator = await self._users.get(actor.id)
        values: dict[str, Any] = data.model_dump()
        values["estimated_delivery"] = to_utc_naive(data.estimated_delivery)
        values["creator_email"] = creator.email if creator is not None else None

        try:
            shipment = await self._shipments.create(**values)
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise Conflict("Tracking number already exists") from e

        view = ShipmentView.from_model(shipment)
        log.info("shipment_added", shipment_id=shipment.id, actor=actor.id)
        self._broadcaster.publish(EventKind.shipment_added, view.model_dump(mode="json"))
        return view

    async def update_shipment(
        self, principal: Principal | None, data: ShipmentUpdate
    ) -> ShipmentView:
        actor = authorize(principal, Action.update_shipment)

        values: dict[str, Any] = {}
        for key in data.model_fields_set - {"id"}:
            value = getattr(data, key)
            if value is None and key not in _NULLABLE_FIELDS:
                continue
            if key in _DATE_FIELDS:
                value = to_utc_naive(value)
            values[key] = value

        if "tracking_number" in values and await self._shipments.exists_by_tracking_number(
            values["tracking_number"], exclude_id=data.id
        ):
            raise Conflict("Tracking number already exists")

        try:
            shipment = await self._shipments.update(data.id, values)
            if shipment is None:
                raise NotFound("Shipment not found")
            await self._session.commit()
        except IntegrityError as e:
            await self._session.rollback()
            raise Conflict("Tracking number already exists") from e

        view = ShipmentView.from_model(shipment)
        log.info("shipment_updated", shipment_id=shipment.id, fields=sorted(values), actor=actor.id)
        self._broadcaster.publish(EventKind.shipment_updated, view.model_dump(mode="json"))
        return view

    async def delete_shipment(self, principal: Principal | None, shipment_id: int) -> bool:
        actor = authorize(principal, Action.delete_shipment)

        deleted = await self._shipments.delete(shipment_id)
        if not deleted:
            raise NotFound("Shipment not found")
        await self._session.commit()

        log.info("shipment_deleted", shipment_id=shipment_id, actor=actor.id)
        self._broadcaster.publish(EventKind.shipment_deleted, shipment_id)
        return True


# --- Module Notes -----------------------------------------------------------
# Events are published only after commit, so subscribers never see a change that
# was later rolled back.
