"""
shiptrack.db.repositories.shipments

Repository for `Shipment` entities.

Responsibilities:
- Translate `ShipmentFilter`/`SortInput` into SQL (AND across fields, OR for search).
- Filtered count + paginated fetch.
- Insert, partial update, delete and tracking-number existence checks.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import ColumnElement, delete, exists, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from shiptrack.db.models import Shipment
from shiptrack.schemas import ShipmentFilter, SortInput, SortOrder

_LIKE_ESCAPE = "\\"


def _contains(value: str) -> str:
    # User input is matched literally: LIKE wildcards are escaped.
    escaped = (
        value.replace(_LIKE_ESCAPE, _LIKE_ESCAPE * 2)
        .replace("%", _LIKE_ESCAPE + "%")
        .replace("_", _LIKE_ESCAPE + "_")
    )
    return f"%{escaped}%"


def filter_conditions(flt: ShipmentFilter | None) -> list[ColumnElement[bool]]:
    if flt is None:
        return []
    conds: list[ColumnElement[bool]] = []
    if flt.status is not None:
        conds.append(Shipment.status == flt.status)
    if flt.carrier:
        conds.append(Shipment.carrier.ilike(_contains(flt.carrier), escape=_LIKE_ESCAPE))
    if flt.origin:
        conds.append(Shipment.origin.ilike(_contains(flt.origin), escape=_LIKE_ESCAPE))
    if flt.destination:
        conds.append(Shipment.destination.ilike(_contains(flt.destination), escape=_LIKE_ESCAPE))
    if flt.search:
        pattern = _contains(flt.search)
        conds.append(
            or_(
                Shipment.tracking_number.ilike(pattern, escape=_LIKE_ESCAPE),
                Shipment.customer_name.ilike(pattern, escape=_LIKE_ESCAPE),
                Shipment.origin.ilike(pattern, escape=_LIKE_ESCAPE),
                Shipment.destination.ilike(pattern, escape=_LIKE_ESCAPE),
            )
        )
    return conds


def order_clauses(sort: SortInput | None) -> list[Any]:
    sort = sort or SortInput()
    column = getattr(Shipment, sort.field.value)
    primary = column.asc() if sort.order == SortOrder.asc else column.desc()
    # id breaks ties so page boundaries are stable.
    tie = Shipment.id.asc() if sort.order == SortOrder.asc else Shipment.id.desc()
    return [primary, tie]


class ShipmentRepo:
    def __init__(self, session: AsyncSession) -> None:
        self._session = session

    async def get(self, shipment_id: int) -> Shipment | None:
        return await self._session.get(Shipment, shipment_id)

    async def exists_by_tracking_number(
        self, tracking_number: str, *, exclude_id: int | None = None
    ) -> bool:
        cond = Shipment.tracking_number == tracking_number
        if exclude_id is not None:
            cond = cond & (Shipment.id != exclude_id)
        stmt = select(exists().where(cond))
        return bool((await self._session.execute(stmt)).scalar())

    async def count(self, flt: ShipmentFilter | None = None) -> int:
        stmt = select(func.count()).select_from(Shipment).where(*filter_conditions(flt))
        return int((await self._session.execute(stmt)).scalar_one())

    async def list_page(
        self,
        flt: ShipmentFilter | None = None,
        *,
        sort: SortInput | None = None,
        limit: int,
        offset: int = 0,
    ) -> list[Shipment]:
        stmt = (
            select(Shipment)
            .where(*filter_conditions(flt))
            .order_by(*order_clauses(sort))
            .limit(limit)
            .offset(offset)
        )
        return list((await self._session.execute(stmt)).scalars().all())

    async def create(self, **values: Any) -> Shipment:
        shipment = Shipment(**values)
        self._session.add(shipment)
        await self._session.flush()
        return shipment

    async def update(self, shipment_id: int, values: dict[str, Any]) -> Shipment | None:
        shipment = await self._session.get(Shipment, shipment_id, with_for_update=True)
        if shipment is None:
            return None
        for key, value in values.items():
            setattr(shipment, key, value)
        shipment.updated_at = datetime.utcnow()
        await self._session.flush()
        return shipment

    async def delete(self, shipment_id: int) -> bool:
        result = await self._session.execute(delete(Shipment).where(Shipment.id == shipment_id))
        return (result.rowcount or 0) > 0


# --- Module Notes -----------------------------------------------------------
# `count` and `list_page` share `filter_conditions`, so totals always describe the filtered set.
