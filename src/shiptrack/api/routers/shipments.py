"""
shiptrack.api.routers.shipments

Shipment query and mutation endpoints.

Responsibilities:
- Map query parameters onto `ShipmentFilter`/`SortInput`.
- Delegate to `ShipmentService`, which authorizes, persists and publishes events.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from shiptrack.api.deps import shipment_service
from shiptrack.auth.deps import get_principal
from shiptrack.auth.models import Principal
from shiptrack.db.models import ShipmentStatus
from shiptrack.schemas import (
    ShipmentChanges,
    ShipmentConnection,
    ShipmentFilter,
    ShipmentInput,
    ShipmentUpdate,
    ShipmentView,
    SortField,
    SortInput,
    SortOrder,
)
from shiptrack.services.shipment_service import ShipmentService

router = APIRouter(prefix="/v1/shipments", tags=["shipments"])


@router.get("", response_model=ShipmentConnection)
async def list_shipments(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1),
    status: ShipmentStatus | None = None,
    carrier: str | None = None,
    origin: str | None = None,
    destination: str | None = None,
    search: str | None = None,
    sort_field: SortField | None = None,
    sort_order: SortOrder = SortOrder.desc,
    principal: Principal | None = Depends(get_principal),
    svc: ShipmentService = Depends(shipment_service),
) -> ShipmentConnection:
    flt = ShipmentFilter(
        status=status, carrier=carrier, origin=origin, destination=destination, search=search
    )
    sort = SortInput(field=sort_field, order=sort_order) if sort_field is not None else None
    return await svc.list_shipments(principal, page=page, limit=limit, flt=flt, sort=sort)


@router.get("/{shipment_id}", response_model=ShipmentView | None)
async def get_shipment(
    shipment_id: int,
    principal: Principal | None = Depends(get_principal),
    svc: ShipmentService = Depends(shipment_service),
) -> ShipmentView | None:
    # A missing shipment is a null result, not an error.
    return await svc.get_shipment(principal, shipment_id)


@router.post("", response_model=ShipmentView)
async def add_shipment(
    body: ShipmentInput,
    principal: Principal | None = Depends(get_principal),
    svc: ShipmentService = Depends(shipment_service),
) -> ShipmentView:
    return await svc.add_shipment(principal, body)


@router.patch("/{shipment_id}", response_model=ShipmentView)
async def update_shipment(
    shipment_id: int,
    body: ShipmentChanges,
    principal: Principal | None = Depends(get_principal),
    svc: ShipmentService = Depends(shipment_service),
) -> ShipmentView:
    data = ShipmentUpdate(id=shipment_id, **body.model_dump(exclude_unset=True))
    return await svc.update_shipment(principal, data)


@router.delete("/{shipment_id}")
async def delete_shipment(
    shipment_id: int,
    principal: Principal | None = Depends(get_principal),
    svc: ShipmentService = Depends(shipment_service),
) -> dict[str, bool]:
    return {"success": await svc.delete_shipment(principal, shipment_id)}


# --- Module Notes -----------------------------------------------------------
# Pagination bounds beyond `ge=1` (max page size) are enforced by the service.
