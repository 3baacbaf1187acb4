"""
shiptrack.schemas

Typed inputs and outputs shared by the API, services and repositories.

Responsibilities:
- Closed filter/sort types for shipment listing (validated before reaching the store).
- Mutation inputs (partial updates are tracked via pydantic's `model_fields_set`).
- Sanitized output views (no credential hashes, UTC timestamps, float weights).
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from shiptrack.db.models import Shipment, ShipmentStatus, User, UserRole


def to_utc_naive(value: datetime | None) -> datetime | None:
    # The store keeps naive UTC; aware inputs are converted, naive ones taken as UTC.
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(UTC).replace(tzinfo=None)


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    return value.replace(tzinfo=UTC) if value.tzinfo is None else value.astimezone(UTC)


def _blank_to_none(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


# --- Listing ----------------------------------------------------------------


class SortField(enum.StrEnum):
    created_at = "created_at"
    updated_at = "updated_at"
    tracking_number = "tracking_number"
    status = "status"
    carrier = "carrier"
    origin = "origin"
    destination = "destination"
    weight = "weight"
    estimated_delivery = "estimated_delivery"
    customer_name = "customer_name"


class SortOrder(enum.StrEnum):
    asc = "ASC"
    desc = "DESC"


class SortInput(BaseModel):
    field: SortField = SortField.created_at
    order: SortOrder = SortOrder.desc


class ShipmentFilter(BaseModel):
    status: ShipmentStatus | None = None
    carrier: str | None = None
    origin: str | None = None
    destination: str | None = None
    # Substring across tracking number, customer name, origin and destination.
    search: str | None = None

    @field_validator("carrier", "origin", "destination", "search", mode="before")
    @classmethod
    def blank_to_none(cls, value: Any) -> Any:
        return _blank_to_none(value)


# --- Mutations --------------------------------------------------------------


class ShipmentInput(BaseModel):
    tracking_number: str = Field(min_length=1, max_length=64)
    origin: str = Field(min_length=1, max_length=255)
    destination: str = Field(min_length=1, max_length=255)
    status: ShipmentStatus = ShipmentStatus.pending
    carrier: str = Field(min_length=1, max_length=128)
    weight: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    dimensions: str = Field(max_length=128)
    estimated_delivery: datetime
    customer_name: str = Field(min_length=1, max_length=255)
    customer_email: str = Field(min_length=1, max_length=255)


class ShipmentChanges(BaseModel):
    """
    Partial update body; only fields explicitly supplied are written.
    """

    tracking_number: str | None = Field(default=None, min_length=1, max_length=64)
    origin: str | None = Field(default=None, min_length=1, max_length=255)
    destination: str | None = Field(default=None, min_length=1, max_length=255)
    status: ShipmentStatus | None = None
    carrier: str | None = Field(default=None, min_length=1, max_length=128)
    weight: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    dimensions: str | None = Field(default=None, max_length=128)
    estimated_delivery: datetime | None = None
    actual_delivery: datetime | None = None
    customer_name: str | None = Field(default=None, min_length=1, max_length=255)
    customer_email: str | None = Field(default=None, min_length=1, max_length=255)


class ShipmentUpdate(ShipmentChanges):
    id: int


class LoginInput(BaseModel):
    username: str | None = None
    email: str | None = None
    password: str | None = None


class RegisterInput(BaseModel):
    username: str = Field(min_length=1, max_length=64)
    email: str = Field(min_length=3, max_length=255)
    password: str = Field(min_length=1)
    role: UserRole = UserRole.employee
    scopes: list[str] = Field(default_factory=list)


class UserChanges(BaseModel):
    username: str | None = Field(default=None, min_length=1, max_length=64)
    email: str | None = Field(default=None, min_length=3, max_length=255)
    password: str | None = None
    role: UserRole | None = None
    scopes: list[str] | None = None


class UserUpdate(UserChanges):
    id: int


class ChangePasswordInput(BaseModel):
    current_password: str
    new_password: str


# --- Views ------------------------------------------------------------------


class UserView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    role: UserRole
    scopes: list[str] = Field(default_factory=list)

    @classmethod
    def from_model(cls, user: User) -> UserView:
        return cls(
            id=user.id,
            username=user.username,
            email=user.email,
            role=user.role,
            scopes=list(user.scopes or []),
        )


class AuthPayload(BaseModel):
    token: str
    user: UserView


class ShipmentView(BaseModel):
    id: int
    tracking_number: str
    origin: str
    destination: str
    status: ShipmentStatus
    carrier: str
    weight: float
    dimensions: str | None
    estimated_delivery: datetime | None
    actual_delivery: datetime | None
    customer_name: str
    customer_email: str
    creator_email: str | None
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_model(cls, s: Shipment) -> ShipmentView:
        return cls(
            id=s.id,
            tracking_number=s.tracking_number,
            origin=s.origin,
            destination=s.destination,
            status=s.status,
            carrier=s.carrier,
            weight=float(s.weight),
            dimensions=s.dimensions,
            estimated_delivery=_as_utc(s.estimated_delivery),
            actual_delivery=_as_utc(s.actual_delivery),
            customer_name=s.customer_name,
            customer_email=s.customer_email,
            creator_email=s.creator_email,
            created_at=_as_utc(s.created_at),
            updated_at=_as_utc(s.updated_at),
        )


class PageInfo(BaseModel):
    current_page: int
    total_pages: int
    has_next_page: bool
    has_previous_page: bool


class ShipmentConnection(BaseModel):
    shipments: list[ShipmentView]
    total_count: int
    page_info: PageInfo


# --- Module Notes -----------------------------------------------------------
# Views are what subscribers receive too: events carry `ShipmentView.model_dump(mode="json")`.
