"""
shiptrack.db.models

Persistence schema for users and shipments.

Responsibilities:
- Define the `User` and `Shipment` ORM models and their enums.
- Enforce uniqueness (username, email, tracking number) at the store level.
"""

from __future__ import annotations

import enum
from datetime import datetime
from decimal import Decimal

from sqlalchemy import JSON, DateTime, Enum, Integer, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column

from shiptrack.db.base import Base


def _utcnow() -> datetime:
    # Persist naive UTC timestamps; the API renders them back as UTC.
    return datetime.utcnow()


def _enum_values(enum_cls: type[enum.Enum]) -> list[str]:
    return [m.value for m in enum_cls]


class UserRole(enum.StrEnum):
    admin = "ADMIN"
    employee = "EMPLOYEE"


class ShipmentStatus(enum.StrEnum):
    pending = "PENDING"
    in_transit = "IN_TRANSIT"
    delivered = "DELIVERED"
    cancelled = "CANCELLED"


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Stored lowercased + trimmed; lookups compare against normalized input.
    username: Mapped[str] = mapped_column(String(64), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)

    role: Mapped[UserRole] = mapped_column(
        Enum(UserRole, name="user_role", values_callable=_enum_values),
        nullable=False,
        default=UserRole.employee,
        index=True,
    )
    # Always empty for ADMIN.
    scopes: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)

    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow, onupdate=_utcnow
    )


class Shipment(Base):
    __tablename__ = "shipments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    tracking_number: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True, index=True
    )

    origin: Mapped[str] = mapped_column(String(255), nullable=False)
    destination: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[ShipmentStatus] = mapped_column(
        Enum(ShipmentStatus, name="shipment_status", values_callable=_enum_values),
        nullable=False,
        default=ShipmentStatus.pending,
        index=True,
    )
    carrier: Mapped[str] = mapped_column(String(128), nullable=False, index=True)
    weight: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    dimensions: Mapped[str | None] = mapped_column(String(128), nullable=True)

    estimated_delivery: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    actual_delivery: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)

    customer_name: Mapped[str] = mapped_column(String(255), nullable=False)
    customer_email: Mapped[str] = mapped_column(String(255), nullable=False)
    # Set once from the creating user's stored email; never updated.
    creator_email: Mapped[str | None] = mapped_column(String(255), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow, index=True
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=_utcnow, onupdate=_utcnow
    )


# --- Module Notes -----------------------------------------------------------
# Enum columns store the values ("IN_TRANSIT"), not the Python member names, so
# rows stay readable from other tooling.
