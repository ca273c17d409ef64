"""
SQLAlchemy ORM models for the reservation store.

This module defines the tables read by the chat layer:
- reservations: Facility bookings (one-hour slots) and their approval status
- availability_windows: Admin-declared open periods per facility and day

All models use:
- Integer autoincrement primary keys
- Calendar DATE plus wall-clock TIME columns in the campus time zone
- Lower-case facility ids matching database/catalog.py

Non-overlap of active reservations is checked inside the booking transaction.
On PostgreSQL, deployments should add an exclusion constraint
(btree_gist on facility_id, date and the time range) to close the
check-then-insert race between concurrent writers.
"""

import datetime as dt
from enum import Enum as PyEnum

from sqlalchemy import (
    DATE,
    TIME,
    TIMESTAMP,
    Index,
    Integer,
    String,
    func,
)
from sqlalchemy import (
    Enum as SQLEnum,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

# ============================================================================
# Base Class
# ============================================================================


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""

    pass


# ============================================================================
# Enums
# ============================================================================


class ReservationStatus(str, PyEnum):
    """Reservation lifecycle status."""

    PENDING = "PENDING"        # Awaiting admin approval (evening slots, bicycles)
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"
    REJECTED = "REJECTED"

    def __str__(self):
        return self.value


# Statuses that still occupy a slot
ACTIVE_STATUSES = (ReservationStatus.PENDING, ReservationStatus.CONFIRMED)


# ============================================================================
# Core Models
# ============================================================================


class Reservation(Base):
    """
    Reservation model - One booking of a facility by a user.

    Every court/field/padel booking is a fixed one-hour slot on a single day.
    """

    __tablename__ = "reservations"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    facility_id: Mapped[str] = mapped_column(String(50), nullable=False)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)

    date: Mapped[dt.date] = mapped_column(DATE, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(TIME, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(TIME, nullable=False)

    status: Mapped[ReservationStatus] = mapped_column(
        SQLEnum(ReservationStatus, name="reservation_status", native_enum=False),
        default=ReservationStatus.PENDING,
        nullable=False,
    )
    total_price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    # Bicycle rentals only
    bike_type: Mapped[str | None] = mapped_column(String(20), nullable=True)
    rental_plan: Mapped[str | None] = mapped_column(String(20), nullable=True)

    created_at: Mapped[dt.datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        Index("idx_reservations_facility_date", "facility_id", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<Reservation(id={self.id}, facility_id='{self.facility_id}', "
            f"date={self.date}, start={self.start_time}, status={self.status})>"
        )


class AvailabilityWindow(Base):
    """
    Admin-declared open period for a facility on a given day.

    Advisory only: used to enrich chat replies, never to block a booking.
    """

    __tablename__ = "availability_windows"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    facility_id: Mapped[str] = mapped_column(String(50), nullable=False)
    date: Mapped[dt.date] = mapped_column(DATE, nullable=False)
    start_time: Mapped[dt.time] = mapped_column(TIME, nullable=False)
    end_time: Mapped[dt.time] = mapped_column(TIME, nullable=False)

    __table_args__ = (
        Index("idx_availability_windows_facility_date", "facility_id", "date"),
    )

    def __repr__(self) -> str:
        return (
            f"<AvailabilityWindow(facility_id='{self.facility_id}', date={self.date}, "
            f"{self.start_time}-{self.end_time})>"
        )
