"""
Reservation store service.

Owns every read and write against the reservations tables:
- create_booking(): validate business rules, re-check conflicts, insert
- list_active_reservations() / list_availability_windows(): day views per facility
- list_upcoming_bookings(): a user's own future bookings (chat model context)

Business rules for create_booking():
    - every booking is a one-hour slot and must end before midnight
    - futsal and half-field: last start 20:00
    - bicycles: bike_type + rental_plan required, last start 17:00
    - evening lighting fee from 18:00 (30, or 40 for a half-field)
    - bicycles priced by plan; bicycles and evening slots start PENDING
      (admin approval), everything else is CONFIRMED immediately

The response mirrors an HTTP call (status_code + booking or error) so the chat
layer can surface error text verbatim.
"""

import logging
import re
from dataclasses import dataclass, field
from datetime import date, time
from typing import Any

from sqlalchemy import func, select

from agent.state.schemas import CallerIdentity
from agent.utils.date_parser import minutes_to_time, time_to_minutes
from database.catalog import HALF_FIELD_TYPES, Facility, get_facility
from database.connection import get_async_session
from database.models import ACTIVE_STATUSES, AvailabilityWindow, Reservation, ReservationStatus

logger = logging.getLogger(__name__)

SLOT_MINUTES = 60
MINUTES_PER_DAY = 24 * 60
EVENING_START_HOUR = 18

LAST_START_FIELD = "20:00"
LAST_START_BICYCLES = "17:00"

LIGHTING_FEE = 30
LIGHTING_FEE_HALF_FIELD = 40
LIT_COURT_TYPES = frozenset({"futsal", "tennis", "padel", "basketball"})

BICYCLE_PRICES: dict[str, dict[str, int]] = {
    "normal": {"2h": 20, "daily": 50, "3d": 130, "weekly": 200},
    "pro": {"2h": 40, "daily": 80, "3d": 170, "weekly": 400},
}

UPCOMING_BOOKINGS_LIMIT = 10

_CLOCK = re.compile(r"^\d{2}:\d{2}$")


@dataclass(frozen=True)
class BookingRequest:
    facility_id: str
    date: str  # YYYY-MM-DD
    start_time: str  # HH:MM
    user: CallerIdentity
    bike_type: str | None = None
    rental_plan: str | None = None


@dataclass(frozen=True)
class BookingResponse:
    status_code: int
    booking: dict[str, Any] | None = None
    error: str | None = None

    @property
    def created(self) -> bool:
        return self.status_code == 201 and self.booking is not None


@dataclass(frozen=True)
class TimeRange:
    start_time: str
    end_time: str
    status: str | None = field(default=None, compare=False)

    def __str__(self) -> str:
        return f"{self.start_time}-{self.end_time}"


def _clock(value: time) -> str:
    return value.strftime("%H:%M")


def _shape_reservation(reservation: Reservation, facility: Facility | None = None) -> dict[str, Any]:
    facility = facility or get_facility(reservation.facility_id)
    return {
        "id": reservation.id,
        "user_id": reservation.user_id,
        "facility_id": reservation.facility_id,
        "facility_name": facility.name if facility else reservation.facility_id,
        "date": reservation.date.isoformat(),
        "start_time": _clock(reservation.start_time),
        "end_time": _clock(reservation.end_time),
        "status": str(reservation.status),
        "total_price": reservation.total_price,
    }


def calculate_price(facility: Facility, start_hour: int, bike_type: str | None, rental_plan: str | None) -> int:
    """Price in MAD; raises KeyError for an unknown bike type or rental plan."""
    if facility.type == "bicycles":
        return BICYCLE_PRICES[bike_type or ""][rental_plan or ""]

    if start_hour < EVENING_START_HOUR:
        return 0
    if facility.type in HALF_FIELD_TYPES:
        return LIGHTING_FEE_HALF_FIELD
    if facility.type in LIT_COURT_TYPES:
        return LIGHTING_FEE
    return 0


def _validate_rules(request: BookingRequest, facility: Facility, start_minutes: int) -> str | None:
    """Return an error message if a business rule is broken."""
    if start_minutes + SLOT_MINUTES >= MINUTES_PER_DAY:
        return "Bookings must end before midnight."

    if facility.type == "futsal" or facility.type in HALF_FIELD_TYPES:
        if start_minutes > time_to_minutes(LAST_START_FIELD):
            return "Last booking time for this field is 8pm."

    if facility.type == "bicycles":
        if not request.bike_type or not request.rental_plan:
            return "bikeType and rentalPlan are required for bicycle bookings."
        if start_minutes > time_to_minutes(LAST_START_BICYCLES):
            return "Last booking time for bicycles is 5pm."
        if request.bike_type not in BICYCLE_PRICES:
            return "Invalid bikeType."
        if request.rental_plan not in BICYCLE_PRICES[request.bike_type]:
            return "Invalid rentalPlan."

    return None


async def create_booking(request: BookingRequest) -> BookingResponse:
    """
    Create a one-hour reservation.

    Returns:
        201 + booking on success; 400/404 + error otherwise

    Example:
        >>> response = await create_booking(BookingRequest("padel", "2025-12-15", "16:00", user))
        >>> response.booking["status"]
        'CONFIRMED'
    """
    if not request.facility_id or not request.date or not request.start_time:
        return BookingResponse(400, error="facilityId, date and startTime are required")

    facility = get_facility(request.facility_id)
    if facility is None:
        return BookingResponse(404, error="Facility not found")

    try:
        booking_date = date.fromisoformat(request.date)
    except ValueError:
        return BookingResponse(400, error="date must be YYYY-MM-DD")

    if not _CLOCK.match(request.start_time):
        return BookingResponse(400, error="startTime must be HH:MM")
    start_minutes = time_to_minutes(request.start_time)
    if start_minutes >= MINUTES_PER_DAY or int(request.start_time[3:]) > 59:
        return BookingResponse(400, error="startTime must be HH:MM")

    rule_error = _validate_rules(request, facility, start_minutes)
    if rule_error:
        logger.info(
            f"Booking rejected by rules: {rule_error}",
            extra={"user_id": request.user.id, "facility_id": facility.id},
        )
        return BookingResponse(400, error=rule_error)

    start = time.fromisoformat(request.start_time)
    end = time.fromisoformat(minutes_to_time(start_minutes + SLOT_MINUTES))
    total_price = calculate_price(facility, start.hour, request.bike_type, request.rental_plan)

    needs_approval = facility.type == "bicycles" or start.hour >= EVENING_START_HOUR
    status = ReservationStatus.PENDING if needs_approval else ReservationStatus.CONFIRMED

    async with get_async_session() as session:
        conflict = await session.execute(
            select(Reservation.id)
            .where(
                func.lower(Reservation.facility_id) == facility.id,
                Reservation.date == booking_date,
                Reservation.status.in_(ACTIVE_STATUSES),
                Reservation.start_time < end,
                Reservation.end_time > start,
            )
            .limit(1)
        )
        if conflict.first() is not None:
            return BookingResponse(400, error="This time slot is already booked for this facility.")

        reservation = Reservation(
            facility_id=facility.id,
            user_id=request.user.id,
            date=booking_date,
            start_time=start,
            end_time=end,
            status=status,
            total_price=total_price,
            bike_type=request.bike_type if facility.type == "bicycles" else None,
            rental_plan=request.rental_plan if facility.type == "bicycles" else None,
        )
        session.add(reservation)
        await session.commit()
        await session.refresh(reservation)

    booking = _shape_reservation(reservation, facility)
    logger.info(
        f"Reservation {reservation.id} created: {facility.id} {request.date} "
        f"{request.start_time} status={status} price={total_price}",
        extra={"user_id": request.user.id, "facility_id": facility.id},
    )
    # Email delivery lives outside this service; the notification is logged only.
    logger.info(
        f"Booking notification queued for {request.user.email or request.user.id}",
        extra={"user_id": request.user.id},
    )
    return BookingResponse(201, booking=booking)


async def list_active_reservations(facility_id: str, day: str) -> list[TimeRange]:
    """PENDING/CONFIRMED reservations of a facility on a day, by start time."""
    async with get_async_session() as session:
        result = await session.execute(
            select(Reservation)
            .where(
                func.lower(Reservation.facility_id) == facility_id.lower(),
                Reservation.date == date.fromisoformat(day),
                Reservation.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Reservation.start_time)
        )
        return [
            TimeRange(_clock(r.start_time), _clock(r.end_time), str(r.status))
            for r in result.scalars().all()
        ]


async def list_availability_windows(facility_id: str, day: str) -> list[TimeRange]:
    """Admin-declared windows of a facility on a day, by start time."""
    async with get_async_session() as session:
        result = await session.execute(
            select(AvailabilityWindow)
            .where(
                func.lower(AvailabilityWindow.facility_id) == facility_id.lower(),
                AvailabilityWindow.date == date.fromisoformat(day),
            )
            .order_by(AvailabilityWindow.start_time)
        )
        return [TimeRange(_clock(w.start_time), _clock(w.end_time)) for w in result.scalars().all()]


async def list_upcoming_bookings(
    user_id: str,
    today: date,
    limit: int = UPCOMING_BOOKINGS_LIMIT,
) -> list[dict[str, Any]]:
    """The caller's own active bookings from today onwards (bounded)."""
    async with get_async_session() as session:
        result = await session.execute(
            select(Reservation)
            .where(
                Reservation.user_id == user_id,
                Reservation.date >= today,
                Reservation.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Reservation.date, Reservation.start_time)
            .limit(limit)
        )
        return [
            {
                "facility_id": r.facility_id,
                "date": r.date.isoformat(),
                "start_time": _clock(r.start_time),
                "status": str(r.status),
            }
            for r in result.scalars().all()
        ]
