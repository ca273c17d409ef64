"""
Booking invoker for chat-driven bookings.

Turns a fully resolved {facility, date, time, user} into one call to the
reservation service and classifies the result:

    CREATED   - the reservation exists; status is PENDING or CONFIRMED
                (pricing and approval rules belong to the reservation service)
    REJECTED  - the service answered with an error (rule broken, slot taken...)
    FAILED    - the call itself raised; nothing is known about the booking

Single attempt, no retry. The oracle check done before this call is not atomic
with the insert; the reservation service re-checks inside its own transaction.
"""

import logging
from dataclasses import dataclass
from enum import Enum

from agent.services.reservation_service import BookingRequest, create_booking
from agent.state.schemas import CallerIdentity
from database.catalog import Facility

logger = logging.getLogger(__name__)


class BookingOutcomeKind(str, Enum):
    CREATED = "created"
    REJECTED = "rejected"
    FAILED = "failed"


@dataclass(frozen=True)
class BookingOutcome:
    kind: BookingOutcomeKind
    status: str | None = None
    error: str | None = None
    booking_id: int | None = None


async def invoke_booking(
    facility: Facility,
    date: str,
    start_time: str,
    user: CallerIdentity,
) -> BookingOutcome:
    """
    Create the booking and report what happened.

    Never raises: collaborator exceptions become BookingOutcomeKind.FAILED.
    """
    trace_id = f"{user.id}_{facility.id}_{date}_{start_time}"
    logger.info(f"[{trace_id}] Invoking booking", extra={"user_id": user.id, "facility_id": facility.id})

    try:
        response = await create_booking(
            BookingRequest(
                facility_id=facility.id,
                date=date,
                start_time=start_time,
                user=user,
            )
        )
    except Exception as e:
        logger.error(
            f"[{trace_id}] Booking call failed: {e}",
            exc_info=True,
            extra={"user_id": user.id, "facility_id": facility.id},
        )
        return BookingOutcome(kind=BookingOutcomeKind.FAILED, error=str(e))

    if response.created:
        booking = response.booking or {}
        logger.info(f"[{trace_id}] Booking created with status {booking.get('status')}")
        return BookingOutcome(
            kind=BookingOutcomeKind.CREATED,
            status=booking.get("status"),
            booking_id=booking.get("id"),
        )

    logger.warning(f"[{trace_id}] Booking rejected ({response.status_code}): {response.error}")
    return BookingOutcome(kind=BookingOutcomeKind.REJECTED, error=response.error)
