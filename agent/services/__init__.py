"""
Agent services module.

Provides business logic services for the agent layer.

Services:
- reservation_service: Reservation store reads and booking creation
- availability_service: Slot conflict checks and day summaries
"""

from agent.services.availability_service import (
    DaySummary,
    SlotAvailability,
    check_slot_availability,
    summarize_day,
)
from agent.services.reservation_service import (
    BookingRequest,
    BookingResponse,
    create_booking,
    list_active_reservations,
    list_availability_windows,
    list_upcoming_bookings,
)

__all__ = [
    # Availability service
    "DaySummary",
    "SlotAvailability",
    "check_slot_availability",
    "summarize_day",
    # Reservation service
    "BookingRequest",
    "BookingResponse",
    "create_booking",
    "list_active_reservations",
    "list_availability_windows",
    "list_upcoming_bookings",
]
