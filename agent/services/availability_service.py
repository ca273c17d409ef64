"""
Availability service for chat-driven bookings.

Answers two questions for a facility on a day:
    - check_slot_availability(): does a one-hour slot starting at HH:MM clash
      with an active reservation, and does it sit inside an admin window?
    - summarize_day(): booked ranges and admin-declared ranges, for display
      when the user gave a facility and a date but no time yet

Overlap is half-open: an existing [s1, e1) clashes with the requested
[s2, e2) iff s1 < e2 and e1 > s2, so back-to-back slots (16:00-17:00 then
17:00-18:00) never conflict.

The requested window is always 60 minutes, whatever the facility type or the
length of the admin windows. Variable-length bookings would need this and
reservation_service.SLOT_MINUTES to change together.
"""

import logging
from dataclasses import dataclass, field

from agent.services.reservation_service import (
    SLOT_MINUTES,
    TimeRange,
    list_active_reservations,
    list_availability_windows,
)
from agent.utils.date_parser import minutes_to_time, time_to_minutes

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotAvailability:
    facility_id: str
    date: str
    start_time: str
    end_time: str
    conflict: TimeRange | None = None
    in_provided_window: bool = False

    @property
    def is_available(self) -> bool:
        return self.conflict is None


@dataclass(frozen=True)
class DaySummary:
    facility_id: str
    date: str
    booked: list[TimeRange] = field(default_factory=list)
    admin_windows: list[TimeRange] = field(default_factory=list)

    def describe(self) -> str:
        """
        Render for chat, e.g.
        "Booked: 16:00-17:00. Admin slots: 08:00-12:00."
        """
        if self.booked:
            booked = f"Booked: {', '.join(str(r) for r in self.booked)}."
        else:
            booked = "No bookings yet."

        if self.admin_windows:
            provided = f"Admin slots: {', '.join(str(w) for w in self.admin_windows)}."
        else:
            provided = "No admin slots defined; default schedule applies."

        return f"{booked} {provided}"


def overlaps(existing_start: int, existing_end: int, new_start: int, new_end: int) -> bool:
    """Half-open interval overlap, all values in minutes since midnight."""
    return existing_start < new_end and existing_end > new_start


async def check_slot_availability(facility_id: str, date: str, start_time: str) -> SlotAvailability:
    """
    Check a one-hour slot.

    Args:
        facility_id: Catalog id (case-insensitive)
        date: ISO date
        start_time: "HH:MM"

    Returns:
        SlotAvailability with the first clashing reservation (if any) and
        whether the slot is fully inside an admin-declared window
    """
    start = time_to_minutes(start_time)
    end = start + SLOT_MINUTES

    reservations = await list_active_reservations(facility_id, date)
    conflict = next(
        (
            r for r in reservations
            if overlaps(time_to_minutes(r.start_time), time_to_minutes(r.end_time), start, end)
        ),
        None,
    )

    windows = await list_availability_windows(facility_id, date)
    in_provided_window = any(
        time_to_minutes(w.start_time) <= start and end <= time_to_minutes(w.end_time)
        for w in windows
    )

    logger.info(
        f"Slot check {facility_id} {date} {start_time}: "
        f"conflict={conflict is not None}, in_window={in_provided_window}",
        extra={"facility_id": facility_id},
    )

    return SlotAvailability(
        facility_id=facility_id,
        date=date,
        start_time=start_time,
        end_time=minutes_to_time(end),
        conflict=conflict,
        in_provided_window=in_provided_window,
    )


async def summarize_day(facility_id: str, date: str) -> DaySummary:
    return DaySummary(
        facility_id=facility_id,
        date=date,
        booked=await list_active_reservations(facility_id, date),
        admin_windows=await list_availability_windows(facility_id, date),
    )
