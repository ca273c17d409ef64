"""
Facility catalog.

The catalog is fixed and read-only: it is loaded once at import time and its
order is significant (ties between matches are broken by catalog order).
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class Facility:
    """Bookable campus facility."""

    id: str
    name: str
    type: str  # futsal, half-field-a, half-field-b, tennis, basketball, padel, bicycles
    location: str
    weekday_hours: str = "08:00-21:00"
    weekend_hours: str = "13:00-21:00"


FACILITIES: tuple[Facility, ...] = (
    Facility("futsal", "Futsal Court 5v5", "futsal", "AUI Indoor Futsal Court"),
    Facility("newfield-half-a", "New Field - Half A", "half-field-a", "AUI New Field - Half A"),
    Facility("newfield-half-b", "New Field - Half B", "half-field-b", "AUI New Field - Half B"),
    Facility("tennis-1", "Tennis Court 1", "tennis", "AUI Tennis Court 1"),
    Facility("tennis-2", "Tennis Court 2", "tennis", "AUI Tennis Court 2"),
    Facility("basketball", "Basketball Court", "basketball", "AUI Basketball Court"),
    Facility("padel", "Padel Court", "padel", "AUI Padel Court"),
    Facility(
        "bicycles",
        "Bicycles",
        "bicycles",
        "AUI Bike Rental",
        weekday_hours="10:00-18:00",
        weekend_hours="10:00-18:00",
    ),
)

HALF_FIELD_TYPES = frozenset({"half-field-a", "half-field-b"})


def list_facilities() -> tuple[Facility, ...]:
    return FACILITIES


def get_facility(facility_id: str | None) -> Facility | None:
    """Look up a facility by id, case-insensitively."""
    if not facility_id:
        return None
    wanted = facility_id.strip().lower()
    for facility in FACILITIES:
        if facility.id == wanted:
            return facility
    return None
