"""
Facility endpoints (public, read-only):
- GET /facilities - catalog
- GET /facilities/{facility_id}/availability?date=YYYY-MM-DD - day view
"""

import logging
from datetime import date as date_type

from fastapi import APIRouter, HTTPException, Query, status

from agent.services.availability_service import summarize_day
from api.models.chat import DayAvailabilityResponse, FacilityOut, TimeRangeOut
from database.catalog import get_facility, list_facilities

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/facilities")


@router.get("", response_model=list[FacilityOut])
async def get_facilities() -> list[FacilityOut]:
    return [
        FacilityOut(
            id=f.id,
            name=f.name,
            type=f.type,
            location=f.location,
            weekday_hours=f.weekday_hours,
            weekend_hours=f.weekend_hours,
        )
        for f in list_facilities()
    ]


@router.get("/{facility_id}/availability", response_model=DayAvailabilityResponse)
async def get_facility_availability(
    facility_id: str,
    date: str = Query(..., description="Day to inspect (YYYY-MM-DD)"),
) -> DayAvailabilityResponse:
    """
    Booked slots and admin-declared windows for one facility on one day.

    Raises:
        HTTPException 404: Unknown facility
        HTTPException 400: Malformed date
    """
    facility = get_facility(facility_id)
    if facility is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Facility not found")

    try:
        date_type.fromisoformat(date)
    except ValueError:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="date must be YYYY-MM-DD")

    summary = await summarize_day(facility.id, date)
    return DayAvailabilityResponse(
        facility_id=facility.id,
        date=date,
        booked=[
            TimeRangeOut(start_time=r.start_time, end_time=r.end_time, status=r.status)
            for r in summary.booked
        ],
        admin_windows=[
            TimeRangeOut(start_time=w.start_time, end_time=w.end_time)
            for w in summary.admin_windows
        ],
        summary=summary.describe(),
    )
