"""Pydantic models for the chat and facility endpoints."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class ChatRequest(BaseModel):
    """
    Incoming chat message.

    Any JSON value is accepted here; the router answers a missing, blank or
    non-string message with 400 "Message is required".
    """
    model_config = ConfigDict(extra="ignore")

    message: Any = None


class ChatResponse(BaseModel):
    reply: str


class FacilityOut(BaseModel):
    id: str
    name: str
    type: str
    location: str
    weekday_hours: str
    weekend_hours: str


class TimeRangeOut(BaseModel):
    start_time: str
    end_time: str
    status: str | None = None


class DayAvailabilityResponse(BaseModel):
    """Booked slots and admin-declared windows for one facility on one day."""
    facility_id: str
    date: str
    booked: list[TimeRangeOut]
    admin_windows: list[TimeRangeOut]
    summary: str
