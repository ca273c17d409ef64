"""
Shared request-scoped types for the chat layer.
"""

from dataclasses import dataclass
from enum import Enum


class DialogueBranch(str, Enum):
    """Which rule produced a chat reply (logged, and asserted in tests)."""

    # Booking flow
    BOOKING_CONFIRMED = "booking_confirmed"
    SLOT_CONFLICT = "slot_conflict"
    BOOKING_REJECTED = "booking_rejected"
    BOOKING_FAILED = "booking_failed"
    ASK_TIME = "ask_time"
    ASK_DATE = "ask_date"
    FACILITY_INFO = "facility_info"
    ASK_BOOKING_DETAILS = "ask_booking_details"

    # Everything else
    WEATHER = "weather"
    CANNED = "canned"
    LLM = "llm"
    HELP = "help"


@dataclass(frozen=True)
class CallerIdentity:
    """Authenticated caller, as read from the bearer token claims."""

    id: str
    username: str = ""
    email: str = ""


@dataclass(frozen=True)
class ChatReply:
    """Conversational answer plus the dialogue branch that produced it."""

    reply: str
    branch: DialogueBranch
