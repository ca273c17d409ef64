"""
Booking Handler - Slot-driven booking flow.

Picks the booking branch from which slots resolved this turn (after merging
with the user's pending context):

    facility + date + time  -> check slot, book, confirm (clears context)
    facility + date         -> remember {facility, date}, show the day, ask time
    facility + time         -> remember {facility, no date}, ask date
    facility only           -> opening hours, ask date and time
    "book"/"reserve" + gaps -> list what is needed

Returns None when none of these apply so the caller can fall back to the
non-booking handler. Replies are rendered from Jinja2 templates so the data
in them (names, dates, times, statuses) is never paraphrased.

A failing availability check ends in the BOOKING_FAILED apology, and a failing
day summary only drops the summary from the time prompt. A failing pending
context store raises ChatServiceError, except when clearing after a created
booking: the booking already exists, so the confirmation still goes out.
"""

import logging

from jinja2 import Template

from agent.routing.errors import ChatServiceError
from agent.services.availability_service import check_slot_availability, summarize_day
from agent.state.pending_context import PendingContext, PendingContextStore
from agent.state.schemas import CallerIdentity, ChatReply, DialogueBranch
from agent.transactions.booking_transaction import BookingOutcomeKind, invoke_booking
from database.catalog import Facility

logger = logging.getLogger(__name__)

TEMPLATES = {
    DialogueBranch.SLOT_CONFLICT: Template(
        "{{ facility.name }} is already booked at {{ time }} on {{ date }}. Try another time."
    ),
    DialogueBranch.BOOKING_CONFIRMED: Template(
        "Booked {{ facility.name }} on {{ date }} at {{ time }}. Status: {{ status }}."
    ),
    DialogueBranch.BOOKING_REJECTED: Template(
        "{{ facility.name }} at {{ time }} on {{ date }} is available"
        "{% if not in_provided_window %} (no admin slot constraints found){% endif %}"
        " but booking failed."
    ),
    DialogueBranch.BOOKING_FAILED: Template(
        "{{ facility.name }} at {{ time }} on {{ date }} looks available, "
        "but I couldn't book it. Please try manually."
    ),
    DialogueBranch.ASK_TIME: Template(
        "{{ facility.name }} on {{ date }}{% if summary %}: {{ summary }}{% else %}.{% endif %} "
        "Tell me a start time (e.g., 08:00 or 8 am) to book."
    ),
    DialogueBranch.ASK_DATE: Template(
        "I can check {{ facility.name }} at {{ time }}. "
        "Please provide a date (YYYY-MM-DD or say \"today\"/\"tomorrow\")."
    ),
    DialogueBranch.FACILITY_INFO: Template(
        "{{ facility.name }}: weekday hours {{ facility.weekday_hours or 'N/A' }}, "
        "weekend {{ facility.weekend_hours or 'N/A' }}. "
        "Tell me a date (e.g., 2025-12-12 or say tomorrow) and a time to check or book a slot."
    ),
    DialogueBranch.ASK_BOOKING_DETAILS: Template(
        "I can book for you. Tell me the facility name, date (e.g., 2025-12-10 or say tomorrow), "
        "and time (e.g., 3 pm or 15h30)."
    ),
}


def render(branch: DialogueBranch, **template_vars) -> ChatReply:
    return ChatReply(reply=TEMPLATES[branch].render(**template_vars), branch=branch)


class BookingHandler:
    """Executes the booking branches for one message."""

    def __init__(self, user: CallerIdentity, context_store: PendingContextStore):
        self.user = user
        self.context_store = context_store

    async def handle(
        self,
        facility: Facility | None,
        date: str | None,
        time: str | None,
        wants_booking: bool,
    ) -> ChatReply | None:
        """
        Run the first branch whose slots are satisfied.

        Args:
            facility: Resolved facility (this turn or remembered)
            date: ISO date (this turn or remembered)
            time: "HH:MM" from this turn only
            wants_booking: Message says "book"/"reserve"
        """
        if facility and date and time:
            return await self._book(facility, date, time)

        if facility and date:
            await self._remember(PendingContext(facility.id, date))
            return render(
                DialogueBranch.ASK_TIME,
                facility=facility,
                date=date,
                summary=await self._describe_day(facility, date),
            )

        if facility and time:
            await self._remember(PendingContext(facility.id, None))
            return render(DialogueBranch.ASK_DATE, facility=facility, time=time)

        if facility:
            return render(DialogueBranch.FACILITY_INFO, facility=facility)

        if wants_booking:
            return render(DialogueBranch.ASK_BOOKING_DETAILS)

        return None

    async def _remember(self, context: PendingContext) -> None:
        try:
            await self.context_store.set(self.user.id, context)
        except Exception as e:
            logger.error(
                f"Pending context store write failed: {e}",
                extra={"user_id": self.user.id, "facility_id": context.facility_id},
                exc_info=True,
            )
            raise ChatServiceError("Chat service unavailable") from e

    async def _describe_day(self, facility: Facility, date: str) -> str | None:
        try:
            summary = await summarize_day(facility.id, date)
        except Exception as e:
            logger.error(
                f"Day summary failed for {date}: {e}",
                extra={"user_id": self.user.id, "facility_id": facility.id},
                exc_info=True,
            )
            return None
        return summary.describe()

    async def _book(self, facility: Facility, date: str, time: str) -> ChatReply:
        try:
            slot = await check_slot_availability(facility.id, date, time)
        except Exception as e:
            logger.error(
                f"Availability check failed for {date} {time}: {e}",
                extra={"user_id": self.user.id, "facility_id": facility.id},
                exc_info=True,
            )
            return render(DialogueBranch.BOOKING_FAILED, facility=facility, date=date, time=time)
        if not slot.is_available:
            return render(DialogueBranch.SLOT_CONFLICT, facility=facility, date=date, time=time)

        outcome = await invoke_booking(facility, date, time, self.user)

        if outcome.kind == BookingOutcomeKind.CREATED:
            try:
                await self.context_store.clear(self.user.id)
            except Exception as e:
                # Booking is stored; the stale context expires on its own.
                logger.error(
                    f"Pending context clear failed after booking: {e}",
                    extra={"user_id": self.user.id, "facility_id": facility.id},
                    exc_info=True,
                )
            return render(
                DialogueBranch.BOOKING_CONFIRMED,
                facility=facility,
                date=date,
                time=time,
                status=outcome.status,
            )

        if outcome.kind == BookingOutcomeKind.REJECTED:
            if outcome.error:
                return ChatReply(reply=outcome.error, branch=DialogueBranch.BOOKING_REJECTED)
            return render(
                DialogueBranch.BOOKING_REJECTED,
                facility=facility,
                date=date,
                time=time,
                in_provided_window=slot.in_provided_window,
            )

        return render(DialogueBranch.BOOKING_FAILED, facility=facility, date=date, time=time)
