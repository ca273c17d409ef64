"""
Intent Router - Entry point for one chat message.

Order of evaluation:
    1. empty message                -> MessageRejectedError (400)
    2. banned topic                 -> MessageRejectedError (400)
    3. rain question                -> weather answer, nothing else is parsed
    4. facility / date / time       -> merged with the pending context
                                       -> BookingHandler branch
    5. nothing booking-related      -> NonBookingHandler (canned / model)

Facility and date fall back to the user's pending context; time is never
remembered between turns.
"""

import logging
import re
from functools import lru_cache
from zoneinfo import ZoneInfo

from langchain_openai import ChatOpenAI

from agent.routing.booking_handler import BookingHandler
from agent.routing.errors import ChatServiceError, MessageRejectedError
from agent.routing.non_booking_handler import NonBookingHandler, get_llm
from agent.state.pending_context import PendingContextStore, get_pending_context_store
from agent.state.schemas import CallerIdentity, ChatReply
from agent.utils.date_parser import extract_temporal, today_in
from agent.utils.facility_resolver import resolve_facility
from database.catalog import get_facility
from shared.config import get_settings
from shared.weather_client import WeatherClient

logger = logging.getLogger(__name__)

MISSING_MESSAGE = "Message is required"
BLOCKED_MESSAGE = "I can't assist with that."

BANNED_TOPICS = re.compile(
    r"\b(?:violen|self[-\s]?harm|hate|hatred|harass|terror)\w*",
    re.IGNORECASE,
)
RAIN_KEYWORD = re.compile(r"\b(?:rain|rainy|raining)\b", re.IGNORECASE)
BOOKING_KEYWORD = re.compile(r"\b(?:book|reserv)\w*", re.IGNORECASE)


def is_blocked(message: str) -> bool:
    return BANNED_TOPICS.search(message) is not None


def mentions_rain(message: str) -> bool:
    return RAIN_KEYWORD.search(message) is not None


class IntentRouter:
    """
    Routes a message to the weather check, the booking flow or the
    non-booking handler.

    Collaborators are injectable; defaults come from settings.
    """

    def __init__(
        self,
        context_store: PendingContextStore | None = None,
        llm: ChatOpenAI | None = None,
        weather_client: WeatherClient | None = None,
        timezone: ZoneInfo | None = None,
    ):
        self.context_store = context_store if context_store is not None else get_pending_context_store()
        self.llm = llm
        self.weather_client = weather_client
        self.timezone = timezone if timezone is not None else ZoneInfo(get_settings().TIMEZONE)

    async def route(self, message: str | None, user: CallerIdentity) -> ChatReply:
        """
        Produce the reply for one message.

        Raises:
            MessageRejectedError: Missing message or banned topic
            ChatServiceError: Language model fallback or pending context store failed
        """
        text = message.strip() if isinstance(message, str) else ""
        if not text:
            raise MessageRejectedError(MISSING_MESSAGE)

        if is_blocked(text):
            logger.warning("Blocked message (banned topic)", extra={"user_id": user.id})
            raise MessageRejectedError(BLOCKED_MESSAGE)

        today = today_in(self.timezone)
        non_booking = NonBookingHandler(user, today, llm=self.llm, weather_client=self.weather_client)

        if mentions_rain(text):
            reply = await non_booking.handle_rain()
            self._log_reply(reply, user)
            return reply

        try:
            pending = await self.context_store.get(user.id)
        except Exception as e:
            logger.error(
                f"Pending context store read failed: {e}",
                extra={"user_id": user.id},
                exc_info=True,
            )
            raise ChatServiceError("Chat service unavailable") from e

        facility_match = resolve_facility(text)
        temporal = extract_temporal(
            text,
            today,
            ignore_spans=[facility_match.span] if facility_match else (),
        )

        facility = facility_match.facility if facility_match else None
        if facility is None and pending:
            facility = get_facility(pending.facility_id)

        date = temporal.iso_date or (pending.date if pending else None)
        time = temporal.effective_time

        logger.info(
            f"Resolved slots: facility={facility.id if facility else None} "
            f"date={date} time={time} pending={pending is not None}",
            extra={"user_id": user.id},
        )

        booking = BookingHandler(user, self.context_store)
        reply = await booking.handle(
            facility=facility,
            date=date,
            time=time,
            wants_booking=BOOKING_KEYWORD.search(text) is not None,
        )
        if reply is None:
            reply = await non_booking.handle(text)

        self._log_reply(reply, user)
        return reply

    @staticmethod
    def _log_reply(reply: ChatReply, user: CallerIdentity) -> None:
        logger.info(
            f"Reply via {reply.branch.value}",
            extra={"user_id": user.id, "branch": reply.branch.value},
        )


@lru_cache
def get_intent_router() -> IntentRouter:
    """Process-wide router (shares the pending context store)."""
    return IntentRouter(llm=get_llm())
