"""
Non-Booking Handler - Rain check, canned answers and language model fallback.

Used for everything that is not a booking step:
- rain questions: live 12-hour precipitation risk from the weather client
- small talk and FAQs (facilities, hours, prices, cancellation, availability)
  answered from fixed text
- anything else: the language model, when OPENAI_API_KEY is configured, with
  a bounded context (facility catalog + the caller's upcoming bookings)

No booking tools are given to the model: it can only talk, never book.
"""

import json
import logging
import re
from datetime import date
from functools import lru_cache

from langchain_core.messages import HumanMessage, SystemMessage
from langchain_openai import ChatOpenAI

from agent.routing.errors import ChatServiceError
from agent.services.reservation_service import list_upcoming_bookings
from agent.state.schemas import CallerIdentity, ChatReply, DialogueBranch
from database.catalog import list_facilities
from shared.config import get_settings
from shared.weather_client import WeatherClient, WeatherUnavailableError

logger = logging.getLogger(__name__)

RAIN_RISK_THRESHOLD = 50

SYSTEM_PROMPT = (
    "You are a helpful assistant for CourtConnect. Keep answers concise. "
    "Use provided context for facilities and bookings. If asked about rain, keep it short. "
    "Decline unethical requests."
)

HELP_MESSAGE = (
    "I'm here to help with bookings, hours, availability, and rain checks. "
    "Tell me the facility and date/time to check a slot."
)
EMPTY_MODEL_REPLY = "I'm here to help with bookings and availability."


def _keywords(*words: str) -> re.Pattern[str]:
    return re.compile(rf"\b(?:{'|'.join(re.escape(w) for w in words)})\b", re.IGNORECASE)


# Order matters: first matching topic answers
CANNED_ANSWERS: tuple[tuple[re.Pattern[str], str | None], ...] = (
    (
        _keywords("hello", "hi", "hey", "how are you"),
        "Hi! I'm here to help with bookings, availability, prices, and rain checks.",
    ),
    (
        _keywords("facility", "facilities", "what courts", "available courts"),
        None,  # built from the catalog
    ),
    (
        _keywords("hours", "opening", "open", "time"),
        "Courts: 08:00-21:00 (weekdays) / 13:00-21:00 (weekends). Bicycles: 10:00-18:00.",
    ),
    (
        _keywords("price", "prices", "fee", "fees", "cost", "mad"),
        "Daytime is free. Lighting: 30 MAD (courts/padel/tennis), 40 MAD (half-field) after 18:00. "
        "Bicycles: 10 MAD/hour (admin approval).",
    ),
    (
        _keywords("cancel", "cancellation", "cancelling"),
        "You can cancel your own booking up to 2 hours before start; admins can cancel anytime.",
    ),
    (
        _keywords("availability", "available", "booked", "slot", "slots"),
        "Tell me the facility and date/time, and I'll check availability.",
    ),
)


def canned_answer(message: str) -> str | None:
    """Fixed answer for a recognised topic, or None."""
    for pattern, answer in CANNED_ANSWERS:
        if pattern.search(message):
            if answer is None:
                names = ", ".join(f.name for f in list_facilities())
                return f"Facilities available: {names}."
            return answer
    return None


@lru_cache
def get_llm() -> ChatOpenAI | None:
    """
    Build the chat model, or None when no API key is configured.

    Factory function to enable dependency injection for testing.
    """
    settings = get_settings()
    if not settings.OPENAI_API_KEY:
        logger.info("OPENAI_API_KEY not set: language model fallback disabled")
        return None

    return ChatOpenAI(
        model=settings.LLM_MODEL,
        api_key=settings.OPENAI_API_KEY,
        base_url=settings.LLM_BASE_URL,
        temperature=0.3,
        max_tokens=200,
        request_timeout=30.0,
        max_retries=0,
    )


class NonBookingHandler:
    """
    Handle non-booking messages.

    Args:
        user: Caller (scopes the "my bookings" context)
        today: Reference day for "upcoming" bookings
        llm: Chat model, or None to answer from canned text only
        weather_client: Forecast source for rain questions
    """

    def __init__(
        self,
        user: CallerIdentity,
        today: date,
        llm: ChatOpenAI | None = None,
        weather_client: WeatherClient | None = None,
    ):
        self.user = user
        self.today = today
        self.llm = llm
        self.weather_client = weather_client if weather_client is not None else WeatherClient()

    async def handle_rain(self) -> ChatReply:
        try:
            forecast = await self.weather_client.fetch_rain_forecast()
        except WeatherUnavailableError:
            return ChatReply(
                reply="I couldn't reach the weather service right now. Please try again in a moment.",
                branch=DialogueBranch.WEATHER,
            )

        if forecast.max_probability > RAIN_RISK_THRESHOLD:
            reply = (
                f"Rain risk is {forecast.max_probability}% in the next 12 hours. "
                "Consider indoor options."
            )
        else:
            reply = f"Rain risk is low (max {forecast.max_probability}% in the next 12 hours)."
        return ChatReply(reply=reply, branch=DialogueBranch.WEATHER)

    async def handle(self, message: str) -> ChatReply:
        canned = canned_answer(message)

        if self.llm is None:
            if canned:
                return ChatReply(reply=canned, branch=DialogueBranch.CANNED)
            return ChatReply(reply=HELP_MESSAGE, branch=DialogueBranch.HELP)

        return ChatReply(reply=await self._ask_model(message), branch=DialogueBranch.LLM)

    async def build_context(self) -> dict[str, list[dict]]:
        """Bounded model context: catalog + the caller's own upcoming bookings."""
        return {
            "facilities": [
                {"name": f.name, "id": f.id, "type": f.type} for f in list_facilities()
            ],
            "my_bookings": await list_upcoming_bookings(self.user.id, self.today),
        }

    def _build_messages(self, message: str, context: dict[str, list[dict]]) -> list:
        return [
            SystemMessage(content=SYSTEM_PROMPT),
            HumanMessage(
                content=(
                    f"Context:\nFacilities: {json.dumps(context['facilities'])}\n"
                    f"User bookings: {json.dumps(context['my_bookings'])}\n\n"
                    f"Question: {message}"
                )
            ),
        ]

    async def _ask_model(self, message: str) -> str:
        try:
            context = await self.build_context()
            response = await self.llm.ainvoke(self._build_messages(message, context))
        except Exception as e:
            logger.error(f"Chat model call failed: {e}", exc_info=True, extra={"user_id": self.user.id})
            raise ChatServiceError("Chat service unavailable") from e

        content = response.content if isinstance(response.content, str) else ""
        return content.strip() or EMPTY_MODEL_REPLY
