"""
Routing layer for chat messages.

Key components:
- IntentRouter: Safety checks, rain short-circuit, slot resolution + memory merge
- BookingHandler: Slot-driven booking branches (book, ask time, ask date, ...)
- NonBookingHandler: Weather, canned answers and language model fallback

Architecture:
    Message → IntentRouter
        ├─ banned / empty → MessageRejectedError
        ├─ rain → NonBookingHandler.handle_rain()
        ├─ facility resolved or "book" → BookingHandler
        └─ otherwise → NonBookingHandler.handle()
"""

from agent.routing.booking_handler import BookingHandler
from agent.routing.intent_router import IntentRouter, get_intent_router
from agent.routing.non_booking_handler import NonBookingHandler

__all__ = [
    "IntentRouter",
    "BookingHandler",
    "NonBookingHandler",
    "get_intent_router",
]
