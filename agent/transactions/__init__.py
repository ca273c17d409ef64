"""
Booking invocation for chat-driven reservations.

- invoke_booking: Call the reservation service once and classify the result
  (CREATED / REJECTED / FAILED) without raising
"""

from agent.transactions.booking_transaction import BookingOutcome, BookingOutcomeKind, invoke_booking

__all__ = ["BookingOutcome", "BookingOutcomeKind", "invoke_booking"]
