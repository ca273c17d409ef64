"""
Errors surfaced by the chat layer to the HTTP API.

Everything else (booking failures, weather outages, nothing understood) is
answered conversationally and never raised.
"""


class ChatError(Exception):
    """Base class; carries the user-facing message and HTTP status."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MessageRejectedError(ChatError):
    """Missing message or banned topic (HTTP 400)."""

    status_code = 400


class ChatServiceError(ChatError):
    """The language model fallback failed (HTTP 500)."""

    status_code = 500
