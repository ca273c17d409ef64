"""Chat route: one user message in, one conversational reply out."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, Request

from agent.routing.intent_router import IntentRouter, get_intent_router
from agent.state.schemas import CallerIdentity
from api.auth import get_current_user
from api.models.chat import ChatRequest, ChatResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat", response_model=ChatResponse)
async def chat(
    body: ChatRequest,
    request: Request,
    user: Annotated[CallerIdentity, Depends(get_current_user)],
    intent_router: Annotated[IntentRouter, Depends(get_intent_router)],
) -> ChatResponse:
    """
    Answer a chat message for the authenticated caller.

    Errors are raised as ChatError subclasses and rendered as {"error": ...}
    by the application exception handler:
        400: missing message or banned topic
        500: chat model unavailable
    """
    logger.info(
        "Chat message received",
        extra={"user_id": user.id, "request_path": request.url.path},
    )
    result = await intent_router.route(body.message, user)
    return ChatResponse(reply=result.reply)
