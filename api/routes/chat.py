"""
Chat API Routes for the Support Chat backend.
"""

import logging
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, field_validator

from ..sanitize import sanitize_input
from ..services import get_services, Services
from llm.conversation_store import MessageNotFoundError, Turn
from llm.reply_generator import FALLBACK_MESSAGE

logger = logging.getLogger(__name__)

router = APIRouter()

MAX_MESSAGE_CHARS = 5000
HISTORY_PAGE_SIZE = 100


# ── Request / Response Models ─────────────────────────────────────

class MessageRequest(BaseModel):
    message: str = Field(..., min_length=1, max_length=MAX_MESSAGE_CHARS)
    sessionId: Optional[str] = None

    @field_validator("message")
    @classmethod
    def _strip_message(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message cannot be empty")
        return value

    @field_validator("sessionId")
    @classmethod
    def _strip_session(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        value = value.strip()
        return value or None


class MessageResponse(BaseModel):
    reply: str
    sessionId: str


class HistoryItem(BaseModel):
    id: str
    sender: str
    text: str
    timestamp: str
    reaction: Optional[str] = None


class HistoryResponse(BaseModel):
    messages: List[HistoryItem]


class ReactionRequest(BaseModel):
    reaction: Optional[Literal["thumbs_up", "thumbs_down"]]


class ReactionResponse(BaseModel):
    success: bool
    messageId: str
    reaction: Optional[str] = None


def _server_error(error: str) -> JSONResponse:
    return JSONResponse(
        status_code=500,
        content={"error": error, "message": "Please try again shortly."},
    )


# ── Endpoints ─────────────────────────────────────────────────────

@router.post("/message", response_model=MessageResponse)
async def post_message(request: MessageRequest, background_tasks: BackgroundTasks):
    """
    Handle one user message.

    1. Resolve conversation  2. Load history  3. Persist user turn
    4. Generate reply  5. Persist AI turn  6. Return reply
    """
    services = get_services()
    if not services.is_ready:
        logger.error("Chat services not initialized")
        return _server_error("An error occurred processing your message")

    store = services.store
    message = request.message
    sanitized = sanitize_input(message)

    conversation_id = await _resolve_conversation(services, request.sessionId)

    # History is read before the new turn is stored; the message is not part of it
    history: List[Turn] = []
    try:
        history = await store.get_history(conversation_id, limit=services.settings.history_limit)
    except Exception as e:
        logger.error(f"Database error fetching history: {e}")

    # Cached turns win only when they line up with what the store returned
    if services.cache is not None:
        cached = await services.cache.get(conversation_id)
        if cached is not None and len(cached) == len(history):
            history = cached

    try:
        await store.save_turn(conversation_id, "user", sanitized)
    except Exception as e:
        logger.error(f"Database error saving user message: {e}")

    # Reply to the unsanitized message so the model sees natural language
    reply = await services.generator.generate_reply(history, message)

    try:
        await store.save_turn(conversation_id, "ai", reply)
    except Exception as e:
        logger.error(f"Database error saving AI message: {e}")

    if services.cache is not None:
        await services.cache.put(conversation_id, [*history, Turn("user", sanitized), Turn("ai", reply)])

    background_tasks.add_task(_log_chat_analytics, conversation_id, message, reply)

    return MessageResponse(reply=reply, sessionId=conversation_id)


@router.get("/history/{session_id}", response_model=HistoryResponse)
async def get_history(session_id: str):
    """Get up to 100 messages of a conversation, oldest first."""
    services = get_services()
    try:
        messages = await services.store.list_messages(session_id, limit=HISTORY_PAGE_SIZE)
    except Exception as e:
        logger.error(f"Error fetching history: {e}")
        return _server_error("An error occurred fetching conversation history")

    return HistoryResponse(messages=[HistoryItem(**m.to_dict()) for m in messages])


@router.post("/message/{message_id}/reaction", response_model=ReactionResponse)
async def set_reaction(message_id: str, request: ReactionRequest):
    """Set or clear a thumbs up/down reaction on a message."""
    services = get_services()
    try:
        msg = await services.store.set_reaction(message_id, request.reaction)
    except MessageNotFoundError:
        return JSONResponse(
            status_code=404,
            content={"error": "Message not found", "message": "The message does not exist."},
        )
    except Exception as e:
        logger.error(f"Error updating reaction: {e}")
        return _server_error("An error occurred updating the reaction")

    return ReactionResponse(success=True, messageId=msg.id, reaction=msg.reaction)


# ── Helpers ───────────────────────────────────────────────────────

async def _resolve_conversation(services: Services, session_id: Optional[str]) -> str:
    """Reuse an existing conversation or start a new one."""
    store = services.store

    if session_id:
        try:
            if await store.exists(session_id):
                return session_id
        except Exception as e:
            logger.error(f"Database error checking conversation: {e}")

    return await store.create_conversation()


def _log_chat_analytics(conversation_id: str, message: str, reply: str):
    """Log chat analytics (background task)."""
    logger.info(
        "Chat analytics",
        extra={
            "conversation_id": conversation_id,
            "message_length": len(message),
            "reply_length": len(reply),
            "fallback": reply == FALLBACK_MESSAGE,
        },
    )
