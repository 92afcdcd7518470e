"""
Database-backed ConversationStore for the Support Chat backend.

Implements the ConversationStore protocol using the repository layer.
Each operation runs in its own session and commits on success.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from database.models import Message
from database.repositories import ConversationRepository
from .conversation_store import REACTIONS, SENDERS, MessageNotFoundError, StoredMessage, Turn

logger = logging.getLogger(__name__)


def _to_stored(msg: Message) -> StoredMessage:
    return StoredMessage(
        id=msg.id,
        conversation_id=msg.conversation_id,
        sender=msg.sender,
        text=msg.text,
        created_at=msg.created_at,
        reaction=msg.reaction,
    )


class DbConversationStore:
    """Persistent conversation store backed by SQLAlchemy."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def _repo(self) -> AsyncIterator[ConversationRepository]:
        async with self._session_factory() as session:
            try:
                yield ConversationRepository(session)
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def create_conversation(self) -> str:
        async with self._repo() as repo:
            conv = await repo.create()
            return conv.id

    async def exists(self, conversation_id: str) -> bool:
        async with self._repo() as repo:
            return await repo.get_by_id(conversation_id) is not None

    async def get_history(self, conversation_id: str, limit: int = 20) -> List[Turn]:
        """Get the most recent turns as Turn objects, oldest first."""
        async with self._repo() as repo:
            messages = await repo.get_recent_messages(conversation_id, limit=limit)
            return [Turn(sender=msg.sender, text=msg.text) for msg in messages]

    async def save_turn(self, conversation_id: str, sender: str, text: str) -> StoredMessage:
        if sender not in SENDERS:
            raise ValueError(f"Unknown sender: {sender}")

        async with self._repo() as repo:
            # Ensure conversation exists
            if await repo.get_by_id(conversation_id) is None:
                await repo.create(conversation_id=conversation_id)
            msg = await repo.add_message(conversation_id, sender, text)
            return _to_stored(msg)

    async def list_messages(self, conversation_id: str, limit: int = 100) -> List[StoredMessage]:
        async with self._repo() as repo:
            messages = await repo.get_messages(conversation_id, limit=limit)
            return [_to_stored(msg) for msg in messages]

    async def set_reaction(self, message_id: str, reaction: Optional[str]) -> StoredMessage:
        if reaction is not None and reaction not in REACTIONS:
            raise ValueError(f"Unknown reaction: {reaction}")

        async with self._repo() as repo:
            msg = await repo.set_reaction(message_id, reaction)
            if msg is None:
                raise MessageNotFoundError(message_id)
            logger.debug(f"Reaction on {message_id} set to {reaction}")
            return _to_stored(msg)
