"""
Repository classes for the Support Chat data access layer.
"""

import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from .models import Conversation, Message

logger = logging.getLogger(__name__)


class ConversationRepository:
    """Data access for conversations and messages."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, conversation_id: Optional[str] = None) -> Conversation:
        conv = Conversation(id=conversation_id) if conversation_id else Conversation()
        self.session.add(conv)
        await self.session.flush()
        return conv

    async def get_by_id(self, conversation_id: str) -> Optional[Conversation]:
        result = await self.session.execute(
            select(Conversation).where(Conversation.id == conversation_id)
        )
        return result.scalar_one_or_none()

    async def add_message(self, conversation_id: str, sender: str, text: str) -> Message:
        msg = Message(conversation_id=conversation_id, sender=sender, text=text)
        self.session.add(msg)
        await self.session.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(last_active_at=datetime.utcnow())
        )
        await self.session.flush()
        return msg

    async def get_messages(self, conversation_id: str, limit: int = 100) -> List[Message]:
        """Oldest ``limit`` messages, oldest first."""
        result = await self.session.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.seq.asc())
            .limit(limit)
        )
        return list(result.scalars().all())

    async def get_recent_messages(self, conversation_id: str, limit: int = 20) -> List[Message]:
        """Newest ``limit`` messages, returned oldest first."""
        result = await self.session.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.seq.desc())
            .limit(limit)
        )
        return list(reversed(result.scalars().all()))

    async def get_message(self, message_id: str) -> Optional[Message]:
        result = await self.session.execute(
            select(Message).where(Message.id == message_id)
        )
        return result.scalar_one_or_none()

    async def set_reaction(self, message_id: str, reaction: Optional[str]) -> Optional[Message]:
        msg = await self.get_message(message_id)
        if msg is None:
            return None
        msg.reaction = reaction
        await self.session.flush()
        return msg
