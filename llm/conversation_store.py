"""
ConversationStore protocol for the Support Chat backend.

Abstracts conversation storage so the chat route can work
with either in-memory dicts or a database backend.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Mapping, Optional, Protocol, Union, runtime_checkable

SENDERS = ("user", "ai")
REACTIONS = ("thumbs_up", "thumbs_down")


class MessageNotFoundError(LookupError):
    """Raised when a message id does not exist."""


@dataclass(frozen=True)
class Turn:
    """One message exchanged in a conversation."""
    sender: str
    text: str

    @classmethod
    def coerce(cls, value: Union["Turn", Mapping[str, str]]) -> "Turn":
        """Accept a Turn or a ``{"sender", "text"}`` mapping."""
        if isinstance(value, Turn):
            return value
        return cls(sender=str(value.get("sender", "")), text=str(value.get("text", "")))


@dataclass
class StoredMessage:
    """A persisted turn with its storage metadata."""
    id: str
    conversation_id: str
    sender: str
    text: str
    created_at: datetime = field(default_factory=datetime.utcnow)
    reaction: Optional[str] = None

    @property
    def turn(self) -> Turn:
        return Turn(sender=self.sender, text=self.text)

    def to_dict(self) -> Dict[str, Optional[str]]:
        return {
            "id": self.id,
            "sender": self.sender,
            "text": self.text,
            "timestamp": self.created_at.isoformat(),
            "reaction": self.reaction,
        }


@runtime_checkable
class ConversationStore(Protocol):
    """Protocol for conversation persistence."""

    async def create_conversation(self) -> str:
        """Create a conversation and return its id."""
        ...

    async def exists(self, conversation_id: str) -> bool:
        """Check whether a conversation exists."""
        ...

    async def get_history(self, conversation_id: str, limit: int = 20) -> List[Turn]:
        """Get the most recent ``limit`` turns, oldest first."""
        ...

    async def save_turn(self, conversation_id: str, sender: str, text: str) -> StoredMessage:
        """Save a turn to the conversation."""
        ...

    async def list_messages(self, conversation_id: str, limit: int = 100) -> List[StoredMessage]:
        """List stored messages, oldest first."""
        ...

    async def set_reaction(self, message_id: str, reaction: Optional[str]) -> StoredMessage:
        """Set or clear a reaction on a message."""
        ...


class InMemoryConversationStore:
    """Process-local conversation store, used when no database is configured."""

    def __init__(self):
        self._conversations: Dict[str, List[StoredMessage]] = {}
        self._messages: Dict[str, StoredMessage] = {}

    async def create_conversation(self) -> str:
        conversation_id = str(uuid.uuid4())
        self._conversations[conversation_id] = []
        return conversation_id

    async def exists(self, conversation_id: str) -> bool:
        return conversation_id in self._conversations

    async def get_history(self, conversation_id: str, limit: int = 20) -> List[Turn]:
        messages = self._conversations.get(conversation_id, [])
        return [msg.turn for msg in messages[-limit:]] if limit > 0 else []

    async def save_turn(self, conversation_id: str, sender: str, text: str) -> StoredMessage:
        if sender not in SENDERS:
            raise ValueError(f"Unknown sender: {sender}")

        msg = StoredMessage(
            id=str(uuid.uuid4()),
            conversation_id=conversation_id,
            sender=sender,
            text=text,
        )
        self._conversations.setdefault(conversation_id, []).append(msg)
        self._messages[msg.id] = msg
        return msg

    async def list_messages(self, conversation_id: str, limit: int = 100) -> List[StoredMessage]:
        return list(self._conversations.get(conversation_id, [])[:limit])

    async def set_reaction(self, message_id: str, reaction: Optional[str]) -> StoredMessage:
        if reaction is not None and reaction not in REACTIONS:
            raise ValueError(f"Unknown reaction: {reaction}")

        msg = self._messages.get(message_id)
        if msg is None:
            raise MessageNotFoundError(message_id)
        msg.reaction = reaction
        return msg

