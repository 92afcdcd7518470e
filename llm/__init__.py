"""
Reply generation module for the Support Chat backend.

This module handles:
- LLM backend abstraction (OpenAI, Bedrock)
- Prompt assembly and history truncation
- Bounded reply generation with timeout, retry and fallback
- Conversation storage (in-memory, database) and an optional Redis history cache
"""

from .conversation_store import ConversationStore, InMemoryConversationStore, StoredMessage, Turn
from .errors import BackendError, BackendTimeoutError, ConfigurationError, is_retryable
from .history_cache import HistoryCache
from .prompt_templates import PromptTemplates
from .reply_generator import FALLBACK_MESSAGE, GeneratorConfig, ReplyGenerator

__all__ = [
    "BackendError",
    "BackendTimeoutError",
    "ConfigurationError",
    "ConversationStore",
    "FALLBACK_MESSAGE",
    "GeneratorConfig",
    "HistoryCache",
    "InMemoryConversationStore",
    "PromptTemplates",
    "ReplyGenerator",
    "StoredMessage",
    "Turn",
    "is_retryable",
]
