"""
Service initialization and dependency injection for the Support Chat API.

Creates the LLM backend, reply generator and conversation store exactly
once at startup and hands them to the routes.
"""

import logging
from typing import Optional

from config.settings import get_settings, Settings
from llm.conversation_store import ConversationStore, InMemoryConversationStore
from llm.history_cache import HistoryCache
from llm.providers import LLMBackend, create_backend
from llm.reply_generator import GeneratorConfig, ReplyGenerator

logger = logging.getLogger(__name__)


class Services:
    """Container for all application services."""

    def __init__(self):
        self.settings: Optional[Settings] = None
        self.backend: Optional[LLMBackend] = None
        self.generator: Optional[ReplyGenerator] = None
        self.store: Optional[ConversationStore] = None
        self.cache: Optional[HistoryCache] = None
        self.database_enabled = False
        self._initialized = False

    async def initialize(
        self,
        backend: Optional[LLMBackend] = None,
        store: Optional[ConversationStore] = None,
        cache: Optional[HistoryCache] = None,
    ):
        """
        Initialize all services.

        Args:
            backend: Prebuilt backend; built from settings when omitted
            store: Prebuilt conversation store; built from settings when omitted
            cache: Prebuilt history cache; connected from settings when omitted

        Raises:
            ConfigurationError: The LLM backend cannot be constructed
        """
        if self._initialized:
            return

        self.settings = get_settings()
        logger.info(f"Initializing services with provider: {self.settings.llm_provider}")

        self.store = store or await self._init_store()
        self.cache = cache or await self._init_cache()
        self._init_generator(backend)
        self._initialized = True
        logger.info("All services initialized successfully")

    async def _init_store(self) -> ConversationStore:
        """Database store when configured, in-memory otherwise."""
        s = self.settings

        if s.database_url:
            try:
                from database.session import init_db
                from llm.db_conversation_store import DbConversationStore

                session_factory = await init_db(s.database_url)
                self.database_enabled = True
                logger.info("Conversation store: database")
                return DbConversationStore(session_factory)
            except Exception as e:
                logger.warning(f"Database init failed (running without DB): {e}")

        logger.info("Conversation store: in-memory")
        return InMemoryConversationStore()

    async def _init_cache(self) -> Optional[HistoryCache]:
        """Redis history cache when configured; optional and never fatal."""
        s = self.settings
        if not s.redis_url:
            logger.info("Redis: REDIS_URL not set, operating without cache")
            return None

        try:
            return await HistoryCache.connect(
                s.redis_url,
                ttl_seconds=s.history_cache_ttl_seconds,
                max_turns=s.history_limit,
            )
        except Exception as e:
            logger.warning(f"Redis init failed (running without cache): {e}")
            return None

    def _init_generator(self, backend: Optional[LLMBackend]):
        """Build the backend once and wrap it in the reply generator."""
        try:
            self.backend = backend or create_backend(self.settings)
        except Exception as e:
            logger.error(f"Failed to initialize LLM provider: {e}")
            raise

        self.generator = ReplyGenerator(
            backend=self.backend,
            config=GeneratorConfig.from_settings(self.settings),
        )
        logger.info("Reply generator ready")

    async def shutdown(self):
        if self.cache is not None:
            await self.cache.close()
            self.cache = None
        if self.database_enabled:
            from database.session import close_db
            await close_db()
        self._initialized = False

    @property
    def is_ready(self) -> bool:
        return self._initialized and self.generator is not None and self.store is not None

    def health(self) -> dict:
        """Return health status of all services."""
        return {
            "initialized": self._initialized,
            "generator": self.generator is not None,
            "store": type(self.store).__name__ if self.store else None,
            "database": self.database_enabled,
            "cache": self.cache is not None,
        }


# Singleton
_services = Services()


def get_services() -> Services:
    """Get the global services instance."""
    return _services


async def initialize_services():
    """Initialize all services (called at startup)."""
    await _services.initialize()
