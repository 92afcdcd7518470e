"""
Reply Generator for the Support Chat backend.

Turns a conversation history plus a new user message into one bounded LLM
call:

1. Assemble the prompt (history truncated to the input budget)
2. Call the backend with a per-attempt timeout
3. Retry retryable failures with exponential backoff
4. Cap the reply, or fall back to a fixed user-safe message

``generate_reply`` always returns a string and never raises.
"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Mapping, Optional, Sequence, Union

from config.settings import Settings
from .conversation_store import Turn
from .errors import BackendTimeoutError, is_retryable
from .prompt_templates import PromptTemplates
from .providers.base import LLMBackend
from .token_estimator import TokenEstimator

logger = logging.getLogger(__name__)

FALLBACK_MESSAGE = "Sorry — our support agent is having trouble right now. Please try again shortly."

# Upper bound on any returned reply, whatever the configured cap
MAX_REPLY_CHARS = 2000

History = Sequence[Union[Turn, Mapping[str, str]]]


@dataclass(frozen=True)
class GeneratorConfig:
    """Reply generation limits."""
    system_prompt: str = PromptTemplates.SYSTEM_PROMPT
    max_input_tokens: int = 4000
    max_output_tokens: int = 500
    temperature: float = 0.7
    max_attempts: int = 3
    base_backoff_ms: int = 1000
    attempt_timeout_ms: int = 30000
    max_reply_chars: int = MAX_REPLY_CHARS

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeneratorConfig":
        return cls(
            max_input_tokens=settings.max_input_tokens,
            max_output_tokens=settings.max_output_tokens,
            temperature=settings.temperature,
            max_attempts=settings.llm_max_attempts,
            base_backoff_ms=settings.llm_base_backoff_ms,
            attempt_timeout_ms=settings.llm_attempt_timeout_ms,
            max_reply_chars=settings.max_reply_chars,
        )

    def backoff_ms(self, attempt: int) -> int:
        """Delay after failed attempt ``attempt`` (0-indexed)."""
        return self.base_backoff_ms * (2 ** attempt)


class ReplyGenerator:
    """
    Generates support replies against a pluggable LLM backend.

    The backend is constructed once by the caller and injected; the generator
    keeps no other state between calls, so concurrent ``generate_reply``
    calls are independent.
    """

    def __init__(
        self,
        backend: LLMBackend,
        config: Optional[GeneratorConfig] = None,
        estimator: Optional[TokenEstimator] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """
        Args:
            backend: LLM backend capability
            config: Generation limits (defaults apply when omitted)
            estimator: Token estimator for history truncation
            sleep: Backoff sleep, in seconds
        """
        self.backend = backend
        self.config = config or GeneratorConfig()
        self.estimator = estimator or TokenEstimator()
        self._sleep = sleep

    @property
    def fallback_message(self) -> str:
        return FALLBACK_MESSAGE

    def build_prompt(self, history: History, user_message: str) -> str:
        return PromptTemplates.build_reply_prompt(
            history,
            user_message,
            max_input_tokens=self.config.max_input_tokens,
            system_prompt=self.config.system_prompt,
            estimator=self.estimator,
        )

    async def generate_reply(self, history: History, user_message: str) -> str:
        """
        Generate a reply for ``user_message`` given prior ``history``.

        Args:
            history: Prior turns, oldest first
            user_message: Newest user utterance

        Returns:
            Reply text of at most ``max_reply_chars``, or the fallback message
        """
        try:
            prompt = self.build_prompt(history, user_message)
        except Exception as e:
            logger.error(f"Prompt assembly failed: {e}")
            return FALLBACK_MESSAGE

        max_attempts = self.config.max_attempts
        provider = getattr(self.backend, "name", type(self.backend).__name__)

        for attempt in range(max_attempts):
            try:
                text = await self._attempt(prompt)
            except Exception as e:
                if not is_retryable(e):
                    logger.error(f"{provider} error (non-retryable, attempt {attempt + 1}/{max_attempts}): {e}")
                    return FALLBACK_MESSAGE

                if attempt < max_attempts - 1:
                    delay_ms = self.config.backoff_ms(attempt)
                    logger.warning(
                        f"{provider} error (attempt {attempt + 1}/{max_attempts}), "
                        f"retrying in {delay_ms}ms: {e}"
                    )
                    await self._sleep(delay_ms / 1000)
                else:
                    logger.error(f"{provider} error (max retries exceeded, {max_attempts} attempts): {e}")
                continue

            return self._finalize(text, provider)

        return FALLBACK_MESSAGE

    async def _attempt(self, prompt: str) -> str:
        """One backend call raced against the per-attempt timeout."""
        timeout_ms = self.config.attempt_timeout_ms
        try:
            return await asyncio.wait_for(
                self.backend.generate(
                    prompt,
                    max_tokens=self.config.max_output_tokens,
                    temperature=self.config.temperature,
                ),
                timeout=timeout_ms / 1000,
            )
        except asyncio.TimeoutError as e:
            raise BackendTimeoutError(timeout_ms, provider=getattr(self.backend, "name", None)) from e

    def _finalize(self, text: Optional[str], provider: str) -> str:
        # Empty success is terminal: no retry
        if not isinstance(text, str) or not text.strip():
            logger.warning(f"{provider} returned an empty response")
            return FALLBACK_MESSAGE
        return text.strip()[: min(self.config.max_reply_chars, MAX_REPLY_CHARS)]
