"""
OpenAI LLM Provider.
"""

import logging
from typing import Optional

from openai import AsyncOpenAI, APIConnectionError, APIStatusError, APITimeoutError

from ..errors import BackendError, ConfigurationError

logger = logging.getLogger(__name__)


class OpenAIBackend:
    """
    OpenAI LLM backend.

    Supports GPT-4 and GPT-3.5 family chat models. One client is built per
    backend instance and shared by all calls.
    """

    name = "openai"
    DEFAULT_MODEL = "gpt-4o-mini"

    def __init__(
        self,
        api_key: Optional[str],
        model_id: str = DEFAULT_MODEL,
        client: Optional[AsyncOpenAI] = None,
    ):
        """
        Initialize OpenAI backend.

        Args:
            api_key: OpenAI API key (required)
            model_id: Model ID
            client: Prebuilt async client, mainly for tests

        Raises:
            ConfigurationError: If no API key is supplied
        """
        if not api_key:
            raise ConfigurationError("OPENAI_API_KEY is required")

        self.model_id = model_id
        # The SDK retries on its own; retries are owned by ReplyGenerator
        self._client = client or AsyncOpenAI(api_key=api_key, max_retries=0)

        logger.info(f"OpenAI backend initialized: {model_id}")

    async def generate(self, prompt: str, *, max_tokens: int, temperature: float) -> str:
        """Generate a completion for a single-message prompt."""
        try:
            response = await self._client.chat.completions.create(
                model=self.model_id,
                messages=[{"role": "user", "content": prompt}],
                max_tokens=max_tokens,
                temperature=temperature,
            )
        except APIStatusError as e:
            raise BackendError(str(e.message), status_code=e.status_code, provider=self.name) from e
        except APITimeoutError as e:
            raise BackendError(f"OpenAI request timed out: {e}", provider=self.name) from e
        except APIConnectionError as e:
            raise BackendError(f"OpenAI connection error: {e}", provider=self.name) from e

        if not response.choices:
            logger.warning("Empty response from OpenAI")
            return ""

        return response.choices[0].message.content or ""
