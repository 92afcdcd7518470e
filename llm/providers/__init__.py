"""
LLM Provider implementations.
"""

from config.settings import Settings
from ..errors import ConfigurationError
from .base import LLMBackend
from .bedrock import BedrockBackend
from .openai_provider import OpenAIBackend


def create_backend(settings: Settings) -> LLMBackend:
    """
    Build the backend selected by ``LLM_PROVIDER``.

    Called once at startup; the result is shared for the process lifetime.

    Raises:
        ConfigurationError: Unknown provider or missing credential
    """
    if settings.is_openai:
        return OpenAIBackend(
            api_key=settings.llm_api_key,
            model_id=settings.llm_model_id,
        )
    if settings.is_bedrock:
        return BedrockBackend(
            aws_access_key_id=settings.llm_api_key,
            aws_secret_access_key=settings.aws_secret_access_key,
            model_id=settings.llm_model_id,
            region=settings.aws_region,
        )
    raise ConfigurationError(f"Unsupported LLM provider: {settings.llm_provider}")


__all__ = ["BedrockBackend", "LLMBackend", "OpenAIBackend", "create_backend"]
