"""
Centralized configuration for the Support Chat backend.

All settings are loaded from environment variables via .env file.
"""

from functools import lru_cache
from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Brand
    brand_name: str = Field(default="Support Chat")

    # LLM provider selection
    llm_provider: str = Field(default="openai")  # openai | bedrock

    # OpenAI
    openai_api_key: Optional[str] = Field(default=None)
    openai_llm_model: str = Field(default="gpt-4o-mini")

    # AWS / Bedrock
    aws_region: str = Field(default="us-east-1")
    aws_access_key_id: Optional[str] = Field(default=None)
    aws_secret_access_key: Optional[str] = Field(default=None)
    bedrock_llm_model_id: str = Field(
        default="us.anthropic.claude-sonnet-4-20250514-v1:0"
    )

    # Reply generation
    max_input_tokens: int = Field(default=4000, ge=1)
    max_output_tokens: int = Field(default=500, ge=1)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    llm_max_attempts: int = Field(default=3, ge=1)
    llm_base_backoff_ms: int = Field(default=1000, ge=0)
    llm_attempt_timeout_ms: int = Field(default=30000, ge=1)
    max_reply_chars: int = Field(default=2000, ge=1, le=2000)

    # Conversations
    history_limit: int = Field(default=20, ge=1)

    # Database (unset -> in-memory conversation store)
    database_url: Optional[str] = Field(default=None)

    # Redis history cache (unset -> no cache)
    redis_url: Optional[str] = Field(default=None)
    history_cache_ttl_seconds: int = Field(default=3600, ge=1)

    # API
    api_host: str = Field(default="0.0.0.0")
    api_port: int = Field(default=4000)
    api_title: str = Field(default="Support Chat API")
    api_version: str = Field(default="1.0.0")
    cors_origins: str = Field(default="*")
    rate_limit_per_minute: int = Field(default=20)
    api_rate_limit_per_window: int = Field(default=100)
    api_rate_limit_window_seconds: int = Field(default=15 * 60)

    # Logging
    log_level: str = Field(default="INFO")

    @property
    def is_bedrock(self) -> bool:
        return self.llm_provider.lower() == "bedrock"

    @property
    def is_openai(self) -> bool:
        return self.llm_provider.lower() == "openai"

    @property
    def llm_model_id(self) -> str:
        if self.is_bedrock:
            return self.bedrock_llm_model_id
        return self.openai_llm_model

    @property
    def llm_api_key(self) -> Optional[str]:
        """Credential for the selected provider."""
        if self.is_bedrock:
            return self.aws_access_key_id
        return self.openai_api_key

    @property
    def cors_origins_list(self) -> List[str]:
        origins = [o.strip() for o in self.cors_origins.split(",") if o.strip()]
        return origins or ["*"]


@lru_cache()
def get_settings() -> Settings:
    """Get cached application settings."""
    return Settings()
