"""
Configuration management using Pydantic Settings.
Loads all environment variables with validation.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


COMPLETION_PROVIDERS = ("anthropic-text", "anthropic-messages", "openai")


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Uses .env file in development, environment variables in production.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Storage
    data_dir: str = Field(
        default="data",
        description="Directory holding users.json, interactions.json and faqs.json"
    )
    serialize_writes: bool = Field(
        default=False,
        description="Serialize read-modify-write cycles per collection (single writer)"
    )

    # Completion provider
    completion_provider: str = Field(
        default="anthropic-messages",
        description="Completion backend: anthropic-text, anthropic-messages or openai"
    )
    anthropic_api_key: Optional[str] = Field(
        default=None,
        description="Anthropic API key"
    )
    anthropic_model: str = Field(
        default="claude-3-5-haiku-latest",
        description="Anthropic model name"
    )
    anthropic_base_url: str = Field(
        default="https://api.anthropic.com",
        description="Anthropic API base URL"
    )
    openai_api_key: Optional[str] = Field(
        default=None,
        description="OpenAI API key"
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        description="OpenAI model name"
    )
    openai_organization_id: Optional[str] = Field(
        default=None,
        description="OpenAI organization ID"
    )
    openai_base_url: str = Field(
        default="https://api.openai.com",
        description="OpenAI API base URL"
    )
    max_tokens: int = Field(
        default=1000,
        ge=1,
        le=8192,
        description="Maximum generated tokens per reply (sent to the provider)"
    )
    request_timeout_s: float = Field(
        default=30.0,
        gt=0,
        description="Total timeout for a single completion request in seconds"
    )
    window_size: int = Field(
        default=15,
        ge=1,
        le=100,
        description="Number of most recent turns sent to the model"
    )

    # Transcription
    transcription_api_key: Optional[str] = Field(
        default=None,
        description="Transcription service API key"
    )
    transcription_base_url: str = Field(
        default="https://api.gladia.io",
        description="Transcription service base URL"
    )
    transcription_poll_interval_s: float = Field(
        default=2.0,
        ge=0,
        description="Seconds between transcription result polls"
    )
    transcription_max_attempts: int = Field(
        default=10,
        ge=1,
        description="Maximum transcription result polls before timing out"
    )

    # Admin console
    admin_token: Optional[str] = Field(
        default=None,
        description="Shared secret expected in the X-Admin-Token header"
    )

    # Environment
    environment: str = Field(
        default="development",
        description="Environment: development, staging, or production"
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level: DEBUG, INFO, WARNING, ERROR, CRITICAL"
    )

    # Server Settings
    host: str = Field(
        default="0.0.0.0",
        description="Server host address"
    )
    port: int = Field(
        default=3000,
        ge=1000,
        le=65535,
        description="Server port"
    )

    # CORS
    frontend_url: str = Field(
        default="http://localhost:3000",
        description="Frontend URL for CORS"
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is one of the allowed values."""
        allowed = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in allowed:
            raise ValueError(f"log_level must be one of {allowed}")
        return v_upper

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """Validate environment is one of the allowed values."""
        allowed = ["development", "staging", "production"]
        v_lower = v.lower()
        if v_lower not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v_lower

    @field_validator("completion_provider")
    @classmethod
    def validate_completion_provider(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in COMPLETION_PROVIDERS:
            raise ValueError(f"completion_provider must be one of {list(COMPLETION_PROVIDERS)}")
        return v_lower

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
