"""Environment configuration and validation.

This module defines strongly-typed application settings loaded from environment variables
(optionally via a local `.env` file).

Credentials are optional at load time: a missing LLM key only disables the LLM parser path (the
rules parser takes over), and a missing Allium key surfaces as a query execution failure.
"""

from __future__ import annotations

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from src.allium.client import DEFAULT_MCP_URL


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    telegram_bot_token: str | None = Field(default=None, alias="TELEGRAM_BOT_TOKEN")

    allium_api_key: str | None = Field(default=None, alias="ALLIUM_API_KEY")
    allium_mcp_url: str = Field(default=DEFAULT_MCP_URL, alias="ALLIUM_MCP_URL")
    allium_timeout_s: float = Field(default=60.0, alias="ALLIUM_TIMEOUT_S")

    llm_enabled: bool = Field(default=True, alias="LLM_ENABLED")
    llm_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LLM_API_KEY", "ANTHROPIC_API_KEY"),
    )

    @field_validator("allium_timeout_s")
    @classmethod
    def validate_timeout(cls, value: float) -> float:
        """Timeouts must be positive; the transport would otherwise never give up."""

        if value <= 0:
            raise ValueError("ALLIUM_TIMEOUT_S must be positive")
        return value


def load_settings() -> Settings:
    """Load and validate settings from environment variables.

    Raises:
        RuntimeError: If the environment configuration is invalid.
    """

    try:
        return Settings()
    except ValidationError as exc:
        # Raising here is fine: caller can decide how to handle startup errors.
        raise RuntimeError(f"Invalid environment configuration: {exc}") from exc
