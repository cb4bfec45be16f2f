"""
Application configuration with environment-based settings.
All configuration is explicit, validated, and logged at startup.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings have sensible defaults for development but require
    explicit configuration in production environments.
    """

    model_config = SettingsConfigDict(
        env_file="../.env",  # Load from project root
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="Echo Qualify", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    environment: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Deployment environment"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=8000, description="Server port")

    # CORS
    cors_origins: list[str] = Field(
        default=["http://localhost:3000", "http://localhost:5173"],
        description="Allowed CORS origins"
    )

    # External reviewer (OpenAI-compatible chat completions endpoint)
    reviewer_enabled: bool = Field(default=False, description="Invoke the external reviewer")
    reviewer_api_key: str = Field(default="", description="Reviewer API key")
    reviewer_base_url: str = Field(
        default="https://api.deepseek.com",
        description="Reviewer API base URL"
    )
    reviewer_model: str = Field(default="deepseek-chat", description="Reviewer model to use")
    reviewer_max_tokens: int = Field(default=2048, description="Max tokens per review")
    reviewer_temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Reviewer temperature (0 for determinism)"
    )
    reviewer_timeout_seconds: float = Field(
        default=30.0,
        gt=0.0,
        description="Timeout for a single reviewer call"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="console",
        description="Log output format"
    )
    log_max_value_length: int = Field(
        default=200,
        ge=20,
        description="Longest string field written to the logs before truncation"
    )

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment == "production"

    @property
    def reviewer_configured(self) -> bool:
        """Reviewer is usable only when enabled and given a key."""
        return self.reviewer_enabled and bool(self.reviewer_api_key)

    def get_safe_config_dict(self) -> dict:
        """Return configuration dict with secrets redacted for logging."""
        config = self.model_dump()
        # Redact sensitive values
        if config.get("reviewer_api_key"):
            config["reviewer_api_key"] = "***REDACTED***"
        return config


@lru_cache
def get_settings() -> Settings:
    """
    Get cached application settings.

    Settings are loaded once and cached for the application lifetime.
    Use dependency injection in FastAPI routes for testability.
    """
    return Settings()
