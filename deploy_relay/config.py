"""
Configuration Management Module

This module handles all application configuration using Pydantic Settings.
Configuration is loaded from environment variables with strong typing and validation.

Design Decisions:
- Use Pydantic Settings for automatic environment variable loading
- Credentials are optional at load time; missing ones are reported per request
- Settings are passed explicitly into every component instead of read globally
- Provide sensible defaults for API base URLs, timeouts and log limits
"""

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from deploy_relay.errors import ConfigurationError


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All sensitive values are loaded from environment variables only,
    never hardcoded or logged.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # =========================================================================
    # Credentials
    # =========================================================================
    vercel_client_secret: Optional[str] = Field(
        default=None,
        description="Vercel integration client secret used to sign webhooks"
    )

    vercel_api_token: Optional[str] = Field(
        default=None,
        description="Vercel API token for deployment and event lookups"
    )

    github_token: Optional[str] = Field(
        default=None,
        description="GitHub token with permission to comment on pull requests"
    )

    # =========================================================================
    # Upstream APIs
    # =========================================================================
    vercel_api_base: str = Field(
        default="https://api.vercel.com",
        description="Base URL of the Vercel REST API"
    )

    github_api_base: str = Field(
        default="https://api.github.com",
        description="Base URL of the GitHub REST API"
    )

    http_timeout: float = Field(
        default=10.0,
        gt=0,
        le=120.0,
        description="Timeout in seconds applied to each outbound API call"
    )

    # =========================================================================
    # Log Excerpt Limits
    # =========================================================================
    max_log_lines: int = Field(
        default=50,
        ge=1,
        le=1000,
        description="Maximum number of error log lines kept in a comment"
    )

    max_log_chars: int = Field(
        default=4000,
        ge=100,
        le=60000,
        description="Maximum characters of log output kept in a comment"
    )

    # =========================================================================
    # Server Configuration
    # =========================================================================
    host: str = Field(
        default="0.0.0.0",
        description="Host to bind the server"
    )

    port: int = Field(
        default=8000,
        ge=1,
        le=65535,
        description="Port to bind the server"
    )

    # =========================================================================
    # Logging Configuration
    # =========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level"
    )

    log_json_format: bool = Field(
        default=True,
        description="Enable JSON logging format"
    )

    log_requests: bool = Field(
        default=False,
        description="Enable request/response logging"
    )

    # =========================================================================
    # Validators
    # =========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v_upper

    @field_validator("vercel_api_base", "github_api_base")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        """Normalize base URLs so endpoint paths can be appended directly."""
        return v.rstrip("/")

    # =========================================================================
    # Credential Checks
    # =========================================================================
    def missing_credentials(self) -> Dict[str, bool]:
        """
        Report which required credentials are absent.

        The keys are the environment variable names so the map can be
        returned as-is in a configuration error response.
        """
        return {
            "VERCEL_CLIENT_SECRET": not self.vercel_client_secret,
            "VERCEL_API_TOKEN": not self.vercel_api_token,
            "GITHUB_TOKEN": not self.github_token,
        }

    @property
    def is_configured(self) -> bool:
        """True when every required credential is present."""
        return not any(self.missing_credentials().values())

    def require_credentials(self) -> None:
        """
        Fail if any required credential is missing.

        Raises:
            ConfigurationError: With the missing-credential map attached
        """
        missing = self.missing_credentials()
        if any(missing.values()):
            names = ", ".join(name for name, absent in missing.items() if absent)
            raise ConfigurationError(
                f"Missing required configuration: {names}",
                missing=missing
            )


@lru_cache()
def get_settings() -> Settings:
    """
    Get cached application settings.

    Uses lru_cache so settings are only loaded once per process.

    Returns:
        Settings instance
    """
    return Settings()
