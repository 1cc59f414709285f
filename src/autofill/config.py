"""Configuration management with pydantic-settings for the autofill pipeline.

Loads from (in order of precedence):
1. Environment variables prefixed with AUTOFILL_ (highest priority)
2. .env file in the working directory
3. Default values (lowest priority)

The provider API key can additionally be supplied at runtime through the
key/value settings store (see storage.resolve_api_key); the value here is the
built-in default used when the store is absent or empty.
"""

import logging
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger("autofill.config")

__all__ = [
    "PROVIDER_NAMES",
    "AutofillConfig",
    "get_config",
    "reset_config",
]

PROVIDER_NAMES = ("gemini", "ollama")


class AutofillConfig(BaseSettings):
    """Configuration for the classification pipeline.

    Attributes:
        provider: Remote inference provider (gemini or ollama)
        gemini_api_key: Default Gemini API key (SecretStr)
        gemini_base_url: Gemini REST base URL
        gemini_model: Gemini model name
        ollama_base_url: Ollama server URL
        ollama_model: Ollama model name
        requests_per_minute: Per-minute admission limit for remote calls
        requests_per_day: Daily admission limit for remote calls
        cache_max_size: Maximum entries per response cache
        cache_ttl_seconds: Time-to-live of a cache entry
        timeout_seconds: HTTP timeout for provider calls
        temperature: Sampling temperature sent to the provider
        max_output_tokens: Output token bound sent to the provider
        max_input_chars: Question text longer than this is truncated in prompts
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Log format (json for production, text for development)
    """

    model_config = SettingsConfigDict(
        env_prefix="AUTOFILL_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=False,
        validate_default=True,
        frozen=True,
        extra="ignore",
    )

    # Provider
    provider: str = Field(
        default="gemini",
        description="Remote inference provider: gemini or ollama",
    )

    gemini_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Default Gemini API key, overridden by the settings store",
    )

    gemini_base_url: str = Field(
        default="https://generativelanguage.googleapis.com/v1beta",
        description="Gemini REST API base URL",
    )

    gemini_model: str = Field(default="gemini-pro", description="Gemini model name")

    ollama_base_url: str = Field(
        default="http://localhost:11434", description="Ollama server URL"
    )

    ollama_model: str = Field(default="llama3.2:3b", description="Ollama model name")

    # Rate limiting
    requests_per_minute: int = Field(
        default=60,
        ge=1,
        le=1000,
        description="Remote calls allowed per minute (spaced evenly)",
    )

    requests_per_day: int = Field(
        default=1500,
        ge=1,
        le=1000000,
        description="Remote calls allowed per rolling daily window",
    )

    # Response cache
    cache_max_size: int = Field(
        default=100, ge=1, le=100000, description="Maximum cached responses"
    )

    cache_ttl_seconds: int = Field(
        default=24 * 60 * 60,
        ge=1,
        description="Cache entry lifetime in seconds (default: 24 hours)",
    )

    # Generation
    timeout_seconds: float = Field(
        default=30.0, gt=0, le=300, description="Provider HTTP timeout in seconds"
    )

    temperature: float = Field(
        default=0.1,
        ge=0.0,
        le=2.0,
        description="Low temperature keeps classification output stable",
    )

    max_output_tokens: int = Field(
        default=2048, ge=50, le=8192, description="Bounded output tokens"
    )

    max_input_chars: int = Field(
        default=4000,
        ge=100,
        le=100000,
        description="Question text is truncated to this many characters in prompts",
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        description="Log level: DEBUG, INFO, WARNING, ERROR, CRITICAL",
    )

    log_format: str = Field(
        default="json",
        pattern="^(json|text)$",
        description="Log format: json (production), text (development)",
    )

    @field_validator("provider", mode="before")
    @classmethod
    def normalize_provider(cls, v):
        """Lower-case the provider name and reject unknown providers."""
        if isinstance(v, str):
            v = v.strip().lower()
        if v not in PROVIDER_NAMES:
            raise ValueError(
                f"Invalid provider: '{v}'. Must be one of: {', '.join(PROVIDER_NAMES)}"
            )
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def upper_log_level(cls, v):
        if isinstance(v, str):
            return v.upper()
        return v


@lru_cache(maxsize=1)
def get_config() -> AutofillConfig:
    """Get global configuration singleton.

    First call loads from environment + .env file, subsequent calls return
    the cached instance.

    Returns:
        AutofillConfig singleton instance.

    Raises:
        ValidationError: If configuration values are invalid.
    """
    return AutofillConfig()


def reset_config() -> None:
    """Reset configuration singleton for testing.

    Warning:
        Only use in test code. Production code should not reset config.
    """
    get_config.cache_clear()
