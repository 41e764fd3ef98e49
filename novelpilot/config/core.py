"""Configuration sections - logging, HTTP, interceptor, OpenRouter and auto-pilot."""

from pydantic import BaseModel, Field, SecretStr, field_validator


DEFAULT_CHAT_COMPLETIONS_URL = "https://openrouter.ai/api/v1/chat/completions"


# === Logging Configuration ===


class LoggingSettings(BaseModel):
    """Logging configuration."""

    level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    )

    format: str = Field(
        default="auto",
        description="Logging output format: 'rich' for development, 'json' for production, 'auto' for automatic selection",
    )

    file: str | None = Field(
        default=None,
        description="Path to JSON log file. If specified, logs will be written to this file in JSON format",
    )

    @field_validator("level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate and normalize log level."""
        upper_v = v.upper()
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if upper_v not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper_v

    @field_validator("format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate and normalize log format."""
        lower_v = v.lower()
        valid_formats = ["auto", "rich", "json", "plain"]
        if lower_v not in valid_formats:
            raise ValueError(f"Invalid log format: {v}. Must be one of {valid_formats}")
        return lower_v


# === HTTP Configuration ===


class HTTPSettings(BaseModel):
    """HTTP client configuration settings.

    Controls timeouts and compression of the shared upstream client.
    """

    timeout_connect: float = Field(
        default=5.0,
        description="Connection timeout in seconds",
        gt=0,
    )

    timeout_read: float = Field(
        default=240.0,
        description="Read timeout in seconds (completions can take minutes)",
        gt=0,
    )

    compression_enabled: bool = Field(
        default=True,
        description="Enable compression for provider requests (Accept-Encoding header)",
    )

    accept_encoding: str = Field(
        default="gzip, deflate",
        description="Accept-Encoding header value when compression is enabled",
    )


# === Interceptor Configuration ===


class InterceptorSettings(BaseModel):
    """Chat-completion interceptor configuration."""

    enabled: bool = Field(
        default=True,
        description="Inspect responses from the chat-completion endpoint",
    )

    endpoint: str = Field(
        default=DEFAULT_CHAT_COMPLETIONS_URL,
        description="Chat-completion URL to observe (exact match, no prefix or wildcard)",
    )

    preview_chars: int = Field(
        default=100,
        description="Number of extracted characters included in diagnostic logs",
        ge=0,
    )


# === OpenRouter Configuration ===


class OpenRouterSettings(BaseModel):
    """OpenRouter API client configuration."""

    api_key: SecretStr | None = Field(
        default=None,
        description="OpenRouter API key sent as a bearer token",
    )

    url: str = Field(
        default=DEFAULT_CHAT_COMPLETIONS_URL,
        description="Chat-completion URL requests are posted to",
    )

    default_model: str = Field(
        default="openai/gpt-4o-mini",
        description="Model used when none is given on the command line",
    )

    max_tokens: int = Field(
        default=4000,
        description="Maximum completion tokens per request",
        ge=1,
    )

    temperature: float = Field(
        default=0.7,
        description="Sampling temperature",
        ge=0.0,
        le=2.0,
    )

    referer: str = Field(
        default="http://localhost",
        description="Value of the HTTP-Referer header OpenRouter uses for attribution",
    )


# === Auto-pilot Configuration ===


class AutopilotSettings(BaseModel):
    """Auto-pilot writer defaults."""

    target_word_count: int = Field(
        default=2000,
        description="Stop once the story reaches this many words",
        ge=1,
    )

    max_iterations: int = Field(
        default=5,
        description="Maximum number of completions, the initial one included",
        ge=1,
    )

    context_chars: int = Field(
        default=1000,
        description="Trailing characters of the story quoted in continuation prompts",
        ge=0,
    )
