import os
import tomllib
from functools import lru_cache
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from novelpilot.core.logging import get_logger

from .core import (
    AutopilotSettings,
    HTTPSettings,
    InterceptorSettings,
    LoggingSettings,
    OpenRouterSettings,
)


__all__ = ["Settings", "ConfigurationError", "get_settings", "find_toml_config_file"]


CONFIG_FILE_NAMES = (".novelpilot.toml", "novelpilot.toml")


class ConfigurationError(Exception):
    """Raised when configuration loading or validation fails."""

    pass


def find_toml_config_file() -> Path | None:
    """Find the first configuration file in the usual locations.

    Search order:
    1. .novelpilot.toml / novelpilot.toml in the current directory
    2. config.toml in XDG_CONFIG_HOME/novelpilot/
    """
    cwd = Path.cwd()
    for name in CONFIG_FILE_NAMES:
        candidate = cwd / name
        if candidate.is_file():
            return candidate

    xdg_home = os.environ.get("XDG_CONFIG_HOME")
    config_home = Path(xdg_home) if xdg_home else Path.home() / ".config"
    candidate = config_home / "novelpilot" / "config.toml"
    if candidate.is_file():
        return candidate
    return None


class Settings(BaseSettings):
    """
    Configuration settings for novelpilot.

    Settings are loaded from environment variables, .env files, and TOML configuration files.
    Environment variables take precedence over TOML values; nested fields use a
    double underscore (``OPENROUTER__API_KEY``, ``INTERCEPTOR__ENDPOINT``).
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",
    )

    logging: LoggingSettings = Field(
        default_factory=LoggingSettings,
        description="Logging configuration",
    )

    http: HTTPSettings = Field(
        default_factory=HTTPSettings,
        description="HTTP client configuration settings",
    )

    interceptor: InterceptorSettings = Field(
        default_factory=InterceptorSettings,
        description="Chat-completion interceptor settings",
    )

    openrouter: OpenRouterSettings = Field(
        default_factory=OpenRouterSettings,
        description="OpenRouter API client settings",
    )

    autopilot: AutopilotSettings = Field(
        default_factory=AutopilotSettings,
        description="Auto-pilot writer defaults",
    )

    def model_dump_safe(self) -> dict[str, Any]:
        """
        Dump model data with sensitive information masked.

        Returns:
            dict: Configuration with sensitive data masked
        """
        # SecretStr serializes as "**********" in json mode
        return self.model_dump(mode="json")

    @classmethod
    def load_toml_config(cls, toml_path: Path) -> dict[str, Any]:
        """Load configuration from a TOML file."""
        try:
            with toml_path.open("rb") as f:
                return tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(
                f"Cannot read TOML config file {toml_path}: {e}"
            ) from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML syntax in {toml_path}: {e}") from e

    @classmethod
    def from_config(
        cls,
        config_path: Path | str | None = None,
        **kwargs: Any,
    ) -> "Settings":
        """Create Settings instance from a configuration file.

        Values from the file fill in fields that are not set through the
        environment; ``kwargs`` are applied last as nested overrides.
        """
        if config_path is None:
            config_path_env = os.environ.get("CONFIG_FILE")
            if config_path_env:
                config_path = Path(config_path_env)

        if isinstance(config_path, str):
            config_path = Path(config_path)

        if config_path is None:
            config_path = find_toml_config_file()

        config_data: dict[str, Any] = {}
        if config_path is not None:
            if config_path.suffix.lower() != ".toml":
                raise ConfigurationError(
                    f"Unsupported config file format: {config_path.suffix}. "
                    "Only TOML (.toml) files are supported."
                )
            config_data = cls.load_toml_config(config_path)
            get_logger(__name__).info(
                "config_file_loaded", path=str(config_path)
            )

        settings = cls()

        for key, value in config_data.items():
            if key not in cls.model_fields:
                raise ConfigurationError(f"Unknown setting {key} in {config_path}")
            section = getattr(settings, key)
            if isinstance(section, BaseModel) and isinstance(value, dict):
                for nested_key, nested_value in value.items():
                    if nested_key not in type(section).model_fields:
                        raise ConfigurationError(
                            f"Unknown setting {key}.{nested_key} in {config_path}"
                        )
                    env_key = f"{key.upper()}__{nested_key.upper()}"
                    if os.getenv(env_key) is None:
                        setattr(section, nested_key, nested_value)
            elif os.getenv(key.upper()) is None:
                setattr(settings, key, value)

        def _apply_overrides(target: Any, overrides: dict[str, Any]) -> None:
            for k, v in overrides.items():
                if isinstance(v, dict) and isinstance(getattr(target, k, None), BaseModel):
                    _apply_overrides(getattr(target, k), v)
                else:
                    setattr(target, k, v)

        if kwargs:
            _apply_overrides(settings, kwargs)

        try:
            return cls.model_validate(settings.model_dump())
        except ValueError as e:
            raise ConfigurationError(f"Invalid configuration: {e}") from e


@lru_cache
def get_settings(config_path: Path | None = None) -> Settings:
    """Get the process-wide settings instance, loading it on first use."""
    return Settings.from_config(config_path=config_path)
