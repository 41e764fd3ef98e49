"""Shared test fixtures and configuration for novelpilot tests.

Fixtures work with real components and fake only the upstream API.
"""

import os
from collections.abc import Iterator
from pathlib import Path

import pytest

from novelpilot.config.core import InterceptorSettings, OpenRouterSettings
from novelpilot.config.settings import Settings, get_settings
from novelpilot.core.logging import setup_logging
from novelpilot.http import installation
from tests.helpers.upstream import ENDPOINT


ENV_PREFIXES = ("LOGGING__", "HTTP__", "INTERCEPTOR__", "OPENROUTER__", "AUTOPILOT__")


def pytest_configure(config: pytest.Config) -> None:
    """Configure pytest with custom settings."""
    config.option.asyncio_mode = "auto"
    setup_logging(json_logs=False, log_level_name="DEBUG", colors=False)


@pytest.fixture(autouse=True)
def reset_interceptor_state(monkeypatch: pytest.MonkeyPatch) -> None:
    """Every test starts with no process-wide interceptor installed."""
    monkeypatch.setattr(installation, "_state", None)


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Iterator[None]:
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def isolated_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run in an empty directory without novelpilot environment variables."""
    monkeypatch.delenv("CONFIG_FILE", raising=False)
    for key in list(os.environ):
        if key.upper().startswith(ENV_PREFIXES):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def settings(isolated_env: Path) -> Settings:
    """Settings with a test API key and the default endpoint."""
    return Settings(
        openrouter=OpenRouterSettings(api_key="test-key"),
        interceptor=InterceptorSettings(endpoint=ENDPOINT),
    )
