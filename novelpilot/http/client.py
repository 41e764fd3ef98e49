"""HTTP client construction for upstream chat-completion calls."""

import os
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from typing import Any

import httpx

from novelpilot.config.settings import Settings
from novelpilot.core.logging import get_logger


logger = get_logger(__name__)


def _get_proxy_url() -> str | None:
    """Proxy URL from the environment, HTTPS first."""
    return (
        os.environ.get("HTTPS_PROXY")
        or os.environ.get("https_proxy")
        or os.environ.get("ALL_PROXY")
        or os.environ.get("HTTP_PROXY")
        or os.environ.get("http_proxy")
    )


class HTTPClientFactory:
    """Factory for creating upstream HTTP clients.

    Provides centralized configuration for HTTP clients with:
    - Consistent timeout configuration
    - Unified connection limits
    - Compression settings from ``HTTPSettings``
    """

    @staticmethod
    def create_client(
        *,
        settings: Settings | None = None,
        max_keepalive_connections: int = 20,
        max_connections: int = 100,
        **kwargs: Any,
    ) -> httpx.AsyncClient:
        """Create an HTTP client with the configured timeouts and limits.

        Args:
            settings: Optional settings object; defaults apply when omitted
            max_keepalive_connections: Max keep-alive connections for reuse
            max_connections: Max total concurrent connections
            **kwargs: Additional httpx.AsyncClient arguments (``transport`` included)

        Returns:
            Configured httpx.AsyncClient instance
        """
        http_settings = (settings or Settings()).http

        timeout = httpx.Timeout(
            connect=http_settings.timeout_connect,
            read=http_settings.timeout_read,
            write=30.0,
            pool=30.0,
        )

        default_headers: dict[str, str] = {}
        if not http_settings.compression_enabled:
            # "identity" means no compression
            default_headers["accept-encoding"] = "identity"
        elif http_settings.accept_encoding:
            default_headers["accept-encoding"] = http_settings.accept_encoding

        if "headers" in kwargs:
            default_headers.update(kwargs["headers"])
        kwargs["headers"] = default_headers

        if "transport" not in kwargs:
            kwargs["transport"] = httpx.AsyncHTTPTransport(
                limits=httpx.Limits(
                    max_keepalive_connections=max_keepalive_connections,
                    max_connections=max_connections,
                ),
                proxy=_get_proxy_url(),
            )

        logger.debug(
            "http_client_created",
            timeout_connect=http_settings.timeout_connect,
            timeout_read=http_settings.timeout_read,
            compression_enabled=http_settings.compression_enabled,
        )

        return httpx.AsyncClient(timeout=timeout, **kwargs)

    @staticmethod
    @asynccontextmanager
    async def managed_client(
        settings: Settings | None = None, **kwargs: Any
    ) -> AsyncGenerator[httpx.AsyncClient, None]:
        """Create a managed HTTP client with automatic cleanup.

        Example:
            async with HTTPClientFactory.managed_client() as client:
                response = await client.get("https://openrouter.ai/api/v1/models")
        """
        client = HTTPClientFactory.create_client(settings=settings, **kwargs)
        try:
            yield client
        finally:
            await client.aclose()
