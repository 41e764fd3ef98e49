"""OpenRouter chat-completion client."""

from collections.abc import Mapping
from typing import Any, Protocol

import httpx

from novelpilot.config.core import OpenRouterSettings
from novelpilot.config.settings import ConfigurationError
from novelpilot.core.errors import EmptyCompletionError, UpstreamAPIError
from novelpilot.core.logging import get_logger
from novelpilot.extraction import extract_content
from novelpilot.utils.text import count_words

from .models import GenerationResult, TokenUsage


logger = get_logger(__name__)


class AsyncPoster(Protocol):
    """Anything with an httpx-style async ``post`` (client or interceptor)."""

    async def post(self, url: httpx.URL | str, **kwargs: Any) -> httpx.Response: ...


def parse_usage(payload: Any) -> TokenUsage:
    """Read the ``usage`` block of a completion; missing counts are zero."""
    usage = payload.get("usage") if isinstance(payload, Mapping) else None
    if not isinstance(usage, Mapping):
        return TokenUsage()
    return TokenUsage(
        input=int(usage.get("prompt_tokens") or 0),
        output=int(usage.get("completion_tokens") or 0),
        total=int(usage.get("total_tokens") or 0),
    )


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class OpenRouterClient:
    """Thin client for the OpenRouter chat-completion API.

    Requests go through the injected ``http`` object, normally the installed
    ``ChatCompletionInterceptor`` so every completion is observed.
    """

    def __init__(self, http: AsyncPoster, settings: OpenRouterSettings | None = None):
        self._http = http
        self.settings = settings or OpenRouterSettings()

    def _headers(self) -> dict[str, str]:
        if self.settings.api_key is None:
            raise ConfigurationError(
                "OpenRouter API key is not configured (set OPENROUTER__API_KEY)"
            )
        return {
            "Authorization": f"Bearer {self.settings.api_key.get_secret_value()}",
            "HTTP-Referer": self.settings.referer,
            "Content-Type": "application/json",
        }

    async def send_request(
        self,
        model: str,
        messages: list[dict[str, str]],
        max_tokens: int | None = None,
        temperature: float | None = None,
    ) -> Any:
        """Post a chat-completion request and return the decoded body.

        Args:
            model: OpenRouter model identifier
            messages: Chat messages (``role`` / ``content`` dicts)
            max_tokens: Completion token limit, settings default when None
            temperature: Sampling temperature, settings default when None

        Returns:
            The decoded JSON body, or the raw text when the body is not JSON

        Raises:
            ConfigurationError: If no API key is configured
            UpstreamAPIError: If the API answers with a 4xx/5xx status
        """
        payload = {
            "model": model,
            "messages": messages,
            "max_tokens": max_tokens if max_tokens is not None else self.settings.max_tokens,
            "temperature": temperature
            if temperature is not None
            else self.settings.temperature,
        }

        response = await self._http.post(
            self.settings.url, json=payload, headers=self._headers()
        )

        if response.is_error:
            body = _error_body(response)
            logger.error(
                "openrouter_request_failed",
                model=model,
                status_code=response.status_code,
                body=body,
            )
            raise UpstreamAPIError(response.status_code, body)

        try:
            return response.json()
        except ValueError:
            # Some proxies answer with a bare string body
            return response.text

    async def generate_content(
        self,
        model: str,
        prompt: str,
        system_message: str,
        max_tokens: int | None = None,
        temperature: float | None = None,
        *,
        strict: bool = False,
    ) -> GenerationResult:
        """Generate text for a prompt under a system message.

        An unrecognized response shape yields empty content and a warning;
        with ``strict=True`` it raises ``EmptyCompletionError`` instead.
        """
        messages = [
            {"role": "system", "content": system_message},
            {"role": "user", "content": prompt},
        ]
        data = await self.send_request(model, messages, max_tokens, temperature)

        content = extract_content(data)
        if not content:
            logger.warning("completion_content_empty", model=model)
            if strict:
                raise EmptyCompletionError(model)

        result = GenerationResult(
            content=content,
            word_count=count_words(content),
            tokens=parse_usage(data),
            model=model,
        )
        logger.debug(
            "completion_generated",
            model=model,
            word_count=result.word_count,
            total_tokens=result.tokens.total,
        )
        return result
