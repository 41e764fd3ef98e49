"""Chat-completion interceptor wrapping an injected httpx client.

Requests to the configured chat-completion endpoint are sent unchanged. Once
the response has been read, a clone of it is decoded and run through the
content extractor for diagnostics; the caller always receives the original
response object. Requests to any other URL are passed straight through.
"""

import contextlib
from collections.abc import AsyncIterator
from types import TracebackType
from typing import Any

import httpx

from novelpilot.core.logging import get_logger
from novelpilot.extraction import envelope_source, extract_content, parse_envelope
from novelpilot.hooks import HookEvent, HookManager


logger = get_logger(__name__)


def clone_response(response: httpx.Response) -> httpx.Response:
    """Duplicate a response whose body has already been read.

    The clone is built from the buffered bytes, so reading it never touches the
    original's stream. ``content-encoding`` is dropped because the buffered
    bytes are already decoded.
    """
    headers = httpx.Headers(response.headers)
    headers.pop("content-encoding", None)
    return httpx.Response(
        status_code=response.status_code,
        headers=headers,
        content=response.content,
        request=response.request,
    )


class ChatCompletionInterceptor:
    """httpx client wrapper that observes chat-completion responses.

    Mirrors the request surface of ``httpx.AsyncClient`` (``request``,
    ``get``, ``post``, ``send``, ``stream``) so callers can use it in place of
    the client they injected.
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        endpoint: str,
        *,
        hook_manager: HookManager | None = None,
        preview_chars: int = 100,
        enabled: bool = True,
    ):
        """Initialize the interceptor.

        Args:
            client: The real client every request is delegated to
            endpoint: Chat-completion URL to observe, matched exactly
            hook_manager: Optional HookManager receiving diagnostic events
            preview_chars: Characters of extracted content included in logs
            enabled: When False, matching requests are passed through as well
        """
        self._client = client
        self._endpoint = str(httpx.URL(endpoint))
        self.hook_manager = hook_manager
        self.preview_chars = preview_chars
        self.enabled = enabled

    @property
    def client(self) -> httpx.AsyncClient:
        """The wrapped client."""
        return self._client

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def matches(self, url: httpx.URL | str) -> bool:
        """Return True when ``url`` is exactly the observed endpoint."""
        return self.enabled and str(url) == self._endpoint

    async def request(
        self,
        method: str,
        url: httpx.URL | str,
        *,
        auth: Any = httpx.USE_CLIENT_DEFAULT,
        follow_redirects: Any = httpx.USE_CLIENT_DEFAULT,
        **kwargs: Any,
    ) -> httpx.Response:
        """Build and send a request, the same way ``httpx.AsyncClient.request`` does.

        ``kwargs`` are the ``build_request`` arguments (content, data, files,
        json, params, headers, cookies, timeout, extensions).
        """
        request = self._client.build_request(method, url, **kwargs)
        return await self.send(request, auth=auth, follow_redirects=follow_redirects)

    async def get(self, url: httpx.URL | str, **kwargs: Any) -> httpx.Response:
        return await self.request("GET", url, **kwargs)

    async def post(self, url: httpx.URL | str, **kwargs: Any) -> httpx.Response:
        return await self.request("POST", url, **kwargs)

    async def send(
        self,
        request: httpx.Request,
        *,
        stream: bool = False,
        **kwargs: Any,
    ) -> httpx.Response:
        """Send a request, inspecting the response when it targets the endpoint.

        Exceptions from the wrapped client (transport errors, timeouts,
        cancellation) propagate unchanged.
        """
        if not self.matches(request.url):
            return await self._client.send(request, stream=stream, **kwargs)

        logger.info(
            "chat_completion_intercepted", method=request.method, url=str(request.url)
        )

        response = await self._client.send(request, stream=stream, **kwargs)

        try:
            await self._emit(
                HookEvent.CHAT_COMPLETION_INTERCEPTED,
                {"method": request.method, "url": str(request.url), "stream": stream},
                request=request,
            )
            if stream:
                # Body not read yet; reading it here would consume the caller's stream
                logger.debug(
                    "chat_completion_stream_not_inspected",
                    status_code=response.status_code,
                )
            else:
                await self._inspect(request, response)
        except Exception as e:
            logger.error(
                "chat_completion_inspection_failed",
                error=str(e),
                error_type=type(e).__name__,
            )

        return response

    @contextlib.asynccontextmanager
    async def stream(
        self, method: str, url: httpx.URL | str, **kwargs: Any
    ) -> AsyncIterator[httpx.Response]:
        """Streaming request; the response is yielded unread and closed on exit."""
        auth = kwargs.pop("auth", httpx.USE_CLIENT_DEFAULT)
        follow_redirects = kwargs.pop("follow_redirects", httpx.USE_CLIENT_DEFAULT)
        request = self._client.build_request(method, url, **kwargs)
        response = await self.send(
            request, stream=True, auth=auth, follow_redirects=follow_redirects
        )
        try:
            yield response
        finally:
            await response.aclose()

    async def _inspect(self, request: httpx.Request, response: httpx.Response) -> None:
        clone = clone_response(response)

        try:
            payload = clone.json()
        except ValueError as e:
            logger.warning(
                "chat_completion_decode_failed",
                status_code=clone.status_code,
                error=str(e),
            )
            await self._emit(
                HookEvent.RESPONSE_DECODE_FAILED,
                {"status_code": clone.status_code, "error": str(e)},
                request=request,
                response=clone,
                error=e,
            )
            return

        content = extract_content(payload)
        source = envelope_source(parse_envelope(payload))

        if content:
            logger.info(
                "chat_completion_content_extracted",
                source=source,
                length=len(content),
                preview=content[: self.preview_chars],
            )
            await self._emit(
                HookEvent.CONTENT_EXTRACTED,
                {"source": source, "length": len(content), "status_code": clone.status_code},
                request=request,
                response=clone,
            )
        else:
            logger.warning(
                "chat_completion_content_not_extracted",
                source=source,
                status_code=clone.status_code,
            )
            await self._emit(
                HookEvent.CONTENT_EXTRACTION_FAILED,
                {"source": source, "status_code": clone.status_code},
                request=request,
                response=clone,
            )

    async def _emit(self, event: HookEvent, data: dict[str, Any], **kwargs: Any) -> None:
        if self.hook_manager is not None:
            await self.hook_manager.emit(event, data, **kwargs)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "ChatCompletionInterceptor":
        await self._client.__aenter__()
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self._client.__aexit__(exc_type, exc_value, traceback)
