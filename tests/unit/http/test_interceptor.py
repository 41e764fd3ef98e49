"""Tests for the chat-completion interceptor."""

import asyncio
import gzip
import json
from collections.abc import Callable
from unittest.mock import patch

import httpx
import pytest
from structlog.testing import capture_logs

from novelpilot.hooks import HookContext, HookEvent, HookManager
from novelpilot.hooks.implementations import ExtractionStatsHook
from novelpilot.http import ChatCompletionInterceptor, clone_response
from tests.helpers.upstream import (
    ENDPOINT,
    OTHER_URL,
    RecordingHandler,
    completion_payload,
)


ClientFactory = Callable[..., httpx.AsyncClient]


def _events(logs: list[dict[str, object]]) -> list[object]:
    return [entry["event"] for entry in logs]


class FailingHook:
    """Hook that always raises."""

    name = "failing_hook"
    events = list(HookEvent)

    async def __call__(self, context: HookContext) -> None:
        raise RuntimeError("hook exploded")


class TestPassThrough:
    """Requests to other URLs are delegated untouched."""

    async def test_non_matching_url_matches_direct_call(
        self, make_client: ClientFactory
    ) -> None:
        handler = RecordingHandler({"data": [{"id": "model-a"}]}, headers={"x-upstream": "1"})
        direct = await make_client(handler).get(OTHER_URL)

        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)
        with capture_logs() as logs:
            wrapped = await interceptor.get(OTHER_URL)

        assert wrapped.status_code == direct.status_code
        assert wrapped.headers == direct.headers
        assert wrapped.content == direct.content
        assert "chat_completion_intercepted" not in _events(logs)

    async def test_request_arguments_are_forwarded(self, make_client: ClientFactory) -> None:
        handler = RecordingHandler({"ok": True})
        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)

        await interceptor.post(
            OTHER_URL,
            json={"prompt": "hi"},
            params={"page": "2"},
            headers={"X-Trace": "abc"},
        )

        sent = handler.requests[0]
        assert sent.method == "POST"
        assert sent.url.params["page"] == "2"
        assert sent.headers["x-trace"] == "abc"
        assert json.loads(sent.content) == {"prompt": "hi"}

    @pytest.mark.parametrize(
        "url",
        [
            ENDPOINT + "?stream=false",
            ENDPOINT + "/extra",
            "https://openrouter.ai/api/v1/chat",
            "http://openrouter.ai/api/v1/chat/completions",
        ],
    )
    async def test_only_exact_url_is_intercepted(
        self, make_client: ClientFactory, url: str
    ) -> None:
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler(completion_payload("x"))), ENDPOINT
        )
        with capture_logs() as logs:
            await interceptor.post(url, json={})
        assert "chat_completion_intercepted" not in _events(logs)

    async def test_disabled_interceptor_passes_everything_through(
        self, make_client: ClientFactory
    ) -> None:
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler(completion_payload("x"))),
            ENDPOINT,
            enabled=False,
        )
        with capture_logs() as logs:
            response = await interceptor.post(ENDPOINT, json={})
        assert response.json() == completion_payload("x")
        assert "chat_completion_intercepted" not in _events(logs)


class TestInterception:
    """Responses from the chat-completion endpoint are observed, never altered."""

    async def test_end_to_end_extraction_is_logged(self, make_client: ClientFactory) -> None:
        body = {"choices": [{"message": {"content": "Once upon a time"}}]}
        interceptor = ChatCompletionInterceptor(make_client(RecordingHandler(body)), ENDPOINT)

        with capture_logs() as logs:
            response = await interceptor.post(ENDPOINT, json={"model": "m"})

        assert isinstance(response, httpx.Response)
        assert response.json() == body
        extracted = [e for e in logs if e["event"] == "chat_completion_content_extracted"]
        assert len(extracted) == 1
        assert extracted[0]["preview"] == "Once upon a time"
        assert extracted[0]["source"] == "response.choices[0].message.content"
        assert extracted[0]["log_level"] == "info"

    async def test_caller_body_is_complete_and_unmodified(
        self, make_client: ClientFactory
    ) -> None:
        raw = json.dumps(completion_payload("The tower fell.", total_tokens=9)).encode()
        handler = RecordingHandler(
            content=raw, headers={"content-type": "application/json"}
        )
        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)

        response = await interceptor.post(ENDPOINT, json={})

        assert response.content == raw
        assert response.text == raw.decode()
        assert response.json()["choices"][0]["message"]["content"] == "The tower fell."

    async def test_original_response_object_is_returned(
        self, make_client: ClientFactory
    ) -> None:
        client = make_client(RecordingHandler(completion_payload("x")))
        interceptor = ChatCompletionInterceptor(client, ENDPOINT)
        sent: list[httpx.Response] = []

        original_send = client.send

        async def spy_send(request: httpx.Request, **kwargs: object) -> httpx.Response:
            response = await original_send(request, **kwargs)  # type: ignore[arg-type]
            sent.append(response)
            return response

        with patch.object(client, "send", spy_send):
            response = await interceptor.post(ENDPOINT, json={})

        assert response is sent[0]

    async def test_relative_url_resolved_against_base_url(
        self, make_client: ClientFactory
    ) -> None:
        client = make_client(
            RecordingHandler(completion_payload("relative")),
            base_url="https://openrouter.ai/api/v1",
        )
        interceptor = ChatCompletionInterceptor(client, ENDPOINT)
        with capture_logs() as logs:
            await interceptor.post("/chat/completions", json={})
        assert "chat_completion_content_extracted" in _events(logs)

    async def test_unrecognized_shape_logs_warning(self, make_client: ClientFactory) -> None:
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler({"result": {"nested": True}})), ENDPOINT
        )
        with capture_logs() as logs:
            response = await interceptor.post(ENDPOINT, json={})

        assert response.json() == {"result": {"nested": True}}
        warnings = [e for e in logs if e["event"] == "chat_completion_content_not_extracted"]
        assert len(warnings) == 1
        assert warnings[0]["log_level"] == "warning"

    async def test_decode_failure_does_not_reach_caller(
        self, make_client: ClientFactory
    ) -> None:
        handler = RecordingHandler(
            content=b"<html>Bad Gateway</html>",
            status_code=502,
            headers={"content-type": "text/html"},
        )
        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)

        with capture_logs() as logs:
            response = await interceptor.post(ENDPOINT, json={})

        assert response.status_code == 502
        assert response.text == "<html>Bad Gateway</html>"
        failures = [e for e in logs if e["event"] == "chat_completion_decode_failed"]
        assert len(failures) == 1
        assert failures[0]["log_level"] == "warning"

    async def test_gzip_encoded_response(self, make_client: ClientFactory) -> None:
        raw = json.dumps({"response": "compressed story"}).encode()
        handler = RecordingHandler(
            content=gzip.compress(raw),
            headers={"content-type": "application/json", "content-encoding": "gzip"},
        )
        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)

        with capture_logs() as logs:
            response = await interceptor.post(ENDPOINT, json={})

        assert response.json() == {"response": "compressed story"}
        assert response.headers["content-encoding"] == "gzip"
        assert "chat_completion_content_extracted" in _events(logs)

    async def test_inspection_error_is_contained(self, make_client: ClientFactory) -> None:
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler(completion_payload("safe"))), ENDPOINT
        )
        with (
            patch(
                "novelpilot.http.interceptor.extract_content",
                side_effect=RuntimeError("boom"),
            ),
            capture_logs() as logs,
        ):
            response = await interceptor.post(ENDPOINT, json={})

        assert response.json() == completion_payload("safe")
        assert "chat_completion_inspection_failed" in _events(logs)

    async def test_streaming_response_is_returned_unread(
        self, make_client: ClientFactory
    ) -> None:
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler(completion_payload("streamed"))), ENDPOINT
        )
        with capture_logs() as logs:
            async with interceptor.stream("POST", ENDPOINT, json={}) as response:
                body = await response.aread()

        assert json.loads(body) == completion_payload("streamed")
        events = _events(logs)
        assert "chat_completion_stream_not_inspected" in events
        assert "chat_completion_content_extracted" not in events


class TestFailurePropagation:
    """Transport failures reach the caller unchanged."""

    async def test_transport_error_propagates_same_object(
        self, make_client: ClientFactory
    ) -> None:
        error = httpx.ConnectError("network unreachable")

        def handler(request: httpx.Request) -> httpx.Response:
            raise error

        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)
        with pytest.raises(httpx.ConnectError) as exc_info:
            await interceptor.post(ENDPOINT, json={})
        assert exc_info.value is error

    async def test_timeout_propagates(self, make_client: ClientFactory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("timed out", request=request)

        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)
        with pytest.raises(httpx.ReadTimeout):
            await interceptor.post(ENDPOINT, json={})

    async def test_cancellation_propagates(self, make_client: ClientFactory) -> None:
        async def handler(request: httpx.Request) -> httpx.Response:
            raise asyncio.CancelledError()

        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)
        with pytest.raises(asyncio.CancelledError):
            await interceptor.post(ENDPOINT, json={})

    async def test_pass_through_errors_propagate(self, make_client: ClientFactory) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("dns failure", request=request)

        interceptor = ChatCompletionInterceptor(make_client(handler), ENDPOINT)
        with pytest.raises(httpx.ConnectError, match="dns failure"):
            await interceptor.get(OTHER_URL)


class TestHooks:
    """Diagnostic results are published to hooks."""

    async def test_hook_events_for_successful_extraction(
        self, make_client: ClientFactory
    ) -> None:
        stats = ExtractionStatsHook()
        hooks = HookManager()
        hooks.register(stats)
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler(completion_payload("four words right here"))),
            ENDPOINT,
            hook_manager=hooks,
        )

        await interceptor.post(ENDPOINT, json={})
        await interceptor.get(OTHER_URL)

        snapshot = stats.snapshot()
        assert snapshot["intercepted"] == 1
        assert snapshot["extracted"] == 1
        assert snapshot["extracted_chars"] == len("four words right here")
        assert snapshot["sources"] == {"response.choices[0].message.content": 1}

    async def test_hook_events_for_failures(self, make_client: ClientFactory) -> None:
        stats = ExtractionStatsHook()
        hooks = HookManager()
        hooks.register(stats)

        unknown = ChatCompletionInterceptor(
            make_client(RecordingHandler({"unknown": 1})), ENDPOINT, hook_manager=hooks
        )
        garbage = ChatCompletionInterceptor(
            make_client(RecordingHandler(content=b"not json")), ENDPOINT, hook_manager=hooks
        )

        await unknown.post(ENDPOINT, json={})
        await garbage.post(ENDPOINT, json={})

        assert stats.extraction_failed == 1
        assert stats.decode_failed == 1
        assert stats.success_rate == 0.0

    async def test_failing_hook_does_not_affect_response(
        self, make_client: ClientFactory
    ) -> None:
        hooks = HookManager()
        hooks.register(FailingHook())
        interceptor = ChatCompletionInterceptor(
            make_client(RecordingHandler(completion_payload("still here"))),
            ENDPOINT,
            hook_manager=hooks,
        )

        response = await interceptor.post(ENDPOINT, json={})

        assert response.json() == completion_payload("still here")


def test_clone_response_is_independent() -> None:
    request = httpx.Request("POST", ENDPOINT)
    original = httpx.Response(200, json={"response": "text"}, request=request)

    clone = clone_response(original)

    assert clone is not original
    assert clone.json() == original.json()
    assert clone.status_code == original.status_code
    assert clone.request is request
    assert original.json() == {"response": "text"}
