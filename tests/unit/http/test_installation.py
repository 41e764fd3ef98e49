"""Tests for process-wide interceptor installation."""

from collections.abc import Callable

import httpx
import pytest
from structlog.testing import capture_logs

from novelpilot.config.core import InterceptorSettings
from novelpilot.config.settings import Settings
from novelpilot.core.errors import InterceptorNotInstalledError
from novelpilot.hooks import HookContext, HookEvent, HookManager
from novelpilot.http import (
    ChatCompletionInterceptor,
    get_interceptor,
    get_interceptor_state,
    install_interceptor,
)
from tests.helpers.upstream import ENDPOINT, RecordingHandler, completion_payload


ClientFactory = Callable[..., httpx.AsyncClient]


class RecordingHook:
    name = "recording_hook"
    events = [HookEvent.INTERCEPTOR_INSTALLED]

    def __init__(self) -> None:
        self.contexts: list[HookContext] = []

    def __call__(self, context: HookContext) -> None:
        self.contexts.append(context)


def test_get_interceptor_before_installation_raises() -> None:
    assert get_interceptor_state() is None
    with pytest.raises(InterceptorNotInstalledError):
        get_interceptor()


async def test_install_wraps_given_client(
    settings: Settings, make_client: ClientFactory
) -> None:
    client = make_client(RecordingHandler(completion_payload("x")))

    interceptor = await install_interceptor(client, settings=settings)

    assert isinstance(interceptor, ChatCompletionInterceptor)
    assert interceptor.client is client
    assert interceptor.endpoint == ENDPOINT
    assert get_interceptor() is interceptor

    state = get_interceptor_state()
    assert state is not None
    assert state.original is client
    assert state.interceptor is interceptor
    assert state.endpoint == ENDPOINT


async def test_second_installation_returns_existing_interceptor(
    settings: Settings, make_client: ClientFactory
) -> None:
    first = await install_interceptor(make_client(RecordingHandler({})), settings=settings)

    with capture_logs() as logs:
        second = await install_interceptor(
            make_client(RecordingHandler({})), settings=settings
        )

    assert second is first
    assert second.client is first.client
    assert [e["event"] for e in logs] == ["interceptor_already_installed"]


async def test_closed_client_is_replaced_on_next_install(
    settings: Settings, make_client: ClientFactory
) -> None:
    first = await install_interceptor(make_client(RecordingHandler({})), settings=settings)
    await first.aclose()
    hooks = HookManager()
    replacement = make_client(RecordingHandler(completion_payload("again")))

    with capture_logs() as logs:
        second = await install_interceptor(
            replacement, settings=settings, hook_manager=hooks
        )

    assert second is not first
    assert second.client is replacement
    assert second.hook_manager is hooks
    assert get_interceptor() is second
    assert [e["event"] for e in logs][:2] == [
        "interceptor_client_closed",
        "interceptor_installed",
    ]

    response = await second.post(ENDPOINT, json={})
    assert response.json() == completion_payload("again")


async def test_installing_an_interceptor_does_not_double_wrap(
    settings: Settings, make_client: ClientFactory
) -> None:
    client = make_client(RecordingHandler({}))
    existing = ChatCompletionInterceptor(client, ENDPOINT)

    installed = await install_interceptor(existing, settings=settings)

    assert installed is existing
    assert installed.client is client
    state = get_interceptor_state()
    assert state is not None
    assert state.original is client


async def test_install_uses_interceptor_settings(
    isolated_env: object, make_client: ClientFactory
) -> None:
    custom = Settings(
        interceptor=InterceptorSettings(
            endpoint="https://llm.internal/v1/chat/completions",
            preview_chars=5,
            enabled=False,
        )
    )

    interceptor = await install_interceptor(
        make_client(RecordingHandler({})), settings=custom
    )

    assert interceptor.endpoint == "https://llm.internal/v1/chat/completions"
    assert interceptor.preview_chars == 5
    assert interceptor.enabled is False


async def test_install_builds_client_when_none_given(settings: Settings) -> None:
    interceptor = await install_interceptor(settings=settings)
    try:
        assert isinstance(interceptor.client, httpx.AsyncClient)
        assert interceptor.client.timeout.read == settings.http.timeout_read
    finally:
        await interceptor.aclose()


async def test_install_emits_hook_event(
    settings: Settings, make_client: ClientFactory
) -> None:
    hook = RecordingHook()
    hooks = HookManager()
    hooks.register(hook)

    await install_interceptor(
        make_client(RecordingHandler({})), settings=settings, hook_manager=hooks
    )

    assert len(hook.contexts) == 1
    assert hook.contexts[0].data == {"endpoint": ENDPOINT}
