"""Process-wide installation of the chat-completion interceptor.

The interceptor is installed once per process. Later calls to
``install_interceptor`` return the installed instance instead of wrapping the
client a second time, unless the installed client has been closed, in which
case the new client replaces it. There is no teardown.
"""

from dataclasses import dataclass

import httpx

from novelpilot.config.settings import Settings, get_settings
from novelpilot.core.errors import InterceptorNotInstalledError
from novelpilot.core.logging import get_logger
from novelpilot.hooks import HookEvent, HookManager

from .client import HTTPClientFactory
from .interceptor import ChatCompletionInterceptor


logger = get_logger(__name__)


@dataclass(frozen=True)
class InterceptorState:
    """What was installed: the original client and its wrapper."""

    original: httpx.AsyncClient
    interceptor: ChatCompletionInterceptor
    endpoint: str


_state: InterceptorState | None = None


async def install_interceptor(
    client: httpx.AsyncClient | ChatCompletionInterceptor | None = None,
    *,
    settings: Settings | None = None,
    hook_manager: HookManager | None = None,
) -> ChatCompletionInterceptor:
    """Install the process-wide interceptor and return it.

    Args:
        client: Client to wrap. A new one is built from settings when omitted;
            an interceptor passed here is adopted without wrapping it again.
        settings: Settings to read the endpoint and HTTP options from
        hook_manager: Optional HookManager receiving diagnostic events

    Returns:
        The installed interceptor, the existing one on repeated calls
    """
    global _state

    if _state is not None:
        if not _state.original.is_closed:
            logger.warning("interceptor_already_installed", endpoint=_state.endpoint)
            return _state.interceptor
        # A closed client can no longer carry requests; install over it
        logger.warning("interceptor_client_closed", endpoint=_state.endpoint)

    settings = settings or get_settings()

    if isinstance(client, ChatCompletionInterceptor):
        interceptor = client
    else:
        original = client or HTTPClientFactory.create_client(settings=settings)
        interceptor = ChatCompletionInterceptor(
            original,
            settings.interceptor.endpoint,
            hook_manager=hook_manager,
            preview_chars=settings.interceptor.preview_chars,
            enabled=settings.interceptor.enabled,
        )

    _state = InterceptorState(
        original=interceptor.client,
        interceptor=interceptor,
        endpoint=interceptor.endpoint,
    )

    logger.info(
        "interceptor_installed",
        endpoint=interceptor.endpoint,
        enabled=interceptor.enabled,
    )
    if interceptor.hook_manager is not None:
        await interceptor.hook_manager.emit(
            HookEvent.INTERCEPTOR_INSTALLED, {"endpoint": interceptor.endpoint}
        )
    return interceptor


def get_interceptor() -> ChatCompletionInterceptor:
    """Return the installed interceptor.

    Raises:
        InterceptorNotInstalledError: If ``install_interceptor`` has not run yet
    """
    if _state is None:
        raise InterceptorNotInstalledError(
            "Chat-completion interceptor is not installed; call install_interceptor() first"
        )
    return _state.interceptor


def get_interceptor_state() -> InterceptorState | None:
    """Return the installation state, or None before installation."""
    return _state
