"""HTTP layer: upstream client construction and the chat-completion interceptor."""

from .client import HTTPClientFactory
from .installation import (
    InterceptorState,
    get_interceptor,
    get_interceptor_state,
    install_interceptor,
)
from .interceptor import ChatCompletionInterceptor, clone_response


__all__ = [
    "ChatCompletionInterceptor",
    "HTTPClientFactory",
    "InterceptorState",
    "clone_response",
    "get_interceptor",
    "get_interceptor_state",
    "install_interceptor",
]
