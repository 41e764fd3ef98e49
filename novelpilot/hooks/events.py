"""Event definitions for the hook system."""

from enum import Enum


class HookEvent(str, Enum):
    """Event types that can trigger hooks"""

    # Interceptor Lifecycle
    INTERCEPTOR_INSTALLED = "interceptor.installed"

    # Chat-completion Diagnostics
    CHAT_COMPLETION_INTERCEPTED = "chat_completion.intercepted"
    CONTENT_EXTRACTED = "chat_completion.content_extracted"
    CONTENT_EXTRACTION_FAILED = "chat_completion.extraction_failed"
    RESPONSE_DECODE_FAILED = "chat_completion.decode_failed"
