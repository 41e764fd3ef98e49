"""Exception hierarchy for novelpilot."""

from typing import Any


class NovelPilotError(Exception):
    """Base exception for all novelpilot errors."""

    pass


class InterceptorNotInstalledError(NovelPilotError):
    """Raised when the process-wide interceptor is requested before installation."""

    pass


class UpstreamAPIError(NovelPilotError):
    """Raised when the chat-completion API answers with a non-2xx status."""

    def __init__(self, status_code: int, body: Any = None, message: str | None = None):
        self.status_code = status_code
        self.body = body
        super().__init__(
            message or f"Upstream API returned HTTP {status_code}",
        )


class EmptyCompletionError(NovelPilotError):
    """Raised in strict mode when no text could be extracted from a completion."""

    def __init__(self, model: str):
        self.model = model
        super().__init__(f"No content could be extracted from {model} response")
