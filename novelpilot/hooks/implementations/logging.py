"""Hook that mirrors interceptor events into the structured log."""

from typing import Any

import structlog

from ..base import HookContext
from ..events import HookEvent


_WARNING_EVENTS = frozenset(
    {HookEvent.CONTENT_EXTRACTION_FAILED, HookEvent.RESPONSE_DECODE_FAILED}
)


def _flatten(context: HookContext) -> dict[str, Any]:
    fields: dict[str, Any] = {"hook_event": context.event.value, **context.data}
    if context.metadata:
        fields["metadata"] = context.metadata
    if context.request is not None:
        fields["method"] = context.request.method
        fields["url"] = str(context.request.url)
    if context.response is not None:
        fields["status_code"] = context.response.status_code
    if context.error is not None:
        fields["error"] = str(context.error)
        fields["error_type"] = type(context.error).__name__
    return fields


class LoggingHook:
    """Logs every hook event; unreadable completions are logged as warnings."""

    name = "logging_hook"
    events = list(HookEvent)

    def __init__(self, logger: structlog.stdlib.BoundLogger | None = None):
        self.logger = logger or structlog.get_logger(__name__)

    async def __call__(self, context: HookContext) -> None:
        fields = _flatten(context)
        if context.event in _WARNING_EVENTS:
            self.logger.warning("hook_event", **fields)
        else:
            self.logger.info("hook_event", **fields)
