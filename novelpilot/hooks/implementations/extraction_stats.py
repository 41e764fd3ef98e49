"""In-memory counters for chat-completion extraction outcomes."""

from collections import Counter
from typing import Any

from ..base import HookContext
from ..events import HookEvent


class ExtractionStatsHook:
    """
    Counts interceptor outcomes so callers can tell how often upstream
    payloads were understood.

    Tracks:
    - Intercepted responses
    - Successful extractions, by envelope source
    - Unrecognized shapes and decode failures
    """

    def __init__(self) -> None:
        self.intercepted = 0
        self.extracted = 0
        self.extraction_failed = 0
        self.decode_failed = 0
        self.sources: Counter[str] = Counter()
        self.extracted_chars = 0

    @property
    def name(self) -> str:
        """Hook name for debugging."""
        return "extraction_stats_hook"

    @property
    def events(self) -> list[HookEvent]:
        """Events this hook listens to."""
        return [
            HookEvent.CHAT_COMPLETION_INTERCEPTED,
            HookEvent.CONTENT_EXTRACTED,
            HookEvent.CONTENT_EXTRACTION_FAILED,
            HookEvent.RESPONSE_DECODE_FAILED,
        ]

    def __call__(self, context: HookContext) -> None:
        if context.event == HookEvent.CHAT_COMPLETION_INTERCEPTED:
            self.intercepted += 1
        elif context.event == HookEvent.CONTENT_EXTRACTED:
            self.extracted += 1
            self.sources[context.data.get("source", "unknown")] += 1
            self.extracted_chars += int(context.data.get("length", 0))
        elif context.event == HookEvent.CONTENT_EXTRACTION_FAILED:
            self.extraction_failed += 1
        elif context.event == HookEvent.RESPONSE_DECODE_FAILED:
            self.decode_failed += 1

    @property
    def success_rate(self) -> float:
        """Share of inspected responses whose content was extracted."""
        inspected = self.extracted + self.extraction_failed + self.decode_failed
        if not inspected:
            return 0.0
        return self.extracted / inspected

    def snapshot(self) -> dict[str, Any]:
        """Return the current counters as a plain dict."""
        return {
            "intercepted": self.intercepted,
            "extracted": self.extracted,
            "extraction_failed": self.extraction_failed,
            "decode_failed": self.decode_failed,
            "extracted_chars": self.extracted_chars,
            "sources": dict(self.sources),
            "success_rate": round(self.success_rate, 4),
        }
