"""Hook protocol and the context passed to hooks."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol, runtime_checkable

import httpx

from .events import HookEvent


@dataclass
class HookContext:
    """Context data passed to every hook invocation."""

    event: HookEvent
    timestamp: datetime
    data: dict[str, Any] = field(default_factory=dict)
    metadata: dict[str, Any] = field(default_factory=dict)

    request: httpx.Request | None = None
    response: httpx.Response | None = None
    error: BaseException | None = None


@runtime_checkable
class Hook(Protocol):
    """Protocol for hook implementations.

    Hooks may be sync or async callables; the manager awaits coroutines.
    """

    @property
    def name(self) -> str:
        """Hook name for debugging"""
        ...

    @property
    def events(self) -> list[HookEvent]:
        """Events this hook listens to"""
        ...

    def __call__(self, context: HookContext) -> Any: ...
