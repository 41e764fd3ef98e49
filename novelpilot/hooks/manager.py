"""Hook execution manager for novelpilot.

This module provides the HookManager class which handles the execution of hooks
for interceptor events. It ensures proper error isolation and supports
both async and sync hooks.
"""

import asyncio
from datetime import UTC, datetime
from typing import Any

import structlog

from .base import Hook, HookContext
from .events import HookEvent
from .registry import HookRegistry


class HookManager:
    """Manages hook execution with error isolation and async/sync support.

    The HookManager is responsible for emitting events to registered hooks
    and ensuring that hook failures don't reach the caller.
    """

    def __init__(self, registry: HookRegistry | None = None):
        """Initialize the hook manager.

        Args:
            registry: The hook registry to get hooks from
        """
        self._registry = registry if registry is not None else HookRegistry()
        self._logger = structlog.get_logger(__name__)

    @property
    def registry(self) -> HookRegistry:
        return self._registry

    def register(self, hook: Hook) -> None:
        """Shortcut for ``registry.register``."""
        self._registry.register(hook)

    async def emit(
        self, event: HookEvent, data: dict[str, Any] | None = None, **kwargs: Any
    ) -> None:
        """Emit an event to all registered hooks.

        Creates a HookContext with the provided data and emits it to all
        hooks registered for the given event. Handles errors gracefully
        to ensure one failing hook doesn't affect others.

        Args:
            event: The event to emit
            data: Optional data dictionary to include in context
            **kwargs: Additional context fields (request, response, error)
        """
        hooks = self._registry.get_hooks(event)
        if not hooks:
            return

        context = HookContext(
            event=event,
            timestamp=datetime.now(UTC),
            data=data or {},
            metadata={},
            **kwargs,
        )

        for hook in hooks:
            try:
                await self._execute_hook(hook, context)
            except Exception as e:
                self._logger.error(
                    "hook_failed",
                    hook=hook.name,
                    hook_event=event.value,
                    error=str(e),
                )

    async def _execute_hook(self, hook: Hook, context: HookContext) -> None:
        """Execute a single hook, awaiting it when it returns a coroutine."""
        result = hook(context)
        if asyncio.iscoroutine(result):
            await result
