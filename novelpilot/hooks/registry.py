"""Hook registry keyed by interceptor event."""

from collections import defaultdict

import structlog

from .base import Hook
from .events import HookEvent


logger = structlog.get_logger(__name__)


class HookRegistry:
    """Keeps the hooks subscribed to each event, in registration order.

    Registering the same hook twice is a no-op, so installing the interceptor
    repeatedly never double-counts.
    """

    def __init__(self) -> None:
        self._hooks: defaultdict[HookEvent, list[Hook]] = defaultdict(list)

    def register(self, hook: Hook) -> None:
        for event in hook.events:
            subscribers = self._hooks[event]
            if hook in subscribers:
                continue
            subscribers.append(hook)
            logger.debug("hook_registered", hook=hook.name, hook_event=event.value)

    def unregister(self, hook: Hook) -> None:
        """Remove a hook from every event; unknown hooks are ignored."""
        for event, subscribers in self._hooks.items():
            if hook in subscribers:
                subscribers.remove(hook)
                logger.debug(
                    "hook_unregistered", hook=hook.name, hook_event=event.value
                )

    def get_hooks(self, event: HookEvent) -> list[Hook]:
        """Snapshot of the hooks for ``event``, safe to iterate while emitting."""
        return list(self._hooks.get(event, ()))
