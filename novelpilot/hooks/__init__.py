"""Hook system for novelpilot.

Hooks receive the interceptor's diagnostic events (content extracted,
extraction failed, decode failed) without touching the response delivered
to the caller.

Key components:
- HookEvent: Enumeration of all supported events
- HookContext: Context data passed to hooks
- Hook: Protocol for hook implementations
- HookRegistry: Registry for managing hooks
- HookManager: Manager for executing hooks
"""

from .base import Hook, HookContext
from .events import HookEvent
from .manager import HookManager
from .registry import HookRegistry


__all__ = ["Hook", "HookContext", "HookEvent", "HookManager", "HookRegistry"]
