"""Services built on the intercepted HTTP client."""

from .autopilot import AutopilotWriter
from .models import (
    AutopilotProgress,
    AutopilotResult,
    GenerationResult,
    IterationResult,
    TokenUsage,
)
from .openrouter import OpenRouterClient


__all__ = [
    "AutopilotProgress",
    "AutopilotResult",
    "AutopilotWriter",
    "GenerationResult",
    "IterationResult",
    "OpenRouterClient",
    "TokenUsage",
]
