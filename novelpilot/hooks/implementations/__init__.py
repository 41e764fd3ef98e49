"""Built-in hook implementations."""

from .extraction_stats import ExtractionStatsHook
from .logging import LoggingHook


__all__ = ["ExtractionStatsHook", "LoggingHook"]
