"""Auto-pilot writing back-end: chat-completion interception and content extraction."""

from .extraction import extract_content


__version__ = "0.1.0"

__all__ = ["__version__", "extract_content"]
