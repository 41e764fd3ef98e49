"""CLI helper utilities for novelpilot."""

from rich.console import Console
from rich.theme import Theme


CLI_THEME = Theme(
    {
        "info": "cyan",
        "success": "bold green",
        "warning": "yellow",
        "error": "bold red",
        "progress": "dim cyan",
        "version": "cyan",
    }
)


def get_console(stderr: bool = False) -> Console:
    """Console bound to the current stdout/stderr."""
    return Console(theme=CLI_THEME, stderr=stderr)


def bold(text: str) -> str:
    return f"[bold]{text}[/bold]"


def warning(text: str) -> str:
    return f"[warning]{text}[/warning]"


def error(text: str) -> str:
    return f"[error]{text}[/error]"
