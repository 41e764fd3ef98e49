"""Command-line interface for novelpilot."""

from .main import app, main


__all__ = ["app", "main"]
