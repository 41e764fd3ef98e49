"""Core infrastructure: logging setup and the exception hierarchy."""
