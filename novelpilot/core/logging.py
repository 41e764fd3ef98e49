"""Structured logging setup for novelpilot.

All modules log through structlog. ``setup_logging`` routes structlog events
through the standard library so that third-party loggers (httpx, httpcore)
share the same handlers and formatting.
"""

import logging
import sys
from pathlib import Path
from typing import Any

import structlog


# Libraries that are too chatty at INFO level
NOISY_LOGGERS = ("httpx", "httpcore", "hpack")


def _shared_processors() -> list[Any]:
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]


def resolve_json_logs(log_format: str) -> bool:
    """Decide between JSON and console output for a configured format.

    ``auto`` renders JSON when stderr is not a terminal.
    """
    if log_format == "json":
        return True
    if log_format in ("rich", "plain"):
        return False
    return not sys.stderr.isatty()


def setup_logging(
    json_logs: bool = False,
    log_level_name: str = "INFO",
    log_file: str | Path | None = None,
    colors: bool = True,
) -> structlog.stdlib.BoundLogger:
    """Configure structlog and the standard library root logger.

    Args:
        json_logs: Render JSON lines instead of the human readable console format
        log_level_name: Minimum level name (DEBUG, INFO, WARNING, ...)
        log_file: Optional path that additionally receives JSON log lines
        colors: Colorize console output

    Returns:
        A logger bound to this module
    """
    level = getattr(logging, log_level_name.upper(), logging.INFO)
    shared = _shared_processors()

    processors = list(shared)
    if json_logs:
        processors.append(structlog.processors.format_exc_info)
    processors.append(structlog.stdlib.ProcessorFormatter.wrap_for_formatter)

    structlog.configure(
        processors=processors,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        # Keep loggers re-resolvable so tests can capture events
        cache_logger_on_first_use=False,
    )

    renderer: Any
    if json_logs:
        renderer = structlog.processors.JSONRenderer()
    else:
        # ConsoleRenderer picks up rich for exception rendering when installed
        renderer = structlog.dev.ConsoleRenderer(colors=colors)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[
                structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                renderer,
            ],
        )
    )
    handlers: list[logging.Handler] = [handler]

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(path, encoding="utf-8")
        file_handler.setFormatter(
            structlog.stdlib.ProcessorFormatter(
                foreign_pre_chain=shared,
                processors=[
                    structlog.stdlib.ProcessorFormatter.remove_processors_meta,
                    structlog.processors.dict_tracebacks,
                    structlog.processors.JSONRenderer(),
                ],
            )
        )
        handlers.append(file_handler)

    root = logging.getLogger()
    root.handlers = handlers
    root.setLevel(level)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)
    logger.debug(
        "logging_configured",
        level=logging.getLevelName(level),
        json_logs=json_logs,
        log_file=str(log_file) if log_file else None,
    )
    return logger


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger for the given module name."""
    return structlog.get_logger(name)  # type: ignore[no-any-return]
