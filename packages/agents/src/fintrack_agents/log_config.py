"""structlog setup for applications embedding the engine."""

import logging
import sys

import structlog

from .config import FintrackConfig


def configure_logging(level: str = "INFO", json_output: bool = False) -> None:
    """Configure structlog rendering and level filtering.

    Args:
        level: Logging level name; events below it are dropped.
        json_output: Render events as JSON lines instead of the console format.
    """
    log_level = getattr(logging, level.upper(), logging.INFO)

    renderer = (
        structlog.processors.JSONRenderer()
        if json_output
        else structlog.dev.ConsoleRenderer(colors=False)
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(log_level),
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=False,
    )


def configure_logging_from(config: FintrackConfig) -> None:
    """Configure structlog from ``FINTRACK_LOG_LEVEL`` and ``FINTRACK_JSON_LOGS``.

    Production always renders JSON lines.
    """
    configure_logging(
        level=config.log_level,
        json_output=config.json_logs or config.is_production,
    )
