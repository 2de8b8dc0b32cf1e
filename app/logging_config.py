"""
Structured Logging Setup
app/logging_config.py

Configures structlog once at application start. Engine modules obtain
loggers with structlog.get_logger(__name__) and emit event-style names
with key/value context.
"""

import logging

import structlog

from app.config import Settings

_LOG_NAME_TO_LEVEL = {
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
}


def configure_logging(settings: Settings) -> None:
    """Configure structlog processors and level from settings."""
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(
            _LOG_NAME_TO_LEVEL[settings.LOG_LEVEL],
        ),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )
