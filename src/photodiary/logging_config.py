"""
Centralized logging configuration for photodiary.

This module provides structured logging setup using structlog with
consistent processors across the normalizer, the store and the diary facade.
"""

import logging
import os
import sys
from typing import Any

import structlog


def get_log_level() -> int:
    """
    Get log level from environment variable or default to INFO.

    Returns:
        int: Log level constant from logging module
    """
    level_name = os.getenv("LOG_LEVEL", "INFO").upper()

    level_mapping = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }

    return level_mapping.get(level_name, logging.INFO)


def is_development_environment() -> bool:
    """Check if running in development environment."""
    return os.getenv("ENVIRONMENT", "development").lower() in ["development", "dev", "local"]


def configure_structured_logging() -> None:
    """
    Configure structured logging for the whole package.

    Development gets the human-readable console renderer, everything else
    gets one JSON object per line on stderr.
    """
    log_level = get_log_level()
    is_dev = is_development_environment()

    logging.basicConfig(
        level=log_level,
        format="%(message)s",  # structlog does the formatting
        stream=sys.stderr,
    )

    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if is_dev:
        processors.append(structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty()))
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.getLogger().setLevel(log_level)

    logger = structlog.get_logger("photodiary.logging")
    logger.info(
        "logging_configured",
        log_level=logging.getLevelName(log_level),
        environment="development" if is_dev else "production",
    )


def get_logger(name: str | None = None) -> Any:
    """
    Get a structured logger instance.

    Args:
        name: Logger name, usually the calling module's ``__name__``

    Returns:
        structlog.BoundLogger: Configured logger instance
    """
    return structlog.get_logger(name or "photodiary")


def log_performance(operation: str, duration: float, **context: Any) -> None:
    """
    Log timing of a single operation.

    Args:
        operation: Name of the operation
        duration: Duration in seconds
        **context: Additional context information
    """
    logger = get_logger("photodiary.performance")
    logger.debug("performance_metric", operation=operation, duration_seconds=duration, **context)


def log_error(error: Exception, context: dict[str, Any] | None = None) -> None:
    """
    Log an error with structured context.

    Args:
        error: Exception that occurred
        context: Additional context information
    """
    logger = get_logger("photodiary.errors")

    error_context = {
        "error_type": type(error).__name__,
        "error_message": str(error),
    }

    if context:
        error_context.update(context)

    logger.error("error_occurred", **error_context)
