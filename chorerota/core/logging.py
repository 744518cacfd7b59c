"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__)),
and Logfire captures and enriches these logs once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("Message", extra={"key": "value"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", household_id="1", task_id="42")
"""

import logging

import logfire

from chorerota.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment.

    Nothing is sent unless LOGFIRE_TOKEN is set.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name="chorerota",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("assignment_service.commit_auto_assign"):
            ...
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (household_id, task_id, member_id, ...)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_household_context(
    logger: logging.Logger,
    level: str,
    message: str,
    household_id: str | None = None,
    **extra: object,
) -> None:
    """Log a message with household context.

    Usage:
        log_with_household_context(logger, "info", "Plan committed", household_id="1", assigned=3)
    """
    context = {"household_id": household_id, **extra} if household_id else extra
    log_with_context(logger, level, message, **context)
