"""
Structured logging configuration using structlog.
No print statements; every event is a snake_case name with keyword context.
"""

import logging
import sys
from typing import Any

import structlog

from app.config import settings

# Event keys that may carry a WhatsApp id or phone number
PHONE_KEYS = ("wa_id", "to", "subscriber_id")


def mask_id(wa_id: str | None) -> str | None:
    """Last 4 digits of a WhatsApp id, for privacy-preserving logs."""
    if not wa_id:
        return None
    return str(wa_id)[-4:]


def mask_phone_numbers(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """
    structlog processor that masks phone-number keys a caller forgot to mask.

    Example:
        >>> mask_phone_numbers(None, "info", {"event": "x", "wa_id": "27721234567"})
        {'event': 'x', 'wa_id': '4567'}
    """
    for key in PHONE_KEYS:
        value = event_dict.get(key)
        if isinstance(value, str) and len(value) > 4:
            event_dict[key] = mask_id(value)
    return event_dict


def configure_logging() -> None:
    """
    Configure structured logging for the application.

    JSON output in deployments, coloured console output locally. Context
    bound with bind_request_context() is merged into every event of the
    request.
    """
    if settings.log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            mask_phone_numbers,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, settings.log_level.upper()),
    )


def bind_request_context(**context: Any) -> None:
    """Replace the per-request log context (wa_id, channel, ...)."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(**context)


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a logger for a module.

    Example:
        logger = get_logger(__name__)
        logger.info("session_created", wa_id=mask_id(wa_id))
    """
    return structlog.get_logger(name)
