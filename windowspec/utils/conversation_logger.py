"""Conversation turn logger.

Structured log helpers for conversation turns. User text is only ever
logged as a truncated preview.

The hosting process calls ``configure_logging()`` once at startup; the
services only emit events.
"""

import logging
from typing import Any, Dict, Optional

import structlog

from windowspec.config.errors import ErrorCode
from windowspec.config.settings import settings

logger = structlog.get_logger()

PREVIEW_LENGTH = 50


def message_preview(message: Optional[str], max_length: int = PREVIEW_LENGTH) -> str:
    """Truncate user text for logging."""
    if not message:
        return ""
    if len(message) <= max_length:
        return message
    return message[:max_length] + f"... [truncated {len(message) - max_length} chars]"


def summarize_spec(spec: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Describe a specification for logs without dumping its values."""
    if not isinstance(spec, dict):
        return {"field_count": 0, "fields": []}
    return {"field_count": len(spec), "fields": sorted(spec.keys())}


def log_turn_start(user_id: str, message: Optional[str], extracted_fields: Optional[Dict[str, Any]]) -> None:
    """Log the start of a conversational turn."""
    logger.info(
        "turn_started",
        user_id=user_id,
        message_preview=message_preview(message),
        extracted=summarize_spec(extracted_fields),
    )


def log_turn_outcome(user_id: str, outcome_type: str, requires_input: bool, **context: Any) -> None:
    """Log the terminal outcome of a conversational turn."""
    logger.info(
        "turn_completed",
        user_id=user_id,
        outcome=outcome_type,
        requires_input=requires_input,
        **context,
    )


def log_turn_error(user_id: str, operation: str, error: Exception, message: Optional[str] = None) -> None:
    """Log a failure converted to an ERROR outcome."""
    if hasattr(error, "to_dict"):
        details = error.to_dict()
    else:
        details = {"code": ErrorCode.FLOW_FAILED, "message": str(error)}
    logger.error(
        "turn_failed",
        user_id=user_id,
        operation=operation,
        error_type=type(error).__name__,
        error=details,
        message_preview=message_preview(message),
    )


def configure_logging(level: Optional[str] = None) -> None:
    """Configure structlog with ISO timestamps and a level filter.

    Args:
        level: Log level name; defaults to LOG_LEVEL.
    """
    level_name = (level or settings.log_level or "INFO").upper()
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(getattr(logging, level_name, logging.INFO)),
    )
