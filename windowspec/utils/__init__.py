"""Utility modules for the window spec engine."""

from windowspec.utils.conversation_logger import (
    message_preview,
    summarize_spec,
    log_turn_start,
    log_turn_outcome,
    log_turn_error,
    configure_logging,
)

__all__ = [
    "message_preview",
    "summarize_spec",
    "log_turn_start",
    "log_turn_outcome",
    "log_turn_error",
    "configure_logging",
]
