"""Observability module: structured logging for inference passes."""

from .logging import bind_pass_context, clear_pass_context, get_current_pass_id, get_pass_logger, setup_structured_logging

__all__ = [
    "bind_pass_context",
    "clear_pass_context",
    "get_current_pass_id",
    "get_pass_logger",
    "setup_structured_logging",
]
