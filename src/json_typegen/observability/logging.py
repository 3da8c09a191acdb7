"""Structured logging with per-pass context using structlog and contextvars."""

import logging
import sys
from contextvars import ContextVar

import structlog

# Context variables for the current inference pass
current_pass_id: ContextVar[str | None] = ContextVar("current_pass_id", default=None)
current_document_id: ContextVar[str | None] = ContextVar("current_document_id", default=None)

_configured = False


def setup_structured_logging(level: str = "INFO", json_output: bool = True) -> None:
    """Configure structlog with per-pass context.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        json_output: Render JSON lines; otherwise use the console renderer
    """
    global _configured
    if _configured:
        return

    renderer = structlog.processors.JSONRenderer() if json_output else structlog.dev.ConsoleRenderer(colors=False)
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,  # Inject pass context
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
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

    # stdout may carry generated code or MCP stdio traffic, so logs go to stderr
    logging.basicConfig(
        format="%(message)s",
        level=getattr(logging, level.upper()),
        stream=sys.stderr,
    )

    _configured = True


def bind_pass_context(pass_id: str, document_id: str) -> None:
    """Bind pass context for all subsequent logs in this context.

    Args:
        pass_id: Unique inference pass identifier
        document_id: Document the pass was started for
    """
    current_pass_id.set(pass_id)
    current_document_id.set(document_id)
    structlog.contextvars.bind_contextvars(pass_id=pass_id, document_id=document_id)


def clear_pass_context() -> None:
    """Clear pass context after the pass completes."""
    current_pass_id.set(None)
    current_document_id.set(None)
    structlog.contextvars.clear_contextvars()


def get_pass_logger(name: str = "json_typegen") -> structlog.stdlib.BoundLogger:
    """Get a structlog logger that carries the pass context.

    Args:
        name: Logger name

    Returns:
        Bound logger with pass context
    """
    return structlog.get_logger(name)


def get_current_pass_id() -> str | None:
    """Get the current pass ID from context."""
    return current_pass_id.get()
