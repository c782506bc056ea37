"""Trace ID logging context for following one inbound message end to end.

Provides a trace_id-aware logger that attaches the inbound message ID to
every log message, so the router decision, each persona's reply turn and
every delivered chunk can be correlated in the logs.

Usage:
    from convo_engine.logging_context import get_trace_logger, set_trace_id

    set_trace_id("msg-abc123")
    logger = get_trace_logger(__name__)
    logger.info("Routing event")  # record.trace_id == "msg-abc123"
"""

import logging
from contextvars import ContextVar

LOG_FORMAT = "%(asctime)s [%(name)s] [%(trace_id)s] %(levelname)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

_trace_id: ContextVar[str] = ContextVar("trace_id", default="NO_TRACE_ID")


def set_trace_id(trace_id: str) -> None:
    """Set the trace ID for the current async context."""
    _trace_id.set(trace_id)


def get_trace_id() -> str:
    """Retrieve the current trace ID."""
    return _trace_id.get()


class TraceIdFilter(logging.Filter):
    """Injects trace_id into every log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.trace_id = _trace_id.get()  # type: ignore[attr-defined]
        return True


def get_trace_logger(name: str) -> logging.Logger:
    """Return a logger with the TraceIdFilter attached.

    The filter adds ``trace_id`` to each record so formatters can
    include ``%(trace_id)s`` in their format string.
    """
    logger = logging.getLogger(name)
    if not any(isinstance(f, TraceIdFilter) for f in logger.filters):
        logger.addFilter(TraceIdFilter())
    return logger


def build_trace_handler(stream=None) -> logging.Handler:
    """Stream handler whose records always carry ``trace_id``.

    The filter sits on the handler, so records from any logger that
    propagates to it get the current trace ID, not only trace loggers.
    """
    handler = logging.StreamHandler(stream)
    handler.addFilter(TraceIdFilter())
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=LOG_DATEFMT))
    return handler
