"""
Shared logging configuration for the state permission layer.
"""

import sys
import structlog
import logging
import uuid
import time
from typing import Any, Dict, Iterator, Optional
from contextlib import contextmanager
from contextvars import ContextVar

from opentelemetry import trace

# Correlation context for log events only; authorization never reads these.
transition_id_var: ContextVar[Optional[str]] = ContextVar('transition_id', default=None)
to_state_var: ContextVar[Optional[str]] = ContextVar('to_state', default=None)
from_state_var: ContextVar[Optional[str]] = ContextVar('from_state', default=None)


def configure_logging(service_name: str, log_level: str = "info") -> None:
    """Configure structured logging for a service."""

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            add_service_context,
            add_trace_context,
            add_correlation_context,
            add_timestamp,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, log_level.upper()),
    )
    logging.getLogger(service_name).setLevel(getattr(logging, log_level.upper()))


def add_service_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add service context to log events."""
    logger_name = event_dict.get("logger", "")
    if "." in logger_name:
        event_dict["service"] = logger_name.split(".")[0]

    return event_dict


def add_trace_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add trace context to log events."""
    current_span = trace.get_current_span()
    if current_span and current_span.is_recording():
        span_context = current_span.get_span_context()
        if span_context.trace_id != 0:
            event_dict["trace_id"] = f"{span_context.trace_id:032x}"
        if span_context.span_id != 0:
            event_dict["span_id"] = f"{span_context.span_id:016x}"

    return event_dict


def add_correlation_context(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add transition correlation context to log events."""
    transition_id = transition_id_var.get()
    if transition_id:
        event_dict["transition_id"] = transition_id

    to_state = to_state_var.get()
    if to_state:
        event_dict["to_state"] = to_state

    from_state = from_state_var.get()
    if from_state:
        event_dict["from_state"] = from_state

    return event_dict


def add_timestamp(logger: Any, method_name: str, event_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Add high-precision timestamp to log events."""
    event_dict["timestamp"] = time.time()
    return event_dict


@contextmanager
def transition_logging_context(to_state: Optional[str] = None, from_state: Optional[str] = None,
                               transition_id: Optional[str] = None) -> Iterator[str]:
    """Bind a transition ID and source/target states to log events.

    The previous values are restored on exit, so nothing leaks into the next
    transition handled by the same task.
    """
    if transition_id is None:
        transition_id = str(uuid.uuid4())

    tokens = [
        (transition_id_var, transition_id_var.set(transition_id)),
        (to_state_var, to_state_var.set(to_state)),
        (from_state_var, from_state_var.set(from_state)),
    ]
    try:
        yield transition_id
    finally:
        for var, token in reversed(tokens):
            var.reset(token)


def get_logger(name: str) -> structlog.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)
