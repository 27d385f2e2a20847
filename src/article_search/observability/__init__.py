"""Observability module: trace-correlated structured logging."""

from article_search.observability.context import (
    bind_trace_context,
    get_trace_context,
    set_trace_context,
    trace_context,
)
from article_search.observability.logging import JsonFormatter, configure_logging


__all__ = [
    "JsonFormatter",
    "bind_trace_context",
    "configure_logging",
    "get_trace_context",
    "set_trace_context",
    "trace_context",
]
