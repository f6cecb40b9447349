"""Span decorator and tracing bootstrap."""

from .decorators import SpanOptions, span, tracer_scope_name
from .tracer import (
    TracingManager,
    get_tracing_manager,
    initialize_tracing,
    shutdown_tracing,
)

__all__ = [
    "span",
    "SpanOptions",
    "tracer_scope_name",
    "TracingManager",
    "initialize_tracing",
    "get_tracing_manager",
    "shutdown_tracing",
]
