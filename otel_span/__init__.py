"""Declarative OpenTelemetry spans for functions and methods."""

from .config import Config
from .core.exceptions import ConfigurationError, OtelSpanError, TracingSetupError
from .tracing import (
    SpanOptions,
    TracingManager,
    get_tracing_manager,
    initialize_tracing,
    shutdown_tracing,
    span,
)

__version__ = "1.0.0"

__all__ = [
    "span",
    "SpanOptions",
    "TracingManager",
    "initialize_tracing",
    "get_tracing_manager",
    "shutdown_tracing",
    "Config",
    "OtelSpanError",
    "ConfigurationError",
    "TracingSetupError",
]
