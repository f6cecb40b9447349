"""Core modules for otel-span."""

from .exceptions import (
    ConfigurationError,
    ErrorSeverity,
    OtelSpanError,
    TracingSetupError,
)

__all__ = [
    "OtelSpanError",
    "ConfigurationError",
    "TracingSetupError",
    "ErrorSeverity",
]
