"""Exception hierarchy for the otel-span package."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


@dataclass
class OtelSpanError(Exception):
    """Base exception for otel-span."""

    message: str
    severity: ErrorSeverity
    context: dict[str, Any] | None = None
    recoverable: bool = True

    def __str__(self) -> str:
        return f"[{self.severity.value.upper()}] {self.message}"


class ConfigurationError(OtelSpanError):
    """Configuration file is missing, unreadable or invalid."""

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        **kwargs: Any,
    ):
        context = kwargs.pop("context", None) or {}
        if config_key:
            context["config_key"] = config_key
        super().__init__(message, severity, context, **kwargs)


class TracingSetupError(OtelSpanError):
    """The tracing SDK could not be bootstrapped."""

    def __init__(
        self,
        message: str,
        exporter: str | None = None,
        severity: ErrorSeverity = ErrorSeverity.HIGH,
        **kwargs: Any,
    ):
        context = kwargs.pop("context", None) or {}
        if exporter:
            context["exporter"] = exporter
        super().__init__(message, severity, context, **kwargs)
