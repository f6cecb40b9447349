"""
Tracing bootstrap using the OpenTelemetry SDK.

Installs a tracer provider with service resource attributes and the span
exporters named in configuration. Spans produced by ``@span`` flow through
whichever provider is installed here.
"""

from typing import Any, Dict, List, Optional

from loguru import logger
from opentelemetry import trace
from opentelemetry.exporter.otlp.proto.grpc.trace_exporter import (
    OTLPSpanExporter as GrpcOTLPSpanExporter,
)
from opentelemetry.exporter.otlp.proto.http.trace_exporter import (
    OTLPSpanExporter as HttpOTLPSpanExporter,
)
from opentelemetry.sdk.resources import Resource
from opentelemetry.sdk.trace import TracerProvider
from opentelemetry.sdk.trace.export import (
    BatchSpanProcessor,
    ConsoleSpanExporter,
    SimpleSpanProcessor,
    SpanExporter,
)

from ..core.exceptions import TracingSetupError


class TracingManager:
    """Manages the tracer provider and its span exporters."""

    def __init__(
        self,
        service_name: str = "otel-span",
        config: Optional[Dict[str, Any]] = None,
        set_global: bool = True,
    ):
        """
        Initialize tracing manager.

        Args:
            service_name: Name of the service for tracing
            config: Tracing configuration dictionary
            set_global: Install the provider as the process-wide provider
        """
        self.service_name = service_name
        self.config = config or {}
        self.set_global = set_global
        self.tracer_provider: Optional[TracerProvider] = None
        self._exporters: List[str] = []

    @property
    def exporters(self) -> List[str]:
        """Names of the exporters attached to the provider."""
        return list(self._exporters)

    def setup_tracing(self) -> bool:
        """
        Set up the tracer provider.

        Returns:
            True if tracing was set up successfully, False otherwise
        """
        try:
            resource = Resource.create(
                {
                    "service.name": self.service_name,
                    "service.version": self.config.get("service_version", "1.0.0"),
                    "deployment.environment": self.config.get(
                        "environment", "development"
                    ),
                }
            )

            self.tracer_provider = TracerProvider(resource=resource)
            self._setup_exporters()

            if self.set_global:
                trace.set_tracer_provider(self.tracer_provider)

            logger.info(f"Tracing initialized for service: {self.service_name}")
            return True

        except TracingSetupError as e:
            logger.error(f"Failed to initialize tracing: {e}")
            self.tracer_provider = None
            self._exporters.clear()
            return False

    def _setup_exporters(self):
        """Attach span exporters based on configuration."""
        exporters = self.config.get("exporters", {})

        console_config = exporters.get("console", {})
        if console_config.get("enabled", False):
            self.add_exporter(
                ConsoleSpanExporter(service_name=self.service_name),
                name="console",
                batch=console_config.get("batch", False),
            )

        otlp_config = exporters.get("otlp", {})
        if otlp_config.get("enabled", False):
            self.add_exporter(
                self._create_otlp_exporter(otlp_config),
                name="otlp",
                batch=otlp_config.get("batch", True),
            )

    def _create_otlp_exporter(self, otlp_config: Dict[str, Any]) -> SpanExporter:
        protocol = otlp_config.get("protocol", "http")
        endpoint = otlp_config.get("endpoint")
        headers = otlp_config.get("headers") or None

        try:
            if protocol == "grpc":
                return GrpcOTLPSpanExporter(endpoint=endpoint, headers=headers)
            if protocol == "http":
                return HttpOTLPSpanExporter(endpoint=endpoint, headers=headers)
        except Exception as e:
            raise TracingSetupError(
                f"Could not create OTLP {protocol} exporter: {e}", exporter="otlp"
            ) from e

        raise TracingSetupError(f"Unsupported OTLP protocol: {protocol}", exporter="otlp")

    def add_exporter(
        self, exporter: SpanExporter, name: Optional[str] = None, batch: bool = True
    ):
        """
        Attach a span exporter to the provider.

        Args:
            exporter: Exporter receiving finished spans
            name: Label used in logs
            batch: Wrap in a BatchSpanProcessor instead of a SimpleSpanProcessor
        """
        if self.tracer_provider is None:
            raise TracingSetupError(
                "Tracer provider is not set up", exporter=name or type(exporter).__name__
            )

        processor = BatchSpanProcessor(exporter) if batch else SimpleSpanProcessor(exporter)
        self.tracer_provider.add_span_processor(processor)
        label = name or type(exporter).__name__
        self._exporters.append(label)
        logger.info(f"{label} span exporter configured")

    def get_tracer(self, name: str) -> trace.Tracer:
        """Get a tracer from this manager's provider (no-op tracer if not set up)."""
        if self.tracer_provider is None:
            return trace.NoOpTracer()
        return self.tracer_provider.get_tracer(name)

    def force_flush(self, timeout_millis: int = 30000) -> bool:
        """Export all finished spans that have not been exported yet."""
        if self.tracer_provider is None:
            return True
        return self.tracer_provider.force_flush(timeout_millis)

    def shutdown(self):
        """Flush pending spans and shut the provider down."""
        if self.tracer_provider is None:
            return

        try:
            self.tracer_provider.shutdown()
            logger.info("Tracing shutdown completed")
        except Exception as e:
            logger.error(f"Error during tracing shutdown: {e}")
        finally:
            self.tracer_provider = None


# Global tracing manager instance
_tracing_manager: Optional[TracingManager] = None


def initialize_tracing(
    service_name: str = "otel-span", config: Optional[Dict[str, Any]] = None
) -> bool:
    """
    Initialize global tracing manager.

    Args:
        service_name: Name of the service
        config: Tracing configuration

    Returns:
        True if initialization was successful
    """
    global _tracing_manager

    if _tracing_manager is None:
        manager = TracingManager(service_name, config)
        if not manager.setup_tracing():
            return False
        _tracing_manager = manager

    return True


def get_tracing_manager() -> Optional[TracingManager]:
    """
    Get the global tracing manager instance.

    Returns:
        TracingManager instance or None if not initialized
    """
    return _tracing_manager


def shutdown_tracing():
    """Shutdown global tracing manager."""
    global _tracing_manager

    if _tracing_manager:
        _tracing_manager.shutdown()
        _tracing_manager = None
