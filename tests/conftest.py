"""Pytest configuration and shared fixtures."""

import sys

from pathlib import Path

# Add project root to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

import shutil  # noqa: E402
import tempfile  # noqa: E402
from collections.abc import Generator  # noqa: E402
from contextlib import contextmanager  # noqa: E402
from typing import Any  # noqa: E402
from unittest.mock import Mock  # noqa: E402

import pytest  # noqa: E402
import yaml  # noqa: E402
from opentelemetry import trace  # noqa: E402
from opentelemetry.sdk.trace import TracerProvider  # noqa: E402
from opentelemetry.sdk.trace.export import SimpleSpanProcessor  # noqa: E402
from opentelemetry.sdk.trace.export.in_memory_span_exporter import (  # noqa: E402
    InMemorySpanExporter,
)

from otel_span.config import Config  # noqa: E402
from otel_span.tracing.tracer import TracingManager  # noqa: E402

OTEL_ENV_VARS = (
    "OTEL_SERVICE_NAME",
    "OTEL_SERVICE_VERSION",
    "OTEL_DEPLOYMENT_ENVIRONMENT",
    "OTEL_TRACES_EXPORTER_URL",
    "LOG_LEVEL",
)


class RecordingTracer:
    """Tracer double handing out a fresh Mock span per call and logging every span call."""

    def __init__(self):
        self.events: list[str] = []
        self.names: list[str] = []
        self.start_kwargs: list[dict[str, Any]] = []
        self.spans: list[Mock] = []

    def _record(self, event: str, *args, **kwargs):
        self.events.append(event)

    @contextmanager
    def start_as_current_span(self, name: str, **kwargs):
        self.events.append("start")
        self.names.append(name)
        self.start_kwargs.append(kwargs)

        current = Mock(name=f"span[{name}]")
        for method in ("set_attributes", "set_status", "record_exception", "end"):
            getattr(current, method).side_effect = (
                lambda *args, _event=method, **kwargs: self._record(_event)
            )
        self.spans.append(current)
        yield current

    @property
    def span(self) -> Mock:
        """Most recently started span."""
        return self.spans[-1]


@pytest.fixture(autouse=True)
def clean_otel_env(monkeypatch):
    """Keep OTEL_* and LOG_LEVEL from the host environment out of tests."""
    for env_var in OTEL_ENV_VARS:
        monkeypatch.delenv(env_var, raising=False)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for each test."""
    temp_dir = Path(tempfile.mkdtemp(prefix="otel_span_test_"))
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def sample_config() -> dict[str, Any]:
    """Sample configuration for testing."""
    return {
        "tracing": {
            "enabled": True,
            "service_name": "my-project",
            "service_version": "2.3.4",
            "environment": "test",
            "exporters": {
                "console": {"enabled": False},
                "otlp": {
                    "enabled": False,
                    "protocol": "http",
                    "endpoint": "http://localhost:4318/v1/traces",
                },
            },
        },
        "logging": {
            "level": "DEBUG",
            "file": None,
            "max_size": "1MB",
            "backup_count": 2,
        },
    }


@pytest.fixture
def config_file(temp_dir: Path, sample_config: dict[str, Any]) -> Path:
    """Create a temporary config file for testing."""
    config_path = temp_dir / "test_config.yaml"
    with open(config_path, "w") as f:
        yaml.dump(sample_config, f)
    return config_path


@pytest.fixture
def config(config_file: Path) -> Config:
    """Create a Config instance for testing."""
    return Config(str(config_file))


@pytest.fixture
def tracer() -> RecordingTracer:
    """Tracer double recording span lifecycle calls."""
    return RecordingTracer()


@pytest.fixture
def provider(tracer: RecordingTracer) -> Mock:
    """Tracer provider double returning the recording tracer."""
    provider = Mock()
    provider.get_tracer.return_value = tracer
    return provider


@pytest.fixture
def span_exporter() -> InMemorySpanExporter:
    """In-memory exporter collecting finished spans."""
    return InMemorySpanExporter()


@pytest.fixture
def tracing_manager(span_exporter: InMemorySpanExporter) -> Generator[TracingManager, None, None]:
    """Non-global SDK tracing manager exporting into memory."""
    manager = TracingManager("otel-span-test", set_global=False)
    assert manager.setup_tracing()
    manager.add_exporter(span_exporter, name="memory", batch=False)
    yield manager
    manager.shutdown()


@pytest.fixture(scope="session")
def global_span_exporter() -> InMemorySpanExporter:
    """Install an SDK provider as the process-wide provider, once per session."""
    exporter = InMemorySpanExporter()
    global_provider = TracerProvider()
    global_provider.add_span_processor(SimpleSpanProcessor(exporter))
    trace.set_tracer_provider(global_provider)
    return exporter


@pytest.fixture
def exported_spans(global_span_exporter: InMemorySpanExporter) -> Generator[InMemorySpanExporter, None, None]:
    """Global in-memory exporter, emptied around each test."""
    global_span_exporter.clear()
    yield global_span_exporter
    global_span_exporter.clear()
