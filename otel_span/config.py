"""Configuration management for otel-span."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from dotenv import find_dotenv, load_dotenv
from loguru import logger
from pydantic import BaseModel, Field, field_validator

from .core.exceptions import ConfigurationError, ErrorSeverity


class ConsoleExporterConfig(BaseModel):
    """Console span exporter schema."""
    enabled: bool = Field(default=False, description="Print finished spans to stdout")
    batch: bool = Field(default=False, description="Use a batch span processor")


class OTLPExporterConfig(BaseModel):
    """OTLP span exporter schema."""
    enabled: bool = Field(default=False, description="Send spans to an OTLP collector")
    protocol: str = Field(default="http", description="OTLP transport: http or grpc")
    endpoint: Optional[str] = Field(default=None, description="Collector endpoint")
    headers: Dict[str, str] = Field(default_factory=dict, description="Extra request headers")
    batch: bool = Field(default=True, description="Use a batch span processor")

    @field_validator("protocol")
    @classmethod
    def validate_protocol(cls, v):
        if v.lower() not in ("http", "grpc"):
            raise ValueError(f"Invalid OTLP protocol: {v}. Must be 'http' or 'grpc'")
        return v.lower()


class ExportersConfig(BaseModel):
    """Span exporters schema."""
    console: ConsoleExporterConfig = Field(default_factory=ConsoleExporterConfig)
    otlp: OTLPExporterConfig = Field(default_factory=OTLPExporterConfig)


class TracingConfig(BaseModel):
    """Tracing bootstrap schema."""
    enabled: bool = Field(default=True, description="Install an SDK tracer provider")
    service_name: str = Field(default="otel-span", description="service.name resource attribute")
    service_version: str = Field(default="1.0.0", description="service.version resource attribute")
    environment: str = Field(default="development", description="deployment.environment")
    exporters: ExportersConfig = Field(default_factory=ExportersConfig)

    @field_validator("service_name")
    @classmethod
    def validate_service_name(cls, v):
        if not v.strip():
            raise ValueError("service_name must not be empty")
        return v


class LoggingConfig(BaseModel):
    """Logging configuration schema."""
    level: str = Field(default="INFO", description="Logging level")
    file: Optional[str] = Field(default=None, description="Log file path")
    max_size: str = Field(default="10MB", description="Rotate the log file at this size")
    backup_count: int = Field(default=5, ge=1, le=20, description="Number of rotated files to keep")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v):
        valid_levels = ["TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid logging level: {v}. Must be one of {valid_levels}")
        return v.upper()


class OtelSpanConfig(BaseModel):
    """Main configuration schema."""
    tracing: TracingConfig = Field(default_factory=TracingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


class Config:
    """Configuration manager backed by a YAML file and environment overrides."""

    ENV_OVERRIDES = {
        "OTEL_SERVICE_NAME": "tracing.service_name",
        "OTEL_SERVICE_VERSION": "tracing.service_version",
        "OTEL_DEPLOYMENT_ENVIRONMENT": "tracing.environment",
        "OTEL_TRACES_EXPORTER_URL": "tracing.exporters.otlp.endpoint",
        "LOG_LEVEL": "logging.level",
    }

    def __init__(self, config_path: str = "config.yaml", env_file: Optional[str] = None):
        """
        Initialize configuration from YAML file.

        Args:
            config_path: YAML configuration file
            env_file: .env file to load before environment overrides are applied
                (searched upwards from the working directory when omitted)
        """
        self.config_path = Path(config_path)
        self.env_file = env_file
        self._raw_config = self._load_config()
        self._config = self._validate_and_parse_config()

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        if not self.config_path.exists():
            raise ConfigurationError(
                f"Configuration file not found: {self.config_path}",
                config_key="config_path",
                severity=ErrorSeverity.CRITICAL,
            )

        try:
            with open(self.config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigurationError(
                f"Error parsing configuration file: {e}",
                config_key="yaml_parsing",
                severity=ErrorSeverity.CRITICAL,
            ) from e
        except OSError as e:
            raise ConfigurationError(
                f"Error loading configuration: {e}",
                config_key="file_loading",
                severity=ErrorSeverity.CRITICAL,
            ) from e

        if config is not None and not isinstance(config, dict):
            raise ConfigurationError(
                "Configuration root must be a mapping",
                config_key="yaml_parsing",
                severity=ErrorSeverity.CRITICAL,
            )

        logger.info(f"Configuration loaded from {self.config_path}")
        return config or {}

    def _validate_and_parse_config(self) -> OtelSpanConfig:
        """Validate and parse configuration using Pydantic models."""
        self._apply_env_overrides()
        try:
            config = OtelSpanConfig(**self._raw_config)
        except ValueError as e:
            raise ConfigurationError(
                f"Configuration validation failed: {e}",
                config_key="validation",
                severity=ErrorSeverity.CRITICAL,
            ) from e
        logger.debug("Configuration validation successful")
        return config

    def _apply_env_overrides(self):
        """Apply environment variable overrides to configuration."""
        self._load_env_file()

        for env_var, config_path in self.ENV_OVERRIDES.items():
            env_value = os.getenv(env_var)
            if env_value:
                self._set_nested_value(self._raw_config, config_path, env_value)
                logger.debug(f"Applied environment override: {env_var} -> {config_path}")

        # An exporter URL in the environment switches the OTLP exporter on.
        if os.getenv("OTEL_TRACES_EXPORTER_URL"):
            self._set_nested_value(self._raw_config, "tracing.exporters.otlp.enabled", True)

    def _load_env_file(self):
        """Load a .env file into the environment without replacing set variables."""
        env_file = self.env_file or find_dotenv(usecwd=True)
        if env_file and load_dotenv(dotenv_path=env_file, override=False):
            logger.debug(f"Loaded environment from {env_file}")

    def _set_nested_value(self, data: Dict[str, Any], key: str, value: Any) -> None:
        """Set nested value using dot notation."""
        keys = key.split(".")
        config = data

        for k in keys[:-1]:
            if not isinstance(config.get(k), dict):
                config[k] = {}
            config = config[k]

        config[keys[-1]] = value

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value by dot-separated key."""
        try:
            return self._get_nested_value(self._raw_config, key)
        except KeyError:
            return default

    def _get_nested_value(self, data: Dict[str, Any], key: str) -> Any:
        """Get nested value using dot notation."""
        value = data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                raise KeyError(f"Key '{key}' not found")
            value = value[k]
        return value

    @property
    def settings(self) -> OtelSpanConfig:
        """Validated configuration model."""
        return self._config

    def get_tracing_config(self) -> Dict[str, Any]:
        """Get tracing configuration with defaults filled in."""
        return self._config.tracing.model_dump()

    def get_logging_config(self) -> Dict[str, Any]:
        """Get logging configuration with defaults filled in."""
        return self._config.logging.model_dump()

    def validate(self) -> bool:
        """Runtime checks on top of schema validation."""
        try:
            tracing = self._config.tracing
            otlp = tracing.exporters.otlp
            if (
                otlp.enabled
                and otlp.protocol == "http"
                and otlp.endpoint
                and not otlp.endpoint.startswith(("http://", "https://"))
            ):
                raise ConfigurationError(
                    f"OTLP http endpoint must be an http(s) URL: {otlp.endpoint}",
                    config_key="tracing.exporters.otlp.endpoint",
                )

            if tracing.enabled and not (otlp.enabled or tracing.exporters.console.enabled):
                logger.warning("Tracing is enabled but no span exporter is configured")

            logger.info("Configuration validation passed")
            return True

        except ConfigurationError as e:
            logger.error(f"Configuration validation error: {e}")
            return False
