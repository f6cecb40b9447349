#!/usr/bin/env python3
"""Main entry point for otel-span."""

import asyncio
import signal
import sys
from typing import Any, Dict

import click
from loguru import logger

from otel_span.config import Config
from otel_span.example import GreetingService
from otel_span.tracing import initialize_tracing, shutdown_tracing

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"


def setup_logging(logging_config: Dict[str, Any]):
    """Set up loguru sinks from the logging configuration."""
    level = logging_config.get("level", "INFO")

    logger.remove()
    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT)

    log_file = logging_config.get("file")
    if log_file:
        logger.add(
            log_file,
            level=level,
            format=FILE_FORMAT,
            rotation=logging_config.get("max_size", "10MB"),
            retention=logging_config.get("backup_count", 5),
        )


def _handle_sigterm(signum, frame):
    logger.info(f"Received signal {signum}, shutting down...")
    sys.exit(0)


async def run_example(service: GreetingService, record_id: str) -> Dict[str, str]:
    """Exercise the sync and async instrumented paths once each."""
    results = await service.greet_and_load(record_id)
    try:
        await service.load(f"missing-{record_id}")
    except LookupError as e:
        results["missing"] = f"failed: {e}"
    return results


@click.group()
def cli():
    """Declarative OpenTelemetry spans for functions and methods."""
    pass


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Configuration file path")
def validate(config: str):
    """Validate configuration."""
    try:
        app_config = Config(config)
        if app_config.validate():
            click.echo("Configuration is valid")
        else:
            click.echo("Configuration validation failed")
            sys.exit(1)
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)


@cli.command()
@click.option("--config", "-c", default="config.yaml", help="Configuration file path")
@click.option("--id", "record_id", default="7", help="Record id to greet and load")
def example(config: str, record_id: str):
    """Run an instrumented example workload and flush its spans."""
    try:
        app_config = Config(config)
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)

    setup_logging(app_config.get_logging_config())
    tracing_config = app_config.get_tracing_config()

    if tracing_config["enabled"] and not initialize_tracing(
        tracing_config["service_name"], tracing_config
    ):
        click.echo("Error: tracing could not be initialized")
        sys.exit(1)

    signal.signal(signal.SIGTERM, _handle_sigterm)

    try:
        results = asyncio.run(run_example(GreetingService(), record_id))
        for key, value in results.items():
            click.echo(f"{key}: {value}")
    except Exception as e:
        click.echo(f"Error: {e}")
        sys.exit(1)
    finally:
        shutdown_tracing()


if __name__ == "__main__":
    cli()
