"""Entry point for the ``memcached-exporter`` command."""

import logging
import platform
import sys
from collections.abc import Sequence

import uvicorn

from memcached_exporter import __version__
from memcached_exporter.adapters.frameworks.asgi import ASGIApp, create_asgi_app
from memcached_exporter.adapters.logging import configure_logging
from memcached_exporter.adapters.memcached import MemcachedStatsClient
from memcached_exporter.adapters.process import ProcessCollector
from memcached_exporter.config import ExporterConfig, parse_args
from memcached_exporter.core.collector import MemcachedCollector
from memcached_exporter.core.registry import CollectorRegistry

logger = logging.getLogger(__name__)


def build_registry(config: ExporterConfig) -> CollectorRegistry:
    """Register the memcached collector, plus process metrics if configured."""
    client = MemcachedStatsClient(
        config.address,
        timeout=config.timeout,
        unix_socket=config.unix_socket,
    )
    registry = CollectorRegistry()
    registry.register(MemcachedCollector(client))
    if config.pid_file:
        registry.register(ProcessCollector(config.pid_file))
    return registry


def create_app(config: ExporterConfig) -> ASGIApp:
    """Build the ASGI application for a configuration."""
    return create_asgi_app(build_registry(config), metrics_path=config.metrics_path)


def main(argv: Sequence[str] | None = None) -> None:
    """Parse arguments, configure logging and serve metrics until stopped."""
    config = parse_args(argv)
    configure_logging(config.log_level, config.log_format)

    logger.info(
        "Starting memcached_exporter",
        extra={"version": __version__},
    )
    logger.info(
        "Build context",
        extra={
            "python": platform.python_version(),
            "implementation": platform.python_implementation(),
            "platform": sys.platform,
        },
    )
    if config.unix_socket:
        logger.info("Using unix socket", extra={"socket": config.unix_socket})

    app = create_app(config)
    logger.info(
        "Starting HTTP server",
        extra={"address": f"{config.listen_host}:{config.listen_port}"},
    )
    uvicorn.run(
        app,
        host=config.listen_host,
        port=config.listen_port,
        log_config=None,
        access_log=False,
        lifespan="off",
    )
