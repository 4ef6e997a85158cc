"""Command line configuration."""

import argparse
import math
import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TypeVar

from memcached_exporter import __version__
from memcached_exporter.adapters.logging import LOG_FORMATS, LOG_LEVELS
from memcached_exporter.core.errors import ConfigError

T = TypeVar("T")

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(ms|us|µs|ns|h|m|s)")
_DURATION_UNITS = {
    "h": 3600.0,
    "m": 60.0,
    "s": 1.0,
    "ms": 1e-3,
    "us": 1e-6,
    "µs": 1e-6,
    "ns": 1e-9,
}


def parse_duration(text: str) -> float:
    """Parse a duration such as ``1s``, ``500ms`` or ``1m30s`` into seconds.

    A bare number is taken as seconds.

    Raises:
        ConfigError: If the text is not a positive duration.
    """
    text = text.strip()
    try:
        seconds = float(text)
    except ValueError:
        pos = 0
        seconds = 0.0
        for match in _DURATION_PART.finditer(text):
            if match.start() != pos:
                break
            seconds += float(match.group(1)) * _DURATION_UNITS[match.group(2)]
            pos = match.end()
        if pos == 0 or pos != len(text):
            raise ConfigError(f"invalid duration {text!r}") from None
    if not (math.isfinite(seconds) and seconds > 0):
        raise ConfigError(f"duration must be positive: {text!r}")
    return seconds


def parse_listen_address(text: str) -> tuple[str, int]:
    """Parse ``[host]:port``; an empty host listens on all interfaces.

    Raises:
        ConfigError: If the port is missing or invalid.
    """
    host, sep, port = text.rpartition(":")
    if not sep:
        raise ConfigError(f"listen address needs a port: {text!r}")
    host = host.removeprefix("[").removesuffix("]") or "0.0.0.0"  # noqa: S104
    try:
        number = int(port)
    except ValueError:
        raise ConfigError(f"invalid port in listen address {text!r}") from None
    if not 0 <= number < 65536:
        raise ConfigError(f"port out of range in listen address {text!r}")
    return host, number


def _telemetry_path(text: str) -> str:
    if not text.startswith("/"):
        raise ConfigError(f"telemetry path must start with '/': {text!r}")
    return text


def _argparse_type(func: Callable[[str], T]) -> Callable[[str], T]:
    """Adapt a ConfigError-raising parser into an argparse type."""

    def convert(text: str) -> T:
        try:
            return func(text)
        except ConfigError as e:
            raise argparse.ArgumentTypeError(str(e)) from e

    convert.__name__ = func.__name__
    return convert


@dataclass(frozen=True)
class ExporterConfig:
    """Resolved exporter configuration.

    Attributes:
        address: memcached ``host:port``.
        timeout: Seconds allowed for connecting and for each stats command.
        pid_file: PID file of memcached; enables process metrics when set.
        unix_socket: Unix socket path; used instead of ``address`` when set.
        listen_host: Interface the HTTP server binds to.
        listen_port: Port the HTTP server binds to.
        metrics_path: Path the metrics are served under.
        log_level: debug, info, warn or error.
        log_format: logfmt or json.
    """

    address: str = "localhost:11211"
    timeout: float = 1.0
    pid_file: str | None = None
    unix_socket: str | None = None
    listen_host: str = "0.0.0.0"  # noqa: S104
    listen_port: int = 9150
    metrics_path: str = "/metrics"
    log_level: str = "info"
    log_format: str = "logfmt"


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        prog="memcached-exporter",
        description="Prometheus exporter for memcached server statistics.",
    )
    parser.add_argument(
        "--memcached.address",
        dest="address",
        default="localhost:11211",
        help="Memcached server address. (default: %(default)s)",
    )
    parser.add_argument(
        "--memcached.timeout",
        dest="timeout",
        type=_argparse_type(parse_duration),
        default="1s",
        help="memcached connect timeout. (default: %(default)s)",
    )
    parser.add_argument(
        "--memcached.pid-file",
        dest="pid_file",
        default="",
        help="Optional path to a file containing the memcached PID for "
        "additional metrics.",
    )
    parser.add_argument(
        "--memcached.unix-socket",
        dest="unix_socket",
        default="",
        help="Optional path to the unix socket file.",
    )
    parser.add_argument(
        "--web.listen-address",
        dest="listen_address",
        type=_argparse_type(parse_listen_address),
        default=":9150",
        help="Address to listen on for web interface and telemetry. "
        "(default: %(default)s)",
    )
    parser.add_argument(
        "--web.telemetry-path",
        dest="metrics_path",
        type=_argparse_type(_telemetry_path),
        default="/metrics",
        help="Path under which to expose metrics. (default: %(default)s)",
    )
    parser.add_argument(
        "--log.level",
        dest="log_level",
        choices=list(LOG_LEVELS),
        default="info",
        help="Only log messages with the given severity or above.",
    )
    parser.add_argument(
        "--log.format",
        dest="log_format",
        choices=list(LOG_FORMATS),
        default="logfmt",
        help="Output format of log messages.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s, version {__version__}",
    )
    return parser


def parse_args(argv: Sequence[str] | None = None) -> ExporterConfig:
    """Parse command line arguments into an ExporterConfig.

    Exits with status 2 on invalid arguments, like any argparse program.
    """
    args = build_parser().parse_args(argv)
    listen_host, listen_port = args.listen_address
    return ExporterConfig(
        address=args.address,
        timeout=args.timeout,
        pid_file=args.pid_file or None,
        unix_socket=args.unix_socket or None,
        listen_host=listen_host,
        listen_port=listen_port,
        metrics_path=args.metrics_path,
        log_level=args.log_level,
        log_format=args.log_format,
    )
