"""Exception hierarchy for the exporter."""


class ExporterError(Exception):
    """Base class for all exporter errors."""


class StatsProviderError(ExporterError):
    """The memcached server could not be reached or answered unexpectedly."""

    def __init__(self, server: str, reason: str) -> None:
        super().__init__(f"{server}: {reason}")
        self.server = server
        self.reason = reason


class ConfigError(ExporterError, ValueError):
    """An option value could not be interpreted."""


class DuplicateMetricError(ExporterError):
    """A collector declared a metric name that is already registered."""


class InvalidSampleError(ExporterError):
    """A collector produced a sample that does not match its catalog entry."""
