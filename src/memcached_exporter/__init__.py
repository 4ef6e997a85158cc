"""memcached_exporter - Prometheus exporter for memcached statistics."""

__version__ = "0.1.0"

from memcached_exporter.core.catalog import DEFAULT_CATALOG, Catalog, build_catalog  # noqa: E402
from memcached_exporter.core.collector import MemcachedCollector  # noqa: E402
from memcached_exporter.core.models import (  # noqa: E402
    MetricDescriptor,
    MetricSample,
    ServerStats,
)
from memcached_exporter.core.registry import CollectorRegistry  # noqa: E402

__all__ = [
    "DEFAULT_CATALOG",
    "Catalog",
    "CollectorRegistry",
    "MemcachedCollector",
    "MetricDescriptor",
    "MetricSample",
    "ServerStats",
    "__version__",
    "build_catalog",
]
