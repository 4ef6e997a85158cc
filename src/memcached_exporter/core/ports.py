"""Port interfaces for stats providers and collectors.

These protocols define the contracts that adapters must implement.
The core depends only on these interfaces, not concrete implementations.
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from memcached_exporter.core.models import Fields, MetricDescriptor, MetricSample, ServerStats


@runtime_checkable
class StatsProviderPort(Protocol):
    """Port for fetching raw statistics from memcached.

    Implementations must be safe to call from overlapping scrapes.
    Examples: MemcachedStatsClient.
    """

    @property
    def server(self) -> str:
        """Address of the server this provider talks to."""
        ...

    async def fetch_stats(self) -> list[ServerStats]:
        """Fetch global, per slab item and per slab allocator stats.

        Returns:
            Exactly one ServerStats. Exported series carry no server
            label, so CollectorRegistry rejects the repeated series a
            second record would produce.

        Raises:
            StatsProviderError: If the server cannot be reached or the
                reply cannot be read.
        """
        ...

    async def fetch_settings(self) -> list[Fields]:
        """Fetch the server's ``stats settings``.

        Returns:
            Exactly one mapping, like ``fetch_stats``.

        Raises:
            StatsProviderError: If the server cannot be reached or the
                reply cannot be read.
        """
        ...


@runtime_checkable
class CollectorPort(Protocol):
    """Port for metric collectors.

    A collector declares its metrics once and produces a fresh set of
    samples on every scrape. Implementations must hold no state between
    scrapes so that overlapping scrapes are safe.
    Examples: MemcachedCollector, ProcessCollector.
    """

    def describe(self) -> Sequence[MetricDescriptor]:
        """Return every metric this collector may emit."""
        ...

    async def collect(self) -> list[MetricSample]:
        """Produce the samples for one scrape."""
        ...
