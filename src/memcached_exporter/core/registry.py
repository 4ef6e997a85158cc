"""Collector registry: the sink every scrape is served from."""

from memcached_exporter.core.errors import DuplicateMetricError, InvalidSampleError
from memcached_exporter.core.models import MetricDescriptor, MetricSample
from memcached_exporter.core.ports import CollectorPort


class CollectorRegistry:
    """Holds collectors and runs their description and collection passes.

    The registry itself keeps no per-scrape state, so concurrent scrapes
    are safe as long as the registered collectors are.

    Example:
        ```python
        registry = CollectorRegistry()
        registry.register(MemcachedCollector(client))
        descriptors = registry.describe()
        samples = await registry.collect()
        ```
    """

    def __init__(self) -> None:
        self._collectors: list[tuple[CollectorPort, dict[str, MetricDescriptor]]] = []

    def register(self, collector: CollectorPort) -> None:
        """Register a collector after running its description pass.

        Args:
            collector: Collector implementing CollectorPort.

        Raises:
            DuplicateMetricError: If the collector declares a metric name
                that another registered collector already declares.
        """
        declared: dict[str, MetricDescriptor] = {}
        for descriptor in collector.describe():
            if descriptor.name in declared or self._find(descriptor.name):
                raise DuplicateMetricError(
                    f"metric {descriptor.name} is already registered"
                )
            declared[descriptor.name] = descriptor
        self._collectors.append((collector, declared))

    def _find(self, name: str) -> MetricDescriptor | None:
        for _, declared in self._collectors:
            if name in declared:
                return declared[name]
        return None

    def describe(self) -> list[MetricDescriptor]:
        """Return every registered descriptor in registration order."""
        return [d for _, declared in self._collectors for d in declared.values()]

    async def collect(self) -> list[MetricSample]:
        """Run every collector once and return the combined samples.

        Raises:
            InvalidSampleError: If a collector emits a sample that its
                description pass did not declare, whose labels do not
                match the declared label names, or whose name and label
                values repeat an earlier sample of the same scrape.
        """
        samples: list[MetricSample] = []
        seen: set[tuple[str, tuple[str, ...]]] = set()
        for collector, declared in self._collectors:
            for sample in await collector.collect():
                _validate(sample, declared)
                series = (sample.name, tuple(sample.labels.values()))
                if series in seen:
                    raise InvalidSampleError(
                        f"duplicate series {sample.name}{dict(sample.labels)}"
                    )
                seen.add(series)
                samples.append(sample)
        return samples


def _validate(sample: MetricSample, declared: dict[str, MetricDescriptor]) -> None:
    descriptor = declared.get(sample.name)
    if descriptor is None:
        raise InvalidSampleError(f"undeclared metric {sample.name}")
    if tuple(sample.labels) != descriptor.label_names:
        raise InvalidSampleError(
            f"{sample.name} has labels {tuple(sample.labels)}, "
            f"expected {descriptor.label_names}"
        )
