"""Core domain models for memcached statistics and metric samples."""

from dataclasses import dataclass, field
from typing import Literal

MetricKind = Literal["counter", "gauge", "untyped"]

# Raw stat mappings, exactly as the server reports them
Fields = dict[str, str]


@dataclass(frozen=True)
class MetricDescriptor:
    """A catalog entry describing one exported metric.

    Attributes:
        name: Fully qualified metric name (e.g., memcached_commands_total).
        kind: Exposition type of the metric.
        documentation: Human-readable help text.
        label_names: Ordered label names every sample must carry.
    """

    name: str
    kind: MetricKind
    documentation: str
    label_names: tuple[str, ...] = ()

    def sample(self, value: float, *label_values: str) -> "MetricSample":
        """Create a sample of this metric.

        Args:
            value: The observed value. NaN means "could not be determined".
            *label_values: Label values in the order of ``label_names``.

        Returns:
            MetricSample bound to this descriptor.

        Raises:
            ValueError: If the number of label values does not match the
                declared label names.
        """
        if len(label_values) != len(self.label_names):
            raise ValueError(
                f"{self.name} expects {len(self.label_names)} label values, "
                f"got {len(label_values)}"
            )
        return MetricSample(
            name=self.name,
            value=value,
            labels=dict(zip(self.label_names, label_values, strict=True)),
        )


@dataclass(frozen=True)
class MetricSample:
    """A single metric observation.

    Attributes:
        name: Metric name matching a MetricDescriptor.
        value: The metric value.
        labels: Label name to value, in descriptor order.
    """

    name: str
    value: float
    labels: dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ServerStats:
    """Statistics reported by one memcached server in one collection cycle.

    Attributes:
        server: Address the stats were fetched from.
        stats: Global stats (``stats`` plus the global part of ``stats slabs``).
        items: Per slab class item stats (``stats items``).
        slabs: Per slab class allocator stats (``stats slabs``).
    """

    server: str
    stats: Fields = field(default_factory=dict)
    items: dict[int, Fields] = field(default_factory=dict)
    slabs: dict[int, Fields] = field(default_factory=dict)
