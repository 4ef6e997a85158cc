"""Prometheus text format encoder for metric samples."""

import math
from collections.abc import Iterable

from memcached_exporter.core.models import MetricDescriptor, MetricSample

CONTENT_TYPE = "text/plain; version=0.0.4; charset=utf-8"


def _escape_help(text: str) -> str:
    """Escape help text per the exposition format."""
    return text.replace("\\", "\\\\").replace("\n", "\\n")


def _escape_label_value(value: str) -> str:
    """Escape a label value per the exposition format."""
    return value.replace("\\", "\\\\").replace("\n", "\\n").replace('"', '\\"')


def _format_value(value: float) -> str:
    """Format a sample value.

    NaN and infinities use the spellings Prometheus expects.
    """
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    return repr(float(value))


def _format_labels(labels: dict[str, str]) -> str:
    """Format labels as {key="value",...}, or an empty string."""
    if not labels:
        return ""
    pairs = [f'{k}="{_escape_label_value(v)}"' for k, v in labels.items()]
    return "{" + ",".join(pairs) + "}"


def encode_metrics(
    descriptors: Iterable[MetricDescriptor],
    samples: Iterable[MetricSample],
) -> str:
    """Encode samples to Prometheus text format.

    Args:
        descriptors: Catalog entries, in the order families are written.
        samples: Samples from one scrape.

    Returns:
        Prometheus exposition text. Families without samples are omitted.
        Empty string if there are no samples.
    """
    by_name: dict[str, list[MetricSample]] = {}
    for sample in samples:
        by_name.setdefault(sample.name, []).append(sample)

    lines: list[str] = []
    for descriptor in descriptors:
        family = by_name.get(descriptor.name)
        if not family:
            continue
        lines.append(f"# HELP {descriptor.name} {_escape_help(descriptor.documentation)}")
        lines.append(f"# TYPE {descriptor.name} {descriptor.kind}")
        for sample in family:
            labels = _format_labels(sample.labels)
            lines.append(f"{sample.name}{labels} {_format_value(sample.value)}")

    if not lines:
        return ""

    return "\n".join(lines) + "\n"
