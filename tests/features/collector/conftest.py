"""BDD step definitions for the memcached collection cycle."""

import asyncio
import logging
import math
from dataclasses import dataclass, field
from typing import Any

import pytest
from pytest_bdd import given, parsers, then, when

from memcached_exporter.core.collector import MemcachedCollector
from memcached_exporter.core.models import MetricSample, ServerStats
from tests.helpers import FakeStatsProvider, by_name


@dataclass
class CollectorScenarioContext:
    """Shared state between steps in a collector scenario."""

    provider: FakeStatsProvider = field(default_factory=FakeStatsProvider)
    cycles: list[list[MetricSample]] = field(default_factory=list)

    @property
    def samples(self) -> list[MetricSample]:
        return self.cycles[-1]


def run_async(coro: Any) -> Any:
    """Run a coroutine synchronously."""
    return asyncio.run(coro)


def parse_labels(text: str) -> dict[str, str]:
    """Parse ``a=1,b=2`` into a label dict."""
    return dict(pair.split("=", 1) for pair in text.split(","))


def matching(ctx: CollectorScenarioContext, name: str, labels: str) -> list[MetricSample]:
    wanted = parse_labels(labels)
    return [s for s in by_name(ctx.samples, name) if s.labels == wanted]


@pytest.fixture
def ctx() -> CollectorScenarioContext:
    """Fresh scenario context for each test."""
    return CollectorScenarioContext()


# === Given ===
@given("a memcached server with healthy stats")
def step_healthy(
    ctx: CollectorScenarioContext, server_stats: ServerStats, settings: dict[str, str]
) -> None:
    ctx.provider = FakeStatsProvider(stats=[server_stats], settings=[settings])


@given("the server cannot be reached")
def step_unreachable(ctx: CollectorScenarioContext) -> None:
    ctx.provider.stats_error = True


@given('the server rejects "stats settings"')
def step_settings_rejected(ctx: CollectorScenarioContext) -> None:
    ctx.provider.settings_error = True


@given(parsers.parse('the global field "{key}" is "{value}"'))
def step_global_field(ctx: CollectorScenarioContext, key: str, value: str) -> None:
    ctx.provider.stats[0].stats[key] = value


# === When ===
@when("a collection cycle runs")
def step_collect(ctx: CollectorScenarioContext, caplog: pytest.LogCaptureFixture) -> None:
    collector = MemcachedCollector(ctx.provider)
    with caplog.at_level(logging.ERROR):
        ctx.cycles.append(run_async(collector.collect()))


@when("two collection cycles run")
def step_collect_twice(ctx: CollectorScenarioContext) -> None:
    collector = MemcachedCollector(ctx.provider)
    ctx.cycles.append(run_async(collector.collect()))
    ctx.cycles.append(run_async(collector.collect()))


# === Then ===
@then(parsers.parse("memcached_up is {value:d}"))
def step_up(ctx: CollectorScenarioContext, value: int) -> None:
    [up] = by_name(ctx.samples, "memcached_up")
    assert up.value == float(value)


@then(parsers.parse("exactly {n:d} sample is emitted"))
def step_sample_count(ctx: CollectorScenarioContext, n: int) -> None:
    assert len(ctx.samples) == n


@then(parsers.parse("the sample {name} with labels {labels} is {value}"))
def step_sample_value(
    ctx: CollectorScenarioContext, name: str, labels: str, value: str
) -> None:
    [sample] = matching(ctx, name, labels)
    if value == "NaN":
        assert math.isnan(sample.value)
    else:
        assert sample.value == float(value)


@then(parsers.parse("no sample of {name} has labels {labels}"))
def step_no_sample_with_labels(ctx: CollectorScenarioContext, name: str, labels: str) -> None:
    assert matching(ctx, name, labels) == []


@then(parsers.parse("no sample of {name} is emitted"))
def step_no_sample(ctx: CollectorScenarioContext, name: str) -> None:
    assert by_name(ctx.samples, name) == []


@then(parsers.parse("a sample of {name} is emitted"))
def step_some_sample(ctx: CollectorScenarioContext, name: str) -> None:
    assert by_name(ctx.samples, name)


@then(parsers.parse('an error mentioning "{text}" is logged'))
def step_error_logged(caplog: pytest.LogCaptureFixture, text: str) -> None:
    assert any(
        r.levelno == logging.ERROR and text in r.getMessage() for r in caplog.records
    )


@then("both cycles produced the same samples")
def step_same_cycles(ctx: CollectorScenarioContext) -> None:
    first, second = ctx.cycles
    assert first == second
