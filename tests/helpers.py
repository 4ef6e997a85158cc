"""Canned memcached data and fakes shared by the test suite."""

import copy
from collections.abc import Awaitable, Callable

from memcached_exporter.core.errors import StatsProviderError
from memcached_exporter.core.models import Fields, MetricSample, ServerStats

# Trimmed output of a memcached 1.6 server after a short benchmark run.
GLOBAL_STATS: Fields = {
    "pid": "1",
    "uptime": "3600",
    "version": "1.6.21",
    "curr_connections": "10",
    "total_connections": "120",
    "conn_yields": "0",
    "listen_disabled_num": "0",
    "cmd_get": "500",
    "cmd_set": "100",
    "cmd_flush": "1",
    "get_hits": "400",
    "get_misses": "100",
    "delete_hits": "7",
    "delete_misses": "3",
    "incr_hits": "4",
    "incr_misses": "1",
    "decr_hits": "2",
    "decr_misses": "0",
    "cas_hits": "3",
    "cas_misses": "5",
    "cas_badval": "2",
    "touch_hits": "6",
    "touch_misses": "1",
    "bytes_read": "123456",
    "bytes_written": "654321",
    "limit_maxbytes": "67108864",
    "bytes": "4096",
    "curr_items": "42",
    "total_items": "90",
    "evictions": "0",
    "reclaimed": "3",
    "lru_crawler_starts": "12",
    "crawler_items_checked": "300",
    "crawler_reclaimed": "2",
    "moves_to_cold": "20",
    "moves_to_warm": "5",
    "moves_within_lru": "8",
    "total_malloced": "2097152",
}

ITEM_STATS: dict[int, Fields] = {
    1: {
        "number": "30",
        "age": "120",
        "evicted": "0",
        "evicted_nonzero": "0",
        "evicted_time": "0",
        "outofmemory": "0",
        "tailrepairs": "0",
        "reclaimed": "1",
        "expired_unfetched": "0",
        "evicted_unfetched": "0",
        "crawler_reclaimed": "0",
        "moves_to_cold": "12",
        "moves_to_warm": "3",
        "moves_within_lru": "5",
    },
    5: {
        "number": "12",
        "age": "60",
        "evicted": "0",
        "outofmemory": "0",
        "reclaimed": "2",
    },
}

SLAB_STATS: dict[int, Fields] = {
    1: {
        "chunk_size": "96",
        "chunks_per_page": "10922",
        "total_pages": "1",
        "total_chunks": "10922",
        "used_chunks": "30",
        "free_chunks": "10892",
        "free_chunks_end": "0",
        "mem_requested": "2880",
        "get_hits": "300",
        "cmd_set": "70",
        "delete_hits": "5",
        "incr_hits": "4",
        "decr_hits": "2",
        "cas_hits": "2",
        "cas_badval": "1",
        "touch_hits": "4",
    },
    5: {
        "chunk_size": "240",
        "chunks_per_page": "4369",
        "total_pages": "1",
        "total_chunks": "4369",
        "used_chunks": "12",
        "free_chunks": "4357",
        "free_chunks_end": "0",
        "mem_requested": "2400",
        "get_hits": "100",
        "cmd_set": "30",
        "delete_hits": "2",
        "incr_hits": "0",
        "decr_hits": "0",
        "cas_hits": "1",
        "cas_badval": "1",
        "touch_hits": "2",
    },
}

SETTINGS: Fields = {
    "maxconns": "1024",
    "tcpport": "11211",
    "lru_crawler": "yes",
    "lru_crawler_sleep": "100",
    "lru_crawler_tocrawl": "0",
    "lru_maintainer_thread": "yes",
    "hot_lru_pct": "20",
    "warm_lru_pct": "40",
    "hot_max_factor": "0.20",
    "warm_max_factor": "2.00",
}


FakeServerFactory = Callable[[dict[str, bytes]], Awaitable[tuple[str, list[str]]]]


class FakeStatsProvider:
    """In-memory StatsProviderPort returning canned stats or failing."""

    def __init__(
        self,
        stats: list[ServerStats] | None = None,
        settings: list[Fields] | None = None,
        stats_error: bool = False,
        settings_error: bool = False,
        server: str = "localhost:11211",
    ) -> None:
        self._server = server
        self.stats = stats if stats is not None else []
        self.settings = settings if settings is not None else []
        self.stats_error = stats_error
        self.settings_error = settings_error
        self.stats_calls = 0
        self.settings_calls = 0

    @property
    def server(self) -> str:
        return self._server

    async def fetch_stats(self) -> list[ServerStats]:
        self.stats_calls += 1
        if self.stats_error:
            raise StatsProviderError(self._server, "connect: ConnectionRefusedError()")
        return copy.deepcopy(self.stats)

    async def fetch_settings(self) -> list[Fields]:
        self.settings_calls += 1
        if self.settings_error:
            raise StatsProviderError(self._server, "stats settings: ERROR")
        return copy.deepcopy(self.settings)


def by_name(samples: list[MetricSample], name: str) -> list[MetricSample]:
    """Return the samples of one metric."""
    return [s for s in samples if s.name == name]


def stat_reply(pairs: dict[str, str]) -> bytes:
    """Render STAT lines followed by END."""
    lines = [f"STAT {k} {v}\r\n" for k, v in pairs.items()]
    return ("".join(lines) + "END\r\n").encode()
