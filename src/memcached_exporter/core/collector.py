"""Translation of memcached stats into metric samples."""

import logging
from collections.abc import Callable, Mapping

from memcached_exporter.core.catalog import DEFAULT_CATALOG, Catalog
from memcached_exporter.core.errors import StatsProviderError
from memcached_exporter.core.models import (
    Fields,
    MetricDescriptor,
    MetricSample,
    ServerStats,
)
from memcached_exporter.core.parsing import (
    derive_global_set_count,
    derive_slab_set_count,
    parse_bool_flag,
    parse_numeric,
)
from memcached_exporter.core.ports import StatsProviderPort

logger = logging.getLogger(__name__)

COMMANDS = ("get", "delete", "incr", "decr", "cas", "touch")

Emit = Callable[[MetricSample], None]


class MemcachedCollector:
    """Collector that turns one memcached server's stats into samples.

    Every call to ``collect`` is a self-contained cycle: stats are fetched,
    translated and returned. Nothing is kept between cycles.

    Example:
        ```python
        client = MemcachedStatsClient("localhost:11211", timeout=1.0)
        collector = MemcachedCollector(client)
        samples = await collector.collect()
        ```
    """

    def __init__(
        self,
        provider: StatsProviderPort,
        catalog: Catalog = DEFAULT_CATALOG,
        log: logging.Logger | None = None,
    ) -> None:
        """Initialize the collector.

        Args:
            provider: Source of raw stats for one server.
            catalog: Metric catalog to emit against.
            log: Logger for parse diagnostics (default: module logger).
        """
        self._provider = provider
        self._catalog = catalog
        self._log = logging.LoggerAdapter(
            log or logger, {"server": provider.server}
        )

    @property
    def catalog(self) -> Catalog:
        return self._catalog

    def describe(self) -> tuple[MetricDescriptor, ...]:
        """Return every metric this collector may emit."""
        return self._catalog.descriptors()

    async def collect(self) -> list[MetricSample]:
        """Run one collection cycle.

        Returns:
            Samples in a stable order. If the server is unreachable the
            result is a single ``up`` sample with value 0.
        """
        c = self._catalog
        samples: list[MetricSample] = []
        emit = samples.append

        try:
            all_stats = await self._provider.fetch_stats()
        except StatsProviderError as e:
            self._log.error("Failed to collect stats from memcached: %s", e)
            return [c.up.sample(0.0)]

        emit(c.up.sample(1.0))
        for stats in all_stats:
            self._emit_global(emit, stats.stats)
            self._emit_slab_items(emit, stats)
            self._emit_slab_allocator(emit, stats)

        try:
            all_settings = await self._provider.fetch_settings()
        except StatsProviderError as e:
            self._log.error("Could not query stats settings: %s", e)
            all_settings = []
        for settings in all_settings:
            self._emit_settings(emit, settings)

        return samples

    def _emit_global(self, emit: Emit, s: Fields) -> None:
        c = self._catalog
        log = self._log

        def num(key: str) -> float:
            return parse_numeric(s, key, log)

        emit(c.uptime.sample(num("uptime")))
        emit(c.version.sample(1.0, s.get("version", "")))

        for op in COMMANDS:
            emit(c.commands.sample(num(f"{op}_hits"), op, "hit"))
            emit(c.commands.sample(num(f"{op}_misses"), op, "miss"))
        emit(c.commands.sample(num("cas_badval"), "cas", "badval"))
        emit(c.commands.sample(num("cmd_flush"), "flush", "hit"))
        emit(c.commands.sample(derive_global_set_count(s, log), "set", "hit"))

        emit(c.current_bytes.sample(num("bytes")))
        emit(c.limit_bytes.sample(num("limit_maxbytes")))
        emit(c.items.sample(num("curr_items")))
        emit(c.items_total.sample(num("total_items")))

        emit(c.bytes_read.sample(num("bytes_read")))
        emit(c.bytes_written.sample(num("bytes_written")))

        emit(c.current_connections.sample(num("curr_connections")))
        emit(c.connections_total.sample(num("total_connections")))
        emit(c.connections_yielded_total.sample(num("conn_yields")))
        emit(c.listener_disabled_total.sample(num("listen_disabled_num")))

        emit(c.evictions.sample(num("evictions")))
        emit(c.reclaimed.sample(num("reclaimed")))

        emit(c.lru_crawler_starts.sample(num("lru_crawler_starts")))
        emit(c.lru_crawler_items_checked.sample(num("crawler_items_checked")))
        emit(c.lru_crawler_reclaimed.sample(num("crawler_reclaimed")))
        emit(c.lru_crawler_moves_to_cold.sample(num("moves_to_cold")))
        emit(c.lru_crawler_moves_to_warm.sample(num("moves_to_warm")))
        emit(c.lru_crawler_moves_within_lru.sample(num("moves_within_lru")))

        emit(c.malloced.sample(num("total_malloced")))

    def _emit_slab_items(self, emit: Emit, stats: ServerStats) -> None:
        c = self._catalog
        for slab_id, u in _by_slab(stats.items):
            slab = str(slab_id)
            emit(c.slab_items_number.sample(parse_numeric(u, "number", self._log), slab))
            emit(c.slab_items_age.sample(parse_numeric(u, "age", self._log), slab))
            # Absent fields belong to older servers, not to errors.
            for key, descriptor in c.optional_item_counters:
                if key not in u:
                    continue
                emit(descriptor.sample(parse_numeric(u, key, self._log), slab))

    def _emit_slab_allocator(self, emit: Emit, stats: ServerStats) -> None:
        c = self._catalog
        log = self._log
        for slab_id, v in _by_slab(stats.slabs):
            slab = str(slab_id)

            def num(key: str, fields: Fields = v) -> float:
                return parse_numeric(fields, key, log)

            for op in COMMANDS:
                emit(c.slab_commands.sample(num(f"{op}_hits"), slab, op, "hit"))
            emit(c.slab_commands.sample(num("cas_badval"), slab, "cas", "badval"))
            emit(
                c.slab_commands.sample(
                    derive_slab_set_count(v, log), slab, "set", "hit"
                )
            )

            emit(c.slab_chunk_size.sample(num("chunk_size"), slab))
            emit(c.slab_chunks_per_page.sample(num("chunks_per_page"), slab))
            emit(c.slab_current_pages.sample(num("total_pages"), slab))
            emit(c.slab_current_chunks.sample(num("total_chunks"), slab))
            emit(c.slab_chunks_used.sample(num("used_chunks"), slab))
            emit(c.slab_chunks_free.sample(num("free_chunks"), slab))
            emit(c.slab_chunks_free_end.sample(num("free_chunks_end"), slab))
            emit(c.slab_mem_requested.sample(num("mem_requested"), slab))

    def _emit_settings(self, emit: Emit, settings: Fields) -> None:
        c = self._catalog
        log = self._log

        def num(key: str) -> float:
            return parse_numeric(settings, key, log)

        emit(c.max_connections.sample(num("maxconns")))
        emit(c.lru_crawler_enabled.sample(parse_bool_flag(settings, "lru_crawler", log)))
        emit(c.lru_crawler_sleep.sample(num("lru_crawler_sleep")))
        emit(c.lru_crawler_max_items.sample(num("lru_crawler_tocrawl")))
        emit(
            c.lru_maintainer_thread.sample(
                parse_bool_flag(settings, "lru_maintainer_thread", log)
            )
        )
        emit(c.lru_hot_percent.sample(num("hot_lru_pct")))
        emit(c.lru_warm_percent.sample(num("warm_lru_pct")))
        emit(c.lru_hot_max_age_factor.sample(num("hot_max_factor")))
        emit(c.lru_warm_max_age_factor.sample(num("warm_max_factor")))


def _by_slab(per_slab: Mapping[int, Fields]) -> list[tuple[int, Fields]]:
    """Order per slab mappings by slab class id."""
    return sorted(per_slab.items())
