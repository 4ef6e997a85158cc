"""Metric catalog for the memcached collector.

The catalog is the exporter's compatibility surface: names, types, label
schemas and help text match the metrics published by the long-standing
memcached exporter, so existing dashboards and alerts keep working.
It is built once at startup and never mutated.
"""

from dataclasses import dataclass, fields

from memcached_exporter.core.models import MetricDescriptor, MetricKind

NAMESPACE = "memcached"
SUBSYSTEM_LRU_CRAWLER = "lru_crawler"
SUBSYSTEM_SLAB = "slab"

COMMAND_LABELS = ("command", "status")
SLAB_LABELS = ("slab",)
SLAB_COMMAND_LABELS = ("slab", "command", "status")


def build_fq_name(namespace: str, subsystem: str, name: str) -> str:
    """Join the non-empty name parts with underscores."""
    return "_".join(part for part in (namespace, subsystem, name) if part)


@dataclass(frozen=True)
class Catalog:
    """Every metric the memcached collector can emit.

    Field order is the order used by the description pass.
    """

    up: MetricDescriptor
    uptime: MetricDescriptor
    version: MetricDescriptor
    bytes_read: MetricDescriptor
    bytes_written: MetricDescriptor
    current_connections: MetricDescriptor
    max_connections: MetricDescriptor
    connections_total: MetricDescriptor
    connections_yielded_total: MetricDescriptor
    listener_disabled_total: MetricDescriptor
    current_bytes: MetricDescriptor
    limit_bytes: MetricDescriptor
    commands: MetricDescriptor
    items: MetricDescriptor
    items_total: MetricDescriptor
    evictions: MetricDescriptor
    reclaimed: MetricDescriptor
    lru_crawler_enabled: MetricDescriptor
    lru_crawler_sleep: MetricDescriptor
    lru_crawler_max_items: MetricDescriptor
    lru_maintainer_thread: MetricDescriptor
    lru_hot_percent: MetricDescriptor
    lru_warm_percent: MetricDescriptor
    lru_hot_max_age_factor: MetricDescriptor
    lru_warm_max_age_factor: MetricDescriptor
    lru_crawler_starts: MetricDescriptor
    lru_crawler_reclaimed: MetricDescriptor
    lru_crawler_items_checked: MetricDescriptor
    lru_crawler_moves_to_cold: MetricDescriptor
    lru_crawler_moves_to_warm: MetricDescriptor
    lru_crawler_moves_within_lru: MetricDescriptor
    malloced: MetricDescriptor
    slab_items_number: MetricDescriptor
    slab_items_age: MetricDescriptor
    slab_items_crawler_reclaimed: MetricDescriptor
    slab_items_evicted: MetricDescriptor
    slab_items_evicted_nonzero: MetricDescriptor
    slab_items_evicted_time: MetricDescriptor
    slab_items_evicted_unfetched: MetricDescriptor
    slab_items_expired_unfetched: MetricDescriptor
    slab_items_outofmemory: MetricDescriptor
    slab_items_reclaimed: MetricDescriptor
    slab_items_tailrepairs: MetricDescriptor
    slab_items_moves_to_cold: MetricDescriptor
    slab_items_moves_to_warm: MetricDescriptor
    slab_items_moves_within_lru: MetricDescriptor
    slab_chunk_size: MetricDescriptor
    slab_chunks_per_page: MetricDescriptor
    slab_current_pages: MetricDescriptor
    slab_current_chunks: MetricDescriptor
    slab_chunks_used: MetricDescriptor
    slab_chunks_free: MetricDescriptor
    slab_chunks_free_end: MetricDescriptor
    slab_mem_requested: MetricDescriptor
    slab_commands: MetricDescriptor

    def descriptors(self) -> tuple[MetricDescriptor, ...]:
        """Return all descriptors in declaration order."""
        return tuple(getattr(self, f.name) for f in fields(self))

    @property
    def optional_item_counters(self) -> tuple[tuple[str, MetricDescriptor], ...]:
        """Per slab item counters that only newer servers report.

        Returns:
            Pairs of (raw ``stats items`` field, descriptor), in emission order.
        """
        return (
            ("crawler_reclaimed", self.slab_items_crawler_reclaimed),
            ("evicted", self.slab_items_evicted),
            ("evicted_nonzero", self.slab_items_evicted_nonzero),
            ("evicted_time", self.slab_items_evicted_time),
            ("evicted_unfetched", self.slab_items_evicted_unfetched),
            ("expired_unfetched", self.slab_items_expired_unfetched),
            ("outofmemory", self.slab_items_outofmemory),
            ("reclaimed", self.slab_items_reclaimed),
            ("tailrepairs", self.slab_items_tailrepairs),
            ("moves_to_cold", self.slab_items_moves_to_cold),
            ("moves_to_warm", self.slab_items_moves_to_warm),
            ("moves_within_lru", self.slab_items_moves_within_lru),
        )


def build_catalog(namespace: str = NAMESPACE) -> Catalog:
    """Build the memcached metric catalog.

    Args:
        namespace: Metric name prefix (default: "memcached").

    Returns:
        Immutable Catalog.
    """

    def desc(
        subsystem: str,
        name: str,
        kind: MetricKind,
        documentation: str,
        label_names: tuple[str, ...] = (),
    ) -> MetricDescriptor:
        return MetricDescriptor(
            name=build_fq_name(namespace, subsystem, name),
            kind=kind,
            documentation=documentation,
            label_names=label_names,
        )

    lru = SUBSYSTEM_LRU_CRAWLER
    slab = SUBSYSTEM_SLAB

    return Catalog(
        up=desc("", "up", "gauge", "Could the memcached server be reached."),
        uptime=desc(
            "", "uptime_seconds", "counter",
            "Number of seconds since the server started.",
        ),
        version=desc(
            "", "version", "gauge",
            "The version of this memcached server.",
            ("version",),
        ),
        bytes_read=desc(
            "", "read_bytes_total", "counter",
            "Total number of bytes read by this server from network.",
        ),
        bytes_written=desc(
            "", "written_bytes_total", "counter",
            "Total number of bytes sent by this server to network.",
        ),
        current_connections=desc(
            "", "current_connections", "gauge",
            "Current number of open connections.",
        ),
        max_connections=desc(
            "", "max_connections", "gauge",
            "Maximum number of clients allowed.",
        ),
        connections_total=desc(
            "", "connections_total", "counter",
            "Total number of connections opened since the server started running.",
        ),
        connections_yielded_total=desc(
            "", "connections_yielded_total", "counter",
            "Total number of connections yielded running due to hitting "
            "the memcached's -R limit.",
        ),
        listener_disabled_total=desc(
            "", "connections_listener_disabled_total", "counter",
            "Number of times that memcached has hit its connections limit "
            "and disabled its listener.",
        ),
        current_bytes=desc(
            "", "current_bytes", "gauge",
            "Current number of bytes used to store items.",
        ),
        limit_bytes=desc(
            "", "limit_bytes", "gauge",
            "Number of bytes this server is allowed to use for storage.",
        ),
        commands=desc(
            "", "commands_total", "counter",
            "Total number of all requests broken down by command "
            "(get, set, etc.) and status.",
            COMMAND_LABELS,
        ),
        items=desc(
            "", "current_items", "gauge",
            "Current number of items stored by this instance.",
        ),
        items_total=desc(
            "", "items_total", "counter",
            "Total number of items stored during the life of this instance.",
        ),
        evictions=desc(
            "", "items_evicted_total", "counter",
            "Total number of valid items removed from cache to free memory "
            "for new items.",
        ),
        reclaimed=desc(
            "", "items_reclaimed_total", "counter",
            "Total number of times an entry was stored using memory from "
            "an expired entry.",
        ),
        lru_crawler_enabled=desc(
            lru, "enabled", "gauge", "Whether the LRU crawler is enabled.",
        ),
        lru_crawler_sleep=desc(
            lru, "sleep", "gauge", "Microseconds to sleep between LRU crawls.",
        ),
        lru_crawler_max_items=desc(
            lru, "to_crawl", "gauge", "Max items to crawl per slab per run.",
        ),
        lru_maintainer_thread=desc(
            lru, "maintainer_thread", "gauge",
            "Split LRU mode and background threads.",
        ),
        lru_hot_percent=desc(
            lru, "hot_percent", "gauge",
            "Percent of slab memory reserved for HOT LRU.",
        ),
        lru_warm_percent=desc(
            lru, "warm_percent", "gauge",
            "Percent of slab memory reserved for WARM LRU.",
        ),
        lru_hot_max_age_factor=desc(
            lru, "hot_max_factor", "gauge",
            "Set idle age of HOT LRU to COLD age * this",
        ),
        lru_warm_max_age_factor=desc(
            lru, "warm_max_factor", "gauge",
            "Set idle age of WARM LRU to COLD age * this",
        ),
        # Published upstream with a literal "namespace" prefix
        lru_crawler_starts=MetricDescriptor(
            name=build_fq_name("namespace", lru, "starts"),
            kind="untyped",
            documentation="Times an LRU crawler was started.",
        ),
        lru_crawler_reclaimed=desc(
            lru, "reclaimed_total", "counter", "Total items freed by LRU Crawler.",
        ),
        lru_crawler_items_checked=desc(
            lru, "items_checked_total", "counter",
            "Total items examined by LRU Crawler.",
        ),
        lru_crawler_moves_to_cold=desc(
            lru, "moves_to_cold_total", "counter",
            "Total number of items moved from HOT/WARM to COLD LRU's.",
        ),
        lru_crawler_moves_to_warm=desc(
            lru, "moves_to_warm_total", "counter",
            "Total number of items moved from COLD to WARM LRU.",
        ),
        lru_crawler_moves_within_lru=desc(
            lru, "moves_within_lru_total", "counter",
            "Total number of items reshuffled within HOT or WARM LRU's.",
        ),
        malloced=desc(
            "", "malloced_bytes", "gauge",
            "Number of bytes of memory allocated to slab pages.",
        ),
        slab_items_number=desc(
            slab, "current_items", "gauge",
            "Number of items currently stored in this slab class.",
            SLAB_LABELS,
        ),
        slab_items_age=desc(
            slab, "items_age_seconds", "gauge",
            "Number of seconds the oldest item has been in the slab class.",
            SLAB_LABELS,
        ),
        slab_items_crawler_reclaimed=desc(
            slab, "items_crawler_reclaimed_total", "counter",
            "Number of items freed by the LRU Crawler.",
            SLAB_LABELS,
        ),
        slab_items_evicted=desc(
            slab, "items_evicted_total", "counter",
            "Total number of times an item had to be evicted from the LRU "
            "before it expired.",
            SLAB_LABELS,
        ),
        slab_items_evicted_nonzero=desc(
            slab, "items_evicted_nonzero_total", "counter",
            "Total number of times an item which had an explicit expire time "
            "set had to be evicted from the LRU before it expired.",
            SLAB_LABELS,
        ),
        slab_items_evicted_time=desc(
            slab, "items_evicted_time_seconds", "counter",
            "Seconds since the last access for the most recent item evicted "
            "from this class.",
            SLAB_LABELS,
        ),
        slab_items_evicted_unfetched=desc(
            slab, "items_evicted_unfetched_total", "counter",
            "Total nmber of items evicted and never fetched.",
            SLAB_LABELS,
        ),
        slab_items_expired_unfetched=desc(
            slab, "items_expired_unfetched_total", "counter",
            "Total number of valid items evicted from the LRU which were "
            "never touched after being set.",
            SLAB_LABELS,
        ),
        slab_items_outofmemory=desc(
            slab, "items_outofmemory_total", "counter",
            "Total number of items for this slab class that have triggered "
            "an out of memory error.",
            SLAB_LABELS,
        ),
        slab_items_reclaimed=desc(
            slab, "items_reclaimed_total", "counter",
            "Total number of items reclaimed.",
            SLAB_LABELS,
        ),
        slab_items_tailrepairs=desc(
            slab, "items_tailrepairs_total", "counter",
            "Total number of times the entries for a particular ID need "
            "repairing.",
            SLAB_LABELS,
        ),
        slab_items_moves_to_cold=desc(
            slab, "items_moves_to_cold", "counter",
            "Number of items moved from HOT or WARM into COLD.",
            SLAB_LABELS,
        ),
        slab_items_moves_to_warm=desc(
            slab, "items_moves_to_warm", "counter",
            "Number of items moves from COLD into WARM.",
            SLAB_LABELS,
        ),
        slab_items_moves_within_lru=desc(
            slab, "items_moves_within_lru", "counter",
            "Number of times active items were bumped within HOT or WARM.",
            SLAB_LABELS,
        ),
        slab_chunk_size=desc(
            slab, "chunk_size_bytes", "gauge",
            "Number of bytes allocated to each chunk within this slab class.",
            SLAB_LABELS,
        ),
        slab_chunks_per_page=desc(
            slab, "chunks_per_page", "gauge",
            "Number of chunks within a single page for this slab class.",
            SLAB_LABELS,
        ),
        slab_current_pages=desc(
            slab, "current_pages", "gauge",
            "Number of pages allocated to this slab class.",
            SLAB_LABELS,
        ),
        slab_current_chunks=desc(
            slab, "current_chunks", "gauge",
            "Number of chunks allocated to this slab class.",
            SLAB_LABELS,
        ),
        slab_chunks_used=desc(
            slab, "chunks_used", "gauge",
            "Number of chunks allocated to an item.",
            SLAB_LABELS,
        ),
        slab_chunks_free=desc(
            slab, "chunks_free", "gauge",
            "Number of chunks not yet allocated items.",
            SLAB_LABELS,
        ),
        slab_chunks_free_end=desc(
            slab, "chunks_free_end", "gauge",
            "Number of free chunks at the end of the last allocated page.",
            SLAB_LABELS,
        ),
        slab_mem_requested=desc(
            slab, "mem_requested_bytes", "gauge",
            "Number of bytes of memory actual items take up within a slab.",
            SLAB_LABELS,
        ),
        slab_commands=desc(
            slab, "commands_total", "counter",
            "Total number of all requests broken down by command "
            "(get, set, etc.) and status per slab.",
            SLAB_COMMAND_LABELS,
        ),
    )


DEFAULT_CATALOG = build_catalog()
