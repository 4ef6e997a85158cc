"""Process metrics for the memcached daemon, located through a PID file."""

import logging
from pathlib import Path

import psutil

from memcached_exporter.core.catalog import NAMESPACE, build_fq_name
from memcached_exporter.core.models import MetricDescriptor, MetricKind, MetricSample

logger = logging.getLogger(__name__)

# Unlimited resource limits are reported as the largest 64-bit value
UNLIMITED = float(2**64 - 1)


def read_pid_file(path: str | Path) -> int:
    """Read a PID from a file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not a non-negative integer.
    """
    pid = int(Path(path).read_text().strip())
    if pid < 0:
        raise ValueError(f"invalid pid {pid}")
    return pid


class ProcessCollector:
    """Collector for CPU, memory and file descriptor usage of a process.

    The PID file is read on every scrape, so a restarted memcached is
    picked up without restarting the exporter.
    """

    def __init__(self, pid_file: str | Path, namespace: str = NAMESPACE) -> None:
        self._pid_file = Path(pid_file)

        def desc(name: str, kind: MetricKind, documentation: str) -> MetricDescriptor:
            return MetricDescriptor(
                name=build_fq_name(namespace, "process", name),
                kind=kind,
                documentation=documentation,
            )

        self.cpu = desc(
            "cpu_seconds_total", "counter",
            "Total user and system CPU time spent in seconds.",
        )
        self.open_fds = desc("open_fds", "gauge", "Number of open file descriptors.")
        self.max_fds = desc(
            "max_fds", "gauge", "Maximum number of open file descriptors.",
        )
        self.virtual_memory = desc(
            "virtual_memory_bytes", "gauge", "Virtual memory size in bytes.",
        )
        self.virtual_memory_max = desc(
            "virtual_memory_max_bytes", "gauge",
            "Maximum amount of virtual memory available in bytes.",
        )
        self.resident_memory = desc(
            "resident_memory_bytes", "gauge", "Resident memory size in bytes.",
        )
        self.start_time = desc(
            "start_time_seconds", "gauge",
            "Start time of the process since unix epoch in seconds.",
        )

    def describe(self) -> tuple[MetricDescriptor, ...]:
        return (
            self.cpu,
            self.open_fds,
            self.max_fds,
            self.virtual_memory,
            self.virtual_memory_max,
            self.resident_memory,
            self.start_time,
        )

    async def collect(self) -> list[MetricSample]:
        """Sample the process named by the PID file.

        Returns:
            The process samples, or an empty list if the PID file or the
            process cannot be read.
        """
        try:
            pid = read_pid_file(self._pid_file)
        except (OSError, ValueError) as e:
            logger.error("Can't read pid file %s: %s", self._pid_file, e)
            return []

        try:
            return self._sample(psutil.Process(pid))
        except psutil.Error as e:
            logger.error("Can't read process %d: %s", pid, e)
            return []

    def _sample(self, process: psutil.Process) -> list[MetricSample]:
        with process.oneshot():
            cpu = process.cpu_times()
            memory = process.memory_info()
            # File descriptor counts exist on POSIX only
            open_fds = float(process.num_fds()) if hasattr(process, "num_fds") else None
            values = [
                (self.cpu, cpu.user + cpu.system),
                (self.open_fds, open_fds),
                (self.max_fds, _soft_limit(process, "RLIMIT_NOFILE")),
                (self.virtual_memory, float(memory.vms)),
                (self.virtual_memory_max, _soft_limit(process, "RLIMIT_AS")),
                (self.resident_memory, float(memory.rss)),
                (self.start_time, process.create_time()),
            ]
        return [d.sample(v) for d, v in values if v is not None]


def _soft_limit(process: psutil.Process, resource: str) -> float | None:
    """Soft resource limit of the process, where it can be read.

    Returns None if the platform lacks the limit or reading it is denied,
    leaving the remaining samples of the scrape intact.
    """
    if not hasattr(process, "rlimit") or not hasattr(psutil, resource):
        return None
    try:
        soft, _ = process.rlimit(getattr(psutil, resource))
    except psutil.AccessDenied as e:
        logger.debug("Can't read %s of process %d: %s", resource, process.pid, e)
        return None
    if soft == psutil.RLIM_INFINITY:
        return UNLIMITED
    return float(soft)
