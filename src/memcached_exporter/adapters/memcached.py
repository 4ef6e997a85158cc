"""Memcached text protocol client for statistics.

Implements StatsProviderPort over asyncio streams. Each fetch opens its
own connection, so concurrent scrapes never share a socket.
"""

import asyncio
import contextlib
import logging
from collections.abc import AsyncIterator

from memcached_exporter.core.errors import StatsProviderError
from memcached_exporter.core.models import Fields, ServerStats

logger = logging.getLogger(__name__)

DEFAULT_PORT = 11211

Reader = asyncio.StreamReader
Writer = asyncio.StreamWriter


def split_address(address: str) -> tuple[str, int]:
    """Split ``host:port`` (or ``[v6host]:port``) into host and port.

    A missing port defaults to 11211.

    Raises:
        ValueError: If the port is not an integer in range.
    """
    host, port = address, ""
    if address.startswith("["):
        bracket = address.find("]")
        if bracket == -1:
            raise ValueError(f"missing ']' in address {address!r}")
        host = address[1:bracket]
        port = address[bracket + 1 :].removeprefix(":")
    elif address.count(":") == 1:
        host, port = address.split(":")
    if not port:
        return host or "localhost", DEFAULT_PORT
    number = int(port)
    if not 0 < number < 65536:
        raise ValueError(f"port out of range in address {address!r}")
    return host or "localhost", number


class MemcachedStatsClient:
    """Fetches ``stats`` output from a single memcached server.

    Example:
        ```python
        client = MemcachedStatsClient("localhost:11211", timeout=1.0)
        [stats] = await client.fetch_stats()
        print(stats.stats["version"])
        ```
    """

    def __init__(
        self,
        address: str,
        timeout: float = 1.0,
        unix_socket: str | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            address: ``host:port`` of the server.
            timeout: Seconds allowed for connecting and for each command.
            unix_socket: Path of a unix domain socket. When set it is used
                instead of ``address``.
        """
        self._address = address
        self._timeout = timeout
        self._unix_socket = unix_socket or None

    @property
    def server(self) -> str:
        return self._unix_socket or self._address

    @property
    def timeout(self) -> float:
        return self._timeout

    async def fetch_stats(self) -> list[ServerStats]:
        """Fetch ``stats``, ``stats slabs`` and ``stats items``.

        Returns:
            One ServerStats for the configured server.

        Raises:
            StatsProviderError: If the server cannot be reached or replies
                with an error or an unreadable line.
        """
        async with self._connection() as (reader, writer):
            general = dict(await self._command(reader, writer, "stats"))
            slab_pairs = await self._command(reader, writer, "stats slabs")
            item_pairs = await self._command(reader, writer, "stats items")

        slabs = self._group_by_slab(slab_pairs, general)
        items = self._group_by_slab(item_pairs, None, prefix="items")
        return [ServerStats(server=self.server, stats=general, items=items, slabs=slabs)]

    async def fetch_settings(self) -> list[Fields]:
        """Fetch ``stats settings``.

        Raises:
            StatsProviderError: If the server cannot be reached or replies
                with an error or an unreadable line.
        """
        async with self._connection() as (reader, writer):
            return [dict(await self._command(reader, writer, "stats settings"))]

    @contextlib.asynccontextmanager
    async def _connection(self) -> AsyncIterator[tuple[Reader, Writer]]:
        """Open a connection and translate transport failures."""
        try:
            async with asyncio.timeout(self._timeout):
                if self._unix_socket:
                    reader, writer = await asyncio.open_unix_connection(
                        self._unix_socket
                    )
                else:
                    host, port = split_address(self._address)
                    reader, writer = await asyncio.open_connection(host, port)
        except (OSError, TimeoutError, ValueError) as e:
            raise StatsProviderError(self.server, f"connect: {e!r}") from e

        try:
            yield reader, writer
        finally:
            writer.close()
            with contextlib.suppress(OSError):
                await writer.wait_closed()

    async def _command(
        self, reader: Reader, writer: Writer, command: str
    ) -> list[tuple[str, str]]:
        """Send a stats command and read ``STAT`` lines up to ``END``.

        Returns:
            (name, value) pairs in reply order.
        """
        logger.debug("Sending %r to %s", command, self.server)
        try:
            async with asyncio.timeout(self._timeout):
                writer.write(f"{command}\r\n".encode())
                await writer.drain()
                return await self._read_stats(reader, command)
        except (OSError, TimeoutError, UnicodeDecodeError, ValueError) as e:
            raise StatsProviderError(self.server, f"{command}: {e!r}") from e

    async def _read_stats(self, reader: Reader, command: str) -> list[tuple[str, str]]:
        pairs: list[tuple[str, str]] = []
        while True:
            raw = await reader.readline()
            if not raw:
                raise StatsProviderError(self.server, f"{command}: connection closed")
            line = raw.decode().rstrip("\r\n")
            if line == "END":
                return pairs
            if line.startswith("STAT "):
                _, name, *value = line.split(" ", 2)
                pairs.append((name, value[0] if value else ""))
            elif line == "ERROR" or line.startswith(("CLIENT_ERROR", "SERVER_ERROR")):
                raise StatsProviderError(self.server, f"{command}: {line}")
            else:
                raise StatsProviderError(
                    self.server, f"{command}: unexpected reply {line!r}"
                )

    def _group_by_slab(
        self,
        pairs: list[tuple[str, str]],
        unprefixed: Fields | None,
        prefix: str | None = None,
    ) -> dict[int, Fields]:
        """Group ``[prefix:]<id>:<field>`` stats by slab class id.

        Args:
            pairs: Reply pairs from ``stats slabs`` or ``stats items``.
            unprefixed: Receives stats without a slab id, unless the key is
                already present. None drops them.
            prefix: Leading key segment to strip (``items``).
        """
        by_slab: dict[int, Fields] = {}
        for key, value in pairs:
            parts = key.split(":")
            if prefix is not None and parts[0] == prefix:
                parts = parts[1:]
            if len(parts) != 2:
                if unprefixed is not None:
                    unprefixed.setdefault(key, value)
                continue
            slab, field = parts
            try:
                slab_id = int(slab)
            except ValueError as e:
                raise StatsProviderError(
                    self.server, f"bad slab id in {key!r}"
                ) from e
            by_slab.setdefault(slab_id, {})[field] = value
        return by_slab
