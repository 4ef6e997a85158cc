"""Shared test fixtures for all test modules."""

import asyncio
import copy
import logging
import socket
from collections.abc import AsyncGenerator, Awaitable, Callable, Iterator
from pathlib import Path

import pytest

try:
    import httpx
except ImportError:
    httpx = None

from memcached_exporter.core.models import Fields, ServerStats
from tests.helpers import (
    GLOBAL_STATS,
    ITEM_STATS,
    SETTINGS,
    SLAB_STATS,
    FakeServerFactory,
    FakeStatsProvider,
)

StreamHandler = Callable[[asyncio.StreamReader, asyncio.StreamWriter], Awaitable[None]]


@pytest.fixture
def server_stats() -> ServerStats:
    """A complete, well-formed stats snapshot for one server."""
    return ServerStats(
        server="localhost:11211",
        stats=dict(GLOBAL_STATS),
        items=copy.deepcopy(ITEM_STATS),
        slabs=copy.deepcopy(SLAB_STATS),
    )


@pytest.fixture
def settings() -> Fields:
    """A well-formed ``stats settings`` reply."""
    return dict(SETTINGS)


@pytest.fixture
def fake_provider(server_stats: ServerStats, settings: Fields) -> FakeStatsProvider:
    """A provider returning the healthy snapshot and settings."""
    return FakeStatsProvider(stats=[server_stats], settings=[settings])


@pytest.fixture
def restore_root_logger() -> Iterator[None]:
    """Put the root logger's handlers and level back after the test."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)


# === Fake memcached server ===


def _reply_handler(replies: dict[str, bytes], received: list[str]) -> StreamHandler:
    """Build a connection handler answering each command line from replies."""

    async def handle(reader: asyncio.StreamReader, writer: asyncio.StreamWriter) -> None:
        while line := await reader.readline():
            command = line.decode().rstrip("\r\n")
            received.append(command)
            writer.write(replies.get(command, b"ERROR\r\n"))
            await writer.drain()
        writer.close()

    return handle


@pytest.fixture
async def fake_memcached() -> AsyncGenerator[FakeServerFactory]:
    """Factory fixture starting an in-process fake memcached on localhost.

    The factory takes a mapping of command line to raw reply bytes and
    returns ``(address, received)``, where ``received`` collects the
    commands the server saw. Unknown commands get ``ERROR``.
    """
    servers: list[asyncio.Server] = []

    async def _start(replies: dict[str, bytes]) -> tuple[str, list[str]]:
        received: list[str] = []
        handle = _reply_handler(replies, received)
        server = await asyncio.start_server(handle, "127.0.0.1", 0)
        servers.append(server)
        port = server.sockets[0].getsockname()[1]
        return f"127.0.0.1:{port}", received

    yield _start

    for server in servers:
        server.close()
        await server.wait_closed()


@pytest.fixture
async def fake_memcached_unix(tmp_path: Path) -> AsyncGenerator[FakeServerFactory]:
    """Like ``fake_memcached`` but listening on a unix socket.

    The factory returns the socket path in place of the address.
    """
    if not hasattr(socket, "AF_UNIX"):
        pytest.skip("unix sockets not supported")
    servers: list[asyncio.Server] = []

    async def _start(replies: dict[str, bytes]) -> tuple[str, list[str]]:
        received: list[str] = []
        path = str(tmp_path / f"memcached-{len(servers)}.sock")
        server = await asyncio.start_unix_server(_reply_handler(replies, received), path)
        servers.append(server)
        return path, received

    yield _start

    for server in servers:
        server.close()
        await server.wait_closed()


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            app = create_asgi_app(registry)
            async with asgi_test_client(app) as client:
                response = await client.get("/metrics")
    """
    if httpx is None:
        pytest.skip("httpx not installed")

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client
