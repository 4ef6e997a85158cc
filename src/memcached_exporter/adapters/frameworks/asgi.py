"""ASGI application serving the exporter's endpoints.

Needs no web framework; runs under any ASGI server. The command line
entry point uses uvicorn.
"""

import html
import json
import logging
from collections.abc import Callable, Coroutine
from typing import Any

from memcached_exporter.core.encoding.prometheus import CONTENT_TYPE, encode_metrics
from memcached_exporter.core.registry import CollectorRegistry

logger = logging.getLogger(__name__)

# ASGI type aliases
Scope = dict[str, Any]
Receive = Callable[[], Coroutine[Any, Any, dict[str, Any]]]
Send = Callable[[dict[str, Any]], Coroutine[Any, Any, None]]
ASGIApp = Callable[[Scope, Receive, Send], Coroutine[Any, Any, None]]

HTML_CONTENT_TYPE = "text/html; charset=utf-8"

LANDING_PAGE = """<html>
<head><title>Memcached Exporter</title></head>
<body>
<h1>Memcached Exporter</h1>
<p><a href='{metrics_path}'>Metrics</a></p>
</body>
</html>
"""

Response = tuple[int, str, str]

NOT_FOUND: Response = (404, "text/plain", "Not Found")
SCRAPE_FAILED: Response = (
    500,
    "application/json",
    json.dumps({"error": "Internal Server Error"}),
)


async def _respond(send: Send, response: Response) -> None:
    """Write a complete response as a start message and one body message."""
    status, content_type, body = response
    await send(
        {
            "type": "http.response.start",
            "status": status,
            "headers": [(b"content-type", content_type.encode())],
        }
    )
    await send({"type": "http.response.body", "body": body.encode()})


def create_asgi_app(
    registry: CollectorRegistry,
    metrics_path: str = "/metrics",
) -> ASGIApp:
    """Create an ASGI app with the metrics endpoint and a landing page.

    Every request to ``metrics_path`` runs one scrape: each registered
    collector is collected and the result encoded in the Prometheus text
    format. ``/`` serves a landing page and every other path is a 404.

    Args:
        registry: Registry whose collectors run on every scrape.
        metrics_path: Path the Prometheus exposition is served under.

    Returns:
        ASGI application callable.
    """
    landing: Response = (
        200,
        HTML_CONTENT_TYPE,
        LANDING_PAGE.format(metrics_path=html.escape(metrics_path, quote=True)),
    )

    async def scrape() -> Response:
        try:
            samples = await registry.collect()
            body = encode_metrics(registry.describe(), samples)
        except Exception:
            logger.exception("Error collecting metrics")
            return SCRAPE_FAILED
        return 200, CONTENT_TYPE, body

    async def app(scope: Scope, receive: Receive, send: Send) -> None:
        # Lifespan and websocket scopes have nothing to serve
        if scope["type"] != "http":
            return

        path = scope["path"]
        if path == metrics_path:
            response = await scrape()
        elif path == "/":
            response = landing
        else:
            response = NOT_FOUND
        await _respond(send, response)

    return app
