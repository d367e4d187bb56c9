import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

logger = logging.getLogger(__name__)

SLOW_REQUEST_MS = 1000


class MetricsMiddleware(BaseHTTPMiddleware):
    """Counts requests and records latency per route into app.state.metrics."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        started = time.monotonic()
        response = await call_next(request)
        elapsed_ms = (time.monotonic() - started) * 1000

        route = request.scope.get("route")
        endpoint = f"{request.method} {getattr(route, 'path', request.url.path)}"
        metrics = request.app.state.metrics
        metrics.increment("http.requests", endpoint=endpoint)
        metrics.observe("http.latency_ms", elapsed_ms, endpoint=endpoint)
        if response.status_code >= 400:
            metrics.increment("http.errors", endpoint=endpoint, status=response.status_code)
        if elapsed_ms > SLOW_REQUEST_MS:
            logger.warning("Slow request: %s took %.0fms", endpoint, elapsed_ms)
        return response
