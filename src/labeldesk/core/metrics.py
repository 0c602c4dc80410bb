"""Generic HTTP Prometheus metrics and the middleware that records them."""
import time

from prometheus_client import CONTENT_TYPE_LATEST, Counter, Histogram, generate_latest
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

http_requests_total = Counter(
    'http_requests_total',
    'Total number of HTTP requests',
    ['method', 'endpoint', 'status']
)

http_request_duration_seconds = Histogram(
    'http_request_duration_seconds',
    'HTTP request duration in seconds',
    ['method', 'endpoint'],
    buckets=(0.005, 0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0)
)


def get_metrics() -> bytes:
    """Render all registered metrics in the Prometheus text format."""
    return generate_latest()


METRICS_CONTENT_TYPE = CONTENT_TYPE_LATEST


class MetricsMiddleware(BaseHTTPMiddleware):
    """Count requests and observe latency per route template."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        status = 500
        try:
            response = await call_next(request)
            status = response.status_code
            return response
        finally:
            route = request.scope.get("route")
            # route template, not the raw path
            endpoint = getattr(route, "path", "unmatched")
            http_requests_total.labels(
                method=request.method, endpoint=endpoint, status=status
            ).inc()
            http_request_duration_seconds.labels(
                method=request.method, endpoint=endpoint
            ).observe(time.time() - start_time)
