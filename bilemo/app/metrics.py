"""
Métriques Prometheus pour l'application.

Ce module définit les métriques HTTP et de cache, le middleware de mesure et la route `/metrics`.
"""

import time

from fastapi import APIRouter, Request
from prometheus_client import (
    CONTENT_TYPE_LATEST,
    Counter,
    Histogram,
    generate_latest,
)
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

metrics_router = APIRouter()

REQUEST_COUNT = Counter(
    "http_requests_total", "Total HTTP requests", ["method", "route", "status"]
)
REQUEST_LATENCY = Histogram(
    "http_request_duration_seconds", "Latency of HTTP requests", ["route"]
)

# Cache des collections paginées
CACHE_REQUESTS = Counter(
    "cache_requests_total",
    "Tagged result cache lookups",
    ["family", "result"],
)
CACHE_INVALIDATIONS = Counter(
    "cache_invalidations_total",
    "Tagged result cache invalidations",
    ["tag"],
)


@metrics_router.get("/metrics")
def metrics():
    """Expose les métriques Prometheus au format texte."""
    return Response(generate_latest(), media_type=CONTENT_TYPE_LATEST)


class PrometheusMiddleware(BaseHTTPMiddleware):
    """
    Middleware Prometheus pour mesurer les métriques HTTP.

    Les routes sont étiquetées par leur gabarit (`/api/customers/{customer_id}`) plutôt que par le
    chemin brut afin de borner la cardinalité des labels.
    """

    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response: Response = await call_next(request)
        matched = request.scope.get("route")
        route = getattr(matched, "path", None) or "unmatched"
        REQUEST_COUNT.labels(request.method, route, str(response.status_code)).inc()
        REQUEST_LATENCY.labels(route).observe(time.perf_counter() - start)
        return response
