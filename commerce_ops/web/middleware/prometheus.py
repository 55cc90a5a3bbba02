"""Prometheus metrics middleware for FastAPI."""

from __future__ import annotations

import time
from typing import Callable

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from commerce_ops.core.metrics import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

# Path segments followed by a resource id
_ID_PARENTS = frozenset({"products", "suppliers"})


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Collect request count, latency and in-flight gauges per endpoint."""

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        method = request.method
        endpoint = normalize_path(request.url.path)

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status = "500"
        try:
            response = await call_next(request)
            status = str(response.status_code)
        finally:
            http_request_duration_seconds.labels(method=method, endpoint=endpoint).observe(
                time.perf_counter() - start_time
            )
            http_requests_total.labels(method=method, endpoint=endpoint, status=status).inc()
            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()

        return response


def normalize_path(path: str) -> str:
    """Replace ids in a URL path with placeholders to bound label cardinality.

    Examples:
        >>> normalize_path("/api/v1/operations/products/prod_42/prices")
        '/api/v1/operations/products/{id}/prices'
        >>> normalize_path("/api/v1/orders/1234")
        '/api/v1/orders/{id}'

    """
    parts = path.split("?")[0].split("/")
    normalized = []
    for i, part in enumerate(parts):
        if part and (part.isdigit() or (i > 0 and parts[i - 1] in _ID_PARENTS)):
            normalized.append("{id}")
        else:
            normalized.append(part)

    return "/".join(normalized)
