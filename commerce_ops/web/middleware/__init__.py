"""FastAPI middleware."""

from __future__ import annotations

from commerce_ops.web.middleware.prometheus import PrometheusMiddleware

__all__ = ["PrometheusMiddleware"]
