"""Prometheus metrics for monitoring."""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram

# HTTP Request metrics
http_requests_total = Counter(
    "http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

http_request_duration_seconds = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency in seconds",
    ["method", "endpoint"],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0, 10.0],
)

http_requests_in_progress = Gauge(
    "http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
)

# Engine runs (forecast, reorder, margins, suggestions, ...)
engine_runs_total = Counter(
    "engine_runs_total",
    "Total forecasting/pricing engine runs",
    ["operation", "status"],  # status: success, degraded
)

engine_run_duration_seconds = Histogram(
    "engine_run_duration_seconds",
    "Engine run duration in seconds",
    ["operation"],
    buckets=[0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 2.5, 5.0],
)

engine_errors_total = Counter(
    "engine_errors_total",
    "Errors swallowed at the engine boundary",
    ["operation"],
)

# Business metrics
recommendations_generated_total = Counter(
    "recommendations_generated_total",
    "Total recommendations produced",
    ["kind"],  # kind: reorder, pricing
)

price_changes_recorded_total = Counter(
    "price_changes_recorded_total",
    "Total price history rows appended",
)

# System metrics
app_uptime_seconds = Gauge(
    "app_uptime_seconds",
    "Application uptime in seconds",
)

app_info = Gauge(
    "app_info",
    "Application info",
    ["version", "environment"],
)
