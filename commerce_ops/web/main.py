"""FastAPI application for the commerce operations engine."""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response, status
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from commerce_ops.core.config import get_settings
from commerce_ops.core.logging import get_logger, setup_logging
from commerce_ops.core.metrics import app_info, app_uptime_seconds
from commerce_ops.web.middleware import PrometheusMiddleware
from commerce_ops.web.routers import operations

log = get_logger("commerce_ops.web")

APP_VERSION = "0.3.0"

# Application start time for uptime calculation
APP_START_TIME = time.time()


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    setup_logging(
        level=settings.log_level,
        to_stdout=settings.log_to_stdout,
        file_path=settings.log_file_path,
    )
    log.info("commerce_ops_started", extra={"version": APP_VERSION})
    yield


app = FastAPI(
    title="Commerce Ops API",
    version=APP_VERSION,
    description="Inventory forecasting, reorder planning and pricing analytics",
    lifespan=lifespan,
)

app.add_middleware(PrometheusMiddleware)

app_info.labels(version=APP_VERSION, environment=get_settings().environment).set(1)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Log unhandled errors and answer 500 with a request id."""
    request_id = str(uuid.uuid4())

    log.error(
        "unhandled_exception",
        extra={
            "request_id": request_id,
            "path": str(request.url.path),
            "method": request.method,
            "error": str(exc),
            "error_type": type(exc).__name__,
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "internal_server_error", "request_id": request_id},
    )


app.include_router(operations.router)


@app.get("/health")
def health():
    """Basic health check for monitoring."""
    return {"status": "healthy"}


@app.get("/metrics")
def metrics():
    """Prometheus metrics endpoint."""
    app_uptime_seconds.set(time.time() - APP_START_TIME)
    return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)
