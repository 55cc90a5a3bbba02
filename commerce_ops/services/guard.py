"""Engine boundary: errors degrade to an empty result instead of raising."""

from __future__ import annotations

import functools
import logging
import time
from collections.abc import Callable
from typing import Any, TypeVar

from sqlalchemy.orm import Session

from commerce_ops.core.logging import set_workspace_context
from commerce_ops.core.metrics import (
    engine_errors_total,
    engine_run_duration_seconds,
    engine_runs_total,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

_CONTEXT_KEYS = ("workspace_id", "product_id", "forecast_days", "sort_by")


def _find_session(args: tuple, kwargs: dict) -> Session | None:
    db = kwargs.get("db")
    if db is None and args:
        db = args[0]
    return db if isinstance(db, Session) else None


def degrade_on_error(
    operation: str,
    fallback: Callable[[dict[str, Any]], T],
) -> Callable[[Callable[..., T]], Callable[..., T]]:
    """Wrap a service entry point so it never raises past the boundary.

    On any exception the session is rolled back, the failure is logged with
    workspace/product context and counted, and ``fallback(kwargs)`` is returned.
    Callers must read an empty result as "nothing available", not "no risk".

    Usage:
        @degrade_on_error("demand_forecast", lambda _: [])
        def get_demand_forecast(db, *, workspace_id, ...): ...

    Args:
        operation: Metric/log label for the wrapped call
        fallback: Builds the degraded result from the call's keyword arguments

    """

    def decorator(fn: Callable[..., T]) -> Callable[..., T]:
        @functools.wraps(fn)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            context = {k: kwargs[k] for k in _CONTEXT_KEYS if k in kwargs}
            if context.get("workspace_id"):
                set_workspace_context(context["workspace_id"])

            start = time.perf_counter()
            try:
                result = fn(*args, **kwargs)
            except Exception as e:
                db = _find_session(args, kwargs)
                if db is not None:
                    db.rollback()

                engine_errors_total.labels(operation=operation).inc()
                engine_runs_total.labels(operation=operation, status="degraded").inc()
                logger.error(
                    f"{operation} failed: {e}",
                    extra={**context, "operation": operation, "error_type": type(e).__name__},
                    exc_info=True,
                )
                return fallback(kwargs)
            finally:
                engine_run_duration_seconds.labels(operation=operation).observe(
                    time.perf_counter() - start
                )

            engine_runs_total.labels(operation=operation, status="success").inc()
            return result

        return wrapper

    return decorator
