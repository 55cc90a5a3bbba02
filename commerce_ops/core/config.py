"""Configuration management with pydantic-settings.

Provides type-safe configuration with environment variable validation.
Forecasting and pricing thresholds live here so they can be tuned without
touching the algorithms.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings with environment variable validation."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Runtime ===
    environment: str = Field("development", description="Deployment environment label")

    # === Database ===
    database_url: str = Field(
        "sqlite:///./commerce_ops.db",
        description="Database URL (SQLite locally, Postgres in production)",
    )

    # === Logging ===
    log_level: str = Field("INFO", description="Root log level")
    log_to_stdout: bool = Field(True, description="Emit JSON logs to stdout")
    log_file_path: str | None = Field(None, description="JSON log file (None = disabled)")

    # === Demand forecasting ===
    forecast_history_days: int = Field(30, description="Length of each trailing sales window")
    forecast_default_days: int = Field(30, description="Default forecast horizon (days)")
    forecast_trend_threshold: float = Field(
        0.10, description="Growth rate beyond which the trend is increasing/decreasing"
    )
    forecast_trend_up_multiplier: float = Field(1.1, description="Daily sales boost on uptrend")
    forecast_trend_down_multiplier: float = Field(0.9, description="Daily sales cut on downtrend")
    forecast_reorder_cover_days: int = Field(
        7, description="Days of sales used as default reorder point"
    )
    forecast_high_confidence_units: int = Field(
        20, description="Units sold in window for high confidence"
    )
    forecast_low_confidence_units: int = Field(
        5, description="Units sold in window below which confidence is low"
    )

    # === Reorder recommendations ===
    reorder_default_lead_time_days: int = Field(
        7, description="Delivery estimate when no supplier lead time is known"
    )
    stockout_risk_default_days: int = Field(14, description="Default stockout risk horizon")

    # === Pricing & margins ===
    pricing_sales_window_days: int = Field(30, description="Trailing sales window for margins")
    pricing_high_margin_pct: float = Field(40.0, description="Margin % for the high bucket")
    pricing_medium_margin_pct: float = Field(15.0, description="Margin % for the medium bucket")
    pricing_low_margin_target: float = Field(0.25, description="Target margin for thin margins")
    pricing_negative_margin_target: float = Field(
        0.20, description="Target margin for loss-making products"
    )
    pricing_slow_mover_margin_pct: float = Field(
        50.0, description="Margin % above which a slow mover gets a price cut"
    )
    pricing_slow_mover_units: int = Field(5, description="Units sold below which a product is slow")
    pricing_slow_mover_target: float = Field(0.35, description="Target margin for slow movers")
    pricing_volume_confidence_units: int = Field(
        10, description="Units sold above which a thin-margin suggestion is medium confidence"
    )
    price_history_limit: int = Field(30, description="History entries returned per product")
    default_currency: str = Field("USD", description="Currency when none is recorded")


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Raises:
        RuntimeError: If environment variables hold invalid values.

    """
    try:
        return Settings()
    except ValidationError as e:
        bad_fields = [str(error["loc"][0]).upper() for error in e.errors() if error["loc"]]

        error_msg = (
            f"Configuration error: invalid environment variables: "
            f"{', '.join(bad_fields)}\n"
            f"Please fix them in .env file or the process environment."
        )
        raise RuntimeError(error_msg) from e


__all__ = ["Settings", "get_settings"]
