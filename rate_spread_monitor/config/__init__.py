"""Configuration."""

from rate_spread_monitor.config.settings import (
    Settings,
    ERA_YEAR_OFFSETS,
    SERIES_LABELS,
)

__all__ = ["Settings", "ERA_YEAR_OFFSETS", "SERIES_LABELS"]
