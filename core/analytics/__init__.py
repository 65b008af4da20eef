"""Core analytics - statistics derived from the batch collection."""

from core.analytics.stats import (
    StatsSnapshot,
    TrendPoint,
    compute_stats,
    compute_trend,
    count_by_status,
    format_compliance_rate,
    inspection_eligible,
)

__all__ = [
    "StatsSnapshot",
    "TrendPoint",
    "compute_stats",
    "compute_trend",
    "count_by_status",
    "format_compliance_rate",
    "inspection_eligible",
]
