"""Derived dashboard statistics.

All functions here are pure: they read a batch collection and return
derived values, and are re-run whenever the collection changes.
"""

from collections import Counter
import datetime as dt
from typing import Dict, Iterable, List, Sequence

from pydantic import BaseModel, Field

from core.models.batch import Batch, BatchStatus


COMPLIANT_STATUSES = (BatchStatus.PROCESSED, BatchStatus.SHIPPED)
PENDING_STATUSES = (BatchStatus.COLLECTED, BatchStatus.TESTING)


class StatsSnapshot(BaseModel):
    """Summary counters for the dashboard."""
    total_batches: int = Field(..., ge=0)
    compliance_rate: str = Field(..., description="Percentage of batches not recalled, e.g. '80.0%'")
    recalled_batches: int = Field(..., ge=0)
    export_ready: int = Field(..., ge=0, description="Batches shipped")


class TrendPoint(BaseModel):
    """Batch outcomes grouped by collection date."""
    date: dt.date
    compliant: int = 0
    recalled: int = 0
    pending: int = 0


def format_compliance_rate(total: int, recalled: int) -> str:
    """Format the share of non-recalled batches as a percentage."""
    if total == 0:
        return "100%"
    return f"{(total - recalled) / total * 100:.1f}%"


def compute_stats(batches: Sequence[Batch]) -> StatsSnapshot:
    """Compute the summary counters for a batch collection."""
    counts = count_by_status(batches)
    total = len(batches)
    recalled = counts[BatchStatus.RECALLED.value]
    return StatsSnapshot(
        total_batches=total,
        compliance_rate=format_compliance_rate(total, recalled),
        recalled_batches=recalled,
        export_ready=counts[BatchStatus.SHIPPED.value],
    )


def count_by_status(batches: Iterable[Batch]) -> Dict[str, int]:
    """Number of batches per status, with every status present."""
    counts = Counter(b.status.value for b in batches)
    return {status.value: counts.get(status.value, 0) for status in BatchStatus}


def utc_date(timestamp: dt.datetime) -> dt.date:
    """Calendar date in UTC; naive timestamps are taken as UTC."""
    if timestamp.tzinfo is None:
        return timestamp.date()
    return timestamp.astimezone(dt.timezone.utc).date()


def compute_trend(batches: Iterable[Batch]) -> List[TrendPoint]:
    """Group batch outcomes by the UTC date each batch was collected."""
    points: Dict[dt.date, TrendPoint] = {}
    for batch in batches:
        day = utc_date(batch.collected_at)
        point = points.setdefault(day, TrendPoint(date=day))
        if batch.status == BatchStatus.RECALLED:
            point.recalled += 1
        elif batch.status in COMPLIANT_STATUSES:
            point.compliant += 1
        else:
            point.pending += 1
    return [points[day] for day in sorted(points)]


def inspection_eligible(batches: Iterable[Batch]) -> List[Batch]:
    """Batches that can be scheduled for a field inspection (those under testing)."""
    return [b for b in batches if b.status == BatchStatus.TESTING]
