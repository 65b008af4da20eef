"""Dashboard endpoints.

Provides the main dashboard view, the KPI cards, the trend chart data and
the in-process metrics.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List

from fastapi import APIRouter, Depends

from api.services.dashboard import DashboardSession, get_session
from core.analytics.stats import StatsSnapshot, TrendPoint, compute_trend
from core.observability.metrics import get_metrics
from models.api_responses import DashboardResponse


router = APIRouter()


@router.get("", response_model=DashboardResponse)
async def get_dashboard(session: DashboardSession = Depends(get_session)) -> DashboardResponse:
    """Everything the dashboard renders: stats, trend, batches, alerts."""
    return DashboardResponse(generated_at=datetime.now(timezone.utc), **session.overview())


@router.get("/stats", response_model=StatsSnapshot)
async def get_stats(session: DashboardSession = Depends(get_session)) -> StatsSnapshot:
    """KPI cards: total, compliance rate, recalled, export ready."""
    return session.collection.stats


@router.get("/trend", response_model=List[TrendPoint])
async def get_trend(session: DashboardSession = Depends(get_session)) -> List[TrendPoint]:
    """Collected batches per day, split by outcome."""
    return compute_trend(session.collection.all())


@router.get("/metrics")
async def get_dashboard_metrics() -> Dict[str, Any]:
    """Workflow and drafting-call metrics for this process."""
    return get_metrics().get_summary()
