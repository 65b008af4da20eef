"""Alert endpoints."""

from fastapi import APIRouter, Depends

from api.services.dashboard import DashboardSession, get_session
from core.models.alerts import Alert
from models.api_responses import AlertListResponse


router = APIRouter()


@router.get("", response_model=AlertListResponse)
async def list_alerts(session: DashboardSession = Depends(get_session)) -> AlertListResponse:
    alerts = session.alerts.list()
    return AlertListResponse(total=len(alerts), alerts=alerts)


@router.delete("/{alert_id}", response_model=Alert)
async def dismiss_alert(alert_id: str, session: DashboardSession = Depends(get_session)) -> Alert:
    """Remove an alert from the board."""
    return session.dismiss_alert(alert_id)
