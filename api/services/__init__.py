"""API Services Package."""

from api.services.mock_data import (
    MOCK_BATCHES,
    get_mock_batches,
    get_mock_alerts,
)

from api.services.dashboard import (
    DashboardSession,
    get_session,
)

__all__ = [
    "MOCK_BATCHES",
    "get_mock_batches",
    "get_mock_alerts",
    "DashboardSession",
    "get_session",
]
