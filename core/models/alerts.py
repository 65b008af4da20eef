"""Alert (notification) model."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import Field

from core.models.batch import TraceModel


class AlertType(str, Enum):
    """Alert severity."""
    DANGER = "danger"
    WARNING = "warning"
    INFO = "info"


class Alert(TraceModel):
    """A transient, session-scoped notification."""
    id: str = Field(..., min_length=1)
    title: str
    description: str
    timestamp: datetime
    type: AlertType = AlertType.INFO


def create_alert(
    title: str,
    description: str,
    alert_type: AlertType = AlertType.INFO,
    timestamp: Optional[datetime] = None,
) -> Alert:
    """Create an alert with a generated id and timestamp."""
    return Alert(
        id=f"ALERT-{uuid.uuid4().hex[:8].upper()}",
        title=title,
        description=description,
        timestamp=timestamp or datetime.now(timezone.utc),
        type=alert_type,
    )
