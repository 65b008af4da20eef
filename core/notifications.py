"""Session-scoped alert board.

Holds the alerts loaded from the alert source plus the ones raised by
workflow actions in this session. Dismissing removes an alert for good.
"""

from typing import Iterable, List

from core.errors import NotFoundError
from core.models.alerts import Alert
from core.observability.logging import get_logger


logger = get_logger(__name__)


class AlertBoard:
    """Ordered collection of active alerts."""

    def __init__(self, alerts: Iterable[Alert] = ()):
        self._alerts: List[Alert] = list(alerts)

    def load(self, alerts: Iterable[Alert]) -> None:
        """Replace the board with alerts from the alert source."""
        self._alerts = list(alerts)

    def list(self) -> List[Alert]:
        return list(self._alerts)

    def top(self, n: int = 3) -> List[Alert]:
        """The first `n` alerts, as shown on the dashboard."""
        return self._alerts[:n]

    def push(self, alert: Alert) -> Alert:
        """Append a locally raised alert."""
        self._alerts.append(alert)
        logger.info(f"Alert raised: {alert.title}", extra_fields={"alert_id": alert.id, "type": alert.type.value})
        return alert

    def dismiss(self, alert_id: str) -> Alert:
        """Remove an alert.

        Raises:
            NotFoundError: if no alert with that id is on the board
        """
        for i, alert in enumerate(self._alerts):
            if alert.id == alert_id:
                del self._alerts[i]
                return alert
        raise NotFoundError(f"Alert {alert_id} not found")

    def __len__(self) -> int:
        return len(self._alerts)
