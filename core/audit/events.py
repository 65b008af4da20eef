"""Operator audit event logging and persistence.

Records what operators did on the dashboard (recalls, rule issuance,
contract upgrades, inspections, alert dismissals, logins). Supports
multiple persistence backends.
"""

import json
import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

from core.models.audit import AuditEvent, AuditSeverity
from core.observability.logging import get_logger


logger = get_logger(__name__)


class AuditEventType(str, Enum):
    """Standard audit event types."""
    # Recall workflow
    RECALL_STARTED = "RECALL_STARTED"
    RECALL_DRAFTED = "RECALL_DRAFTED"
    RECALL_DRAFT_FAILED = "RECALL_DRAFT_FAILED"
    RECALL_EXECUTED = "RECALL_EXECUTED"
    RECALL_FAILED = "RECALL_FAILED"
    RECALL_CANCELLED = "RECALL_CANCELLED"

    # Regulator actions
    RULE_DRAFTED = "RULE_DRAFTED"
    RULE_ISSUED = "RULE_ISSUED"
    UPGRADE_PLANNED = "UPGRADE_PLANNED"
    UPGRADE_EXECUTED = "UPGRADE_EXECUTED"
    INSPECTION_SCHEDULED = "INSPECTION_SCHEDULED"

    # Dashboard
    BATCH_INGESTED = "BATCH_INGESTED"
    ALERT_DISMISSED = "ALERT_DISMISSED"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGIN_FAILED = "USER_LOGIN_FAILED"


def create_audit_event(
    event_type: AuditEventType,
    message: str,
    severity: AuditSeverity = AuditSeverity.INFO,
    batch_id: Optional[str] = None,
    workflow_id: Optional[str] = None,
    details: Optional[Dict[str, Any]] = None,
    actor: str = "system",
) -> AuditEvent:
    """Create a new audit event with auto-generated ID and timestamp.

    Args:
        event_type: Type of event
        message: Human-readable message
        severity: Event severity level
        batch_id: Associated batch ID
        workflow_id: Associated workflow run
        details: Additional structured details
        actor: Who/what performed the action

    Returns:
        Configured AuditEvent ready for logging
    """
    return AuditEvent(
        event_id=str(uuid.uuid4()),
        timestamp=datetime.now(timezone.utc),
        event_type=event_type.value,
        severity=severity,
        batch_id=batch_id,
        workflow_id=workflow_id,
        message=message,
        details=details or {},
        actor=actor,
    )


class AuditBackend(ABC):
    """Abstract base class for audit persistence backends."""

    @abstractmethod
    def log(self, event: AuditEvent) -> None:
        """Persist an audit event."""
        pass

    @abstractmethod
    def query(
        self,
        event_type: Optional[str] = None,
        batch_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Query audit events with filters."""
        pass


def _matches(event: AuditEvent, event_type: Optional[str], batch_id: Optional[str]) -> bool:
    if event_type and event.event_type != event_type:
        return False
    if batch_id and event.batch_id != batch_id:
        return False
    return True


class JSONFileAuditBackend(AuditBackend):
    """Audit backend that stores events in JSON files.

    Stores one file per day in YYYY-MM-DD.json format.
    """

    def __init__(self, base_path: Path):
        """Initialize with base directory for audit files."""
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)

    def _get_file_path(self, date: datetime) -> Path:
        """Get file path for a given date."""
        return self.base_path / f"{date.strftime('%Y-%m-%d')}.json"

    def log(self, event: AuditEvent) -> None:
        """Append event to daily file."""
        file_path = self._get_file_path(event.timestamp)

        events = []
        if file_path.exists():
            with open(file_path, "r", encoding="utf-8") as f:
                events = json.load(f)

        events.append(event.model_dump(mode="json"))

        with open(file_path, "w", encoding="utf-8") as f:
            json.dump(events, f, indent=2)

    def query(
        self,
        event_type: Optional[str] = None,
        batch_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Query events from the daily files, oldest day first."""
        results = []
        for file_path in sorted(self.base_path.glob("*.json")):
            with open(file_path, "r", encoding="utf-8") as f:
                events = json.load(f)

            for event_data in events:
                event = AuditEvent.model_validate(event_data)
                if not _matches(event, event_type, batch_id):
                    continue
                results.append(event)
                if len(results) >= limit:
                    return results
        return results


class InMemoryAuditBackend(AuditBackend):
    """In-memory audit backend (session-scoped)."""

    def __init__(self):
        self._events: List[AuditEvent] = []

    def log(self, event: AuditEvent) -> None:
        self._events.append(event)

    def query(
        self,
        event_type: Optional[str] = None,
        batch_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        results = []
        for event in self._events:
            if not _matches(event, event_type, batch_id):
                continue
            results.append(event)
            if len(results) >= limit:
                break
        return results

    def clear(self) -> None:
        """Clear all events."""
        self._events.clear()


class AuditLogger:
    """Main audit logger that supports multiple backends.

    Usage:
        audit = AuditLogger()
        audit.add_backend(InMemoryAuditBackend())

        audit.log_info(
            AuditEventType.RECALL_EXECUTED,
            "Batch TUL-MP-003 recalled",
            batch_id="TUL-MP-003",
        )
    """

    def __init__(self):
        self._backends: List[AuditBackend] = []

    def add_backend(self, backend: AuditBackend) -> None:
        """Add an audit backend."""
        self._backends.append(backend)

    def log(self, event: AuditEvent) -> None:
        """Log event to all backends."""
        for backend in self._backends:
            try:
                backend.log(event)
            except OSError as e:
                # Audit failures never break the workflow that produced them
                logger.error(
                    f"Audit logging failed for backend {type(backend).__name__}: {e}",
                    extra_fields={"event_type": event.event_type},
                )

    def log_info(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        """Log an INFO level event."""
        self.log(create_audit_event(event_type, message, AuditSeverity.INFO, **kwargs))

    def log_warning(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        """Log a WARN level event."""
        self.log(create_audit_event(event_type, message, AuditSeverity.WARN, **kwargs))

    def log_error(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        """Log an ERROR level event."""
        self.log(create_audit_event(event_type, message, AuditSeverity.ERROR, **kwargs))

    def query(
        self,
        event_type: Optional[str] = None,
        batch_id: Optional[str] = None,
        limit: int = 100,
    ) -> List[AuditEvent]:
        """Query events (returns first backend's results)."""
        if not self._backends:
            return []
        return self._backends[0].query(event_type, batch_id, limit)


def build_audit_logger(audit_dir: Optional[str] = None) -> AuditLogger:
    """Audit logger with an in-memory backend, plus a JSON file backend if a directory is given."""
    audit = AuditLogger()
    audit.add_backend(InMemoryAuditBackend())
    if audit_dir:
        audit.add_backend(JSONFileAuditBackend(Path(audit_dir)))
    return audit
