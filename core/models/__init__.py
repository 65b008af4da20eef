"""Core data models - batches, history events, alerts and audit events."""

from core.models.batch import (
    # Enums
    BatchStatus,
    Actor,

    # Well-known actions
    ACTION_COLLECTED,
    ACTION_RECALLED,
    ACTION_TEST_FAILED,

    # Values
    Batch,
    HistoryEvent,
    Location,
    RecallDetails,
    QualityTestDetails,
    parse_batch,
)

from core.models.alerts import (
    Alert,
    AlertType,
    create_alert,
)

from core.models.audit import (
    AuditEvent,
    AuditSeverity,
)

__all__ = [
    "BatchStatus",
    "Actor",
    "ACTION_COLLECTED",
    "ACTION_RECALLED",
    "ACTION_TEST_FAILED",
    "Batch",
    "HistoryEvent",
    "Location",
    "RecallDetails",
    "QualityTestDetails",
    "parse_batch",
    "Alert",
    "AlertType",
    "create_alert",
    "AuditEvent",
    "AuditSeverity",
]
