"""Core audit module - batch history log and operator audit trail."""

from core.audit.history import (
    append,
    ledger_reference,
)
from core.audit.events import (
    AuditLogger,
    AuditEventType,
    InMemoryAuditBackend,
    JSONFileAuditBackend,
    build_audit_logger,
    create_audit_event,
)

__all__ = [
    "append",
    "ledger_reference",
    "AuditLogger",
    "AuditEventType",
    "InMemoryAuditBackend",
    "JSONFileAuditBackend",
    "build_audit_logger",
    "create_audit_event",
]
