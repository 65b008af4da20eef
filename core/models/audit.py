"""Audit event models for operator actions on the dashboard.

These are distinct from batch history events: a history event is part of
a batch's traceable record, an audit event records what an operator did
in this system (started a recall, issued a rule, dismissed an alert).
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class AuditSeverity(str, Enum):
    """Severity levels for audit events."""
    INFO = "INFO"
    WARN = "WARN"
    ERROR = "ERROR"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    """An audit event for tracking operator and system actions."""
    event_id: str = Field(..., description="Unique event identifier")
    timestamp: datetime = Field(default_factory=_utcnow, description="Event timestamp")
    event_type: str = Field(..., description="Type of event (RECALL_EXECUTED, RULE_ISSUED, etc.)")
    severity: AuditSeverity = Field(default=AuditSeverity.INFO, description="Event severity")

    # Context
    batch_id: Optional[str] = Field(None, description="Associated batch")
    workflow_id: Optional[str] = Field(None, description="Associated workflow run")

    # Details
    message: str = Field(..., description="Human-readable message")
    details: dict = Field(default_factory=dict, description="Additional event details")

    # Actor
    actor: str = Field(default="system", description="Who/what performed the action")
