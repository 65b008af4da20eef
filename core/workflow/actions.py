"""Regulator actions: rule issuance, contract upgrades and inspections.

Each action follows the same draft-then-commit shape as the recall
workflow. Drafting goes through the DraftingService; committing raises an
alert on the board and writes an audit event. None of these change batch
status or history.
"""

import time
import uuid
from typing import Callable, List, Optional

from core.analytics.stats import inspection_eligible
from core.audit.events import AuditEventType, AuditLogger
from core.errors import ExternalServiceError, NotFoundError, ValidationError, WorkflowStateError
from core.models.alerts import Alert, AlertType, create_alert
from core.models.batch import Actor, Batch, BatchStatus
from core.notifications import AlertBoard
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import (
    record_workflow_completed,
    record_workflow_failed,
    record_workflow_started,
)
from drafting.service import DraftingService


logger = get_logger(__name__)


def _require_text(value: str, message: str) -> str:
    value = (value or "").strip()
    if not value:
        raise ValidationError(message)
    return value


class _DraftedAction:
    """Shared draft/commit bookkeeping for the regulator actions."""

    workflow_type = "regulator_action"

    def __init__(
        self,
        drafting: DraftingService,
        alerts: AlertBoard,
        audit: Optional[AuditLogger] = None,
        workflow_id: Optional[str] = None,
    ):
        self.drafting = drafting
        self.alerts = alerts
        self.audit = audit
        self.workflow_id = workflow_id or f"{self.workflow_type}-{uuid.uuid4().hex[:8]}"
        self.draft_text: Optional[str] = None
        self.error: Optional[str] = None
        self.completed = False
        self._in_flight = False
        self._started = time.monotonic()
        record_workflow_started(self.workflow_type, self.workflow_id)

    async def _draft(self, produce: Callable) -> str:
        if self.completed:
            raise WorkflowStateError(f"{self.workflow_id} is already completed")
        if self._in_flight:
            raise WorkflowStateError(f"{self.workflow_id} already has a draft in progress")

        self._in_flight = True
        self.error = None
        try:
            with with_correlation(workflow_id=self.workflow_id, workflow_type=self.workflow_type, stage="draft"):
                self.draft_text = await produce()
        except ExternalServiceError as e:
            self.error = e.message
            e.workflow_id = e.workflow_id or self.workflow_id
            record_workflow_failed(self.workflow_type, self.workflow_id, e.message)
            raise
        finally:
            self._in_flight = False
        return self.draft_text

    def _commit(self, alert: Alert, event_type: AuditEventType, message: str, **details) -> Alert:
        if self.completed:
            raise WorkflowStateError(f"{self.workflow_id} is already completed")
        if self.draft_text is None:
            raise WorkflowStateError(f"{self.workflow_id} has nothing to commit; draft first")

        self.completed = True
        self.alerts.push(alert)
        if self.audit is not None:
            self.audit.log_info(
                event_type, message,
                workflow_id=self.workflow_id, actor=Actor.REGULATOR.value, details=details,
            )
        duration_ms = (time.monotonic() - self._started) * 1000
        record_workflow_completed(self.workflow_type, self.workflow_id, duration_ms)
        logger.info(message, extra_fields={"workflow_id": self.workflow_id})
        return alert

    def to_dict(self) -> dict:
        return {
            "workflow_id": self.workflow_id,
            "workflow_type": self.workflow_type,
            "draft": self.draft_text,
            "completed": self.completed,
            "error": self.error,
        }


# =============================================================================
# Rule issuance
# =============================================================================

class RuleIssuanceWorkflow(_DraftedAction):
    """Draft and issue a new compliance rule directive."""

    workflow_type = "rule_issuance"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.topic: Optional[str] = None

    async def draft(self, topic: str) -> str:
        """Draft the directive for `topic`. May be called again to redraft."""
        topic = _require_text(topic, "Please provide a topic for the new rule.")
        self.topic = topic
        text = await self._draft(lambda: self.drafting.rule_directive(topic))
        if self.audit is not None:
            self.audit.log_info(
                AuditEventType.RULE_DRAFTED, f"Rule directive drafted: {topic}",
                workflow_id=self.workflow_id, actor=Actor.REGULATOR.value,
            )
        return text

    def issue(self) -> Alert:
        alert = create_alert(
            title="New Rule Issued",
            description=f"A new compliance directive has been issued: {self.topic}",
            alert_type=AlertType.INFO,
        )
        return self._commit(alert, AuditEventType.RULE_ISSUED, f"Rule issued: {self.topic}", topic=self.topic)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["topic"] = self.topic
        return data


# =============================================================================
# Smart contract upgrade
# =============================================================================

class ContractUpgradeWorkflow(_DraftedAction):
    """Plan and execute a smart-contract upgrade."""

    workflow_type = "contract_upgrade"

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.reason: Optional[str] = None

    async def generate_plan(self, reason: str) -> str:
        reason = _require_text(reason, "Please provide a reason for the upgrade.")
        self.reason = reason
        plan = await self._draft(lambda: self.drafting.upgrade_plan(reason))
        if self.audit is not None:
            self.audit.log_info(
                AuditEventType.UPGRADE_PLANNED, f"Upgrade plan generated: {reason}",
                workflow_id=self.workflow_id, actor=Actor.REGULATOR.value,
            )
        return plan

    def execute(self) -> Alert:
        alert = create_alert(
            title="Smart Contract Upgrade Executed",
            description=f"The ledger smart contract was upgraded. Reason: {self.reason}",
            alert_type=AlertType.WARNING,
        )
        return self._commit(
            alert, AuditEventType.UPGRADE_EXECUTED, f"Smart contract upgrade executed: {self.reason}",
            reason=self.reason,
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["reason"] = self.reason
        return data


# =============================================================================
# Inspection scheduling
# =============================================================================

class InspectionScheduler:
    """Schedules inspections for batches currently in TESTING."""

    def __init__(
        self,
        batches: Callable[[], List[Batch]],
        drafting: DraftingService,
        alerts: AlertBoard,
        audit: Optional[AuditLogger] = None,
    ):
        self._batches = batches
        self.drafting = drafting
        self.alerts = alerts
        self.audit = audit

    def eligible(self) -> List[Batch]:
        return inspection_eligible(self._batches())

    def _eligible_batch(self, batch_id: str) -> Batch:
        for batch in self._batches():
            if batch.id != batch_id:
                continue
            if batch.status != BatchStatus.TESTING:
                raise ValidationError(
                    f"Batch {batch_id} is {batch.status.value}; only batches in "
                    f"{BatchStatus.TESTING.value} can be inspected",
                    batch_id=batch_id,
                )
            return batch
        raise NotFoundError(f"Batch {batch_id} not found", batch_id=batch_id)

    async def suggest_notes(self, batch_id: str) -> str:
        """Draft inspection notes from the batch and the top three alerts."""
        batch = self._eligible_batch(batch_id)
        with with_correlation(batch_id=batch_id, stage="inspection_notes"):
            return await self.drafting.inspection_notes(batch, self.alerts.top(3))

    def schedule(self, batch_id: str, notes: str = "") -> Alert:
        batch = self._eligible_batch(batch_id)
        notes = (notes or "").strip()
        alert = self.alerts.push(create_alert(
            title="Inspection Scheduled",
            description=f"Inspection scheduled for batch {batch.id} ({batch.plant_type}).",
            alert_type=AlertType.INFO,
        ))
        if self.audit is not None:
            self.audit.log_info(
                AuditEventType.INSPECTION_SCHEDULED, f"Inspection scheduled for batch {batch.id}",
                batch_id=batch.id, actor=Actor.REGULATOR.value, details={"notes": notes},
            )
        logger.info(f"Inspection scheduled for batch {batch.id}", extra_fields={"batch_id": batch.id})
        return alert
