"""Batch recall workflow (in-process orchestrator).

Three steps, driven by the operator:

    1. AWAITING_JUSTIFICATION          reason -> draft bilingual communication
    2. AWAITING_COMMUNICATION_APPROVAL confirm -> RECALLED transition
    3. COMPLETED

The transition engine is only ever invoked from step 2, so a batch is
never recalled without a successfully drafted communication.
"""

import time
import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

from core.audit.events import AuditEventType, AuditLogger
from core.audit.history import ledger_reference
from core.errors import ExternalServiceError, InvalidTransitionError, TraceError
from core.models.alerts import AlertType, create_alert
from core.models.batch import ACTION_RECALLED, Actor, Batch, BatchStatus, HistoryEvent, RecallDetails
from core.notifications import AlertBoard
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import (
    record_workflow_cancelled,
    record_workflow_completed,
    record_workflow_failed,
    record_workflow_started,
)
from core.workflow.base import RecallState, RecallStep
from core.workflow.transitions import StatusTransitionEngine
from drafting.service import DraftingService


logger = get_logger(__name__)

WORKFLOW_TYPE = "batch_recall"

Clock = Callable[[], datetime]


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def build_recall_event(batch_id: str, reason: str, timestamp: datetime) -> HistoryEvent:
    """History event recorded when a regulator recalls a batch."""
    return HistoryEvent(
        actor=Actor.REGULATOR,
        action=ACTION_RECALLED,
        timestamp=timestamp,
        hash=ledger_reference(batch_id, ACTION_RECALLED, timestamp, {"reason": reason}),
        details=RecallDetails(reason=reason),
    )


def new_workflow_id(batch_id: str) -> str:
    return f"recall-{batch_id}-{uuid.uuid4().hex[:8]}"


class RecallWorkflow:
    """Runs one recall of one batch."""

    def __init__(
        self,
        batch: Batch,
        engine: StatusTransitionEngine,
        drafting: DraftingService,
        alerts: Optional[AlertBoard] = None,
        audit: Optional[AuditLogger] = None,
        clock: Optional[Clock] = None,
        workflow_id: Optional[str] = None,
    ):
        if batch.is_recalled:
            raise InvalidTransitionError(f"Batch {batch.id} has already been recalled", batch_id=batch.id)

        self.batch = batch
        self.engine = engine
        self.drafting = drafting
        self.alerts = alerts
        self.audit = audit
        self.clock = clock or _utc_now
        self.workflow_id = workflow_id or new_workflow_id(batch.id)
        self.state = RecallState(batch_id=batch.id)
        self._started = time.monotonic()

        record_workflow_started(WORKFLOW_TYPE, self.workflow_id)
        self._audit_info(AuditEventType.RECALL_STARTED, f"Recall started for batch {batch.id}")
        logger.info(f"Recall workflow {self.workflow_id} started for batch {batch.id}")

    @property
    def step(self) -> RecallStep:
        return self.state.step

    def _correlation(self, stage: str):
        return with_correlation(
            batch_id=self.batch.id,
            workflow_id=self.workflow_id,
            workflow_type=WORKFLOW_TYPE,
            stage=stage,
        )

    async def generate_communication(self, reason: str) -> str:
        """Step 1: draft the recall communication for `reason`.

        Raises:
            ValidationError: reason is blank (step unchanged)
            ExternalServiceError: drafting failed (step unchanged, error recorded)
            WorkflowStateError: not in step 1, or a draft is already in flight
        """
        reason = self.state.begin_draft(reason)
        with self._correlation("draft"):
            try:
                text = await self.drafting.recall_communication(self.batch, reason)
            except ExternalServiceError as e:
                self.state.draft_failed(e.message)
                e.workflow_id = e.workflow_id or self.workflow_id
                record_workflow_failed(WORKFLOW_TYPE, self.workflow_id, e.message)
                self._audit_warning(
                    AuditEventType.RECALL_DRAFT_FAILED,
                    f"Recall communication draft failed: {e.message}",
                )
                logger.warning(f"Recall draft failed: {e.message}")
                raise

            self.state.draft_succeeded(text)
            self._audit_info(
                AuditEventType.RECALL_DRAFTED,
                f"Recall communication drafted for batch {self.batch.id}",
                details={"reason": reason},
            )
            return text

    async def confirm(self) -> Batch:
        """Step 2: record the recall on the batch.

        Returns:
            The recalled batch

        Raises:
            WorkflowStateError: no approved draft, or already in flight
            NotFoundError / InvalidTransitionError / ExternalServiceError: from the
                transition engine (step unchanged, error recorded)
        """
        self.state.begin_execution()
        event = build_recall_event(self.batch.id, self.state.reason, self.clock())

        with self._correlation("execute"):
            try:
                updated = await self.engine.transition(self.batch.id, BatchStatus.RECALLED, event)
            except TraceError as e:
                self.state.execution_failed(e.message)
                e.workflow_id = e.workflow_id or self.workflow_id
                record_workflow_failed(WORKFLOW_TYPE, self.workflow_id, e.message)
                if self.audit is not None:
                    self.audit.log_error(
                        AuditEventType.RECALL_FAILED,
                        f"Recall of batch {self.batch.id} failed: {e.message}",
                        batch_id=self.batch.id,
                        workflow_id=self.workflow_id,
                        actor=Actor.REGULATOR.value,
                    )
                logger.error(f"Recall execution failed: {e.message}")
                raise

            self.state.execution_succeeded()
            self.batch = updated

            if self.alerts is not None:
                self.alerts.push(create_alert(
                    title=f"Recall Issued: {updated.id}",
                    description=(
                        f"{updated.plant_type} batch from {updated.farmer_name} has been recalled. "
                        f"Reason: {self.state.reason}"
                    ),
                    alert_type=AlertType.DANGER,
                    timestamp=event.timestamp,
                ))
            self._audit_info(
                AuditEventType.RECALL_EXECUTED,
                f"Batch {updated.id} recalled",
                details={"reason": self.state.reason, "hash": event.hash},
            )
            duration_ms = (time.monotonic() - self._started) * 1000
            record_workflow_completed(WORKFLOW_TYPE, self.workflow_id, duration_ms)
            logger.info(f"Batch {updated.id} recalled", extra_fields={"hash": event.hash})
            return updated

    def cancel(self) -> None:
        """Abandon the recall. Nothing is written to the batch."""
        self.state.cancel()
        record_workflow_cancelled(WORKFLOW_TYPE, self.workflow_id)
        self._audit_info(AuditEventType.RECALL_CANCELLED, f"Recall of batch {self.batch.id} cancelled")
        logger.info(f"Recall workflow {self.workflow_id} cancelled")

    def to_dict(self) -> dict:
        data = self.state.to_dict()
        data["workflow_id"] = self.workflow_id
        data["batch_status"] = self.batch.status.value
        return data

    def _audit_info(self, event_type: AuditEventType, message: str, **kwargs) -> None:
        if self.audit is not None:
            self.audit.log_info(
                event_type, message,
                batch_id=self.batch.id, workflow_id=self.workflow_id, actor=Actor.REGULATOR.value,
                **kwargs,
            )

    def _audit_warning(self, event_type: AuditEventType, message: str) -> None:
        if self.audit is not None:
            self.audit.log_warning(
                event_type, message,
                batch_id=self.batch.id, workflow_id=self.workflow_id, actor=Actor.REGULATOR.value,
            )
