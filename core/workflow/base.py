"""Base workflow types and utilities.

RecallState is a plain dataclass with no I/O so that both the in-process
orchestrator and the Temporal workflow can drive it. Keep imports here
limited to the standard library and core.errors.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from core.errors import ValidationError, WorkflowStateError


class RecallStep(str, Enum):
    """Recall workflow steps."""
    AWAITING_JUSTIFICATION = "AWAITING_JUSTIFICATION"
    AWAITING_COMMUNICATION_APPROVAL = "AWAITING_COMMUNICATION_APPROVAL"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


TERMINAL_STEPS = (RecallStep.COMPLETED, RecallStep.CANCELLED)

PENDING_DRAFT = "draft"
PENDING_EXECUTION = "execute"


@dataclass
class RecallState:
    """Guarded state of one recall workflow run.

    Each begin_* call marks an external call in flight; the matching
    *_succeeded / *_failed call clears it. A failed call leaves the step
    unchanged and records the error message for the operator.
    """
    batch_id: str
    step: RecallStep = RecallStep.AWAITING_JUSTIFICATION
    reason: str = ""
    communication: Optional[str] = None
    pending: Optional[str] = None
    error: Optional[str] = None

    @property
    def is_terminal(self) -> bool:
        return self.step in TERMINAL_STEPS

    def _require_step(self, *steps: RecallStep) -> None:
        if self.step not in steps:
            raise WorkflowStateError(
                f"Recall for {self.batch_id} is {self.step.value}",
                batch_id=self.batch_id,
            )

    def _require_idle(self) -> None:
        if self.pending is not None:
            raise WorkflowStateError(
                f"Recall for {self.batch_id} already has a {self.pending} call in progress",
                batch_id=self.batch_id,
            )

    # -------------------------------------------------------------------------
    # Step 1: justification
    # -------------------------------------------------------------------------

    def check_draft(self, reason: str) -> str:
        """Check that a draft may start for `reason`, without changing state.

        Returns:
            The reason, stripped of surrounding whitespace

        Raises:
            WorkflowStateError: not in step 1, or a call is in flight
            ValidationError: reason is blank
        """
        self._require_step(RecallStep.AWAITING_JUSTIFICATION)
        self._require_idle()
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError(
                "Please provide a reason before generating communication.",
                batch_id=self.batch_id,
            )
        return reason

    def begin_draft(self, reason: str) -> str:
        """Accept a reason and mark the draft call in flight."""
        self.reason = self.check_draft(reason)
        self.pending = PENDING_DRAFT
        self.error = None
        return self.reason

    def draft_succeeded(self, communication: str) -> None:
        self._require_pending(PENDING_DRAFT)
        self.communication = communication
        self.pending = None
        self.step = RecallStep.AWAITING_COMMUNICATION_APPROVAL

    def draft_failed(self, error: str) -> None:
        self._require_pending(PENDING_DRAFT)
        self.pending = None
        self.error = error

    # -------------------------------------------------------------------------
    # Step 2: communication approval
    # -------------------------------------------------------------------------

    def check_execution(self) -> None:
        """
        Raises:
            WorkflowStateError: no approved draft yet, or a call is in flight
        """
        self._require_step(RecallStep.AWAITING_COMMUNICATION_APPROVAL)
        self._require_idle()

    def begin_execution(self) -> None:
        """Mark the status update in flight."""
        self.check_execution()
        self.pending = PENDING_EXECUTION
        self.error = None

    def execution_succeeded(self) -> None:
        self._require_pending(PENDING_EXECUTION)
        self.pending = None
        self.step = RecallStep.COMPLETED

    def execution_failed(self, error: str) -> None:
        self._require_pending(PENDING_EXECUTION)
        self.pending = None
        self.error = error

    def check_cancel(self) -> None:
        """Cancelling is allowed in steps 1 and 2 while no call is in flight."""
        self._require_step(
            RecallStep.AWAITING_JUSTIFICATION,
            RecallStep.AWAITING_COMMUNICATION_APPROVAL,
        )
        self._require_idle()

    def cancel(self) -> None:
        self.check_cancel()
        self.step = RecallStep.CANCELLED

    def _require_pending(self, kind: str) -> None:
        if self.pending != kind:
            raise WorkflowStateError(
                f"Recall for {self.batch_id} has no {kind} call in progress",
                batch_id=self.batch_id,
            )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "batch_id": self.batch_id,
            "step": self.step.value,
            "reason": self.reason or None,
            "communication": self.communication,
            "in_progress": self.pending,
            "error": self.error,
        }
