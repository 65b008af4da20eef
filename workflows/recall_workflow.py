"""
Batch Recall Workflow

Durable version of the three-step recall:
AWAITING_JUSTIFICATION → (submit_reason) draft communication →
AWAITING_COMMUNICATION_APPROVAL → (confirm) execute recall → COMPLETED

The operator drives it with workflow updates. Each update's validator runs
the same RecallState guard as the in-process recall, so a request that is
out of step (a confirm before any draft exists, a second reason while a
draft is in flight) is rejected when it is sent and never replayed later.
Activities run once per request; a failed draft or execution fails that
update and leaves the workflow on the same step, with the error recorded,
until the operator tries again.

A batch that is unknown or already RECALLED is rejected by the first draft,
before any text is generated, and the workflow fails with that error.
"""

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Dict, Optional

from temporalio import workflow
from temporalio.common import RetryPolicy
from temporalio.exceptions import ActivityError, ApplicationError

# Import activities
with workflow.unsafe.imports_passed_through():
    from activities.recall import (
        RecallActivities,
        DraftRecallInput,
        ExecuteRecallInput,
        to_application_error,
    )
    from core.errors import TraceError, WorkflowStateError
    from core.workflow.base import RecallState


# No automatic retry: a failed call waits for the operator
SINGLE_ATTEMPT = RetryPolicy(maximum_attempts=1)

DRAFT_TIMEOUT = timedelta(seconds=120)
EXECUTE_TIMEOUT = timedelta(seconds=30)


# =============================================================================
# Workflow Input/Output
# =============================================================================

@dataclass
class BatchRecallInput:
    """Input for the batch recall workflow"""
    batch_id: str


@dataclass
class BatchRecallOutput:
    """Output from the batch recall workflow"""
    batch_id: str
    step: str
    reason: Optional[str] = None
    communication: Optional[str] = None
    batch_status: Optional[str] = None
    ledger_hash: Optional[str] = None
    error: Optional[str] = None


# The batch itself cannot be recalled; no later request can succeed
REJECTING_ERRORS = ("InvalidTransitionError", "NotFoundError")


def _failure_message(error: ActivityError) -> str:
    cause = error.cause
    if isinstance(cause, ApplicationError):
        return cause.message
    return str(cause) if cause is not None else str(error)


def _update_failure(error: ActivityError) -> ApplicationError:
    """Activity failure as an update failure the client can read the type of."""
    cause = error.cause
    error_type = cause.type if isinstance(cause, ApplicationError) else type(cause or error).__name__
    return ApplicationError(_failure_message(error), type=error_type, non_retryable=True)


# =============================================================================
# Batch Recall Workflow
# =============================================================================

@workflow.defn
class BatchRecallWorkflow:
    """
    Operator-driven recall of one batch.

    Updates:
    - submit_reason(reason): step 1, draft the communication
    - confirm(): step 2, record the recall
    - cancel(): abandon before completion

    Query:
    - status(): current step, draft and last error
    """

    @workflow.init
    def __init__(self, input: BatchRecallInput):
        self._state = RecallState(batch_id=input.batch_id)
        self._rejection: Optional[ApplicationError] = None
        self._batch_status: Optional[str] = None
        self._ledger_hash: Optional[str] = None

    @workflow.run
    async def run(self, input: BatchRecallInput) -> BatchRecallOutput:
        """Execute the batch recall workflow."""
        workflow.logger.info(f"Starting recall workflow for {input.batch_id}")

        await workflow.wait_condition(
            lambda: (self._state.is_terminal or self._rejection is not None)
            and workflow.all_handlers_finished()
        )
        if self._rejection is not None:
            workflow.logger.warning(f"Recall of {input.batch_id} rejected: {self._rejection.message}")
            raise ApplicationError(self._rejection.message, type=self._rejection.type, non_retryable=True)

        workflow.logger.info(f"Recall workflow for {input.batch_id} finished: {self._state.step.value}")
        return BatchRecallOutput(
            batch_id=input.batch_id,
            step=self._state.step.value,
            reason=self._state.reason or None,
            communication=self._state.communication,
            batch_status=self._batch_status,
            ledger_hash=self._ledger_hash,
            error=self._state.error,
        )

    def _check(self, guard: Callable, *args) -> Any:
        """Run a RecallState guard, raising its error as an ApplicationError."""
        try:
            if self._rejection is not None:
                raise WorkflowStateError(
                    f"Recall for {self._state.batch_id} was rejected: {self._rejection.message}",
                    batch_id=self._state.batch_id,
                )
            return guard(*args)
        except TraceError as e:
            raise to_application_error(e) from e

    # -------------------------------------------------------------------------
    # Step 1: justification
    # -------------------------------------------------------------------------

    @workflow.update
    async def submit_reason(self, reason: str) -> Dict[str, Any]:
        """Draft the recall communication for `reason`."""
        reason = self._check(self._state.begin_draft, reason)

        try:
            result = await workflow.execute_activity_method(
                RecallActivities.draft_recall_communication,
                DraftRecallInput(
                    batch_id=self._state.batch_id,
                    reason=reason,
                    workflow_id=workflow.info().workflow_id,
                ),
                start_to_close_timeout=DRAFT_TIMEOUT,
                retry_policy=SINGLE_ATTEMPT,
            )
        except ActivityError as e:
            self._state.draft_failed(_failure_message(e))
            workflow.logger.warning(f"Recall draft failed: {self._state.error}")
            failure = _update_failure(e)
            if failure.type in REJECTING_ERRORS:
                self._rejection = failure
            raise failure from e

        self._state.draft_succeeded(result.communication)
        return self.status()

    @submit_reason.validator
    def validate_submit_reason(self, reason: str) -> None:
        self._check(self._state.check_draft, reason)

    # -------------------------------------------------------------------------
    # Step 2: communication approval
    # -------------------------------------------------------------------------

    @workflow.update
    async def confirm(self) -> Dict[str, Any]:
        """Record the recall on the batch."""
        self._check(self._state.begin_execution)

        try:
            result = await workflow.execute_activity_method(
                RecallActivities.execute_recall,
                ExecuteRecallInput(
                    batch_id=self._state.batch_id,
                    reason=self._state.reason,
                    workflow_id=workflow.info().workflow_id,
                    timestamp=workflow.now().isoformat(),
                ),
                start_to_close_timeout=EXECUTE_TIMEOUT,
                retry_policy=SINGLE_ATTEMPT,
            )
        except ActivityError as e:
            self._state.execution_failed(_failure_message(e))
            workflow.logger.error(f"Recall execution failed: {self._state.error}")
            raise _update_failure(e) from e

        self._state.execution_succeeded()
        self._batch_status = result.status
        self._ledger_hash = result.hash
        return self.status()

    @confirm.validator
    def validate_confirm(self) -> None:
        self._check(self._state.check_execution)

    @workflow.update
    def cancel(self) -> Dict[str, Any]:
        """Abandon the recall. Nothing is written to the batch."""
        self._check(self._state.cancel)
        workflow.logger.info(f"Recall for {self._state.batch_id} cancelled")
        return self.status()

    @cancel.validator
    def validate_cancel(self) -> None:
        self._check(self._state.check_cancel)

    @workflow.query
    def status(self) -> Dict[str, Any]:
        data = self._state.to_dict()
        data["batch_status"] = self._batch_status
        data["ledger_hash"] = self._ledger_hash
        return data
