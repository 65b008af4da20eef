"""Recall activities for the durable recall workflow.

Temporal activities that draft the recall communication and record the
recall on the batch. They are bound to a transition engine and drafting
service, so the worker builds one RecallActivities instance and registers
its methods.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from temporalio import activity
from temporalio.exceptions import ApplicationError

from connectors import build_text_generator
from connectors.base import BatchSource
from connectors.memory import InMemoryBatchSource
from core.config import Settings
from core.errors import InvalidTransitionError, TraceError
from core.models.alerts import AlertType, create_alert
from core.models.batch import Batch, BatchStatus
from core.notifications import AlertBoard
from core.observability.logging import with_correlation
from core.workflow.recall import build_recall_event
from core.workflow.transitions import BatchCollection, StatusTransitionEngine, load_collection
from drafting.service import DraftingService


# =============================================================================
# Data Classes
# =============================================================================

@dataclass
class DraftRecallInput:
    """Input for draft_recall_communication activity.

    Attributes:
        batch_id: Batch being recalled
        reason: Operator-supplied justification (already validated)
        workflow_id: Recall workflow ID for log correlation
    """
    batch_id: str
    reason: str
    workflow_id: str


@dataclass
class DraftRecallOutput:
    batch_id: str
    communication: str


@dataclass
class ExecuteRecallInput:
    """Input for execute_recall activity.

    Attributes:
        batch_id: Batch being recalled
        reason: Justification recorded in the history event details
        workflow_id: Recall workflow ID for log correlation
        timestamp: ISO-8601 event time, taken from the workflow clock
    """
    batch_id: str
    reason: str
    workflow_id: str
    timestamp: str


@dataclass
class ExecuteRecallOutput:
    batch_id: str
    status: str
    history_length: int
    hash: str


# =============================================================================
# Utility Functions
# =============================================================================

def to_application_error(error: TraceError) -> ApplicationError:
    """Domain errors are final for this attempt; retry is up to the operator."""
    return ApplicationError(error.message, type=type(error).__name__, non_retryable=True)


# =============================================================================
# Activities
# =============================================================================

class RecallActivities:
    """Recall activities bound to one engine and drafting service."""

    def __init__(
        self,
        engine: StatusTransitionEngine,
        drafting: DraftingService,
        alerts: Optional[AlertBoard] = None,
    ):
        self.engine = engine
        self.drafting = drafting
        self.alerts = alerts

    def all(self) -> list:
        """Bound activity methods, for Worker registration."""
        return [self.draft_recall_communication, self.execute_recall]

    def _recallable_batch(self, batch_id: str) -> Batch:
        batch = self.engine.collection.get(batch_id)
        if batch.is_recalled:
            raise InvalidTransitionError(f"Batch {batch.id} has already been recalled", batch_id=batch.id)
        return batch

    @activity.defn
    async def draft_recall_communication(self, input: DraftRecallInput) -> DraftRecallOutput:
        """Draft the bilingual recall communication for a batch.

        An unknown or already recalled batch is rejected before any drafting.
        """
        activity.logger.info(f"Drafting recall communication for {input.batch_id}")
        with with_correlation(
            batch_id=input.batch_id,
            workflow_id=input.workflow_id,
            activity_name="draft_recall_communication",
        ):
            try:
                batch = self._recallable_batch(input.batch_id)
                text = await self.drafting.recall_communication(batch, input.reason)
            except TraceError as e:
                activity.logger.warning(f"Recall draft failed for {input.batch_id}: {e.message}")
                raise to_application_error(e) from e

        return DraftRecallOutput(batch_id=input.batch_id, communication=text)

    @activity.defn
    async def execute_recall(self, input: ExecuteRecallInput) -> ExecuteRecallOutput:
        """Move the batch to RECALLED and append the regulator's history event."""
        activity.logger.info(f"Executing recall for {input.batch_id}")
        event = build_recall_event(input.batch_id, input.reason, datetime.fromisoformat(input.timestamp))

        with with_correlation(
            batch_id=input.batch_id,
            workflow_id=input.workflow_id,
            activity_name="execute_recall",
        ):
            try:
                updated = await self.engine.transition(input.batch_id, BatchStatus.RECALLED, event)
            except TraceError as e:
                activity.logger.error(f"Recall failed for {input.batch_id}: {e.message}")
                raise to_application_error(e) from e

        if self.alerts is not None:
            self.alerts.push(create_alert(
                title=f"Recall Issued: {updated.id}",
                description=f"{updated.plant_type} batch from {updated.farmer_name} has been recalled. Reason: {input.reason}",
                alert_type=AlertType.DANGER,
                timestamp=event.timestamp,
            ))

        activity.logger.info(f"✓ Batch {updated.id} recalled ({event.hash})")
        return ExecuteRecallOutput(
            batch_id=updated.id,
            status=updated.status.value,
            history_length=len(updated.history),
            hash=event.hash,
        )


async def build_recall_activities(settings: Settings, source: Optional[BatchSource] = None) -> RecallActivities:
    """Recall activities over `source` (the mock data set by default), with the batches loaded."""
    if source is None:
        # Local import: api.services pulls in FastAPI, which the worker otherwise does not need
        from api.services.mock_data import get_mock_batches
        source = InMemoryBatchSource(get_mock_batches(), latency_ms=settings.mock_latency_ms)

    collection = await load_collection(source, BatchCollection())
    engine = StatusTransitionEngine(source, collection, rollback_on_failure=settings.rollback_on_failure)
    drafting = DraftingService(build_text_generator(settings))
    return RecallActivities(engine, drafting, alerts=AlertBoard())
