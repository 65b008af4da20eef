"""Status transition engine and the session batch collection.

The engine is the only component that changes a batch. A transition sets
the new status and appends one history event as a single step, writes
through to the batch source, and replaces the batch in the session
collection by id.

Update policy: the session view is updated optimistically before the
source write. If the write fails, the view is rolled back when
`rollback_on_failure` is set, or left as-is (eventual consistency) when
it is not. The error propagates either way.
"""

import time
from typing import Callable, Dict, Iterable, List, Optional

from connectors.base import BatchSource
from core.analytics.stats import StatsSnapshot, compute_stats
from core.audit.history import append
from core.errors import InvalidTransitionError, NotFoundError, TraceError, ExternalServiceError
from core.models.batch import Batch, BatchStatus, HistoryEvent
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import record_processing_time


logger = get_logger(__name__)

CollectionListener = Callable[["BatchCollection"], None]


class BatchCollection:
    """Session view of the batch collection.

    Batches keep their load order. Every change recomputes the statistics
    snapshot and notifies subscribers.
    """

    def __init__(self, batches: Iterable[Batch] = ()):
        self._batches: Dict[str, Batch] = {}
        self._listeners: List[CollectionListener] = []
        self._stats = compute_stats([])
        self.load(batches)

    def load(self, batches: Iterable[Batch]) -> None:
        """Replace the whole collection."""
        self._batches = {b.id: b for b in batches}
        self._changed()

    def all(self) -> List[Batch]:
        return list(self._batches.values())

    def get(self, batch_id: str) -> Batch:
        try:
            return self._batches[batch_id]
        except KeyError:
            raise NotFoundError(f"Batch {batch_id} not found", batch_id=batch_id)

    def __contains__(self, batch_id: str) -> bool:
        return batch_id in self._batches

    def __len__(self) -> int:
        return len(self._batches)

    def replace(self, batch: Batch) -> None:
        """Swap in a new value for an existing batch (matched by id)."""
        if batch.id not in self._batches:
            raise NotFoundError(f"Batch {batch.id} not found", batch_id=batch.id)
        self._batches[batch.id] = batch
        self._changed()

    def add(self, batch: Batch) -> None:
        """Add a newly ingested batch at the end."""
        self._batches[batch.id] = batch
        self._changed()

    @property
    def stats(self) -> StatsSnapshot:
        """Statistics for the current contents."""
        return self._stats

    def subscribe(self, listener: CollectionListener) -> None:
        """Call `listener(collection)` after every change."""
        self._listeners.append(listener)

    def _changed(self) -> None:
        self._stats = compute_stats(self.all())
        for listener in self._listeners:
            listener(self)


def check_transition(current: BatchStatus, new_status: BatchStatus, batch_id: Optional[str] = None) -> None:
    """Guard a status change.

    Any status may be set, except that a recall is final: nothing leaves
    RECALLED, and a recalled batch cannot be recalled again.

    Raises:
        InvalidTransitionError
    """
    if current == BatchStatus.RECALLED:
        raise InvalidTransitionError(
            f"Batch is already {BatchStatus.RECALLED.value}; a recall cannot be reversed or repeated",
            batch_id=batch_id,
        )


def apply_transition(batch: Batch, new_status: BatchStatus, event: HistoryEvent) -> Batch:
    """New batch value with `new_status` set and `event` appended."""
    check_transition(batch.status, new_status, batch_id=batch.id)
    return append(batch, event).model_copy(update={"status": new_status})


class StatusTransitionEngine:
    """Applies status transitions to batches."""

    def __init__(
        self,
        source: BatchSource,
        collection: BatchCollection,
        rollback_on_failure: bool = True,
    ):
        self.source = source
        self.collection = collection
        self.rollback_on_failure = rollback_on_failure

    async def transition(self, batch_id: str, new_status: BatchStatus, event: HistoryEvent) -> Batch:
        """Set a batch's status and append `event` to its history.

        Returns:
            The updated batch

        Raises:
            NotFoundError: no batch with that id; the collection is unchanged
            InvalidTransitionError: the batch is already recalled
            ExternalServiceError: the batch source write failed
        """
        with with_correlation(batch_id=batch_id, stage="transition"):
            current = self.collection.get(batch_id)
            candidate = apply_transition(current, new_status, event)

            self.collection.replace(candidate)
            start = time.monotonic()
            try:
                updated = await self.source.update_status(batch_id, new_status, event)
            except TraceError as e:
                self._on_write_failure(current, e)
                raise
            except Exception as e:
                self._on_write_failure(current, e)
                raise ExternalServiceError(
                    f"Failed to update batch {batch_id}: {e}",
                    service="batch_source",
                    batch_id=batch_id,
                ) from e

            self.collection.replace(updated)
            record_processing_time("transition", (time.monotonic() - start) * 1000)
            logger.info(
                f"Batch {batch_id} moved {current.status.value} -> {new_status.value}",
                extra_fields={"action": event.action, "actor": event.actor.value},
            )
            return updated

    async def ingest(self, batch: Batch) -> Batch:
        """Record a newly created batch in the source and the session view."""
        recorded = await self.source.add_batch(batch)
        self.collection.add(recorded)
        logger.info(f"Batch {recorded.id} ingested", extra_fields={"plant_type": recorded.plant_type})
        return recorded

    def _on_write_failure(self, previous: Batch, error: Exception) -> None:
        if self.rollback_on_failure:
            self.collection.replace(previous)
            logger.warning(f"Status update failed, rolled back: {error}")
        else:
            logger.warning(f"Status update failed, keeping optimistic value: {error}")


async def load_collection(source: BatchSource, collection: Optional[BatchCollection] = None) -> BatchCollection:
    """Load every batch from the source into a (new or existing) session collection."""
    batches = await source.list_batches()
    if collection is None:
        return BatchCollection(batches)
    collection.load(batches)
    return collection
