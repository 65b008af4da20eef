"""
Status Transition Engine Tests

Validates status transitions on the session collection:
1. A transition sets the status and appends exactly the given event
2. Unknown ids raise NotFoundError and leave the collection unmodified
3. RECALLED is final
4. Source write failures roll back (or keep, per policy) the optimistic update
5. Statistics are recomputed on every change
"""

import asyncio
from datetime import datetime, timezone
from unittest.mock import AsyncMock

import pytest

from connectors.memory import InMemoryBatchSource
from core.errors import ExternalServiceError, InvalidTransitionError, NotFoundError, ValidationError
from core.models.batch import Actor, Batch, BatchStatus, HistoryEvent
from core.workflow.transitions import BatchCollection, StatusTransitionEngine, check_transition, load_collection


TS = datetime(2023, 10, 8, 9, 30, tzinfo=timezone.utc)


def _event(action="Batch Recalled", reason="Pesticide levels exceed limits"):
    return HistoryEvent(
        actor=Actor.REGULATOR,
        action=action,
        timestamp=TS,
        hash="0x00000000deadbeef",
        details={"reason": reason},
    )


class FailingSource(InMemoryBatchSource):
    """Batch source whose writes always fail."""

    def __init__(self, batches, error):
        super().__init__(batches)
        self.error = error

    async def update_status(self, batch_id, status, event):
        raise self.error


def _setup(batches, source=None, rollback_on_failure=True):
    source = source or InMemoryBatchSource(batches)
    collection = asyncio.run(load_collection(source))
    engine = StatusTransitionEngine(source, collection, rollback_on_failure=rollback_on_failure)
    return source, collection, engine


class TestCheckTransition:

    @pytest.mark.parametrize("current", ["COLLECTED", "TESTING", "PROCESSED", "SHIPPED"])
    def test_any_status_may_be_recalled(self, current):
        check_transition(BatchStatus(current), BatchStatus.RECALLED)

    @pytest.mark.parametrize("new", list(BatchStatus))
    def test_nothing_leaves_recalled(self, new):
        with pytest.raises(InvalidTransitionError):
            check_transition(BatchStatus.RECALLED, new)


class TestTransition:

    def test_recall_appends_event_and_sets_status(self, make_batch):
        batch = make_batch("TUL-MP-003", "TESTING", events=2)
        source, collection, engine = _setup([batch])
        event = _event()

        updated = asyncio.run(engine.transition("TUL-MP-003", BatchStatus.RECALLED, event))

        assert updated.status == BatchStatus.RECALLED
        assert len(updated.history) == 3
        assert updated.history[-1] == event
        assert collection.get("TUL-MP-003") == updated
        assert asyncio.run(source.get_batch("TUL-MP-003")) == updated
        # Original value untouched
        assert batch.status == BatchStatus.TESTING
        assert len(batch.history) == 2

    def test_non_recall_transition(self, make_batch):
        _, collection, engine = _setup([make_batch("BRA-RJ-003", "TESTING")])
        event = HistoryEvent(actor=Actor.LABORATORY, action="Quality Test Passed", timestamp=TS, hash="0x01")

        updated = asyncio.run(engine.transition("BRA-RJ-003", BatchStatus.PROCESSED, event))
        assert updated.status == BatchStatus.PROCESSED
        assert updated.last_event.action == "Quality Test Passed"

    def test_unknown_batch_leaves_collection_unmodified(self, make_batch):
        batches = [make_batch("A-1", "SHIPPED"), make_batch("A-2", "TESTING")]
        _, collection, engine = _setup(batches)
        before = collection.all()
        stats_before = collection.stats

        with pytest.raises(NotFoundError):
            asyncio.run(engine.transition("NOPE-000", BatchStatus.RECALLED, _event()))

        assert collection.all() == before
        assert collection.stats == stats_before

    def test_recalled_batch_cannot_transition(self, make_batch):
        source = AsyncMock(spec=InMemoryBatchSource)
        batch = make_batch("TUL-MP-003", "RECALLED")
        source.list_batches.return_value = [batch]
        _, collection, engine = _setup([batch], source=source)

        with pytest.raises(InvalidTransitionError):
            asyncio.run(engine.transition("TUL-MP-003", BatchStatus.RECALLED, _event()))

        source.update_status.assert_not_called()
        assert collection.get("TUL-MP-003") == batch

    def test_stats_follow_transitions(self, make_batch):
        batches = [make_batch(f"A-{i}", "SHIPPED") for i in range(4)] + [make_batch("A-4", "TESTING")]
        _, collection, engine = _setup(batches)
        assert collection.stats.compliance_rate == "100.0%"

        asyncio.run(engine.transition("A-4", BatchStatus.RECALLED, _event()))

        assert collection.stats.recalled_batches == 1
        assert collection.stats.compliance_rate == "80.0%"

    def test_listeners_notified(self, make_batch):
        _, collection, engine = _setup([make_batch("A-1", "TESTING")])
        seen = []
        collection.subscribe(lambda c: seen.append(c.get("A-1").status))

        asyncio.run(engine.transition("A-1", BatchStatus.RECALLED, _event()))

        # Optimistic update, then the confirmed value
        assert seen == [BatchStatus.RECALLED, BatchStatus.RECALLED]


class TestWriteFailure:

    def test_rollback_on_failure(self, make_batch):
        batch = make_batch("A-1", "TESTING")
        source = FailingSource([batch], RuntimeError("connection reset"))
        _, collection, engine = _setup([batch], source=source)

        with pytest.raises(ExternalServiceError) as exc_info:
            asyncio.run(engine.transition("A-1", BatchStatus.RECALLED, _event()))

        assert "connection reset" in exc_info.value.message
        assert exc_info.value.batch_id == "A-1"
        assert collection.get("A-1") == batch
        assert collection.stats.recalled_batches == 0

    def test_keep_optimistic_value_when_rollback_disabled(self, make_batch):
        batch = make_batch("A-1", "TESTING")
        source = FailingSource([batch], RuntimeError("connection reset"))
        _, collection, engine = _setup([batch], source=source, rollback_on_failure=False)

        with pytest.raises(ExternalServiceError):
            asyncio.run(engine.transition("A-1", BatchStatus.RECALLED, _event()))

        assert collection.get("A-1").status == BatchStatus.RECALLED
        assert collection.stats.recalled_batches == 1

    def test_domain_errors_propagate_unchanged(self, make_batch):
        batch = make_batch("A-1", "TESTING")
        source = FailingSource([batch], NotFoundError("Batch A-1 not found", batch_id="A-1"))
        _, collection, engine = _setup([batch], source=source)

        with pytest.raises(NotFoundError):
            asyncio.run(engine.transition("A-1", BatchStatus.RECALLED, _event()))
        assert collection.get("A-1") == batch


class TestCollection:

    def test_replace_unknown_batch(self, make_batch):
        collection = BatchCollection([make_batch("A-1")])
        with pytest.raises(NotFoundError):
            collection.replace(make_batch("A-2"))

    def test_load_order_preserved(self, make_batch):
        collection = BatchCollection([make_batch("B"), make_batch("A"), make_batch("C")])
        assert [b.id for b in collection.all()] == ["B", "A", "C"]

    def test_ingest(self, make_batch):
        _, collection, engine = _setup([make_batch("A-1")])
        new = Batch.create(
            id="GIL-KA-007",
            farmer_name="Lakshmi Rao",
            plant_type="Giloy",
            location={"lat": 15.3, "lng": 75.7, "state": "Karnataka"},
        )
        asyncio.run(engine.ingest(new))
        assert "GIL-KA-007" in collection
        assert collection.stats.total_batches == 2

    def test_ingest_duplicate_rejected(self, make_batch):
        _, collection, engine = _setup([make_batch("A-1")])
        with pytest.raises(ValidationError):
            asyncio.run(engine.ingest(make_batch("A-1")))
        assert len(collection) == 1
