"""
Observability Validation Test

This test validates the observability stack:
1. Metrics collection works (workflow/call/timing metrics)
2. Structured logging with correlation IDs works
3. Operator audit events are recorded and queryable

Pass criteria: From one batch id, you can find the recall workflow run
and its audit trail.
"""

import json
import logging

import pytest

from core.audit.events import (
    AuditEventType,
    AuditLogger,
    InMemoryAuditBackend,
    JSONFileAuditBackend,
    build_audit_logger,
)
from core.models.audit import AuditSeverity


def test_observability_imports():
    """Verify all observability modules import correctly."""
    from core.observability import (
        MetricsCollector, get_metrics,
        record_workflow_started, record_workflow_completed, record_workflow_failed,
        record_workflow_cancelled, record_call_started, record_call_completed,
        record_processing_time,
        get_logger, CorrelationContext,
    )
    assert MetricsCollector is not None
    assert get_metrics is not None
    assert CorrelationContext is not None


class TestMetricsCollector:
    """Test the metrics collection system."""

    def test_singleton_instance(self):
        """MetricsCollector returns same instance."""
        from core.observability.metrics import MetricsCollector
        m1 = MetricsCollector.instance()
        m2 = MetricsCollector.instance()
        assert m1 is m2

    def test_workflow_metrics_tracking(self):
        """Track workflow started/completed/failed/cancelled counts."""
        from core.observability.metrics import MetricsCollector
        mc = MetricsCollector.instance()

        mc.record_workflow_started("batch_recall", "recall-A-1")
        mc.record_workflow_started("batch_recall", "recall-A-2")
        mc.record_workflow_started("batch_recall", "recall-A-3")
        mc.record_workflow_completed("batch_recall", "recall-A-1")
        mc.record_workflow_failed("batch_recall", "recall-A-2", "quota exceeded")
        mc.record_workflow_cancelled("batch_recall", "recall-A-3")

        summary = mc.get_summary()
        assert summary["workflows"]["started"] == 3
        assert summary["workflows"]["completed"] == 1
        assert summary["workflows"]["failed"] == 1
        assert summary["workflows"]["cancelled"] == 1
        # A failed step leaves the run open
        assert summary["workflows"]["in_progress"] == 1
        assert summary["workflows"]["by_type"]["batch_recall"]["cancelled"] == 1

    def test_call_tracking(self):
        """Track collaborator calls by name."""
        from core.observability.metrics import MetricsCollector
        mc = MetricsCollector.instance()

        mc.record_call_started("recall_communication")
        mc.record_call_completed("recall_communication", duration_ms=100)
        mc.record_call_started("rule_directive")
        mc.record_call_failed("rule_directive", error="timeout")

        summary = mc.get_summary()
        assert summary["calls"]["by_name"]["recall_communication"]["completed"] == 1
        assert summary["calls"]["by_name"]["rule_directive"]["failed"] == 1
        assert "call.recall_communication" in summary["timings"]["by_stage"]

    def test_timing_percentile_calculation(self):
        """Calculate p95 timing correctly."""
        from core.observability.metrics import MetricsCollector
        mc = MetricsCollector.instance()

        for i in range(1, 101):
            mc.record_processing_time("draft", i)

        stats = mc.get_timing_stats("draft")

        # Average should be ~50.5
        assert 49 <= stats["average_ms"] <= 52
        # P95 should be ~95
        assert 93 <= stats["p95_ms"] <= 97
        assert stats["sample_count"] == 100

    def test_reset(self):
        from core.observability.metrics import MetricsCollector
        mc = MetricsCollector.instance()
        mc.record_workflow_started("rule_issuance", "rule-1")
        mc.reset()
        assert mc.get_summary()["workflows"]["started"] == 0


class TestCorrelatedLogging:
    """Test structured logging with correlation IDs."""

    def test_correlation_context_creation(self):
        """Create correlation context with all fields."""
        from core.observability.logging import CorrelationContext

        ctx = CorrelationContext(
            batch_id="TUL-MP-003",
            workflow_id="recall-TUL-MP-003-1a2b3c4d",
            workflow_run_id="run-123",
            activity_name="draft_recall_communication",
        )

        assert ctx.batch_id == "TUL-MP-003"
        assert ctx.workflow_id == "recall-TUL-MP-003-1a2b3c4d"
        assert ctx.to_dict()["activity_name"] == "draft_recall_communication"
        assert "stage" not in ctx.to_dict()

    def test_context_var_isolation(self):
        """Context is restored when the block exits."""
        from core.observability.logging import get_correlation_context, with_correlation

        assert get_correlation_context().batch_id is None

        with with_correlation(batch_id="TUL-MP-003"):
            with with_correlation(stage="draft"):
                inner_ctx = get_correlation_context()
                assert inner_ctx.batch_id == "TUL-MP-003"
                assert inner_ctx.stage == "draft"
            assert get_correlation_context().stage is None

        assert get_correlation_context().batch_id is None

    def test_structured_formatter_json_output(self):
        """StructuredFormatter outputs valid JSON."""
        from core.observability.logging import StructuredFormatter, with_correlation

        formatter = StructuredFormatter()

        with with_correlation(batch_id="TUL-MP-003", workflow_id="recall-1"):
            record = logging.LogRecord(
                name="test",
                level=logging.INFO,
                pathname="test.py",
                lineno=10,
                msg="Test message",
                args=(),
                exc_info=None,
            )
            record.extra_fields = {"hash": "0xabc"}

            data = json.loads(formatter.format(record))

        assert data["message"] == "Test message"
        assert data["batch_id"] == "TUL-MP-003"
        assert data["workflow_id"] == "recall-1"
        assert data["hash"] == "0xabc"

    def test_human_readable_formatter(self):
        from core.observability.logging import HumanReadableFormatter, with_correlation

        formatter = HumanReadableFormatter()
        record = logging.LogRecord("core.workflow.recall", logging.INFO, "x.py", 1, "Recall executed", (), None)

        with with_correlation(batch_id="TUL-MP-003"):
            line = formatter.format(record)
        assert "[TUL-MP-003]" in line
        assert line.endswith("Recall executed")


class TestAuditLogger:
    """Operator audit trail."""

    def test_in_memory_query(self):
        audit = build_audit_logger()
        audit.log_info(AuditEventType.RECALL_STARTED, "started", batch_id="A-1", workflow_id="recall-1")
        audit.log_warning(AuditEventType.RECALL_DRAFT_FAILED, "failed", batch_id="A-1")
        audit.log_info(AuditEventType.RULE_ISSUED, "issued")

        events = audit.query(batch_id="A-1")
        assert [e.event_type for e in events] == ["RECALL_STARTED", "RECALL_DRAFT_FAILED"]
        assert events[1].severity == AuditSeverity.WARN
        assert len(audit.query(event_type="RULE_ISSUED")) == 1
        assert len(audit.query(limit=1)) == 1

    def test_no_backend(self):
        audit = AuditLogger()
        audit.log_info(AuditEventType.USER_LOGIN, "login")
        assert audit.query() == []

    def test_json_file_backend(self, tmp_path):
        audit = build_audit_logger(str(tmp_path))
        audit.log_error(AuditEventType.RECALL_FAILED, "ledger unavailable", batch_id="A-1")

        [path] = list(tmp_path.glob("*.json"))
        stored = json.loads(path.read_text(encoding="utf-8"))
        assert stored[0]["event_type"] == "RECALL_FAILED"
        assert stored[0]["severity"] == "ERROR"

        [event] = JSONFileAuditBackend(tmp_path).query(batch_id="A-1")
        assert event.message == "ledger unavailable"

    def test_backend_failure_does_not_raise(self):
        class BrokenBackend(InMemoryAuditBackend):
            def log(self, event):
                raise OSError("disk full")

        audit = AuditLogger()
        audit.add_backend(BrokenBackend())
        audit.add_backend(InMemoryAuditBackend())
        audit.log_info(AuditEventType.ALERT_DISMISSED, "dismissed")


class TestEndToEndTracing:
    """
    From a batch id to its recall workflow run and audit trail.
    This validates the pass criteria.
    """

    def test_trace_batch_to_workflow(self, make_batch):
        import asyncio

        from connectors.memory import CannedTextGenerator, InMemoryBatchSource
        from core.observability.metrics import get_metrics
        from core.workflow.recall import RecallWorkflow
        from core.workflow.transitions import StatusTransitionEngine, load_collection
        from drafting.service import DraftingService

        source = InMemoryBatchSource([make_batch("TUL-MP-003", "TESTING")])
        collection = asyncio.run(load_collection(source))
        audit = build_audit_logger()
        recall = RecallWorkflow(
            collection.get("TUL-MP-003"),
            StatusTransitionEngine(source, collection),
            DraftingService(CannedTextGenerator()),
            audit=audit,
        )
        asyncio.run(recall.generate_communication("Pesticide levels exceed limits"))
        asyncio.run(recall.confirm())

        events = audit.query(batch_id="TUL-MP-003")
        assert {e.workflow_id for e in events} == {recall.workflow_id}
        assert recall.workflow_id.startswith("recall-TUL-MP-003-")
        assert events[-1].details["hash"] == collection.get("TUL-MP-003").last_event.hash

        summary = get_metrics().get_summary()
        assert summary["workflows"]["completed"] == 1
        assert "workflow.batch_recall" in summary["timings"]["by_stage"]


if __name__ == "__main__":
    pytest.main([__file__, "-v", "-s"])
