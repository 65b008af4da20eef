"""
Metrics Collection for the Regulator Backend

Collects and exposes in-memory metrics for:
- Workflow lifecycle (started, completed, failed, cancelled) per workflow type
- External calls (text generation, batch source writes) per call name
- Processing times (average, p95)

Metrics are session-scoped, like the rest of the dashboard state.
"""

import statistics
from collections import defaultdict
from dataclasses import dataclass, field
from threading import Lock
from typing import Dict, List, Optional, Any


# =============================================================================
# Metric Data Classes
# =============================================================================

def _workflow_counters() -> Dict[str, int]:
    return {"started": 0, "completed": 0, "failed": 0, "cancelled": 0}


def _call_counters() -> Dict[str, int]:
    return {"started": 0, "completed": 0, "failed": 0}


@dataclass
class WorkflowMetrics:
    """Metrics for workflow execution."""
    started: int = 0
    completed: int = 0
    failed: int = 0
    cancelled: int = 0
    in_progress: int = 0

    by_type: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(_workflow_counters))


@dataclass
class CallMetrics:
    """Metrics for collaborator calls."""
    started: int = 0
    completed: int = 0
    failed: int = 0

    by_name: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(_call_counters))


@dataclass
class TimingMetrics:
    """Processing time metrics."""
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_stage: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, stage: Optional[str] = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if stage:
            self.by_stage[stage].append(duration_ms)
            if len(self.by_stage[stage]) > self.max_samples:
                self.by_stage[stage] = self.by_stage[stage][-self.max_samples:]

    def get_average(self, stage: Optional[str] = None) -> float:
        """Get average processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, stage: Optional[str] = None) -> float:
        """Get 95th percentile processing time."""
        samples = self.by_stage.get(stage, []) if stage else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


# =============================================================================
# Metrics Collector (Singleton)
# =============================================================================

class MetricsCollector:
    """
    Thread-safe metrics collector.

    Usage:
        metrics = MetricsCollector.instance()
        metrics.record_workflow_started("RecallWorkflow", workflow_id)
        metrics.record_call_completed("recall_communication", duration_ms=1500)
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self):
        self.workflows = WorkflowMetrics()
        self.calls = CallMetrics()
        self.timings = TimingMetrics()
        self._lock = Lock()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get singleton instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def reset(self) -> None:
        """Drop all collected metrics."""
        with self._lock:
            self.workflows = WorkflowMetrics()
            self.calls = CallMetrics()
            self.timings = TimingMetrics()

    # =========================================================================
    # Workflow Metrics
    # =========================================================================

    def record_workflow_started(self, workflow_type: str, workflow_id: str):
        """Record a workflow start."""
        with self._lock:
            self.workflows.started += 1
            self.workflows.in_progress += 1
            self.workflows.by_type[workflow_type]["started"] += 1

    def record_workflow_completed(self, workflow_type: str, workflow_id: str, duration_ms: Optional[float] = None):
        """Record a workflow completion."""
        with self._lock:
            self.workflows.completed += 1
            self.workflows.in_progress = max(0, self.workflows.in_progress - 1)
            self.workflows.by_type[workflow_type]["completed"] += 1

            if duration_ms:
                self.timings.add_sample(duration_ms, f"workflow.{workflow_type}")

    def record_workflow_failed(self, workflow_type: str, workflow_id: str, error: Optional[str] = None):
        """Record a failed step. The workflow stays open for a manual retry."""
        with self._lock:
            self.workflows.failed += 1
            self.workflows.by_type[workflow_type]["failed"] += 1

    def record_workflow_cancelled(self, workflow_type: str, workflow_id: str):
        """Record an abandoned workflow."""
        with self._lock:
            self.workflows.cancelled += 1
            self.workflows.in_progress = max(0, self.workflows.in_progress - 1)
            self.workflows.by_type[workflow_type]["cancelled"] += 1

    # =========================================================================
    # External Call Metrics
    # =========================================================================

    def record_call_started(self, call_name: str):
        """Record a collaborator call start."""
        with self._lock:
            self.calls.started += 1
            self.calls.by_name[call_name]["started"] += 1

    def record_call_completed(self, call_name: str, duration_ms: Optional[float] = None):
        """Record a collaborator call completion."""
        with self._lock:
            self.calls.completed += 1
            self.calls.by_name[call_name]["completed"] += 1

            if duration_ms:
                self.timings.add_sample(duration_ms, f"call.{call_name}")

    def record_call_failed(self, call_name: str, error: Optional[str] = None):
        """Record a collaborator call failure."""
        with self._lock:
            self.calls.failed += 1
            self.calls.by_name[call_name]["failed"] += 1

    # =========================================================================
    # Timing Metrics
    # =========================================================================

    def record_processing_time(self, stage: str, duration_ms: float):
        """Record a processing time sample."""
        with self._lock:
            self.timings.add_sample(duration_ms, stage)

    def get_timing_stats(self, stage: Optional[str] = None) -> Dict[str, float]:
        """Get timing statistics for a stage."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(stage),
                "p95_ms": self.timings.get_p95(stage),
                "sample_count": len(self.timings.by_stage.get(stage, []) if stage else self.timings.samples),
            }

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "workflows": {
                    "started": self.workflows.started,
                    "completed": self.workflows.completed,
                    "failed": self.workflows.failed,
                    "cancelled": self.workflows.cancelled,
                    "in_progress": self.workflows.in_progress,
                    "by_type": {k: dict(v) for k, v in self.workflows.by_type.items()},
                },
                "calls": {
                    "started": self.calls.started,
                    "completed": self.calls.completed,
                    "failed": self.calls.failed,
                    "by_name": {k: dict(v) for k, v in self.calls.by_name.items()},
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_stage": {
                        stage: {
                            "average_ms": self.timings.get_average(stage),
                            "p95_ms": self.timings.get_p95(stage),
                        }
                        for stage in self.timings.by_stage.keys()
                    },
                },
            }


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return MetricsCollector.instance()


def record_workflow_started(workflow_type: str, workflow_id: str):
    """Record a workflow start."""
    get_metrics().record_workflow_started(workflow_type, workflow_id)


def record_workflow_completed(workflow_type: str, workflow_id: str, duration_ms: Optional[float] = None):
    """Record a workflow completion."""
    get_metrics().record_workflow_completed(workflow_type, workflow_id, duration_ms)


def record_workflow_failed(workflow_type: str, workflow_id: str, error: Optional[str] = None):
    """Record a failed workflow step."""
    get_metrics().record_workflow_failed(workflow_type, workflow_id, error)


def record_workflow_cancelled(workflow_type: str, workflow_id: str):
    """Record an abandoned workflow."""
    get_metrics().record_workflow_cancelled(workflow_type, workflow_id)


def record_call_started(call_name: str):
    """Record a collaborator call start."""
    get_metrics().record_call_started(call_name)


def record_call_completed(call_name: str, duration_ms: Optional[float] = None):
    """Record a collaborator call completion."""
    get_metrics().record_call_completed(call_name, duration_ms)


def record_call_failed(call_name: str, error: Optional[str] = None):
    """Record a collaborator call failure."""
    get_metrics().record_call_failed(call_name, error)


def record_processing_time(stage: str, duration_ms: float):
    """Record a processing time sample."""
    get_metrics().record_processing_time(stage, duration_ms)
