"""
Observability Module for the Regulator Backend

Provides:
- Structured logging with correlation IDs
- Metrics collection (workflows, external calls, processing times)
"""

from core.observability.metrics import (
    MetricsCollector,
    get_metrics,
    record_workflow_started,
    record_workflow_completed,
    record_workflow_failed,
    record_workflow_cancelled,
    record_call_started,
    record_call_completed,
    record_call_failed,
    record_processing_time,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Metrics
    "MetricsCollector",
    "get_metrics",
    "record_workflow_started",
    "record_workflow_completed",
    "record_workflow_failed",
    "record_workflow_cancelled",
    "record_call_started",
    "record_call_completed",
    "record_call_failed",
    "record_processing_time",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
