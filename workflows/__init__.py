"""Temporal workflow definitions."""

from workflows.recall_workflow import (
    BatchRecallWorkflow,
    BatchRecallInput,
    BatchRecallOutput,
)

__all__ = [
    "BatchRecallWorkflow",
    "BatchRecallInput",
    "BatchRecallOutput",
]
