"""Activity definitions module."""

from activities.recall import (
    RecallActivities,
    build_recall_activities,
    to_application_error,
    DraftRecallInput,
    DraftRecallOutput,
    ExecuteRecallInput,
    ExecuteRecallOutput,
)

__all__ = [
    # Recall activities
    "RecallActivities",
    "build_recall_activities",
    "to_application_error",
    "DraftRecallInput",
    "DraftRecallOutput",
    "ExecuteRecallInput",
    "ExecuteRecallOutput",
]
