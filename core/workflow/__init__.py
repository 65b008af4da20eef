"""Core workflow module - status transitions, recall and regulator actions.

The recall state machine in core.workflow.base is shared with the
Temporal workflow in workflows/; everything else here runs in-process.
"""

from core.workflow.base import (
    RecallStep,
    RecallState,
)

from core.workflow.transitions import (
    BatchCollection,
    StatusTransitionEngine,
    apply_transition,
    check_transition,
    load_collection,
)

from core.workflow.recall import (
    RecallWorkflow,
    build_recall_event,
)

from core.workflow.actions import (
    ContractUpgradeWorkflow,
    InspectionScheduler,
    RuleIssuanceWorkflow,
)

__all__ = [
    "RecallStep",
    "RecallState",
    "BatchCollection",
    "StatusTransitionEngine",
    "apply_transition",
    "check_transition",
    "load_collection",
    "RecallWorkflow",
    "build_recall_event",
    "ContractUpgradeWorkflow",
    "InspectionScheduler",
    "RuleIssuanceWorkflow",
]
