"""Models Package.

API request/response models for the regulator dashboard. Domain models
(batches, history events, alerts) live in core.models.
"""

from models.api_responses import (
    # Requests
    LoginRequest,
    CreateBatchRequest,
    StartRecallRequest,
    RecallReasonRequest,
    DraftRuleRequest,
    UpgradePlanRequest,
    InspectionNotesRequest,
    ScheduleInspectionRequest,

    # Responses
    UserResponse,
    DashboardResponse,
    BatchListResponse,
    AlertListResponse,
    RecallWorkflowResponse,
    ActionResponse,
    InspectionNotesResponse,
    ErrorResponse,
)

__all__ = [
    "LoginRequest",
    "CreateBatchRequest",
    "StartRecallRequest",
    "RecallReasonRequest",
    "DraftRuleRequest",
    "UpgradePlanRequest",
    "InspectionNotesRequest",
    "ScheduleInspectionRequest",
    "UserResponse",
    "DashboardResponse",
    "BatchListResponse",
    "AlertListResponse",
    "RecallWorkflowResponse",
    "ActionResponse",
    "InspectionNotesResponse",
    "ErrorResponse",
]
