"""
API Request/Response Models for the AyurTrace Regulator Dashboard.

These Pydantic models define the shared data contracts between the backend API
and the dashboard UI. Domain values (Batch, Alert, StatsSnapshot) are returned
as-is; the models here wrap them into endpoint-shaped payloads.

Hierarchy:
- DashboardResponse: Main dashboard overview
- BatchListResponse / BatchResponse: Batch table and detail view
- RecallWorkflowResponse: Recall workflow progress
- ActionResponse: Rule issuance / contract upgrade progress
- InspectionNotesResponse / AlertResponse: Inspection scheduling
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, ConfigDict

from core.analytics.stats import StatsSnapshot, TrendPoint
from core.models.alerts import Alert
from core.models.batch import Batch, Location


# =============================================================================
# BASE MODELS
# =============================================================================

class ResponseBase(BaseModel):
    """Base class for all API responses."""
    model_config = ConfigDict(populate_by_name=True)


class RequestBase(BaseModel):
    """Base class for all API request bodies."""
    model_config = ConfigDict(populate_by_name=True, str_strip_whitespace=True)


# =============================================================================
# AUTH
# =============================================================================

class LoginRequest(RequestBase):
    """Mock regulator login."""
    email: str
    password: str


class UserResponse(ResponseBase):
    """Logged-in session user."""
    uid: str
    email: str
    role: Literal["ayush", "farmer", "lab"] = "ayush"
    display_name: str


# =============================================================================
# DASHBOARD
# =============================================================================

class DashboardResponse(ResponseBase):
    """Everything the dashboard renders in one payload."""
    generated_at: datetime
    stats: StatsSnapshot
    status_counts: Dict[str, int] = Field(default_factory=dict)
    trend: List[TrendPoint] = Field(default_factory=list)
    batches: List[Batch] = Field(default_factory=list)
    alerts: List[Alert] = Field(default_factory=list)
    inspection_eligible: List[str] = Field(
        default_factory=list,
        description="IDs of batches in TESTING",
    )


# =============================================================================
# BATCHES
# =============================================================================

class BatchListResponse(ResponseBase):
    """Batch table."""
    total: int
    batches: List[Batch]


class CreateBatchRequest(RequestBase):
    """Ingest a newly collected batch."""
    id: str = Field(..., min_length=1, description="e.g. ASH-UP-001")
    farmer_name: str = Field(..., min_length=1)
    plant_type: str = Field(..., min_length=1)
    location: Location
    ledger_id: str = ""


class AlertListResponse(ResponseBase):
    total: int
    alerts: List[Alert]


# =============================================================================
# RECALL WORKFLOW
# =============================================================================

class StartRecallRequest(RequestBase):
    batch_id: str = Field(..., min_length=1)


class RecallReasonRequest(RequestBase):
    """Step 1 input. Blank reasons are rejected by the workflow, not here."""
    reason: str = ""


class RecallWorkflowResponse(ResponseBase):
    """Recall workflow progress."""
    workflow_id: str
    batch_id: str
    step: str
    reason: Optional[str] = None
    communication: Optional[str] = None
    in_progress: Optional[str] = None
    error: Optional[str] = None
    batch_status: str
    batch: Optional[Batch] = Field(
        default=None,
        description="Updated batch, present once the recall is completed",
    )


# =============================================================================
# REGULATOR ACTIONS
# =============================================================================

class DraftRuleRequest(RequestBase):
    topic: str = ""


class UpgradePlanRequest(RequestBase):
    reason: str = ""


class ActionResponse(ResponseBase):
    """Rule issuance or contract upgrade progress."""
    workflow_id: str
    workflow_type: str
    draft: Optional[str] = None
    completed: bool = False
    error: Optional[str] = None
    topic: Optional[str] = None
    reason: Optional[str] = None
    alert: Optional[Alert] = None


class InspectionNotesRequest(RequestBase):
    batch_id: str = Field(..., min_length=1)


class InspectionNotesResponse(ResponseBase):
    batch_id: str
    notes: str


class ScheduleInspectionRequest(RequestBase):
    batch_id: str = Field(..., min_length=1)
    notes: str = ""


# =============================================================================
# ERRORS
# =============================================================================

class ErrorResponse(ResponseBase):
    """Body of every 4xx/5xx response raised from a domain error."""
    detail: str
    error_type: Optional[str] = None
    batch_id: Optional[str] = None
    extra: Dict[str, Any] = Field(default_factory=dict)
