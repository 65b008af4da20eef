"""Batch entity model.

A batch is one traceable lot of herbal product. Batches and their history
events are immutable values: changes produce new values (copy-on-write)
and only the transition engine replaces a batch in the collection.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic import ValidationError as PydanticValidationError

from core.errors import ValidationError


# =============================================================================
# Enums
# =============================================================================

class BatchStatus(str, Enum):
    """Lifecycle status of a batch."""
    COLLECTED = "COLLECTED"
    TESTING = "TESTING"
    PROCESSED = "PROCESSED"
    SHIPPED = "SHIPPED"
    RECALLED = "RECALLED"


class Actor(str, Enum):
    """Supply-chain participant roles that stamp history events."""
    FARMER = "Farmer"
    LABORATORY = "Laboratory"
    MANUFACTURER = "Manufacturer"
    REGULATOR = "Regulator"
    LOGISTICS = "Logistics"


# Well-known history actions
ACTION_COLLECTED = "Batch Collected"
ACTION_RECALLED = "Batch Recalled"
ACTION_TEST_FAILED = "Quality Test Failed"


# =============================================================================
# Event details
# =============================================================================

class TraceModel(BaseModel):
    """Base class for immutable traceability values."""
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class RecallDetails(TraceModel):
    """Details carried by a "Batch Recalled" event."""
    reason: str = Field(..., min_length=1, description="Why the batch was recalled")


class QualityTestDetails(TraceModel):
    """Details carried by a "Quality Test Failed" event."""
    reason: str = Field(..., min_length=1, description="Why the test failed")


EventDetails = Union[Dict[str, Any], RecallDetails, QualityTestDetails]

DETAIL_TYPES = {
    ACTION_RECALLED: RecallDetails,
    ACTION_TEST_FAILED: QualityTestDetails,
}


# =============================================================================
# History event
# =============================================================================

class HistoryEvent(TraceModel):
    """One immutable, actor-attributed record of something that happened to a batch.

    Known actions get typed details (see DETAIL_TYPES); any other action
    keeps its details as an open mapping.
    """
    actor: Actor
    action: str = Field(..., min_length=1)
    timestamp: datetime
    hash: str = Field(..., description="Opaque ledger reference")
    details: Optional[EventDetails] = Field(default=None, union_mode="left_to_right")

    @model_validator(mode="before")
    @classmethod
    def _type_details(cls, data: Any) -> Any:
        if not isinstance(data, Mapping):
            return data
        details = data.get("details")
        detail_type = DETAIL_TYPES.get(data.get("action"))
        if detail_type is not None and isinstance(details, Mapping):
            data = dict(data)
            data["details"] = detail_type.model_validate(details)
        return data

    @property
    def reason(self) -> Optional[str]:
        """Reason carried in the details, if any."""
        if isinstance(self.details, (RecallDetails, QualityTestDetails)):
            return self.details.reason
        if isinstance(self.details, dict):
            return self.details.get("reason")
        return None


# =============================================================================
# Batch
# =============================================================================

class Location(TraceModel):
    """Geographic origin of a batch."""
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    state: str = Field(..., min_length=1, description="Region label")


class Batch(TraceModel):
    """One tracked lot of product."""
    id: str = Field(..., min_length=1, description="e.g. ASH-UP-001")
    farmer_name: str = Field(..., min_length=1)
    plant_type: str = Field(..., min_length=1)
    ledger_id: str = Field(default="", description="Opaque external ledger reference")
    status: BatchStatus
    location: Location
    history: Tuple[HistoryEvent, ...] = Field(..., min_length=1)

    @property
    def last_event(self) -> HistoryEvent:
        return self.history[-1]

    @property
    def collected_at(self) -> datetime:
        return self.history[0].timestamp

    @property
    def is_recalled(self) -> bool:
        return self.status == BatchStatus.RECALLED

    def summary(self) -> Dict[str, Any]:
        """Short description used in prompts and logs."""
        return {
            "id": self.id,
            "plant_type": self.plant_type,
            "farmer_name": self.farmer_name,
            "state": self.location.state,
            "status": self.status.value,
        }

    @classmethod
    def create(
        cls,
        id: str,
        farmer_name: str,
        plant_type: str,
        location: Union[Location, Mapping[str, Any]],
        ledger_id: str = "",
        timestamp: Optional[datetime] = None,
    ) -> "Batch":
        """Ingest a new batch in COLLECTED status with its first history event."""
        # Local import: history depends on this module
        from core.audit.history import ledger_reference

        timestamp = timestamp or datetime.now(timezone.utc)
        first_event = {
            "actor": Actor.FARMER,
            "action": ACTION_COLLECTED,
            "timestamp": timestamp,
            "hash": ledger_reference(id, ACTION_COLLECTED, timestamp),
        }
        return parse_batch({
            "id": id,
            "farmer_name": farmer_name,
            "plant_type": plant_type,
            "ledger_id": ledger_id,
            "status": BatchStatus.COLLECTED,
            "location": location,
            "history": [first_event],
        })


def parse_batch(data: Mapping[str, Any]) -> Batch:
    """Validate a raw mapping into a well-formed Batch.

    Raises:
        ValidationError: if any required attribute is missing or malformed,
            or the history is empty.
    """
    try:
        return Batch.model_validate(data)
    except PydanticValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or 'batch'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(
            f"Malformed batch: {problems}",
            batch_id=data.get("id") if isinstance(data, Mapping) else None,
        ) from e
