"""
Mock Data Service for the Regulator Dashboard API.

Provides realistic mock batches and alerts for development and testing.
This will be replaced by a ledger-backed batch source in production.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from core.audit.history import ledger_reference
from core.models.alerts import Alert, AlertType
from core.models.batch import Batch, parse_batch


def _ts(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _event(batch_id: str, actor: str, action: str, timestamp: str, **details) -> Dict[str, Any]:
    when = _ts(timestamp)
    event = {
        "actor": actor,
        "action": action,
        "timestamp": when,
        "hash": ledger_reference(batch_id, action, when, details or None),
    }
    if details:
        event["details"] = details
    return event


# =============================================================================
# MOCK BATCHES DATA
# =============================================================================

MOCK_BATCHES: List[Dict[str, Any]] = [
    {
        "id": "ASH-UP-001",
        "farmer_name": "Ramesh Kumar",
        "plant_type": "Ashwagandha",
        "ledger_id": "0x1a2b3c4d5e6f7g8h9i0j",
        "status": "SHIPPED",
        "location": {"lat": 26.8467, "lng": 80.9462, "state": "Uttar Pradesh"},
        "history": [
            _event("ASH-UP-001", "Farmer", "Batch Collected", "2023-10-01T08:00:00Z"),
            _event("ASH-UP-001", "Laboratory", "Quality Test Passed", "2023-10-02T14:00:00Z"),
            _event("ASH-UP-001", "Manufacturer", "Processing Complete", "2023-10-04T10:00:00Z"),
            _event("ASH-UP-001", "Logistics", "Shipped to Distributor", "2023-10-05T18:00:00Z"),
        ],
    },
    {
        "id": "TUL-MP-002",
        "farmer_name": "Sunita Devi",
        "plant_type": "Tulsi",
        "ledger_id": "0x2b3c4d5e6f7g8h9i0j1a",
        "status": "PROCESSED",
        "location": {"lat": 22.9734, "lng": 78.6569, "state": "Madhya Pradesh"},
        "history": [
            _event("TUL-MP-002", "Farmer", "Batch Collected", "2023-10-03T09:00:00Z"),
            _event("TUL-MP-002", "Laboratory", "Quality Test Passed", "2023-10-04T16:00:00Z"),
            _event("TUL-MP-002", "Manufacturer", "Processing Complete", "2023-10-06T11:00:00Z"),
        ],
    },
    {
        "id": "BRA-RJ-003",
        "farmer_name": "Vikram Singh",
        "plant_type": "Brahmi",
        "ledger_id": "0x3c4d5e6f7g8h9i0j1a2b",
        "status": "TESTING",
        "location": {"lat": 27.0238, "lng": 74.2179, "state": "Rajasthan"},
        "history": [
            _event("BRA-RJ-003", "Farmer", "Batch Collected", "2023-10-05T07:30:00Z"),
            _event("BRA-RJ-003", "Logistics", "Transported to Lab", "2023-10-05T12:00:00Z"),
        ],
    },
    {
        "id": "NEEM-GJ-004",
        "farmer_name": "Priya Patel",
        "plant_type": "Neem",
        "ledger_id": "0x4d5e6f7g8h9i0j1a2b3c",
        "status": "COLLECTED",
        "location": {"lat": 22.2587, "lng": 71.1924, "state": "Gujarat"},
        "history": [
            _event("NEEM-GJ-004", "Farmer", "Batch Collected", "2023-10-06T10:00:00Z"),
        ],
    },
    {
        "id": "TUL-MP-003",
        "farmer_name": "Sunita Devi",
        "plant_type": "Tulsi",
        "ledger_id": "0x5e6f7g8h9i0j1a2b3c4d",
        "status": "RECALLED",
        "location": {"lat": 23.2599, "lng": 77.4126, "state": "Madhya Pradesh"},
        "history": [
            _event("TUL-MP-003", "Farmer", "Batch Collected", "2023-09-28T11:00:00Z"),
            _event(
                "TUL-MP-003", "Laboratory", "Quality Test Failed", "2023-09-29T15:00:00Z",
                reason="Pesticide levels exceed limits",
            ),
            _event(
                "TUL-MP-003", "Regulator", "Batch Recalled", "2023-09-30T10:00:00Z",
                reason="Failed quality testing",
            ),
        ],
    },
    {
        "id": "ASH-MH-005",
        "farmer_name": "Anil Deshmukh",
        "plant_type": "Ashwagandha",
        "ledger_id": "0x6f7g8h9i0j1a2b3c4d5e",
        "status": "SHIPPED",
        "location": {"lat": 19.7515, "lng": 75.7139, "state": "Maharashtra"},
        "history": [
            _event("ASH-MH-005", "Farmer", "Batch Collected", "2023-09-25T08:30:00Z"),
            _event("ASH-MH-005", "Laboratory", "Quality Test Passed", "2023-09-26T13:00:00Z"),
            _event("ASH-MH-005", "Manufacturer", "Processing Complete", "2023-09-28T09:00:00Z"),
            _event("ASH-MH-005", "Logistics", "Shipped to Distributor", "2023-09-29T17:00:00Z"),
        ],
    },
]


# =============================================================================
# MOCK ALERTS DATA
# =============================================================================

def _alert_data(now: datetime) -> List[Dict[str, Any]]:
    return [
        {
            "id": "ALERT1",
            "title": "Recall Issued: TUL-MP-003",
            "description": "Batch TUL-MP-003 failed quality testing due to high pesticide levels.",
            "timestamp": _ts("2023-09-30T10:05:00Z"),
            "type": AlertType.DANGER,
        },
        {
            "id": "ALERT2",
            "title": "Inspection Scheduled",
            "description": "A regulator has scheduled an inspection for batch BRA-RJ-003.",
            "timestamp": now - timedelta(hours=2),
            "type": AlertType.INFO,
        },
        {
            "id": "ALERT3",
            "title": "Unusual Harvest Volume",
            "description": "Farmer Ramesh Kumar reported a harvest volume 35% higher than average.",
            "timestamp": now - timedelta(hours=24),
            "type": AlertType.WARNING,
        },
    ]


# =============================================================================
# MOCK DATA FUNCTIONS
# =============================================================================

def get_mock_batches() -> List[Batch]:
    """Fresh, validated copies of the mock batches."""
    return [parse_batch(data) for data in MOCK_BATCHES]


def get_mock_alerts(now: Optional[datetime] = None) -> List[Alert]:
    """Mock alerts, with the recent ones timestamped relative to `now`."""
    now = now or datetime.now(timezone.utc)
    return [Alert.model_validate(data) for data in _alert_data(now)]
