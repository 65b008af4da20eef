"""Shared pytest fixtures."""

from datetime import datetime, timedelta, timezone

import pytest

from core.observability.metrics import MetricsCollector


T0 = datetime(2023, 10, 1, 8, 0, tzinfo=timezone.utc)


def batch_data(batch_id: str = "TUL-MP-003", status: str = "TESTING", events: int = 2, **overrides) -> dict:
    """Raw batch mapping with `events` plain history events."""
    actions = [
        ("Farmer", "Batch Collected"),
        ("Logistics", "Transported to Lab"),
        ("Laboratory", "Quality Test Passed"),
        ("Manufacturer", "Processing Complete"),
    ]
    history = [
        {
            "actor": actor,
            "action": action,
            "timestamp": T0 + timedelta(hours=6 * i),
            "hash": f"0x{i:016x}",
        }
        for i, (actor, action) in enumerate(actions[:events])
    ]
    data = {
        "id": batch_id,
        "farmer_name": "Sunita Devi",
        "plant_type": "Tulsi",
        "ledger_id": "0x5e6f7g8h9i0j1a2b3c4d",
        "status": status,
        "location": {"lat": 23.2599, "lng": 77.4126, "state": "Madhya Pradesh"},
        "history": history,
    }
    data.update(overrides)
    return data


@pytest.fixture
def make_batch():
    """Factory for valid Batch values."""
    from core.models.batch import parse_batch

    def _make(batch_id: str = "TUL-MP-003", status: str = "TESTING", events: int = 2, **overrides):
        return parse_batch(batch_data(batch_id, status, events, **overrides))

    return _make


@pytest.fixture(autouse=True)
def reset_metrics():
    """Each test starts from empty metrics."""
    MetricsCollector.instance().reset()
    yield
    MetricsCollector.instance().reset()
