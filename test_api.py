"""
API Tests

Exercises the FastAPI app end to end against the mock data set:
1. Dashboard, batch and alert read endpoints
2. Recall workflow through its three steps
3. Regulator actions
4. Domain errors mapped to 404 / 400 / 409 / 502
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from api.server import create_app, status_code_for
from api.services.dashboard import DashboardSession, prune_finished
from api.services.mock_data import get_mock_alerts, get_mock_batches
from connectors.base import TextGenerator
from connectors.memory import CannedTextGenerator, InMemoryAlertSource, InMemoryBatchSource
from core.config import Settings
from core.errors import (
    ExternalServiceError,
    InvalidTransitionError,
    NotFoundError,
    TraceError,
    ValidationError,
    WorkflowStateError,
)


SETTINGS = Settings(text_backend="offline", mock_latency_ms=0)

REASON = "Pesticide levels exceed limits"


class DownGenerator(TextGenerator):
    """Generator whose every call fails."""

    name = "down"

    async def generate(self, prompt):
        raise ExternalServiceError("Text generation quota exceeded", service=self.name)


def _session(generator=None, **kwargs):
    return DashboardSession(
        settings=SETTINGS,
        batch_source=InMemoryBatchSource(get_mock_batches()),
        alert_source=InMemoryAlertSource(get_mock_alerts()),
        generator=generator or CannedTextGenerator(),
        **kwargs,
    )


@pytest.fixture
def client():
    with TestClient(create_app(SETTINGS, session=_session())) as c:
        yield c


@pytest.fixture
def down_client():
    with TestClient(create_app(SETTINGS, session=_session(DownGenerator()))) as c:
        yield c


def _ingest_batch(client):
    """Ingest a new COLLECTED batch and return its id."""
    response = client.post("/batches", json={
        "id": "TUL-MP-009",
        "farmer_name": "Sunita Devi",
        "plant_type": "Tulsi",
        "location": {"lat": 23.2599, "lng": 77.4126, "state": "Madhya Pradesh"},
    })
    assert response.status_code == 201
    return "TUL-MP-009"


class TestHealth:

    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["services"]["batch_source"] == "loaded"
        assert data["services"]["text_generator"] == "canned"

    def test_probes(self, client):
        assert client.get("/ready").json() == {"status": "ready"}
        assert client.get("/live").json() == {"status": "alive"}


class TestLogin:

    def test_demo_credentials(self, client):
        response = client.post("/api/login", json={"email": "ayush.officer@gov.in", "password": "password123"})
        assert response.status_code == 200
        assert response.json() == {
            "uid": "12345",
            "email": "ayush.officer@gov.in",
            "role": "ayush",
            "display_name": "AYUSH Officer",
        }

    def test_bad_credentials(self, client):
        response = client.post("/api/login", json={"email": "ayush.officer@gov.in", "password": "nope"})
        assert response.status_code == 401
        assert response.json()["detail"] == "Invalid credentials. Please try again."


class TestDashboard:

    def test_overview(self, client):
        data = client.get("/dashboard").json()
        assert data["stats"] == {
            "total_batches": 6,
            "compliance_rate": "83.3%",
            "recalled_batches": 1,
            "export_ready": 2,
        }
        assert data["status_counts"]["RECALLED"] == 1
        assert len(data["batches"]) == 6
        assert [a["id"] for a in data["alerts"]] == ["ALERT1", "ALERT2", "ALERT3"]
        assert data["inspection_eligible"] == ["BRA-RJ-003"]

    def test_stats_and_trend(self, client):
        assert client.get("/dashboard/stats").json()["total_batches"] == 6
        trend = client.get("/dashboard/trend").json()
        assert sum(p["compliant"] + p["recalled"] + p["pending"] for p in trend) == 6

    def test_metrics(self, client):
        data = client.get("/dashboard/metrics").json()
        assert set(data) == {"workflows", "calls", "timings"}


class TestBatches:

    def test_list(self, client):
        data = client.get("/batches").json()
        assert data["total"] == 6

    def test_filter_by_status(self, client):
        data = client.get("/batches", params={"status": "SHIPPED"}).json()
        assert {b["id"] for b in data["batches"]} == {"ASH-UP-001", "ASH-MH-005"}

    def test_unknown_status_filter(self, client):
        assert client.get("/batches", params={"status": "LOST"}).status_code == 422

    def test_detail(self, client):
        data = client.get("/batches/TUL-MP-003").json()
        assert data["status"] == "RECALLED"
        assert data["history"][-1]["action"] == "Batch Recalled"

    def test_unknown_batch(self, client):
        response = client.get("/batches/NOPE-000")
        assert response.status_code == 404
        assert response.json()["error_type"] == "NotFoundError"
        assert response.json()["batch_id"] == "NOPE-000"

    def test_ingest(self, client):
        batch_id = _ingest_batch(client)
        data = client.get(f"/batches/{batch_id}").json()
        assert data["status"] == "COLLECTED"
        assert len(data["history"]) == 1
        assert client.get("/dashboard/stats").json()["total_batches"] == 7

    def test_ingest_duplicate(self, client):
        response = client.post("/batches", json={
            "id": "ASH-UP-001",
            "farmer_name": "Ramesh Kumar",
            "plant_type": "Ashwagandha",
            "location": {"lat": 26.8467, "lng": 80.9462, "state": "Uttar Pradesh"},
        })
        assert response.status_code == 400


class TestAlerts:

    def test_dismiss(self, client):
        response = client.delete("/alerts/ALERT2")
        assert response.status_code == 200
        assert response.json()["id"] == "ALERT2"
        assert [a["id"] for a in client.get("/alerts").json()["alerts"]] == ["ALERT1", "ALERT3"]

    def test_dismiss_unknown(self, client):
        assert client.delete("/alerts/ALERT9").status_code == 404


class TestRecallEndpoints:

    def test_full_recall(self, client):
        response = client.post("/recalls", json={"batch_id": "BRA-RJ-003"})
        assert response.status_code == 201
        recall = response.json()
        assert recall["step"] == "AWAITING_JUSTIFICATION"
        workflow_id = recall["workflow_id"]

        recall = client.post(f"/recalls/{workflow_id}/draft", json={"reason": REASON}).json()
        assert recall["step"] == "AWAITING_COMMUNICATION_APPROVAL"
        assert REASON in recall["communication"]

        recall = client.post(f"/recalls/{workflow_id}/confirm").json()
        assert recall["step"] == "COMPLETED"
        assert recall["batch_status"] == "RECALLED"
        assert recall["batch"]["history"][-1]["details"] == {"reason": REASON}

        stats = client.get("/dashboard/stats").json()
        assert stats["recalled_batches"] == 2
        titles = [a["title"] for a in client.get("/alerts").json()["alerts"]]
        assert "Recall Issued: BRA-RJ-003" in titles

    def test_blank_reason(self, client):
        workflow_id = client.post("/recalls", json={"batch_id": "BRA-RJ-003"}).json()["workflow_id"]
        response = client.post(f"/recalls/{workflow_id}/draft", json={"reason": "  "})
        assert response.status_code == 400
        assert response.json()["detail"] == "Please provide a reason before generating communication."
        assert client.get(f"/recalls/{workflow_id}").json()["step"] == "AWAITING_JUSTIFICATION"

    def test_confirm_before_draft(self, client):
        workflow_id = client.post("/recalls", json={"batch_id": "BRA-RJ-003"}).json()["workflow_id"]
        response = client.post(f"/recalls/{workflow_id}/confirm")
        assert response.status_code == 409
        assert client.get("/batches/BRA-RJ-003").json()["status"] == "TESTING"

    def test_already_recalled(self, client):
        response = client.post("/recalls", json={"batch_id": "TUL-MP-003"})
        assert response.status_code == 400
        assert response.json()["error_type"] == "InvalidTransitionError"

    def test_cancel(self, client):
        workflow_id = client.post("/recalls", json={"batch_id": "BRA-RJ-003"}).json()["workflow_id"]
        recall = client.post(f"/recalls/{workflow_id}/cancel").json()
        assert recall["step"] == "CANCELLED"
        assert client.get("/batches/BRA-RJ-003").json()["status"] == "TESTING"

    def test_unknown_workflow(self, client):
        assert client.get("/recalls/recall-NOPE").status_code == 404

    def test_draft_failure_is_502_and_retryable(self, down_client):
        workflow_id = down_client.post("/recalls", json={"batch_id": "BRA-RJ-003"}).json()["workflow_id"]

        response = down_client.post(f"/recalls/{workflow_id}/draft", json={"reason": REASON})

        assert response.status_code == 502
        body = response.json()
        assert body["detail"] == "Text generation quota exceeded"
        assert body["extra"] == {"workflow_id": workflow_id, "service": "down"}

        recall = down_client.get(f"/recalls/{workflow_id}").json()
        assert recall["step"] == "AWAITING_JUSTIFICATION"
        assert recall["error"] == "Text generation quota exceeded"


class TestActionEndpoints:

    def test_rule_issuance(self, client):
        response = client.post("/actions/rules", json={"topic": "Mandatory moisture testing"})
        assert response.status_code == 201
        rule = response.json()
        assert rule["workflow_type"] == "rule_issuance"
        assert "Mandatory moisture testing" in rule["draft"]

        issued = client.post(f"/actions/rules/{rule['workflow_id']}/issue").json()
        assert issued["completed"] is True
        assert issued["alert"]["title"] == "New Rule Issued"

        again = client.post(f"/actions/rules/{rule['workflow_id']}/issue")
        assert again.status_code == 409

    def test_rule_blank_topic(self, client):
        assert client.post("/actions/rules", json={"topic": ""}).status_code == 400

    def test_upgrade(self, client):
        upgrade = client.post("/actions/upgrades", json={"reason": "Patch replay vulnerability"}).json()
        executed = client.post(f"/actions/upgrades/{upgrade['workflow_id']}/execute").json()
        assert executed["alert"]["type"] == "warning"

    def test_wrong_action_kind(self, client):
        rule = client.post("/actions/rules", json={"topic": "Labelling"}).json()
        assert client.post(f"/actions/upgrades/{rule['workflow_id']}/execute").status_code == 404

    def test_rule_draft_failure_then_redraft_path_exists(self, down_client):
        response = down_client.post("/actions/rules", json={"topic": "Labelling"})
        assert response.status_code == 502
        workflow_id = response.json()["extra"]["workflow_id"]
        retry = down_client.post(f"/actions/rules/{workflow_id}/draft", json={"topic": "Labelling"})
        assert retry.status_code == 502

    def test_inspection(self, client):
        notes = client.post("/actions/inspections/suggest", json={"batch_id": "BRA-RJ-003"}).json()
        assert notes["batch_id"] == "BRA-RJ-003"
        assert notes["notes"]

        response = client.post("/actions/inspections", json={"batch_id": "BRA-RJ-003", "notes": notes["notes"]})
        assert response.status_code == 201
        assert response.json()["title"] == "Inspection Scheduled"

    def test_inspection_requires_testing(self, client):
        response = client.post("/actions/inspections", json={"batch_id": "ASH-UP-001"})
        assert response.status_code == 400


class TestStatusCodes:

    @pytest.mark.parametrize("error,expected", [
        (NotFoundError("x"), 404),
        (ValidationError("x"), 400),
        (InvalidTransitionError("x"), 400),
        (WorkflowStateError("x"), 409),
        (ExternalServiceError("x"), 502),
        (TraceError("x"), 500),
    ])
    def test_mapping(self, error, expected):
        assert status_code_for(error) == expected


class TestSessionRetention:
    """Finished workflow runs are capped; open runs are kept."""

    def test_oldest_finished_recalls_dropped(self):
        session = _session(max_finished_runs=2)
        asyncio.run(session.load())

        cancelled = []
        for _ in range(3):
            recall = session.start_recall("BRA-RJ-003")
            recall.cancel()
            cancelled.append(recall.workflow_id)
        open_recall = session.start_recall("BRA-RJ-003")

        assert list(session.recalls) == cancelled[1:] + [open_recall.workflow_id]
        with pytest.raises(NotFoundError):
            session.get_recall(cancelled[0])

    def test_open_runs_never_dropped(self):
        session = _session(max_finished_runs=0)
        asyncio.run(session.load())

        first = session.start_rule()
        second = session.start_upgrade()
        assert set(session.actions) == {first.workflow_id, second.workflow_id}

        asyncio.run(first.draft("Pesticide residue limits"))
        first.issue()
        third = session.start_rule()
        assert set(session.actions) == {second.workflow_id, third.workflow_id}

    def test_prune_finished_counts(self):
        session = _session()
        asyncio.run(session.load())
        recall = session.start_recall("BRA-RJ-003")
        recall.cancel()

        assert prune_finished(session.recalls, keep=1) == 0
        assert prune_finished(session.recalls, keep=0) == 1
        assert session.recalls == {}
