"""Dashboard session service.

One DashboardSession per application holds the session view of batches,
the alert board, the transition engine and the running workflows. Routes
reach it through `get_session`; nothing else in the API keeps state.
"""

from typing import Any, Dict, List, Optional, Union

from fastapi import Request

from connectors import build_text_generator
from connectors.base import AlertSource, BatchSource, TextGenerator
from connectors.memory import InMemoryAlertSource, InMemoryBatchSource
from core.analytics.stats import compute_trend, count_by_status
from core.audit.events import AuditEventType, AuditLogger, build_audit_logger
from core.config import Settings
from core.errors import NotFoundError
from core.models.alerts import Alert
from core.models.batch import Actor, Batch, Location
from core.notifications import AlertBoard
from core.observability.logging import get_logger
from core.workflow.actions import ContractUpgradeWorkflow, InspectionScheduler, RuleIssuanceWorkflow
from core.workflow.recall import RecallWorkflow
from core.workflow.transitions import BatchCollection, StatusTransitionEngine, load_collection
from drafting.service import DraftingService
from api.services.mock_data import get_mock_alerts, get_mock_batches


logger = get_logger(__name__)

RegulatorAction = Union[RuleIssuanceWorkflow, ContractUpgradeWorkflow]

# Completed and cancelled runs kept for reads; open runs are never dropped
MAX_FINISHED_RUNS = 100


def _is_finished(run: Union[RecallWorkflow, RegulatorAction]) -> bool:
    if isinstance(run, RecallWorkflow):
        return run.state.is_terminal
    return run.completed


def prune_finished(registry: Dict[str, Any], keep: int) -> int:
    """Drop the oldest finished runs beyond `keep`. Returns how many were dropped."""
    finished = [workflow_id for workflow_id, run in registry.items() if _is_finished(run)]
    excess = finished[:max(len(finished) - keep, 0)]
    for workflow_id in excess:
        del registry[workflow_id]
    return len(excess)


class DashboardSession:
    """Wires the dashboard's collaborators together."""

    def __init__(
        self,
        settings: Settings,
        batch_source: BatchSource,
        alert_source: AlertSource,
        generator: TextGenerator,
        audit: Optional[AuditLogger] = None,
        max_finished_runs: int = MAX_FINISHED_RUNS,
    ):
        self.settings = settings
        self.max_finished_runs = max_finished_runs
        self.batch_source = batch_source
        self.alert_source = alert_source
        self.audit = audit or build_audit_logger(settings.audit_dir)

        self.collection = BatchCollection()
        self.alerts = AlertBoard()
        self.engine = StatusTransitionEngine(
            batch_source,
            self.collection,
            rollback_on_failure=settings.rollback_on_failure,
        )
        self.drafting = DraftingService(generator)
        self.inspections = InspectionScheduler(self.collection.all, self.drafting, self.alerts, self.audit)

        self.recalls: Dict[str, RecallWorkflow] = {}
        self.actions: Dict[str, RegulatorAction] = {}
        self.loaded = False

    @classmethod
    def from_settings(cls, settings: Settings) -> "DashboardSession":
        """Session backed by the mock data set and the configured text generator."""
        return cls(
            settings=settings,
            batch_source=InMemoryBatchSource(get_mock_batches(), latency_ms=settings.mock_latency_ms),
            alert_source=InMemoryAlertSource(get_mock_alerts(), latency_ms=settings.mock_latency_ms),
            generator=build_text_generator(settings),
        )

    async def load(self) -> None:
        """(Re)load batches and alerts from their sources."""
        await load_collection(self.batch_source, self.collection)
        self.alerts.load(await self.alert_source.list_alerts())
        self.loaded = True
        logger.info(
            f"Dashboard loaded {len(self.collection)} batches and {len(self.alerts)} alerts",
        )

    # -------------------------------------------------------------------------
    # Read side
    # -------------------------------------------------------------------------

    def batches(self, status: Optional[str] = None) -> List[Batch]:
        batches = self.collection.all()
        if status:
            batches = [b for b in batches if b.status.value == status.upper()]
        return batches

    def overview(self) -> dict:
        batches = self.collection.all()
        return {
            "stats": self.collection.stats,
            "status_counts": count_by_status(batches),
            "trend": compute_trend(batches),
            "batches": batches,
            "alerts": self.alerts.list(),
            "inspection_eligible": [b.id for b in self.inspections.eligible()],
        }

    # -------------------------------------------------------------------------
    # Batches and alerts
    # -------------------------------------------------------------------------

    async def ingest(self, id: str, farmer_name: str, plant_type: str, location: Location, ledger_id: str = "") -> Batch:
        batch = Batch.create(id=id, farmer_name=farmer_name, plant_type=plant_type, location=location, ledger_id=ledger_id)
        recorded = await self.engine.ingest(batch)
        self.audit.log_info(
            AuditEventType.BATCH_INGESTED, f"Batch {recorded.id} ingested",
            batch_id=recorded.id, actor=Actor.FARMER.value,
        )
        return recorded

    def dismiss_alert(self, alert_id: str) -> Alert:
        alert = self.alerts.dismiss(alert_id)
        self.audit.log_info(
            AuditEventType.ALERT_DISMISSED, f"Alert dismissed: {alert.title}",
            actor=Actor.REGULATOR.value, details={"alert_id": alert.id},
        )
        return alert

    # -------------------------------------------------------------------------
    # Workflows
    # -------------------------------------------------------------------------

    def start_recall(self, batch_id: str) -> RecallWorkflow:
        batch = self.collection.get(batch_id)
        recall = RecallWorkflow(batch, self.engine, self.drafting, alerts=self.alerts, audit=self.audit)
        prune_finished(self.recalls, self.max_finished_runs)
        self.recalls[recall.workflow_id] = recall
        return recall

    def get_recall(self, workflow_id: str) -> RecallWorkflow:
        try:
            return self.recalls[workflow_id]
        except KeyError:
            raise NotFoundError(f"Recall workflow {workflow_id} not found")

    def start_rule(self) -> RuleIssuanceWorkflow:
        rule = RuleIssuanceWorkflow(self.drafting, self.alerts, audit=self.audit)
        prune_finished(self.actions, self.max_finished_runs)
        self.actions[rule.workflow_id] = rule
        return rule

    def start_upgrade(self) -> ContractUpgradeWorkflow:
        upgrade = ContractUpgradeWorkflow(self.drafting, self.alerts, audit=self.audit)
        prune_finished(self.actions, self.max_finished_runs)
        self.actions[upgrade.workflow_id] = upgrade
        return upgrade

    def get_action(self, workflow_id: str, kind: type) -> RegulatorAction:
        action = self.actions.get(workflow_id)
        if not isinstance(action, kind):
            raise NotFoundError(f"{kind.__name__} {workflow_id} not found")
        return action

    # -------------------------------------------------------------------------
    # Login
    # -------------------------------------------------------------------------

    def authenticate(self, email: str, password: str) -> bool:
        """Mock credential check against the configured demo account."""
        ok = email == self.settings.demo_email and password == self.settings.demo_password
        if ok:
            self.audit.log_info(AuditEventType.USER_LOGIN, f"Login succeeded for {email}", actor=email)
        else:
            self.audit.log_warning(AuditEventType.USER_LOGIN_FAILED, f"Login failed for {email}", actor=email)
        return ok


async def get_session(request: Request) -> DashboardSession:
    """FastAPI dependency: the application's session, loaded on first use."""
    session: DashboardSession = request.app.state.session
    if not session.loaded:
        await session.load()
    return session
