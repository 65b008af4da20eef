"""Regulator action endpoints.

Implements:
- POST /actions/rules - Draft a new compliance rule directive
- POST /actions/rules/{workflow_id}/draft - Redraft
- POST /actions/rules/{workflow_id}/issue - Issue the drafted rule
- POST /actions/upgrades - Generate a smart-contract upgrade plan
- POST /actions/upgrades/{workflow_id}/plan - Regenerate the plan
- POST /actions/upgrades/{workflow_id}/execute - Execute the upgrade
- POST /actions/inspections/suggest - Draft inspection notes for a batch
- POST /actions/inspections - Schedule an inspection
"""

from fastapi import APIRouter, Depends

from api.services.dashboard import DashboardSession, get_session
from core.models.alerts import Alert
from core.workflow.actions import ContractUpgradeWorkflow, RuleIssuanceWorkflow
from models.api_responses import (
    ActionResponse,
    DraftRuleRequest,
    InspectionNotesRequest,
    InspectionNotesResponse,
    ScheduleInspectionRequest,
    UpgradePlanRequest,
)


router = APIRouter()


# =============================================================================
# RULES
# =============================================================================

@router.post("/rules", response_model=ActionResponse, status_code=201)
async def draft_rule(body: DraftRuleRequest, session: DashboardSession = Depends(get_session)) -> ActionResponse:
    rule = session.start_rule()
    await rule.draft(body.topic)
    return ActionResponse(**rule.to_dict())


@router.post("/rules/{workflow_id}/draft", response_model=ActionResponse)
async def redraft_rule(
    workflow_id: str,
    body: DraftRuleRequest,
    session: DashboardSession = Depends(get_session),
) -> ActionResponse:
    """Draft again, e.g. after a failed drafting call."""
    rule = session.get_action(workflow_id, RuleIssuanceWorkflow)
    await rule.draft(body.topic)
    return ActionResponse(**rule.to_dict())


@router.post("/rules/{workflow_id}/issue", response_model=ActionResponse)
async def issue_rule(workflow_id: str, session: DashboardSession = Depends(get_session)) -> ActionResponse:
    rule = session.get_action(workflow_id, RuleIssuanceWorkflow)
    alert = rule.issue()
    return ActionResponse(**rule.to_dict(), alert=alert)


# =============================================================================
# CONTRACT UPGRADES
# =============================================================================

@router.post("/upgrades", response_model=ActionResponse, status_code=201)
async def plan_upgrade(body: UpgradePlanRequest, session: DashboardSession = Depends(get_session)) -> ActionResponse:
    upgrade = session.start_upgrade()
    await upgrade.generate_plan(body.reason)
    return ActionResponse(**upgrade.to_dict())


@router.post("/upgrades/{workflow_id}/plan", response_model=ActionResponse)
async def replan_upgrade(
    workflow_id: str,
    body: UpgradePlanRequest,
    session: DashboardSession = Depends(get_session),
) -> ActionResponse:
    upgrade = session.get_action(workflow_id, ContractUpgradeWorkflow)
    await upgrade.generate_plan(body.reason)
    return ActionResponse(**upgrade.to_dict())


@router.post("/upgrades/{workflow_id}/execute", response_model=ActionResponse)
async def execute_upgrade(workflow_id: str, session: DashboardSession = Depends(get_session)) -> ActionResponse:
    upgrade = session.get_action(workflow_id, ContractUpgradeWorkflow)
    alert = upgrade.execute()
    return ActionResponse(**upgrade.to_dict(), alert=alert)


# =============================================================================
# INSPECTIONS
# =============================================================================

@router.post("/inspections/suggest", response_model=InspectionNotesResponse)
async def suggest_inspection_notes(
    body: InspectionNotesRequest,
    session: DashboardSession = Depends(get_session),
) -> InspectionNotesResponse:
    notes = await session.inspections.suggest_notes(body.batch_id)
    return InspectionNotesResponse(batch_id=body.batch_id, notes=notes)


@router.post("/inspections", response_model=Alert, status_code=201)
async def schedule_inspection(
    body: ScheduleInspectionRequest,
    session: DashboardSession = Depends(get_session),
) -> Alert:
    return session.inspections.schedule(body.batch_id, body.notes)
