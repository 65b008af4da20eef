"""Recall workflow endpoints.

Implements:
- POST /recalls - Start a recall for a batch
- GET /recalls/{workflow_id} - Current step, draft and last error
- POST /recalls/{workflow_id}/draft - Step 1: submit reason, draft communication
- POST /recalls/{workflow_id}/confirm - Step 2: approve and recall the batch
- POST /recalls/{workflow_id}/cancel - Abandon the recall

A failed draft or confirm returns the error (502 for the drafting/batch
service) and leaves the workflow on the same step for a manual retry.
"""

from fastapi import APIRouter, Depends

from api.services.dashboard import DashboardSession, get_session
from core.workflow.base import RecallStep
from core.workflow.recall import RecallWorkflow
from models.api_responses import RecallReasonRequest, RecallWorkflowResponse, StartRecallRequest


router = APIRouter()


def _to_response(recall: RecallWorkflow) -> RecallWorkflowResponse:
    batch = recall.batch if recall.step == RecallStep.COMPLETED else None
    return RecallWorkflowResponse(**recall.to_dict(), batch=batch)


@router.post("", response_model=RecallWorkflowResponse, status_code=201)
async def start_recall(body: StartRecallRequest, session: DashboardSession = Depends(get_session)) -> RecallWorkflowResponse:
    return _to_response(session.start_recall(body.batch_id))


@router.get("/{workflow_id}", response_model=RecallWorkflowResponse)
async def get_recall(workflow_id: str, session: DashboardSession = Depends(get_session)) -> RecallWorkflowResponse:
    return _to_response(session.get_recall(workflow_id))


@router.post("/{workflow_id}/draft", response_model=RecallWorkflowResponse)
async def draft_communication(
    workflow_id: str,
    body: RecallReasonRequest,
    session: DashboardSession = Depends(get_session),
) -> RecallWorkflowResponse:
    recall = session.get_recall(workflow_id)
    await recall.generate_communication(body.reason)
    return _to_response(recall)


@router.post("/{workflow_id}/confirm", response_model=RecallWorkflowResponse)
async def confirm_recall(workflow_id: str, session: DashboardSession = Depends(get_session)) -> RecallWorkflowResponse:
    recall = session.get_recall(workflow_id)
    await recall.confirm()
    return _to_response(recall)


@router.post("/{workflow_id}/cancel", response_model=RecallWorkflowResponse)
async def cancel_recall(workflow_id: str, session: DashboardSession = Depends(get_session)) -> RecallWorkflowResponse:
    recall = session.get_recall(workflow_id)
    recall.cancel()
    return _to_response(recall)
