"""Batch endpoints.

Implements:
- GET /batches - Batch table, optionally filtered by status
- GET /batches/{batch_id} - Batch detail with full history
- POST /batches - Ingest a newly collected batch
"""

from typing import Optional

from fastapi import APIRouter, Depends, Path, Query

from api.services.dashboard import DashboardSession, get_session
from core.models.batch import Batch, BatchStatus
from models.api_responses import BatchListResponse, CreateBatchRequest


router = APIRouter()


@router.get("", response_model=BatchListResponse)
async def list_batches(
    status: Optional[BatchStatus] = Query(None, description="Only batches in this status"),
    session: DashboardSession = Depends(get_session),
) -> BatchListResponse:
    batches = session.batches(status.value if status else None)
    return BatchListResponse(total=len(batches), batches=batches)


@router.get("/{batch_id}", response_model=Batch)
async def get_batch(
    batch_id: str = Path(..., description="Batch ID, e.g. ASH-UP-001"),
    session: DashboardSession = Depends(get_session),
) -> Batch:
    return session.collection.get(batch_id)


@router.post("", response_model=Batch, status_code=201)
async def create_batch(body: CreateBatchRequest, session: DashboardSession = Depends(get_session)) -> Batch:
    """Record a new batch in COLLECTED status."""
    return await session.ingest(
        id=body.id,
        farmer_name=body.farmer_name,
        plant_type=body.plant_type,
        location=body.location,
        ledger_id=body.ledger_id,
    )
