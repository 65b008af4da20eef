"""Regulator login (mock).

Implements:
- POST /api/login - Check the demo regulator credentials

There is no session token; the dashboard keeps the returned user locally.
"""

from fastapi import APIRouter, Depends, HTTPException

from api.services.dashboard import DashboardSession, get_session
from models.api_responses import LoginRequest, UserResponse


router = APIRouter()

DEMO_USER_UID = "12345"
DEMO_USER_NAME = "AYUSH Officer"


@router.post("/login", response_model=UserResponse)
async def login(body: LoginRequest, session: DashboardSession = Depends(get_session)) -> UserResponse:
    """Log in as the demo regulator."""
    if not session.authenticate(body.email, body.password):
        raise HTTPException(status_code=401, detail="Invalid credentials. Please try again.")
    return UserResponse(uid=DEMO_USER_UID, email=body.email, role="ayush", display_name=DEMO_USER_NAME)
