"""
SnapPDF Backend - User Route Handlers
=======================================

What:  GET /api/user/profile
How:   Answers from the session snapshot alone; no database read.
"""

from fastapi import APIRouter, Depends

from snappdf.dependencies import AuthenticatedSession, get_current_session
from snappdf.schemas.auth import ProfileResponse
from snappdf.schemas.common import ErrorResponse

router = APIRouter(prefix="/api/user", tags=["User"])


@router.get(
    "/profile",
    response_model=ProfileResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Profile of the current user",
)
async def get_profile(
    session: AuthenticatedSession = Depends(get_current_session),
) -> ProfileResponse:
    return ProfileResponse(email=session.snapshot.email, avatar=session.snapshot.avatar)
