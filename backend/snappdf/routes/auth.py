"""
SnapPDF Backend - Auth Route Handlers
=======================================

What:  Google login flow and logout.
How:   Thin handlers: IdentityService does the code exchange, UserService
       resolves the user, SessionTokenStore issues/revokes the bearer token.

Login Flow:
    1. GET  /api/auth/google         → frontend redirects the user to auth_url
    2. Google redirects back with ?code=...
    3. POST /api/auth/google/login   {code} → access_token (7 days)
    4. Client sends Authorization: Bearer <access_token> on every call
    5. POST /api/auth/logout         → token revoked
"""

import logging
from datetime import datetime, timezone

from fastapi import APIRouter, Depends

from snappdf.dependencies import (
    AuthenticatedSession,
    get_current_session,
    get_identity_service,
    get_token_store,
    get_user_service,
)
from snappdf.exceptions import IdentityRejectedError, ValidationError
from snappdf.schemas.auth import (
    AuthUrlResponse,
    LoginRequest,
    LoginResponse,
    LogoutResponse,
    SessionSnapshot,
    UserInfo,
)
from snappdf.schemas.common import ErrorResponse
from snappdf.services.identity_service import IdentityService, RejectionReason
from snappdf.services.token_store import SessionTokenStore
from snappdf.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])


@router.get(
    "/google",
    response_model=AuthUrlResponse,
    summary="Get the Google consent URL",
)
async def get_auth_url(
    identity: IdentityService = Depends(get_identity_service),
) -> AuthUrlResponse:
    return AuthUrlResponse(auth_url=identity.build_authorization_url())


@router.post(
    "/google/login",
    response_model=LoginResponse,
    responses={
        400: {"description": "Missing or rejected code", "model": ErrorResponse},
        502: {"description": "Google unavailable", "model": ErrorResponse},
        503: {"description": "Session store unavailable", "model": ErrorResponse},
    },
    summary="Exchange a Google authorization code for an access token",
)
async def login(
    body: LoginRequest,
    identity: IdentityService = Depends(get_identity_service),
    users: UserService = Depends(get_user_service),
    store: SessionTokenStore = Depends(get_token_store),
) -> LoginResponse:
    """
    Exchange the code, upsert the user and issue a session token.

    Error codes:
        MISSING_CODE       - body has no code
        INVALID_CODE       - Google rejected the code or its ID token
        INVALID_USER_INFO  - verified identity has no email
    """
    if not body.code:
        raise ValidationError(
            message="Authorization code is required",
            code="MISSING_CODE",
            field="code",
        )

    result = await identity.exchange_code(body.code)
    if not result.is_verified:
        if result.reason == RejectionReason.MISSING_EMAIL:
            raise IdentityRejectedError(
                message="Failed to retrieve user information from Google",
                code="INVALID_USER_INFO",
            )
        raise IdentityRejectedError(
            message="Authorization code is invalid or expired",
            code="INVALID_CODE",
        )

    user = await users.get_or_create(result.email, result.avatar)

    snapshot = SessionSnapshot(
        user_id=str(user.id),
        email=user.email,
        avatar=user.avatar,
        login_at=datetime.now(timezone.utc),
    )
    token = await store.issue(snapshot)

    logger.info("Login successful for %s", user.email)
    return LoginResponse(
        access_token=token,
        expires_in=store.ttl_seconds,
        user=UserInfo(id=str(user.id), email=user.email, avatar=user.avatar),
    )


@router.post(
    "/logout",
    response_model=LogoutResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="Revoke the current access token",
)
async def logout(
    session: AuthenticatedSession = Depends(get_current_session),
    store: SessionTokenStore = Depends(get_token_store),
) -> LogoutResponse:
    await store.revoke(session.token)
    logger.info("Logout for %s", session.snapshot.email)
    return LogoutResponse()
