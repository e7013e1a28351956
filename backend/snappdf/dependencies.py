"""
SnapPDF Backend - FastAPI Dependencies
========================================

What:  Wires clients from `app.state` into per-request services, and
       provides the two authentication guards.
How:   Plain functions used with `Depends()`. Tests swap any of them through
       `app.dependency_overrides` (the lifespan does not run under
       ASGITransport, so app.state is empty there).

Dependency Graph:
    get_db_session ─┬─► get_file_service ─┐
                    └─► get_user_service  │
    get_s3_client ────► get_storage_service ├─► get_intake_service
    get_sqs_client ───► get_queue_service ──┘
    get_redis ────────► get_token_store ──► get_current_session (bearer guard)
    get_http_client ──► get_identity_service

    require_status_credentials (basic-auth guard for the OCR worker callback)
"""

import logging
import secrets
from dataclasses import dataclass
from typing import Any, Optional

import httpx
from fastapi import Depends, Header, Request
from fastapi.security import HTTPBasic, HTTPBasicCredentials
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from snappdf.config import Settings, settings
from snappdf.database import get_db_session
from snappdf.exceptions import AuthenticationError
from snappdf.schemas.auth import SessionSnapshot
from snappdf.services.file_service import FileService
from snappdf.services.identity_service import IdentityService
from snappdf.services.intake_service import IntakeService
from snappdf.services.queue_service import JobQueueService
from snappdf.services.storage_service import ObjectStorageService
from snappdf.services.token_store import SessionTokenStore
from snappdf.services.user_service import UserService

logger = logging.getLogger(__name__)

_basic_auth = HTTPBasic(auto_error=False)


def get_settings() -> Settings:
    return settings


# ── Clients (built in the lifespan) ───────────────────────────────────────

def get_redis(request: Request) -> Redis:
    return request.app.state.redis


def get_s3_client(request: Request) -> Any:
    return request.app.state.s3


def get_sqs_client(request: Request) -> Any:
    return request.app.state.sqs


def get_http_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.http_client


# ── Services ──────────────────────────────────────────────────────────────

def get_token_store(
    redis: Redis = Depends(get_redis),
    config: Settings = Depends(get_settings),
) -> SessionTokenStore:
    return SessionTokenStore(redis, ttl_seconds=config.session_ttl_seconds)


def get_file_service(
    db: AsyncSession = Depends(get_db_session),
    config: Settings = Depends(get_settings),
) -> FileService:
    return FileService(db, policy=config.intake_record_failure_policy)


def get_user_service(db: AsyncSession = Depends(get_db_session)) -> UserService:
    return UserService(db)


def get_storage_service(
    s3: Any = Depends(get_s3_client),
    config: Settings = Depends(get_settings),
) -> ObjectStorageService:
    return ObjectStorageService(s3, bucket=config.aws_s3_bucket)


def get_queue_service(
    sqs: Any = Depends(get_sqs_client),
    config: Settings = Depends(get_settings),
) -> JobQueueService:
    return JobQueueService(sqs, queue_url=config.aws_sqs_ocr_queue_url)


def get_identity_service(
    http_client: httpx.AsyncClient = Depends(get_http_client),
    config: Settings = Depends(get_settings),
) -> IdentityService:
    return IdentityService(http_client, config)


def get_intake_service(
    file_service: FileService = Depends(get_file_service),
    storage: ObjectStorageService = Depends(get_storage_service),
    queue: JobQueueService = Depends(get_queue_service),
) -> IntakeService:
    return IntakeService(file_service, storage, queue)


# ── Authentication Guards ─────────────────────────────────────────────────

@dataclass(frozen=True)
class AuthenticatedSession:
    """The presented bearer token and the snapshot stored under it."""

    token: str
    snapshot: SessionSnapshot


async def get_current_session(
    authorization: Optional[str] = Header(default=None),
    store: SessionTokenStore = Depends(get_token_store),
) -> AuthenticatedSession:
    """
    Bearer guard for user routes.

    Raises:
        AuthenticationError: MISSING_AUTH_HEADER, INVALID_AUTH_FORMAT,
            EMPTY_TOKEN or INVALID_TOKEN (401)
        UpstreamUnavailableError: Redis unreachable (503)
    """
    if not authorization:
        raise AuthenticationError(
            message="Unauthorized: No authorization header provided",
            code="MISSING_AUTH_HEADER",
        )

    scheme, _, token = authorization.partition(" ")
    if scheme != "Bearer":
        raise AuthenticationError(
            message="Unauthorized: Invalid authorization format. Expected: Bearer <token>",
            code="INVALID_AUTH_FORMAT",
        )

    token = token.strip()
    if not token:
        raise AuthenticationError(message="Unauthorized: Token is empty", code="EMPTY_TOKEN")

    snapshot = await store.validate(token)
    if snapshot is None:
        raise AuthenticationError(
            message="Unauthorized: Token is invalid or expired",
            code="INVALID_TOKEN",
        )

    logger.debug("Authenticated %s", snapshot.email)
    return AuthenticatedSession(token=token, snapshot=snapshot)


def require_status_credentials(
    credentials: Optional[HTTPBasicCredentials] = Depends(_basic_auth),
    config: Settings = Depends(get_settings),
) -> str:
    """
    Basic-auth guard for the internal status endpoint.

    An unset STATUS_UPDATE_PASSWORD rejects every caller.
    """
    expected_password = config.status_update_password
    if credentials is not None and expected_password:
        user_ok = secrets.compare_digest(
            credentials.username.encode("utf-8"),
            config.status_update_username.encode("utf-8"),
        )
        password_ok = secrets.compare_digest(
            credentials.password.encode("utf-8"),
            expected_password.encode("utf-8"),
        )
        if user_ok and password_ok:
            return credentials.username

    raise AuthenticationError(
        message="Unauthorized: Invalid credentials",
        code="INVALID_CREDENTIALS",
    )
