"""
SnapPDF Backend - Test Configuration (conftest.py)
====================================================

What:  Shared pytest fixtures for the whole suite.
How:   No real Postgres, Redis, S3, SQS or Google: each is replaced by a mock
       or an in-memory double, and route tests swap them in through
       `app.dependency_overrides`.

Fixtures:
    mock_db_session   AsyncMock session (execute/flush/commit, begin_nested)
    fake_redis        dict-backed Redis double with a controllable clock
    s3_client         MagicMock boto3 S3 client (put_object, presign)
    sqs_client        MagicMock boto3 SQS client (send_message)
    make_item         factory for UploadItem
    session_snapshot  snapshot of a logged-in user
    auth_headers      Authorization header for a token issued into fake_redis
    app / test_client FastAPI app with overrides + httpx AsyncClient
"""

import os

# Must run before snappdf.config is imported anywhere
os.environ["ENVIRONMENT"] = "test"
os.environ["LOG_LEVEL"] = "WARNING"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["GOOGLE_REDIRECT_URI"] = "http://localhost:3000/auth/callback"
os.environ["AWS_S3_BUCKET"] = "snappdf-test"
os.environ["AWS_SQS_OCR_QUEUE_URL"] = "https://sqs.ap-southeast-1.amazonaws.com/000000000000/ocr-test"
os.environ["STATUS_UPDATE_USERNAME"] = "ocr-worker"
os.environ["STATUS_UPDATE_PASSWORD"] = "worker-secret"
os.environ["INTAKE_RECORD_FAILURE_POLICY"] = "abort"

from datetime import datetime, timezone
from typing import Dict, Optional, Tuple
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from redis.exceptions import ConnectionError as RedisConnectionError

from snappdf.config import settings
from snappdf.schemas.auth import SessionSnapshot
from snappdf.schemas.upload import UploadItem
from snappdf.services.token_store import SessionTokenStore

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"


# ══════════════════════════════════════════════════════════════════════════
# Test Doubles
# ══════════════════════════════════════════════════════════════════════════

class FakeRedis:
    """
    In-memory stand-in for redis.asyncio.Redis covering set/get/delete/ping.

    Expiry is evaluated against `self.now`, advanced with `advance()`, so
    TTL behavior is tested without sleeping. Set `available = False` to make
    every call raise ConnectionError.
    """

    def __init__(self):
        self.now = 0.0
        self.available = True
        self._data: Dict[str, Tuple[str, Optional[float]]] = {}

    def advance(self, seconds: float) -> None:
        self.now += seconds

    def _check(self) -> None:
        if not self.available:
            raise RedisConnectionError("Error 111 connecting to localhost:6379. Connection refused.")

    def _live(self, key: str) -> Optional[str]:
        entry = self._data.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if expires_at is not None and self.now >= expires_at:
            del self._data[key]
            return None
        return value

    def ttl(self, key: str) -> Optional[float]:
        entry = self._data.get(key)
        if entry is None or entry[1] is None:
            return None
        return entry[1] - self.now

    def keys_snapshot(self):
        return [key for key in list(self._data) if self._live(key) is not None]

    async def set(self, key: str, value: str, ex: Optional[int] = None):
        self._check()
        self._data[key] = (value, self.now + ex if ex else None)
        return True

    async def get(self, key: str) -> Optional[str]:
        self._check()
        return self._live(key)

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self._live(key) is not None:
                del self._data[key]
                removed += 1
        return removed

    async def ping(self) -> bool:
        self._check()
        return True


# ══════════════════════════════════════════════════════════════════════════
# Function-Scoped Fixtures
# ══════════════════════════════════════════════════════════════════════════

@pytest.fixture
def mock_db_session():
    """
    Mock AsyncSession.

    Usage:
        mock_db_session.execute.return_value.scalar_one_or_none.return_value = record
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()

    savepoint = MagicMock()
    savepoint.__aenter__ = AsyncMock(return_value=savepoint)
    # False: exceptions raised inside the block propagate
    savepoint.__aexit__ = AsyncMock(return_value=False)
    session.begin_nested = MagicMock(return_value=savepoint)
    return session


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.put_object.return_value = {"ETag": '"etag"'}
    client.generate_presigned_url.side_effect = (
        lambda ClientMethod, Params, ExpiresIn: (
            f"https://{Params['Bucket']}.s3.test/{Params['Key']}?X-Amz-Expires={ExpiresIn}"
        )
    )
    return client


@pytest.fixture
def sqs_client():
    client = MagicMock()
    client.send_message.return_value = {"MessageId": "msg-0001"}
    return client


@pytest.fixture
def make_item():
    """Factory: make_item(b"bytes", "scan.png", "image/png") → UploadItem."""

    def _make(data: bytes = PNG_BYTES, filename: str = "scan.png", content_type: str = "image/png"):
        return UploadItem(filename=filename, content_type=content_type, data=data)

    return _make


@pytest.fixture
def session_snapshot():
    return SessionSnapshot(
        user_id="6f1c2b9e-3a4d-4e5f-8a9b-0c1d2e3f4a5b",
        email="linh@example.com",
        avatar="https://lh3.googleusercontent.com/a/avatar",
        login_at=datetime(2026, 10, 17, 8, 30, tzinfo=timezone.utc),
    )


@pytest_asyncio.fixture
async def auth_headers(fake_redis, session_snapshot):
    """Bearer header for a token issued into fake_redis."""
    store = SessionTokenStore(fake_redis, ttl_seconds=settings.session_ttl_seconds)
    token = await store.issue(session_snapshot)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def app(mock_db_session, fake_redis, s3_client, sqs_client):
    """
    The FastAPI app with every external client replaced.

    The lifespan does not run under ASGITransport, so app.state is never
    populated; the client dependencies are overridden instead.
    """
    from snappdf.database import get_db_session
    from snappdf.dependencies import get_redis, get_s3_client, get_sqs_client
    from snappdf.main import app as application

    async def _db_session():
        yield mock_db_session

    application.dependency_overrides[get_db_session] = _db_session
    application.dependency_overrides[get_redis] = lambda: fake_redis
    application.dependency_overrides[get_s3_client] = lambda: s3_client
    application.dependency_overrides[get_sqs_client] = lambda: sqs_client
    yield application
    application.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_client(app):
    """
    HTTPX AsyncClient talking to the app in-process.

    Usage:
        async def test_profile(test_client, auth_headers):
            response = await test_client.get("/api/user/profile", headers=auth_headers)
    """
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
