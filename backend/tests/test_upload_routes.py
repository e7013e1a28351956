"""
SnapPDF Backend - Upload Route Tests
======================================

What:  HTTP behavior of POST /api/upload and POST /api/upload/management.
How:   Multipart requests through the real IntakeService; the session, S3
       and SQS clients are the conftest mocks.

What we test:
    ✅ Limits: NO_IMAGES, TOO_MANY_FILES, INVALID_FILE_TYPE, FILE_TOO_LARGE
    ✅ A rejected request records, uploads and announces nothing
    ✅ Duplicate images in one request are stored once
    ✅ Language: query > form > default (vie)
    ✅ Management uploads accept any content type
"""

import json
import uuid
from unittest.mock import MagicMock, patch

import pytest
from botocore.exceptions import EndpointConnectionError

from snappdf.config import settings
from snappdf.dependencies import get_settings

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 16
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\xff\xd9"

IDS = [
    "aaaaaaaa-1111-4111-8111-111111111111",
    "bbbbbbbb-2222-4222-8222-222222222222",
    "cccccccc-3333-4333-8333-333333333333",
]


@pytest.fixture
def pinned_ids(mock_db_session):
    """uuid4 yields IDS in order; the bulk insert returns every one of them."""
    result = MagicMock()
    result.scalars.return_value.all.return_value = IDS
    mock_db_session.execute.return_value = result
    with patch(
        "snappdf.services.file_service.uuid4",
        side_effect=[uuid.UUID(value) for value in IDS],
    ):
        yield IDS


@pytest.fixture
def small_limits(app):
    limited = settings.model_copy(update={"max_files_per_batch": 2, "max_file_size": 16})
    app.dependency_overrides[get_settings] = lambda: limited
    return limited


def _images(*entries):
    return [("images", entry) for entry in entries]


def _sent_jobs(sqs_client):
    return [json.loads(c.kwargs["MessageBody"]) for c in sqs_client.send_message.call_args_list]


class TestUploadLimits:
    @pytest.mark.asyncio
    async def test_requires_auth(self, test_client):
        response = await test_client.post(
            "/api/upload", files=_images(("a.png", PNG_BYTES, "image/png"))
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_no_images(self, test_client, auth_headers, mock_db_session):
        response = await test_client.post(
            "/api/upload", data={"language": "eng"}, headers=auth_headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == "NO_IMAGES"
        mock_db_session.execute.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_type_rejects_whole_batch(
        self, test_client, auth_headers, mock_db_session, s3_client, sqs_client
    ):
        response = await test_client.post(
            "/api/upload",
            files=_images(
                ("a.png", PNG_BYTES, "image/png"),
                ("notes.txt", b"hello", "text/plain"),
            ),
            headers=auth_headers,
        )

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "INVALID_FILE_TYPE"
        assert body["details"]["content_type"] == "text/plain"
        mock_db_session.execute.assert_not_awaited()
        s3_client.put_object.assert_not_called()
        sqs_client.send_message.assert_not_called()

    @pytest.mark.asyncio
    async def test_too_many_files(self, test_client, auth_headers, small_limits, s3_client):
        response = await test_client.post(
            "/api/upload",
            files=_images(*[(f"{i}.png", PNG_BYTES, "image/png") for i in range(3)]),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "TOO_MANY_FILES"
        s3_client.put_object.assert_not_called()

    @pytest.mark.asyncio
    async def test_file_too_large(self, test_client, auth_headers, small_limits, mock_db_session):
        response = await test_client.post(
            "/api/upload",
            files=_images(("big.png", PNG_BYTES + b"\x00" * 64, "image/png")),
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "FILE_TOO_LARGE"
        mock_db_session.execute.assert_not_awaited()


class TestUploadImages:
    @pytest.mark.asyncio
    async def test_duplicates_stored_once(
        self, test_client, auth_headers, pinned_ids, s3_client, sqs_client
    ):
        response = await test_client.post(
            "/api/upload",
            files=_images(
                ("first.png", PNG_BYTES, "image/png"),
                ("photo.jpg", JPEG_BYTES, "image/jpeg"),
                ("first-copy.png", PNG_BYTES, "image/png"),
            ),
            headers=auth_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["received"] == 3
        assert body["accepted"] == 2
        assert body["file_ids"] == IDS[:2]

        assert [c.kwargs["Key"] for c in s3_client.put_object.call_args_list] == [
            f"images/{IDS[0]}.png",
            f"images/{IDS[1]}.jpg",
        ]
        assert [job["id"] for job in _sent_jobs(sqs_client)] == IDS[:2]

    @pytest.mark.asyncio
    async def test_default_language(self, test_client, auth_headers, pinned_ids, sqs_client):
        await test_client.post(
            "/api/upload",
            files=_images(("a.png", PNG_BYTES, "image/png")),
            headers=auth_headers,
        )

        assert _sent_jobs(sqs_client)[0]["language"] == "vie"

    @pytest.mark.asyncio
    async def test_language_from_form(self, test_client, auth_headers, pinned_ids, sqs_client):
        await test_client.post(
            "/api/upload",
            files=_images(("a.png", PNG_BYTES, "image/png")),
            data={"language": "eng"},
            headers=auth_headers,
        )

        assert _sent_jobs(sqs_client)[0]["language"] == "eng"

    @pytest.mark.asyncio
    async def test_query_language_wins(self, test_client, auth_headers, pinned_ids, sqs_client):
        await test_client.post(
            "/api/upload?language=jpn",
            files=_images(("a.png", PNG_BYTES, "image/png")),
            data={"language": "eng"},
            headers=auth_headers,
        )

        assert _sent_jobs(sqs_client)[0]["language"] == "jpn"

    @pytest.mark.asyncio
    async def test_storage_failure_is_500(
        self, test_client, auth_headers, pinned_ids, s3_client, sqs_client
    ):
        s3_client.put_object.side_effect = EndpointConnectionError(endpoint_url="https://s3.test")

        response = await test_client.post(
            "/api/upload",
            files=_images(("a.png", PNG_BYTES, "image/png")),
            headers=auth_headers,
        )

        assert response.status_code == 500
        assert response.json()["error"] == "UPLOAD_FAILED"
        sqs_client.send_message.assert_not_called()


class TestUploadManagement:
    @pytest.mark.asyncio
    async def test_accepts_any_type(self, test_client, auth_headers, pinned_ids, s3_client):
        response = await test_client.post(
            "/api/upload/management",
            files=_images(
                ("contract.pdf", b"%PDF-1.7 contract", "application/pdf"),
                ("notes.txt", b"hello", "text/plain"),
            ),
            headers=auth_headers,
        )

        assert response.status_code == 200
        assert response.json()["accepted"] == 2
        assert [c.kwargs["Key"] for c in s3_client.put_object.call_args_list] == [
            f"management/{IDS[0]}.pdf",
            f"management/{IDS[1]}.txt",
        ]

    @pytest.mark.asyncio
    async def test_still_requires_files(self, test_client, auth_headers):
        response = await test_client.post("/api/upload/management", headers=auth_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "NO_IMAGES"
