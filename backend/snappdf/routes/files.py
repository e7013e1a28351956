"""
SnapPDF Backend - File Route Handlers
=======================================

What:  GET /api/files lists the caller's files with download links;
       PATCH /api/files/{id}/status is the OCR worker's completion callback.

Links per status:
    pending     image
    completed   image, pdf
    management  management

    Links are presigned S3 GET URLs valid for PRESIGNED_URL_EXPIRY_SECONDS.
    A pdf link is only given once the worker has reported completion, since
    `pdf/<id>.pdf` does not exist before that.
"""

import logging
from typing import Dict, Optional

from fastapi import APIRouter, Depends, Query, Response

from snappdf.config import Settings
from snappdf.dependencies import (
    AuthenticatedSession,
    get_current_session,
    get_file_service,
    get_settings,
    get_storage_service,
    require_status_credentials,
)
from snappdf.models.file import FileRecord, FileStatus
from snappdf.schemas.common import ErrorResponse
from snappdf.schemas.file import (
    FileItem,
    FileListResponse,
    StatusUpdateRequest,
    StatusUpdateResponse,
)
from snappdf.services.file_service import FileService
from snappdf.services.storage_service import Channel, ObjectStorageService, object_key

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/files", tags=["Files"])


async def build_links(
    record: FileRecord,
    storage: ObjectStorageService,
    expires_in: int,
) -> Dict[str, str]:
    """Presigned links for every object that exists for `record`."""
    extension = record.extension or "bin"
    keys: Dict[str, str] = {}
    if record.status == FileStatus.MANAGEMENT.value:
        keys["management"] = object_key(Channel.MANAGEMENT, record.id, extension)
    else:
        keys["image"] = object_key(Channel.IMAGES, record.id, extension)
        if record.status == FileStatus.COMPLETED.value:
            keys["pdf"] = object_key(Channel.PDF, record.id, "pdf")

    return {
        name: await storage.presign_download(key, expires_in)
        for name, key in keys.items()
    }


@router.get(
    "",
    response_model=FileListResponse,
    responses={401: {"description": "Not authenticated", "model": ErrorResponse}},
    summary="List the current user's files",
)
async def list_files(
    response: Response,
    skip: int = Query(default=0, ge=0, description="Number of files to skip"),
    take: int = Query(default=20, ge=1, le=100, description="Page size (max 100)"),
    status: Optional[FileStatus] = Query(default=None, description="Only files in this status"),
    session: AuthenticatedSession = Depends(get_current_session),
    files: FileService = Depends(get_file_service),
    storage: ObjectStorageService = Depends(get_storage_service),
    config: Settings = Depends(get_settings),
) -> FileListResponse:
    owner = session.snapshot.email
    records = await files.list_user_files(owner, skip=skip, take=take, status=status)
    total = await files.count_user_files(owner, status=status)

    items = [
        FileItem(
            id=record.id,
            status=FileStatus(record.status),
            created_at=record.created_at,
            extension=record.extension,
            links=await build_links(record, storage, config.presigned_url_expiry_seconds),
        )
        for record in records
    ]

    response.headers["X-Total-Count"] = str(total)
    return FileListResponse(files=items, total_count=total, skip=skip, take=take)


@router.patch(
    "/{file_id}/status",
    response_model=StatusUpdateResponse,
    responses={
        401: {"description": "Invalid worker credentials", "model": ErrorResponse},
        404: {"description": "Unknown file", "model": ErrorResponse},
    },
    summary="Report OCR completion (internal)",
)
async def update_file_status(
    file_id: str,
    body: StatusUpdateRequest,
    worker: str = Depends(require_status_credentials),
    files: FileService = Depends(get_file_service),
) -> StatusUpdateResponse:
    record = await files.update_status(file_id, body.status)
    logger.info("Status of %s set to %s by %s", file_id, body.status.value, worker)
    return StatusUpdateResponse(id=record.id, status=FileStatus(record.status))
