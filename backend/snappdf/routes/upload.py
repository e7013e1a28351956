"""
SnapPDF Backend - Upload Route Handlers
=========================================

What:  POST /api/upload (images for OCR) and POST /api/upload/management
       (any file type, kept under the management channel).
How:   Reads the multipart `images` field into UploadItems, enforces the
       request limits, then hands the batch to IntakeService.

Request Limits (checked before anything is recorded):
    - at least one file                         NO_IMAGES
    - at most MAX_FILES_PER_BATCH files (50)    TOO_MANY_FILES
    - each file at most MAX_FILE_SIZE (10MB)    FILE_TOO_LARGE
    - /api/upload only: image content types     INVALID_FILE_TYPE

    Any violation rejects the whole request; nothing is stored.
"""

import logging
from typing import FrozenSet, List, Optional

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile

from snappdf.config import Settings
from snappdf.dependencies import (
    AuthenticatedSession,
    get_current_session,
    get_intake_service,
    get_settings,
)
from snappdf.exceptions import ValidationError
from snappdf.schemas.common import ErrorResponse
from snappdf.schemas.upload import UploadItem, UploadResponse
from snappdf.services.intake_service import IntakeMode, IntakeService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/upload", tags=["Upload"])

ALLOWED_IMAGE_TYPES: FrozenSet[str] = frozenset({
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
    "image/bmp",
    "image/tiff",
    "image/heic",
    "image/heif",
})

_UPLOAD_RESPONSES = {
    400: {"description": "Invalid batch", "model": ErrorResponse},
    401: {"description": "Not authenticated", "model": ErrorResponse},
    500: {"description": "Storage or queue failure", "model": ErrorResponse},
    503: {"description": "Database or session store unavailable", "model": ErrorResponse},
}


async def read_batch(
    files: Optional[List[UploadFile]],
    config: Settings,
    allowed_types: Optional[FrozenSet[str]] = None,
) -> List[UploadItem]:
    """
    Validate the multipart files and read them into memory.

    Args:
        files: The `images` field, possibly empty
        config: Limits
        allowed_types: Accepted content types; None accepts any

    Raises:
        ValidationError: NO_IMAGES, TOO_MANY_FILES, INVALID_FILE_TYPE, FILE_TOO_LARGE
    """
    files = [f for f in (files or []) if f is not None]
    if not files:
        raise ValidationError(message="No images uploaded", code="NO_IMAGES", field="images")

    if len(files) > config.max_files_per_batch:
        raise ValidationError(
            message=f"Too many files: {len(files)}. Maximum is {config.max_files_per_batch}",
            code="TOO_MANY_FILES",
            field="images",
            context={"received": len(files), "max_files": config.max_files_per_batch},
        )

    items: List[UploadItem] = []
    for upload in files:
        content_type = upload.content_type or "application/octet-stream"
        if allowed_types is not None and content_type not in allowed_types:
            raise ValidationError(
                message=(
                    f"Invalid file type: {content_type}. "
                    f"Allowed: {', '.join(sorted(allowed_types))}"
                ),
                code="INVALID_FILE_TYPE",
                field="images",
                context={"filename": upload.filename, "content_type": content_type},
            )

        try:
            data = await upload.read()
        finally:
            await upload.close()

        if len(data) > config.max_file_size:
            raise ValidationError(
                message=(
                    f"File too large: {upload.filename} is {len(data) / 1_048_576:.1f}MB. "
                    f"Maximum is {config.max_file_size / 1_048_576:.0f}MB"
                ),
                code="FILE_TOO_LARGE",
                field="images",
                context={"filename": upload.filename, "size": len(data)},
            )

        items.append(
            UploadItem(filename=upload.filename or "", content_type=content_type, data=data)
        )
    return items


def _resolve_language(query_value: Optional[str], form_value: Optional[str], config: Settings) -> str:
    return (query_value or form_value or config.default_ocr_language).strip() or config.default_ocr_language


@router.post(
    "",
    response_model=UploadResponse,
    responses=_UPLOAD_RESPONSES,
    summary="Upload images for OCR",
    description=(
        "Multipart upload of up to 50 images (field `images`, 10MB each). "
        "Duplicate images in the same request are stored once. Each stored image "
        "is queued for OCR in `language` (default vie)."
    ),
)
async def upload_images(
    images: Optional[List[UploadFile]] = File(default=None, description="Images to OCR"),
    language_form: Optional[str] = Form(default=None, alias="language"),
    language_query: Optional[str] = Query(default=None, alias="language"),
    session: AuthenticatedSession = Depends(get_current_session),
    intake: IntakeService = Depends(get_intake_service),
    config: Settings = Depends(get_settings),
) -> UploadResponse:
    items = await read_batch(images, config, allowed_types=ALLOWED_IMAGE_TYPES)
    language = _resolve_language(language_query, language_form, config)

    logger.info(
        "Upload of %d image(s) from %s (language=%s)",
        len(items),
        session.snapshot.email,
        language,
    )
    result = await intake.process_batch(
        items, session.snapshot.email, language, mode=IntakeMode.ORDINARY
    )
    return UploadResponse(
        message="Images uploaded successfully",
        received=result.received,
        accepted=result.accepted,
        file_ids=result.file_ids,
    )


@router.post(
    "/management",
    response_model=UploadResponse,
    responses=_UPLOAD_RESPONSES,
    summary="Upload files to the management channel",
)
async def upload_management(
    images: Optional[List[UploadFile]] = File(default=None, description="Files of any type"),
    language_form: Optional[str] = Form(default=None, alias="language"),
    language_query: Optional[str] = Query(default=None, alias="language"),
    session: AuthenticatedSession = Depends(get_current_session),
    intake: IntakeService = Depends(get_intake_service),
    config: Settings = Depends(get_settings),
) -> UploadResponse:
    items = await read_batch(images, config)
    language = _resolve_language(language_query, language_form, config)

    logger.info("Management upload of %d file(s) from %s", len(items), session.snapshot.email)
    result = await intake.process_batch(
        items, session.snapshot.email, language, mode=IntakeMode.MANAGEMENT
    )
    return UploadResponse(
        message="Files uploaded successfully",
        received=result.received,
        accepted=result.accepted,
        file_ids=result.file_ids,
    )
