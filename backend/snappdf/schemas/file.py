"""
SnapPDF Backend - File Listing Schemas
========================================

What:  Response models for GET /api/files and the request body of the
       internal status endpoint.
How:   FastAPI validates query/body data against these models and uses them
       for the OpenAPI docs.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from snappdf.models.file import FileStatus


class FileItem(BaseModel):
    """
    What:  One file as shown to its owner.

    links:
        image       - presigned URL of the uploaded image (ordinary uploads)
        pdf         - presigned URL of the OCR output (only once completed)
        management  - presigned URL of a management upload
    """

    id: str = Field(description="File identifier")
    status: FileStatus = Field(description="pending, completed or management")
    created_at: datetime = Field(description="Upload time (UTC)")
    extension: Optional[str] = Field(default=None, description="Declared extension")
    links: Dict[str, str] = Field(default_factory=dict, description="Time-limited download links")


class FileListResponse(BaseModel):
    """Offset-paginated listing (skip/take), newest first."""

    success: bool = True
    files: List[FileItem]
    total_count: int = Field(description="Number of files matching the filter")
    skip: int
    take: int


class StatusUpdateRequest(BaseModel):
    """Body sent by the OCR worker when it finishes a job."""

    status: FileStatus = Field(description="New lifecycle status")


class StatusUpdateResponse(BaseModel):
    success: bool = True
    id: str
    status: FileStatus
