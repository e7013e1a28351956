"""
SnapPDF Backend - Upload Intake Schemas
=========================================

What:  The transient upload item handed to the intake pipeline, and the
       response returned by the upload routes.

UploadItem lives only for one request. Its bytes are never persisted
anywhere but the object store.
"""

from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import List

from pydantic import BaseModel, Field

# Fallback extensions when the declared filename has none
CONTENT_TYPE_EXTENSIONS = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/bmp": "bmp",
    "image/tiff": "tiff",
    "image/heic": "heic",
    "image/heif": "heif",
    "application/pdf": "pdf",
}


@dataclass(frozen=True)
class UploadItem:
    """One file of an inbound batch: raw bytes plus declared metadata."""

    filename: str
    content_type: str
    data: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        """
        Declared extension: lowercase suffix of the filename without the dot.

        Only ASCII letters and digits are taken from the filename. Anything else
        falls back to the content type, then to "bin", so that every item maps
        to a well-formed `<id>.<extension>` object key.
        """
        suffix = PurePosixPath((self.filename or "").strip()).suffix.lower().lstrip(".")
        if suffix.isascii() and suffix.isalnum():
            return suffix[:16]
        return CONTENT_TYPE_EXTENSIONS.get(self.content_type, "bin")


class UploadResponse(BaseModel):
    """
    What:  Returned by POST /api/upload and POST /api/upload/management.

    `accepted` counts items left after batch-local dedup; `file_ids` are the
    identifiers the client can poll in GET /api/files.
    """

    success: bool = Field(default=True)
    message: str = Field(default="Images uploaded successfully")
    received: int = Field(description="Number of files in the request")
    accepted: int = Field(description="Number of files left after duplicate removal")
    file_ids: List[str] = Field(description="Identifiers of the recorded files")
