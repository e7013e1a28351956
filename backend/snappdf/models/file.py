"""
SnapPDF Backend - File Record SQLAlchemy Model
================================================

What:  ORM model for the `files` table: one row per uploaded item.
Who:   Inserted by FileService during intake; status updated by the OCR
       worker through the internal status endpoint.

Table Design:
    - id: UUID4 string assigned at intake. The S3 key is always
      `<channel>/<id>.<extension>`, so id and extension together locate the
      stored bytes. Changing either orphans the object.
    - user_email: owner; files are never shared across owners
    - status: pending → completed (OCR done) | management (management intake)
    - extension: declared extension of the upload, lowercase, no dot
    - created_at: UTC, used for newest-first listing

    Index on (user_email, created_at DESC) serves GET /api/files.
    Rows are never deleted automatically.
"""

import enum
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import ForeignKey, Index, String, text
from sqlalchemy.dialects.postgresql import TIMESTAMP
from sqlalchemy.orm import Mapped, mapped_column

from snappdf.database import Base


class FileStatus(str, enum.Enum):
    """Lifecycle status of a file record."""

    PENDING = "pending"
    COMPLETED = "completed"
    MANAGEMENT = "management"


class FileRecord(Base):
    """
    Metadata for one uploaded item.

    Lifecycle:
        1. Created at intake with status 'pending' (or 'management')
        2. Bytes uploaded to S3 under `<channel>/<id>.<extension>`
        3. OCR job announced on SQS
        4. Worker reports completion → status 'completed'
    """

    __tablename__ = "files"

    id: Mapped[str] = mapped_column(
        String(36),
        primary_key=True,
        comment="UUID4 assigned at intake; also the S3 object stem",
    )

    user_email: Mapped[str] = mapped_column(
        String(320),
        ForeignKey("users.email", ondelete="CASCADE"),
        nullable=False,
        comment="Owner of the file",
    )

    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=FileStatus.PENDING.value,
        server_default=text("'pending'"),
        comment="Lifecycle state: pending, completed, management",
    )

    extension: Mapped[Optional[str]] = mapped_column(
        String(16),
        nullable=True,
        comment="Declared file extension, lowercase without dot",
    )

    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
    )

    __table_args__ = (
        Index("idx_files_user_email_created_at", "user_email", created_at.desc()),
    )

    def __repr__(self) -> str:
        return (
            f"<FileRecord(id={self.id}, status='{self.status}', "
            f"extension='{self.extension}')>"
        )
