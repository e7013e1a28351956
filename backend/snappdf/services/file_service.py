"""
SnapPDF Backend - File Metadata Service (Metadata Recorder)
=============================================================

What:  Persists and queries `files` rows.
How:   Wraps one AsyncSession (injected per request) and translates
       SQLAlchemy failures into application exceptions.
Who:   IntakeService (record_batch, commit), file routes (list, update).

Recording Policy:
    Two policies exist for a database failure while recording a batch, chosen
    by INTAKE_RECORD_FAILURE_POLICY:

    abort (default)
        One bulk `INSERT ... ON CONFLICT (id) DO NOTHING RETURNING id`.
        Any failure raises and the batch stops: nothing is uploaded or
        announced for it.

    skip
        One insert per item inside a SAVEPOINT. A failing item is logged and
        dropped; the others continue through the pipeline.

    In both policies an id that already exists is skipped, not an error, and
    only ids reported back by RETURNING continue to upload and announce.
"""

import logging
from dataclasses import dataclass
from typing import List, Optional, Sequence
from uuid import uuid4

from sqlalchemy import desc, func, select
from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from snappdf.database import translate_db_error
from snappdf.exceptions import NotFoundError
from snappdf.models.file import FileRecord, FileStatus
from snappdf.schemas.upload import UploadItem

logger = logging.getLogger(__name__)

RECORD_POLICIES = ("abort", "skip")


@dataclass(frozen=True)
class RecordedItem:
    """An upload item that now has a `files` row."""

    id: str
    item: UploadItem
    status: FileStatus

    @property
    def extension(self) -> str:
        return self.item.extension


class FileService:
    """
    Data access for file records, bound to one database session.

    Responsibilities:
        - record_batch(): assign ids and insert pending rows for a batch
        - commit(): make recorded rows visible to the OCR worker
        - list_user_files() / count_user_files(): owner-scoped listing
        - get_file() / update_status(): completion notification
    """

    def __init__(self, session: AsyncSession, policy: str = "abort"):
        if policy not in RECORD_POLICIES:
            raise ValueError(f"Unknown record policy '{policy}'. Must be one of: {RECORD_POLICIES}")
        self.session = session
        self.policy = policy

    # ── Recording ─────────────────────────────────────────────────────────

    async def record_batch(
        self,
        owner_email: str,
        items: Sequence[UploadItem],
        status: FileStatus = FileStatus.PENDING,
    ) -> List[RecordedItem]:
        """
        Assign each item a fresh UUID4 and insert one row per item.

        Args:
            owner_email: Identity the rows belong to
            items: Deduplicated batch, in submission order
            status: Initial status (pending, or management for management intake)

        Returns:
            Recorded items in submission order. Every returned row has exactly
            `status` at this point.

        Raises:
            DatabaseError / UpstreamUnavailableError: abort policy only
        """
        if not items:
            return []

        candidates = [
            RecordedItem(id=str(uuid4()), item=item, status=status)
            for item in items
        ]

        if self.policy == "skip":
            recorded = await self._record_each(owner_email, candidates)
        else:
            recorded = await self._record_bulk(owner_email, candidates)

        logger.info(
            "Recorded %d/%d file(s) for %s (status=%s, policy=%s)",
            len(recorded),
            len(candidates),
            owner_email,
            status.value,
            self.policy,
        )
        return recorded

    def _insert_statement(self, owner_email: str, candidates: Sequence[RecordedItem]):
        rows = [
            {
                "id": candidate.id,
                "user_email": owner_email,
                "status": candidate.status.value,
                "extension": candidate.extension,
            }
            for candidate in candidates
        ]
        return (
            pg_insert(FileRecord)
            .values(rows)
            .on_conflict_do_nothing(index_elements=[FileRecord.id])
            .returning(FileRecord.id)
        )

    async def _record_bulk(
        self, owner_email: str, candidates: List[RecordedItem]
    ) -> List[RecordedItem]:
        try:
            result = await self.session.execute(self._insert_statement(owner_email, candidates))
            inserted = set(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error(
                "Bulk insert of %d file record(s) failed for %s: %s",
                len(candidates),
                owner_email,
                str(e),
            )
            raise translate_db_error(e, "record_batch")

        recorded = [candidate for candidate in candidates if candidate.id in inserted]
        skipped = len(candidates) - len(recorded)
        if skipped:
            logger.warning("Skipped %d file record(s) whose id already exists", skipped)
        return recorded

    async def _record_each(
        self, owner_email: str, candidates: List[RecordedItem]
    ) -> List[RecordedItem]:
        recorded: List[RecordedItem] = []
        for candidate in candidates:
            try:
                async with self.session.begin_nested():
                    result = await self.session.execute(
                        self._insert_statement(owner_email, [candidate])
                    )
                    inserted_id = result.scalar_one_or_none()
            except SQLAlchemyError as e:
                logger.error("Failed to save %s to DB, dropping it: %s", candidate.id, str(e))
                continue

            if inserted_id is None:
                logger.warning("File record %s already exists, skipping", candidate.id)
                continue
            recorded.append(candidate)
        return recorded

    async def commit(self) -> None:
        """Commit the current transaction."""
        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            logger.error("Commit failed: %s", str(e))
            raise translate_db_error(e, "commit")

    # ── Queries ───────────────────────────────────────────────────────────

    async def list_user_files(
        self,
        owner_email: str,
        skip: int = 0,
        take: int = 100,
        status: Optional[FileStatus] = None,
    ) -> List[FileRecord]:
        """
        Owner's files, newest first.

        Query plan:
            SELECT * FROM files WHERE user_email = :email [AND status = :status]
            ORDER BY created_at DESC OFFSET :skip LIMIT :take
            → idx_files_user_email_created_at
        """
        query = select(FileRecord).where(FileRecord.user_email == owner_email)
        if status is not None:
            query = query.where(FileRecord.status == status.value)
        query = query.order_by(desc(FileRecord.created_at)).offset(skip).limit(take)

        try:
            result = await self.session.execute(query)
            return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.error("Database error listing files for %s: %s", owner_email, str(e))
            raise translate_db_error(e, "list_user_files")

    async def count_user_files(
        self, owner_email: str, status: Optional[FileStatus] = None
    ) -> int:
        query = select(func.count(FileRecord.id)).where(FileRecord.user_email == owner_email)
        if status is not None:
            query = query.where(FileRecord.status == status.value)

        try:
            result = await self.session.execute(query)
            return result.scalar() or 0
        except SQLAlchemyError as e:
            logger.error("Database error counting files for %s: %s", owner_email, str(e))
            raise translate_db_error(e, "count_user_files")

    async def get_file(self, file_id: str) -> Optional[FileRecord]:
        try:
            result = await self.session.execute(
                select(FileRecord).where(FileRecord.id == file_id)
            )
            return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.error("Database error fetching file %s: %s", file_id, str(e))
            raise translate_db_error(e, "get_file")

    async def update_status(self, file_id: str, status: FileStatus) -> FileRecord:
        """
        Apply an external completion notification.

        Raises:
            NotFoundError: no row with `file_id`
        """
        record = await self.get_file(file_id)
        if record is None:
            raise NotFoundError(resource="file", resource_id=file_id)

        previous = record.status
        record.status = status.value
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            logger.error("Database error updating file %s: %s", file_id, str(e))
            raise translate_db_error(e, "update_status")

        logger.info("File %s status %s → %s", file_id, previous, status.value)
        return record
