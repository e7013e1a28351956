"""
SnapPDF Backend - Upload Intake Service (Orchestrator)
========================================================

What:  Runs one uploaded batch through the whole intake pipeline.
Who:   POST /api/upload and POST /api/upload/management.

Pipeline (each stage finishes for the whole batch before the next starts):

    items ──► filter_unique ──► record_batch ──► commit ──► upload ──► announce
              (SHA-256)         (files rows)               (S3)       (SQS)

    Within a stage, items are handled one at a time in submission order.

Guarantees:
    - A job is never announced for an item whose bytes are not yet stored,
      and never for an item whose row is not yet committed.
    - Nothing retries. The first S3 or SQS failure aborts the rest of the
      batch: rows already recorded stay `pending`, objects already uploaded
      stay in the bucket, jobs already sent stay sent.

Modes:
    ordinary    status pending,    channel images
    management  status management, channel management
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import List, Sequence

from snappdf.models.file import FileStatus
from snappdf.schemas.upload import UploadItem
from snappdf.services.file_service import FileService
from snappdf.services.fingerprint import filter_unique
from snappdf.services.queue_service import JobQueueService, OcrJob
from snappdf.services.storage_service import Channel, ObjectStorageService

logger = logging.getLogger(__name__)


class IntakeMode(str, enum.Enum):
    ORDINARY = "ordinary"
    MANAGEMENT = "management"

    @property
    def status(self) -> FileStatus:
        if self is IntakeMode.MANAGEMENT:
            return FileStatus.MANAGEMENT
        return FileStatus.PENDING

    @property
    def channel(self) -> Channel:
        if self is IntakeMode.MANAGEMENT:
            return Channel.MANAGEMENT
        return Channel.IMAGES


@dataclass
class IntakeResult:
    received: int
    accepted: int
    file_ids: List[str] = field(default_factory=list)


class IntakeService:
    """
    Orchestrates fingerprint filter, metadata recorder, object store uploader
    and job announcer for one request.
    """

    def __init__(
        self,
        file_service: FileService,
        storage: ObjectStorageService,
        queue: JobQueueService,
    ):
        self.file_service = file_service
        self.storage = storage
        self.queue = queue

    async def process_batch(
        self,
        items: Sequence[UploadItem],
        owner_email: str,
        language: str,
        mode: IntakeMode = IntakeMode.ORDINARY,
    ) -> IntakeResult:
        """
        Deduplicate, record, store and announce a batch.

        Args:
            items: Uploaded files in submission order
            owner_email: Identity from the caller's session
            language: OCR language forwarded to the worker
            mode: ordinary or management intake

        Returns:
            IntakeResult with received/accepted counts and the recorded ids

        Raises:
            DatabaseError / UpstreamUnavailableError: recording or commit failed
            ObjectStoreError: an upload failed (later items not uploaded)
            QueueError: an announcement failed (later jobs not sent)
        """
        unique = filter_unique(items)
        if len(unique) < len(items):
            logger.info(
                "Dropped %d duplicate item(s) from batch of %d for %s",
                len(items) - len(unique),
                len(items),
                owner_email,
            )

        recorded = await self.file_service.record_batch(owner_email, unique, status=mode.status)
        await self.file_service.commit()

        for entry in recorded:
            await self.storage.upload(
                mode.channel,
                entry.id,
                entry.extension,
                entry.item.data,
                entry.item.content_type,
            )

        for entry in recorded:
            await self.queue.announce(
                OcrJob(id=entry.id, language=language, extension=entry.extension)
            )

        logger.info(
            "Intake complete for %s: received=%d accepted=%d recorded=%d mode=%s",
            owner_email,
            len(items),
            len(unique),
            len(recorded),
            mode.value,
        )
        return IntakeResult(
            received=len(items),
            accepted=len(unique),
            file_ids=[entry.id for entry in recorded],
        )
