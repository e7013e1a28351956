"""
SnapPDF Backend - OCR Job Queue Service (Job Announcer)
=========================================================

What:  Announces OCR jobs to the worker through an SQS queue.
How:   One `SendMessage` per job with a JSON body, run in a worker thread
       because boto3 blocks.

Message Body:
    {"id": "<file id>", "language": "vie", "extension": "png"}

    The worker reads `images/<id>.<extension>`, runs OCR in `language`,
    writes `pdf/<id>.pdf` and reports back on PATCH /api/files/{id}/status.
"""

import asyncio
import json
import logging
from dataclasses import asdict, dataclass
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from snappdf.exceptions import QueueError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class OcrJob:
    id: str
    language: str
    extension: str

    def to_message_body(self) -> str:
        return json.dumps(asdict(self))


class JobQueueService:
    def __init__(self, sqs_client: Any, queue_url: str):
        self._sqs = sqs_client
        self.queue_url = queue_url

    async def announce(self, job: OcrJob) -> str:
        """
        Send one job message.

        Returns:
            The SQS MessageId.

        Raises:
            QueueError: the message was not accepted. Callers stop announcing
                the rest of their batch.
        """
        if not self.queue_url:
            raise QueueError(
                message="OCR queue is not configured.",
                context={"job_id": job.id},
            )

        try:
            response = await asyncio.to_thread(
                self._sqs.send_message,
                QueueUrl=self.queue_url,
                MessageBody=job.to_message_body(),
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to announce OCR job %s: %s", job.id, str(e))
            raise QueueError(context={"job_id": job.id, "error_type": type(e).__name__})

        message_id = (response or {}).get("MessageId", "")
        logger.info(
            "Announced OCR job %s (language=%s, extension=%s, message_id=%s)",
            job.id,
            job.language,
            job.extension,
            message_id,
        )
        return message_id
