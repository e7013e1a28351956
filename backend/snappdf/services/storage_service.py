"""
SnapPDF Backend - Object Storage Service (Object Store Uploader)
==================================================================

What:  Writes uploaded bytes to S3 and hands out presigned download links.
How:   Wraps a boto3 S3 client built once in the app lifespan. boto3 is
       blocking, so every network call runs in a worker thread via
       asyncio.to_thread().
Who:   IntakeService (upload), file routes (presign_download).

Key Layout:
    <channel>/<id>.<extension>

    images/3f2b...e1.png        ordinary upload
    management/91aa...0c.pdf    management upload
    pdf/3f2b...e1.pdf           OCR output, written by the worker

    The key is derived from (channel, id, extension) alone, so the files row
    is enough to locate the object. Nothing here retries: a failed PutObject
    raises ObjectStoreError and objects already written for the same batch
    stay where they are.
"""

import asyncio
import enum
import logging
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from snappdf.exceptions import ObjectStoreError

logger = logging.getLogger(__name__)


class Channel(str, enum.Enum):
    """Top-level key prefix in the bucket."""

    IMAGES = "images"
    MANAGEMENT = "management"
    PDF = "pdf"


def object_key(channel: Channel, file_id: str, extension: str) -> str:
    """Build the object key for a file: `<channel>/<id>.<extension>`."""
    return f"{Channel(channel).value}/{file_id}.{extension}"


class ObjectStorageService:
    """Thin async facade over one S3 bucket."""

    def __init__(self, s3_client: Any, bucket: str):
        self._s3 = s3_client
        self.bucket = bucket

    async def upload(
        self,
        channel: Channel,
        file_id: str,
        extension: str,
        data: bytes,
        content_type: str,
    ) -> str:
        """
        Store `data` under `<channel>/<file_id>.<extension>`.

        Returns:
            The object key written.

        Raises:
            ObjectStoreError: S3 rejected the request or could not be reached
        """
        key = object_key(channel, file_id, extension)
        try:
            await asyncio.to_thread(
                self._s3.put_object,
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to upload %s to s3://%s: %s", key, self.bucket, str(e))
            raise ObjectStoreError(
                context={"key": key, "bucket": self.bucket, "error_type": type(e).__name__},
            )

        logger.info("Uploaded %d bytes to s3://%s/%s", len(data), self.bucket, key)
        return key

    async def presign_download(self, key: str, expires_in: int) -> str:
        """Time-limited GET link for `key`. Signing happens locally, no request is made."""
        if expires_in <= 0:
            expires_in = 60
        try:
            return await asyncio.to_thread(
                self._s3.generate_presigned_url,
                ClientMethod="get_object",
                Params={"Bucket": self.bucket, "Key": key},
                ExpiresIn=expires_in,
            )
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to presign s3://%s/%s: %s", self.bucket, key, str(e))
            raise ObjectStoreError(
                message="Failed to generate download link.",
                context={"key": key, "error_type": type(e).__name__},
            )
