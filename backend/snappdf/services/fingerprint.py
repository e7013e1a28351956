"""
SnapPDF Backend - Content Fingerprint Filter
==============================================

What:  Removes duplicate uploads from one batch by SHA-256 content digest.
Who:   First stage of IntakeService.process_batch().

Behavior:
    - Digest covers the full byte content of each item (filename and content
      type are ignored).
    - First occurrence of a digest wins; later ones are dropped silently.
    - Order of the surviving items is the submission order.
    - Batch-local: nothing is remembered between calls, across batches or
      across users.
"""

import hashlib
import logging
from typing import Iterable, List

from snappdf.schemas.upload import UploadItem

logger = logging.getLogger(__name__)


def content_digest(data: bytes) -> str:
    """Hex SHA-256 digest of `data`."""
    return hashlib.sha256(data).hexdigest()


def filter_unique(items: Iterable[UploadItem]) -> List[UploadItem]:
    """
    Return the items of `items` whose content has not been seen earlier in
    the same sequence.

    Idempotent: filter_unique(filter_unique(batch)) == filter_unique(batch).
    """
    seen = set()
    unique: List[UploadItem] = []

    for item in items:
        digest = content_digest(item.data)
        if digest in seen:
            continue
        seen.add(digest)
        unique.append(item)

    logger.debug("Fingerprint filter kept %d unique item(s)", len(unique))
    return unique
