"""Background jobs for the products module."""

from __future__ import annotations

import structlog
from celery import shared_task

from modules.products.images import ImageService

logger = structlog.get_logger(__name__)


@shared_task(name="products.cleanup_images")
def cleanup_images(public_ids: list[str]) -> int:
    """Delete image blobs that no product references any more.

    Best effort: a failed deletion is logged and skipped, never raised.
    Returns the number of blobs deleted.
    """
    service = ImageService()
    deleted = 0
    for public_id in public_ids:
        try:
            service.delete(public_id)
        except Exception:
            logger.warning("image.cleanup_failed", public_id=public_id, exc_info=True)
            continue
        deleted += 1
    return deleted
