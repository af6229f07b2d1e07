"""Product image storage on top of Django's ``default_storage``.

Production can point ``STORAGES["default"]`` at any backend (local disk,
S3, ...); tests use the in-memory storage.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Iterable, List

import structlog
import uuid6
from django.conf import settings
from django.core.files.storage import default_storage

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class UploadedImage:
    url: str
    public_id: str

    def as_dict(self) -> dict:
        return {"url": self.url, "public_id": self.public_id}


class ImageService:
    """Upload and delete product images."""

    def __init__(self, storage=None, folder: str | None = None) -> None:
        self._storage = storage or default_storage
        self._folder = folder or settings.PRODUCT_IMAGE_FOLDER

    def upload(self, file) -> UploadedImage:
        _, ext = os.path.splitext(getattr(file, "name", "") or "")
        name = f"{self._folder}/{uuid6.uuid7().hex}{ext.lower()}"
        public_id = self._storage.save(name, file)
        image = UploadedImage(url=self._storage.url(public_id), public_id=public_id)
        logger.info("image.uploaded", public_id=public_id)
        return image

    def upload_many(self, files: Iterable) -> List[UploadedImage]:
        return [self.upload(file) for file in files]

    def delete(self, public_id: str) -> None:
        self._storage.delete(public_id)
        logger.info("image.deleted", public_id=public_id)
