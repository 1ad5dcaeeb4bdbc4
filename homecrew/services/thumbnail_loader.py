"""Loads document images through the image cache."""

from __future__ import annotations

import asyncio

from PIL import Image

from homecrew.core.async_utils import async_open_image
from homecrew.core.logging import get_logger
from homecrew.models.staff_document import StaffDocument
from homecrew.services.image_cache import ImageCache

logger = get_logger(__name__)


class DocumentThumbnailLoader:
    """Returns the decoded image for an image document, cached by document id.

    Non-image documents and documents without a resolved file return None.
    """

    def __init__(self, cache: ImageCache) -> None:
        self._cache = cache

    async def load(self, document: StaffDocument) -> Image.Image | None:
        if not document.is_image or document.file_path is None:
            return None

        cached = await asyncio.to_thread(self._cache.get, document.id)
        if cached is not None:
            return cached

        image = await async_open_image(document.file_path)
        if image is None:
            logger.debug(f"Document {document.id} has no decodable image")
            return None

        await asyncio.to_thread(self._cache.set, document.id, image)
        return image
