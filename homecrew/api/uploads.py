"""Staging of multipart file uploads."""

from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from fastapi import UploadFile

from homecrew.models.staff_document import DocumentItem
from homecrew.store.staging import StagingArea


@asynccontextmanager
async def staged_uploads(
    staging: StagingArea, files: Sequence[UploadFile]
) -> AsyncIterator[list[DocumentItem]]:
    """Write uploaded files into the staging area for the duration of a request.

    Staged copies are discarded afterwards; the record store keeps its own
    copy of every uploaded asset.
    """
    items: list[DocumentItem] = []
    try:
        for upload in files:
            filename = upload.filename or "document"
            items.append(staging.stage_bytes(await upload.read(), filename))
        yield items
    finally:
        for item in items:
            staging.discard(item)
