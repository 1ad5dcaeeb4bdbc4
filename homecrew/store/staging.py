"""Process-wide staging directory for files picked for upload.

Picked files are copied here under a random name before the user confirms
the upload, so the original location can disappear without breaking the
pending ``DocumentItem``.
"""

from __future__ import annotations

import shutil
import uuid
from pathlib import Path

from PIL import Image

from homecrew.core.exceptions import ValidationError
from homecrew.core.logging import get_logger
from homecrew.models.staff_document import DocumentItem

logger = get_logger(__name__)

STAGED_IMAGE_QUALITY = 70


class StagingArea:
    """Owns the staging directory and the files written to it."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def _new_path(self, suffix: str) -> Path:
        return self.root / f"{uuid.uuid4().hex}{suffix.lower()}"

    def stage_file(self, source: str | Path, name: str | None = None) -> DocumentItem:
        """Copy a picked file into staging, keeping its extension.

        Raises:
            ValidationError: If the source is not a readable regular file
        """
        source = Path(source)
        if not source.is_file():
            raise ValidationError(f"Cannot stage '{source.name}': not a file", field="file")
        target = self._new_path(source.suffix)
        shutil.copyfile(source, target)
        return DocumentItem(path=target, name=name or source.name)

    def stage_bytes(self, data: bytes, filename: str, name: str | None = None) -> DocumentItem:
        """Write uploaded bytes into staging under a random name."""
        if not data:
            raise ValidationError(f"Cannot stage '{filename}': file is empty", field="file")
        target = self._new_path(Path(filename).suffix)
        target.write_bytes(data)
        return DocumentItem(path=target, name=name or filename)

    def stage_image(self, image: Image.Image, name: str) -> DocumentItem:
        """Encode a captured image as JPEG into staging."""
        target = self._new_path(".jpg")
        image.convert("RGB").save(target, format="JPEG", quality=STAGED_IMAGE_QUALITY)
        return DocumentItem(path=target, name=name)

    def discard(self, item: DocumentItem) -> None:
        """Remove a staged file. Files outside the staging directory are left alone."""
        path = Path(item.path)
        if path.parent.resolve() != self.root.resolve():
            logger.debug(f"Not discarding {path.name}: outside staging area")
            return
        path.unlink(missing_ok=True)

    def clear(self) -> None:
        """Remove every staged file."""
        shutil.rmtree(self.root, ignore_errors=True)
        self.root.mkdir(parents=True, exist_ok=True)
