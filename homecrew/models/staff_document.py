"""Staff identity documents.

Two shapes exist for the same concept:

- StaffDocument: a persisted document record, read back from the store with
  its asset resolved to a local file path.
- DocumentItem: a staged local file picked by the user and waiting to be
  uploaded. It is converted into a StaffDocument record only on a successful
  save and is never persisted as-is.
"""

from __future__ import annotations

import enum
import mimetypes
import uuid
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_DOCUMENT_NAME = "Document"

# Extensions shown as inline image previews
IMAGE_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "heic", "heif"})


class DocumentType(str, enum.Enum):
    IMAGE = "image"
    PDF = "pdf"
    OTHER = "other"

    @classmethod
    def from_path(cls, path: Path) -> DocumentType:
        extension = path.suffix.lower().lstrip(".")
        if extension in IMAGE_EXTENSIONS:
            return cls.IMAGE
        mime_type, _ = mimetypes.guess_type(path.name)
        if mime_type is None:
            return cls.OTHER
        if mime_type.startswith("image/"):
            return cls.IMAGE
        if mime_type == "application/pdf":
            return cls.PDF
        return cls.OTHER


@dataclass(slots=True)
class StaffDocument:
    """A persisted identity document owned by one staff member."""

    id: str
    staff_id: str
    name: str = DEFAULT_DOCUMENT_NAME
    file_path: Path | None = None

    @property
    def file_type(self) -> str:
        if self.file_path is None:
            return ""
        return self.file_path.suffix.lower().lstrip(".")

    @property
    def is_image(self) -> bool:
        return self.file_type in IMAGE_EXTENSIONS

    @property
    def is_pdf(self) -> bool:
        return self.file_type == "pdf"


@dataclass(slots=True)
class DocumentItem:
    """A staged local file awaiting upload."""

    path: Path
    name: str = ""
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def __post_init__(self) -> None:
        self.path = Path(self.path)
        if not self.name:
            self.name = self.path.name

    @property
    def document_type(self) -> DocumentType:
        return DocumentType.from_path(self.path)
