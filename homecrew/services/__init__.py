"""Application services."""

from .auth_service import AuthService, StaticIdentityProvider
from .cascade_delete import CascadeDeleteResult, CascadeDeleteService
from .document_sync import (
    DocumentBatchResult,
    DocumentSyncService,
    DocumentUpload,
    ReferenceConsistencyReport,
    UploadState,
)
from .error_messages import user_message
from .household_service import HouseholdService
from .image_cache import ImageCache
from .staff_service import StaffDraft, StaffService, validate_staff_draft
from .thumbnail_loader import DocumentThumbnailLoader

__all__ = [
    "AuthService",
    "CascadeDeleteResult",
    "CascadeDeleteService",
    "DocumentBatchResult",
    "DocumentSyncService",
    "DocumentThumbnailLoader",
    "DocumentUpload",
    "HouseholdService",
    "ImageCache",
    "ReferenceConsistencyReport",
    "StaffDraft",
    "StaffService",
    "StaticIdentityProvider",
    "UploadState",
    "user_message",
    "validate_staff_draft",
]
