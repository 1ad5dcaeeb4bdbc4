"""Entities and record value types for HomeCrew."""

from .household import Household
from .records import UNSET, Asset, Record, RecordType, Reference, ReferenceAction
from .staff import DEFAULT_CURRENCY_CODE, DEFAULT_LEAVES_ALLOCATED, Staff
from .staff_document import DocumentItem, DocumentType, StaffDocument
from .user import UserProfile

__all__ = [
    "DEFAULT_CURRENCY_CODE",
    "DEFAULT_LEAVES_ALLOCATED",
    "UNSET",
    "Asset",
    "DocumentItem",
    "DocumentType",
    "Household",
    "Record",
    "RecordType",
    "Reference",
    "ReferenceAction",
    "Staff",
    "StaffDocument",
    "UserProfile",
]
