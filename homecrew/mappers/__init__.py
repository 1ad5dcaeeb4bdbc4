"""Pure conversions between store records and entities."""

from .household import household_changes_to_fields, household_from_record, household_to_record
from .staff import (
    DOCUMENT_REFERENCES_FIELD,
    document_references,
    staff_changes_to_fields,
    staff_from_record,
    staff_to_record,
)
from .staff_document import (
    document_item_to_fields,
    staff_document_from_record,
    staff_document_to_record,
)

__all__ = [
    "DOCUMENT_REFERENCES_FIELD",
    "document_item_to_fields",
    "document_references",
    "household_changes_to_fields",
    "household_from_record",
    "household_to_record",
    "staff_changes_to_fields",
    "staff_document_from_record",
    "staff_document_to_record",
    "staff_from_record",
    "staff_to_record",
]
