"""StaffDocument <-> record conversion."""

from __future__ import annotations

from homecrew.mappers.coercion import as_reference_id, as_str
from homecrew.models.records import UNSET, Asset, Record, RecordType, Reference, ReferenceAction
from homecrew.models.staff_document import DEFAULT_DOCUMENT_NAME, DocumentItem, StaffDocument

ASSET_FIELD = "document"


def staff_document_from_record(record: Record) -> StaffDocument:
    asset = record.get(ASSET_FIELD)
    return StaffDocument(
        id=record.id or "",
        staff_id=as_reference_id(record.get("staff_id")),
        name=as_str(record.get("name"), DEFAULT_DOCUMENT_NAME),
        file_path=asset.path if isinstance(asset, Asset) else None,
    )


def staff_document_to_record(document: StaffDocument) -> Record:
    return Record(
        record_type=RecordType.STAFF_DOCUMENT,
        id=document.id or None,
        fields={
            "staff_id": Reference(document.staff_id, ReferenceAction.DELETE_SELF),
            "name": document.name,
            ASSET_FIELD: Asset(document.file_path) if document.file_path else UNSET,
        },
    )


def document_item_to_fields(item: DocumentItem, staff_id: str) -> dict[str, object]:
    """Fields for a new StaffDocument record created from a staged item."""
    return {
        "staff_id": Reference(staff_id, ReferenceAction.DELETE_SELF),
        "name": item.name,
        ASSET_FIELD: Asset(item.path),
    }
