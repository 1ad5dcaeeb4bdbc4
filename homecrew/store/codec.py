"""JSON encoding of record field values.

Values that JSON cannot express natively are written as tagged objects::

    {"$type": "datetime", "value": "2024-01-15T00:00:00+00:00"}
    {"$type": "date", "value": "2024-01-15"}
    {"$type": "decimal", "value": "450.00"}
    {"$type": "reference", "record_id": "...", "action": "delete_self"}
    {"$type": "asset", "path": "/data/assets/<id>/front.jpg"}
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime
from decimal import Decimal
from typing import Any

from homecrew.core.exceptions import StoreError, StoreErrorKind
from homecrew.models.records import UNSET, Asset, Reference, ReferenceAction

TYPE_KEY = "$type"


def encode_value(value: Any) -> Any:
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, datetime):
        return {TYPE_KEY: "datetime", "value": value.isoformat()}
    if isinstance(value, date):
        return {TYPE_KEY: "date", "value": value.isoformat()}
    if isinstance(value, Decimal):
        return {TYPE_KEY: "decimal", "value": str(value)}
    if isinstance(value, Reference):
        return {TYPE_KEY: "reference", "record_id": value.record_id, "action": value.action.value}
    if isinstance(value, Asset):
        return {TYPE_KEY: "asset", "path": str(value.path)}
    if isinstance(value, (list, tuple)):
        return [encode_value(item) for item in value]
    raise StoreError(
        f"Unsupported field value type: {type(value).__name__}",
        kind=StoreErrorKind.INVALID_ARGUMENTS,
        operation="encode",
    )


def decode_value(value: Any) -> Any:
    if isinstance(value, list):
        return [decode_value(item) for item in value]
    if not isinstance(value, dict):
        return value

    tag = value.get(TYPE_KEY)
    match tag:
        case "datetime":
            return datetime.fromisoformat(value["value"])
        case "date":
            return date.fromisoformat(value["value"])
        case "decimal":
            return Decimal(value["value"])
        case "reference":
            return Reference(value["record_id"], ReferenceAction(value.get("action", "none")))
        case "asset":
            return Asset(value["path"])
    return value


def encode_fields(fields: Mapping[str, Any]) -> dict[str, Any]:
    """Encode stored fields. ``UNSET`` never reaches storage."""
    return {name: encode_value(value) for name, value in fields.items() if value is not UNSET}


def decode_fields(data: Mapping[str, Any] | None) -> dict[str, Any]:
    return {name: decode_value(value) for name, value in (data or {}).items()}
