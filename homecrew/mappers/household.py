"""Household <-> record conversion."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from homecrew.core.exceptions import ValidationError
from homecrew.mappers.coercion import as_optional_str, as_str
from homecrew.models.household import Household
from homecrew.models.records import UNSET, Record, RecordType

DEFAULT_HOUSEHOLD_NAME = "Unknown"
DEFAULT_HOUSEHOLD_ADDRESS = "No address"

_REQUIRED_FIELDS = ("name", "address")
_CLEARABLE_FIELDS = ("notes",)


def household_from_record(record: Record) -> Household:
    return Household(
        id=record.id,
        name=as_str(record.get("name"), DEFAULT_HOUSEHOLD_NAME),
        address=as_str(record.get("address"), DEFAULT_HOUSEHOLD_ADDRESS),
        notes=as_optional_str(record.get("notes")),
    )


def household_to_record(household: Household) -> Record:
    return Record(
        record_type=RecordType.HOUSEHOLD,
        id=household.id,
        fields={
            "name": household.name,
            "address": household.address,
            "notes": household.notes or UNSET,
        },
    )


def household_changes_to_fields(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a partial household update into record fields.

    Keys absent from ``changes`` are left unchanged by the save; ``None`` or
    an empty string clears ``notes``.

    Raises:
        ValidationError: If a required field would be cleared or a key is unknown
    """
    fields: dict[str, Any] = {}
    for name, value in changes.items():
        if name in _REQUIRED_FIELDS:
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"Household {name} is required", field=name)
            fields[name] = value.strip()
        elif name in _CLEARABLE_FIELDS:
            fields[name] = value if value else UNSET
        else:
            raise ValidationError(f"Unknown household field '{name}'", field=name)
    return fields
