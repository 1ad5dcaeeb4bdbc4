"""Staff <-> record conversion.

Record fields:
    household_id        Reference to the owning Household
    full_legal_name     str
    commonly_known_as   str, cleared when empty
    starting_date       datetime
    leaving_date        datetime, cleared when None
    leaves_allocated    int
    monthly_salary      decimal string ("450.00")
    currency_code       ISO 4217 code
    agreed_duties       str
    is_active           bool
    id_cards            list of References to StaffDocument records
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from homecrew.core.exceptions import ValidationError
from homecrew.mappers.coercion import (
    as_bool,
    as_datetime,
    as_decimal,
    as_int,
    as_optional_str,
    as_reference_id,
    as_reference_ids,
    as_str,
    normalize_datetime,
)
from homecrew.models.records import UNSET, Record, RecordType, Reference, ReferenceAction
from homecrew.models.staff import DEFAULT_CURRENCY_CODE, DEFAULT_LEAVES_ALLOCATED, Staff

DEFAULT_STARTING_DATE = datetime(1970, 1, 1, tzinfo=UTC)
DEFAULT_MONTHLY_SALARY = Decimal("0")

DOCUMENT_REFERENCES_FIELD = "id_cards"

_REQUIRED_FIELDS = frozenset(
    {
        "full_legal_name",
        "starting_date",
        "leaves_allocated",
        "monthly_salary",
        "currency_code",
        "agreed_duties",
        "is_active",
    }
)
_CLEARABLE_FIELDS = frozenset({"commonly_known_as", "leaving_date"})


def staff_from_record(record: Record) -> Staff:
    return Staff(
        id=record.id,
        household_id=as_reference_id(record.get("household_id")),
        full_legal_name=as_str(record.get("full_legal_name"), ""),
        commonly_known_as=as_optional_str(record.get("commonly_known_as")),
        starting_date=as_datetime(record.get("starting_date"), DEFAULT_STARTING_DATE)
        or DEFAULT_STARTING_DATE,
        leaving_date=as_datetime(record.get("leaving_date"), None),
        leaves_allocated=as_int(
            record.get("leaves_allocated"), DEFAULT_LEAVES_ALLOCATED, minimum=0
        ),
        monthly_salary=as_decimal(record.get("monthly_salary"), DEFAULT_MONTHLY_SALARY),
        currency_code=as_str(record.get("currency_code"), DEFAULT_CURRENCY_CODE)
        or DEFAULT_CURRENCY_CODE,
        agreed_duties=as_str(record.get("agreed_duties"), ""),
        is_active=as_bool(record.get("is_active"), True),
        document_ids=as_reference_ids(record.get(DOCUMENT_REFERENCES_FIELD)),
    )


def document_references(document_ids: list[str]) -> list[Reference]:
    return [Reference(doc_id, ReferenceAction.DELETE_SELF) for doc_id in document_ids]


def staff_to_record(staff: Staff) -> Record:
    return Record(
        record_type=RecordType.STAFF,
        id=staff.id,
        fields={
            "household_id": Reference(staff.household_id, ReferenceAction.DELETE_SELF),
            "full_legal_name": staff.full_legal_name,
            "commonly_known_as": staff.commonly_known_as or UNSET,
            "starting_date": normalize_datetime(staff.starting_date),
            "leaving_date": normalize_datetime(staff.leaving_date)
            if staff.leaving_date
            else UNSET,
            "leaves_allocated": staff.leaves_allocated,
            "monthly_salary": str(staff.monthly_salary),
            "currency_code": staff.currency_code,
            "agreed_duties": staff.agreed_duties,
            "is_active": staff.is_active,
            DOCUMENT_REFERENCES_FIELD: document_references(staff.document_ids),
        },
    )


def _encode_value(name: str, value: Any) -> Any:
    if name in ("starting_date", "leaving_date"):
        if not isinstance(value, (datetime, date)):
            raise ValidationError(f"{name} must be a date", field=name)
        return normalize_datetime(value)
    if name == "monthly_salary":
        return str(as_decimal(value, DEFAULT_MONTHLY_SALARY))
    return value


def staff_changes_to_fields(changes: Mapping[str, Any]) -> dict[str, Any]:
    """Translate a partial staff update into record fields.

    Keys absent from ``changes`` are omitted and keep their stored value.
    ``None`` or an empty string on ``commonly_known_as`` / ``leaving_date``
    becomes ``UNSET`` so the save clears the field.

    Raises:
        ValidationError: For unknown keys, the immutable household reference,
            or a required field set to None
    """
    fields: dict[str, Any] = {}
    for name, value in changes.items():
        if name == "household_id":
            raise ValidationError("A staff member cannot move to another household", field=name)
        if name in _CLEARABLE_FIELDS:
            fields[name] = _encode_value(name, value) if value else UNSET
        elif name in _REQUIRED_FIELDS:
            if value is None:
                raise ValidationError(f"{name} is required", field=name)
            fields[name] = _encode_value(name, value)
        else:
            raise ValidationError(f"Unknown staff field '{name}'", field=name)
    return fields
