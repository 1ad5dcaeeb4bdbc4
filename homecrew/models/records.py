"""Record store value types.

A record is a typed, identified document with named fields. Field values are
plain scalars, datetimes, references to other records, lists of references,
or file-backed assets. These types are the only vocabulary shared between
the mappers and a record store implementation.
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Final


class RecordType(str, enum.Enum):
    """Record types persisted by HomeCrew."""

    HOUSEHOLD = "Household"
    STAFF = "Staff"
    STAFF_DOCUMENT = "StaffDocument"


class ReferenceAction(str, enum.Enum):
    """Delete behaviour attached to a reference.

    Stores used here do not enforce it; the value is kept so records written
    by other clients round-trip unchanged.
    """

    NONE = "none"
    DELETE_SELF = "delete_self"


@dataclass(frozen=True, slots=True)
class Reference:
    """Typed pointer from one record to another."""

    record_id: str
    action: ReferenceAction = ReferenceAction.NONE

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Reference):
            return self.record_id == other.record_id
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.record_id)


@dataclass(frozen=True, slots=True)
class Asset:
    """Large binary payload backed by a local file."""

    path: Path

    def __post_init__(self) -> None:
        object.__setattr__(self, "path", Path(self.path))

    @property
    def exists(self) -> bool:
        return self.path.is_file()


class _Unset:
    """Explicit "clear this field" marker for record saves."""

    _instance: _Unset | None = None

    def __new__(cls) -> _Unset:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNSET"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "UNSET"


UNSET: Final = _Unset()


@dataclass(slots=True)
class Record:
    """A record as read from or written to a record store.

    ``id`` is None until the store assigns one. On save, a field missing from
    ``fields`` keeps its stored value and a field set to ``UNSET`` is removed.
    """

    record_type: RecordType
    id: str | None = None
    fields: dict[str, Any] = field(default_factory=dict)

    def get(self, name: str, default: Any = None) -> Any:
        value = self.fields.get(name, default)
        return default if value is UNSET else value

    def __getitem__(self, name: str) -> Any:
        return self.fields[name]

    def __setitem__(self, name: str, value: Any) -> None:
        self.fields[name] = value

    def __contains__(self, name: object) -> bool:
        return self.fields.get(name, UNSET) is not UNSET  # type: ignore[call-overload]

    def copy(self) -> Record:
        copied = {k: list(v) if isinstance(v, list) else v for k, v in self.fields.items()}
        return Record(record_type=self.record_type, id=self.id, fields=copied)


Predicate = Mapping[str, Any]


def _values_equal(stored: Any, expected: Any) -> bool:
    if isinstance(stored, Reference):
        if isinstance(expected, Reference):
            return stored.record_id == expected.record_id
        return stored.record_id == expected
    if isinstance(expected, Reference):
        return stored == expected.record_id
    return bool(stored == expected)


def matches(record: Record, predicate: Predicate) -> bool:
    """Return True when every predicate field equals the record's value.

    A reference field matches either a Reference or the bare record id.
    The empty predicate matches every record.
    """
    for name, expected in predicate.items():
        if name not in record:
            return False
        if not _values_equal(record.fields[name], expected):
            return False
    return True


def merge_fields(stored: dict[str, Any], incoming: Mapping[str, Any]) -> dict[str, Any]:
    """Apply a save's fields on top of the stored fields.

    Omitted fields keep their stored value, ``UNSET`` removes the field.
    """
    merged = dict(stored)
    for name, value in incoming.items():
        if value is UNSET:
            merged.pop(name, None)
        else:
            merged[name] = list(value) if isinstance(value, list) else value
    return merged
