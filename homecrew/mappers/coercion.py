"""Lenient readers for record field values.

Records may be written by older clients or edited by hand, so every reader
here returns a default instead of raising when a value is missing or has an
unexpected type.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any

from homecrew.models.records import Reference


def as_str(value: Any, default: str) -> str:
    return value if isinstance(value, str) else default


def as_optional_str(value: Any) -> str | None:
    if isinstance(value, str) and value:
        return value
    return None


def as_int(value: Any, default: int, *, minimum: int | None = None) -> int:
    # bool is an int subclass but never a valid count
    if isinstance(value, bool) or not isinstance(value, int):
        return default
    if minimum is not None and value < minimum:
        return default
    return value


def as_bool(value: Any, default: bool) -> bool:
    return value if isinstance(value, bool) else default


def normalize_datetime(value: datetime | date) -> datetime:
    """Return an aware datetime; naive values and plain dates are read as UTC."""
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value
    return datetime(value.year, value.month, value.day, tzinfo=UTC)


def as_datetime(value: Any, default: datetime | None) -> datetime | None:
    if isinstance(value, (datetime, date)):
        return normalize_datetime(value)
    if isinstance(value, str):
        try:
            return normalize_datetime(datetime.fromisoformat(value))
        except ValueError:
            return default
    return default


def as_decimal(value: Any, default: Decimal) -> Decimal:
    if isinstance(value, bool):
        return default
    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, int):
        result = Decimal(value)
    elif isinstance(value, (float, str)):
        try:
            result = Decimal(str(value))
        except InvalidOperation:
            return default
    else:
        return default
    if not result.is_finite():
        return default
    return result


def as_reference_id(value: Any) -> str:
    if isinstance(value, Reference):
        return value.record_id
    if isinstance(value, str):
        return value
    return ""


def as_reference_ids(value: Any) -> list[str]:
    if not isinstance(value, list):
        return []
    ids = [as_reference_id(item) for item in value]
    return [record_id for record_id in ids if record_id]
