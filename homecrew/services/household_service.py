"""Household lifecycle operations."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from homecrew.core.exceptions import NotFoundError, StoreError, StoreErrorKind, ValidationError
from homecrew.core.logging import get_logger, sanitize_log_value
from homecrew.core.protocols import RecordStoreProtocol
from homecrew.mappers import household_changes_to_fields, household_from_record
from homecrew.models.household import Household
from homecrew.models.records import Record, RecordType

logger = get_logger(__name__)


def _required(value: str | None, field_name: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise ValidationError(f"Household {field_name} is required", field=field_name)
    return cleaned


class HouseholdService:
    """Create, read, update and delete Household records.

    Writes never insert optimistically: every write re-reads the stored
    record and returns what the store holds.
    """

    def __init__(self, store: RecordStoreProtocol) -> None:
        self._store = store

    async def list_households(self) -> list[Household]:
        records = await self._store.query(RecordType.HOUSEHOLD, {})
        return Household.sorted_by_name([household_from_record(r) for r in records])

    async def get_household(self, household_id: str) -> Household:
        record = await self._store.fetch(household_id)
        if record is None or record.record_type != RecordType.HOUSEHOLD:
            raise NotFoundError(RecordType.HOUSEHOLD.value, household_id)
        return household_from_record(record)

    async def create_household(
        self, name: str, address: str, notes: str | None = None
    ) -> Household:
        fields: dict[str, Any] = {
            "name": _required(name, "name"),
            "address": _required(address, "address"),
        }
        if notes and notes.strip():
            fields["notes"] = notes.strip()

        household_id = await self._store.create(RecordType.HOUSEHOLD, fields)
        logger.info(f"Created household {household_id}: {sanitize_log_value(fields['name'])}")
        return await self.get_household(household_id)

    async def update_household(self, household_id: str, changes: Mapping[str, Any]) -> Household:
        """Apply field-level changes; omitted fields keep their value.

        Raises:
            ValidationError: If a required field is cleared or a field is unknown
            NotFoundError: If the household does not exist
        """
        fields = household_changes_to_fields(changes)
        await self.get_household(household_id)
        if fields:
            await self._store.save(
                Record(record_type=RecordType.HOUSEHOLD, id=household_id, fields=fields)
            )
        return await self.get_household(household_id)

    async def delete_household(self, household_id: str) -> None:
        """Delete the Household record only. Staff and documents are left in place."""
        await self.get_household(household_id)
        try:
            await self._store.delete(household_id)
        except StoreError as e:
            if e.kind == StoreErrorKind.UNKNOWN_ITEM:
                raise NotFoundError(RecordType.HOUSEHOLD.value, household_id) from e
            raise
        logger.info(f"Deleted household {household_id}")
