"""Staff lifecycle operations.

Multi-record workflows here are not atomic. Each store write commits on its
own, and the order of writes is part of the contract:

    create:  validate -> check household -> create Staff -> upload documents
    update:  validate -> re-fetch Staff -> save changes -> delete removed
             documents -> upload new documents
    delete:  delete documents (best effort) -> delete Staff
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from datetime import UTC, date, datetime
from decimal import Decimal
from typing import Any

from homecrew.core.exceptions import (
    AggregateError,
    HomeCrewError,
    NotFoundError,
    PartialSaveError,
    StoreError,
    StoreErrorKind,
    ValidationError,
)
from homecrew.core.logging import get_logger, sanitize_error, sanitize_log_value
from homecrew.core.protocols import RecordStoreProtocol
from homecrew.mappers import (
    DOCUMENT_REFERENCES_FIELD,
    staff_changes_to_fields,
    staff_from_record,
    staff_to_record,
)
from homecrew.models.records import UNSET, Record, RecordType
from homecrew.models.staff import DEFAULT_CURRENCY_CODE, DEFAULT_LEAVES_ALLOCATED, Staff
from homecrew.models.staff_document import DocumentItem
from homecrew.services.document_sync import DocumentSyncService

logger = get_logger(__name__)

_CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")
ACTIVE_WITH_LEAVING_DATE = "An active staff member cannot have a leaving date"


def utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True)
class StaffDraft:
    """Field values entered for a new staff member."""

    full_legal_name: str
    starting_date: datetime | date
    monthly_salary: Decimal
    agreed_duties: str
    commonly_known_as: str | None = None
    leaving_date: datetime | date | None = None
    leaves_allocated: int = DEFAULT_LEAVES_ALLOCATED
    currency_code: str = DEFAULT_CURRENCY_CODE
    is_active: bool = True


def _check_value(name: str, value: Any) -> Any:
    """Validate and normalize one user-supplied staff field value."""
    match name:
        case "full_legal_name" | "agreed_duties":
            if not isinstance(value, str) or not value.strip():
                raise ValidationError(f"{name} is required", field=name)
            return value.strip()
        case "commonly_known_as":
            return value.strip() if isinstance(value, str) and value.strip() else None
        case "monthly_salary":
            try:
                amount = Decimal(str(value))
            except ArithmeticError as e:
                raise ValidationError("monthly_salary must be a number", field=name) from e
            if isinstance(value, bool) or not amount.is_finite() or amount <= 0:
                raise ValidationError("monthly_salary must be greater than zero", field=name)
            return amount
        case "leaves_allocated":
            if isinstance(value, bool) or not isinstance(value, int) or value < 0:
                raise ValidationError("leaves_allocated must be a non-negative integer", field=name)
            return value
        case "currency_code":
            code = value.strip().upper() if isinstance(value, str) else ""
            if not _CURRENCY_CODE.match(code):
                raise ValidationError("currency_code must be a three-letter code", field=name)
            return code
        case "is_active":
            if not isinstance(value, bool):
                raise ValidationError("is_active must be true or false", field=name)
            return value
    return value


def validate_staff_draft(household_id: str, draft: StaffDraft) -> Staff:
    """Build a Staff entity from a draft, validating every field.

    Raises:
        ValidationError: On the first invalid field
    """
    if not household_id:
        raise ValidationError("household_id is required", field="household_id")
    if not isinstance(draft.starting_date, (datetime, date)):
        raise ValidationError("starting_date is required", field="starting_date")
    if draft.leaving_date is not None and not isinstance(draft.leaving_date, (datetime, date)):
        raise ValidationError("leaving_date must be a date", field="leaving_date")
    if draft.is_active and draft.leaving_date is not None:
        raise ValidationError(ACTIVE_WITH_LEAVING_DATE, field="leaving_date")
    return Staff(
        household_id=household_id,
        full_legal_name=_check_value("full_legal_name", draft.full_legal_name),
        commonly_known_as=_check_value("commonly_known_as", draft.commonly_known_as),
        starting_date=draft.starting_date,  # type: ignore[arg-type]
        leaving_date=draft.leaving_date,  # type: ignore[arg-type]
        monthly_salary=_check_value("monthly_salary", draft.monthly_salary),
        leaves_allocated=_check_value("leaves_allocated", draft.leaves_allocated),
        currency_code=_check_value("currency_code", draft.currency_code),
        agreed_duties=_check_value("agreed_duties", draft.agreed_duties),
        is_active=draft.is_active,
    )


class StaffService:
    """Create, update, deactivate and delete staff members and their documents."""

    def __init__(
        self,
        store: RecordStoreProtocol,
        documents: DocumentSyncService,
        *,
        clock: Callable[[], datetime] = utc_now,
        rollback_on_document_failure: bool = False,
    ) -> None:
        self._store = store
        self._documents = documents
        self._clock = clock
        self.rollback_on_document_failure = rollback_on_document_failure

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def get_staff(self, staff_id: str) -> Staff:
        record = await self._store.fetch(staff_id)
        if record is None or record.record_type != RecordType.STAFF:
            raise NotFoundError(RecordType.STAFF.value, staff_id)
        return staff_from_record(record)

    async def list_staff(self, household_id: str, include_inactive: bool = False) -> list[Staff]:
        """Staff of a household, active only unless ``include_inactive``."""
        records = await self._store.query(RecordType.STAFF, {"household_id": household_id})
        staff = Staff.filter_active([staff_from_record(r) for r in records], include_inactive)
        return Staff.sorted_by_name(staff)

    async def _require_household(self, household_id: str) -> None:
        record = await self._store.fetch(household_id)
        if record is None or record.record_type != RecordType.HOUSEHOLD:
            raise NotFoundError(RecordType.HOUSEHOLD.value, household_id)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_staff(
        self,
        household_id: str,
        draft: StaffDraft,
        documents: Sequence[DocumentItem],
    ) -> Staff:
        """Create a staff member and upload their documents.

        Raises:
            ValidationError: Invalid draft, no documents, or an unreadable file
            NotFoundError: If the household does not exist
            PartialSaveError: If the staff record was created but uploading
                its documents failed
        """
        staff = validate_staff_draft(household_id, draft)
        if not staff.is_active and staff.leaving_date is None:
            staff.leaving_date = self._clock()
        if not documents:
            raise ValidationError("At least one document is required", field="documents")
        self._documents.validate_items(documents)
        await self._require_household(household_id)

        fields = staff_to_record(staff).fields
        fields.pop(DOCUMENT_REFERENCES_FIELD, None)
        staff_id = await self._store.create(RecordType.STAFF, fields)
        logger.info(
            f"Created staff {staff_id} ({sanitize_log_value(staff.full_legal_name)}) "
            f"in household {household_id}"
        )

        try:
            await self._documents.save_documents(documents, staff_id)
        except HomeCrewError as e:
            rolled_back = False
            if self.rollback_on_document_failure:
                rolled_back = await self._roll_back_staff(staff_id)
            raise PartialSaveError(staff_id, e, rolled_back=rolled_back) from e

        return await self.get_staff(staff_id)

    async def _roll_back_staff(self, staff_id: str) -> bool:
        """Delete a just-created staff member and any documents it got."""
        try:
            document_ids = await self._documents.document_ids(staff_id)
            await self._documents.delete_documents(document_ids)
            await self._store.delete(staff_id)
        except HomeCrewError as e:
            logger.error(f"Rollback of staff {staff_id} failed: {sanitize_error(e)}")
            return False
        logger.info(f"Rolled back staff {staff_id} after document upload failure")
        return True

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_staff(
        self,
        staff_id: str,
        changes: Mapping[str, Any],
        remove_document_ids: Sequence[str] = (),
        new_documents: Sequence[DocumentItem] = (),
    ) -> Staff:
        """Apply field changes, then delete removed documents, then upload new ones.

        ``changes`` holds only the fields being edited; a value of None (or
        an empty string) on ``commonly_known_as`` or ``leaving_date`` clears
        it. Reactivating a staff member clears their leaving date;
        deactivating one without a leaving date sets it to now.

        Raises:
            ValidationError: Invalid change, unreadable new file, or a removed
                document that does not belong to this staff member
            NotFoundError: If the staff member does not exist
            AggregateError: If removing or uploading documents partly failed
        """
        normalized = {
            name: _check_value(name, value) if value is not None else None
            for name, value in changes.items()
        }
        fields = staff_changes_to_fields(normalized)
        if new_documents:
            self._documents.validate_items(new_documents)

        current = await self.get_staff(staff_id)

        if remove_document_ids:
            owned = set(await self._documents.document_ids(staff_id))
            foreign = [doc_id for doc_id in remove_document_ids if doc_id not in owned]
            if foreign:
                raise ValidationError(
                    f"Documents do not belong to staff {staff_id}: {', '.join(foreign)}",
                    field="remove_document_ids",
                )

        self._normalize_activity(current, fields)

        if fields:
            await self._store.save(Record(record_type=RecordType.STAFF, id=staff_id, fields=fields))
        if remove_document_ids:
            await self._documents.delete_documents(remove_document_ids, staff_id=staff_id)
        if new_documents:
            await self._documents.save_documents(new_documents, staff_id)

        return await self.get_staff(staff_id)

    def _normalize_activity(self, current: Staff, fields: dict[str, Any]) -> None:
        """Keep is_active and leaving_date in step: only inactive staff have a leaving date.

        Raises:
            ValidationError: If the change leaves an active staff member with a
                leaving date
        """
        is_active = fields.get("is_active", current.is_active)
        if "leaving_date" in fields:
            leaving = fields["leaving_date"]
        else:
            leaving = current.leaving_date
        if is_active and "leaving_date" in fields and leaving is not UNSET:
            raise ValidationError(ACTIVE_WITH_LEAVING_DATE, field="leaving_date")
        if is_active and not current.is_active and "leaving_date" not in fields:
            fields["leaving_date"] = UNSET
        elif not is_active and (leaving is None or leaving is UNSET):
            fields["leaving_date"] = self._clock()

    # ------------------------------------------------------------------
    # Deactivate / delete
    # ------------------------------------------------------------------

    async def deactivate_staff(self, staff_id: str) -> Staff:
        """Mark a staff member inactive, keeping their documents.

        Sets the leaving date to now unless one is already recorded.
        Calling it again changes nothing.
        """
        staff = await self.get_staff(staff_id)
        fields: dict[str, Any] = {}
        if staff.is_active:
            fields["is_active"] = False
        if staff.leaving_date is None:
            fields["leaving_date"] = self._clock()
        if not fields:
            return staff

        await self._store.save(Record(record_type=RecordType.STAFF, id=staff_id, fields=fields))
        logger.info(f"Deactivated staff {staff_id}")
        return await self.get_staff(staff_id)

    async def delete_staff(self, staff_id: str) -> None:
        """Delete a staff member's documents, then the staff record regardless.

        Document deletion is best effort; failures are logged and any
        leftover document records are orphaned.
        """
        staff = await self.get_staff(staff_id)
        try:
            document_ids = await self._documents.document_ids(staff_id)
            for doc_id in staff.document_ids:
                if doc_id not in document_ids:
                    document_ids.append(doc_id)
            await self._documents.delete_documents(document_ids)
        except (AggregateError, StoreError) as e:
            logger.warning(
                f"Document cleanup for staff {staff_id} incomplete: {sanitize_error(e)}"
            )

        try:
            await self._store.delete(staff_id)
        except StoreError as e:
            if e.kind == StoreErrorKind.UNKNOWN_ITEM:
                raise NotFoundError(RecordType.STAFF.value, staff_id) from e
            raise
        logger.info(f"Deleted staff {staff_id}")
