"""Cascade delete for a household and everything it owns.

The record store has no cascade semantics, so the routine collects every
descendant id first and deletes leaves first:

    StaffDocument records -> Staff records -> Household record

A staff member is only deleted once all of its documents are gone, and the
household only once all of its staff are gone. Failures never abort the
remaining deletes at the same level; the result reports which ids remain.

Example:
    service = CascadeDeleteService(store, documents)
    result = await service.delete_household(household_id)
    if not result.complete:
        logger.warning(f"Remaining: {result.remaining_ids}")
"""

from __future__ import annotations

from dataclasses import dataclass, field

from homecrew.core.async_utils import gather_partitioned
from homecrew.core.exceptions import BatchFailure, NotFoundError, StoreError, StoreErrorKind
from homecrew.core.logging import get_logger, sanitize_error
from homecrew.core.protocols import RecordStoreProtocol
from homecrew.mappers import staff_from_record
from homecrew.models.records import RecordType
from homecrew.services.document_sync import DocumentSyncService

logger = get_logger(__name__)


@dataclass
class CascadeDeleteResult:
    """Result of a cascade delete.

    Attributes:
        household_id: Root of the cascade
        deleted_ids: Ids removed from the store (documents, staff, household)
        remaining_ids: Ids still present because they or a descendant failed
        failures: One entry per failed delete
    """

    household_id: str
    deleted_ids: list[str] = field(default_factory=list)
    remaining_ids: list[str] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def complete(self) -> bool:
        return not self.remaining_ids

    def to_dict(self) -> dict[str, object]:
        return {
            "household_id": self.household_id,
            "deleted_ids": list(self.deleted_ids),
            "remaining_ids": list(self.remaining_ids),
            "failures": [f.to_dict() for f in self.failures],
            "complete": self.complete,
        }


class CascadeDeleteService:
    """Deletes a household with its staff and their documents."""

    def __init__(self, store: RecordStoreProtocol, documents: DocumentSyncService) -> None:
        self._store = store
        self._documents = documents

    async def _delete_level(self, ids: list[str], result: CascadeDeleteResult) -> set[str]:
        """Delete ids concurrently; return the ids that are gone afterwards."""

        async def delete_one(record_id: str) -> None:
            try:
                await self._store.delete(record_id)
            except StoreError as e:
                # Already gone counts as deleted
                if e.kind != StoreErrorKind.UNKNOWN_ITEM:
                    raise

        outcome = await gather_partitioned(ids, delete_one)
        gone = {record_id for record_id, _ in outcome.succeeded}
        for record_id, error in outcome.failed:
            logger.warning(f"Cascade delete of {record_id} failed: {sanitize_error(error)}")
            result.failures.append(BatchFailure(record_id, error))
        result.deleted_ids.extend(record_id for record_id in ids if record_id in gone)
        return gone

    async def delete_household(self, household_id: str) -> CascadeDeleteResult:
        """Delete a household, its staff and their documents, leaves first.

        Raises:
            NotFoundError: If the household does not exist
            StoreError: If collecting descendants fails (nothing is deleted)
        """
        record = await self._store.fetch(household_id)
        if record is None or record.record_type != RecordType.HOUSEHOLD:
            raise NotFoundError(RecordType.HOUSEHOLD.value, household_id)

        staff_records = await self._store.query(RecordType.STAFF, {"household_id": household_id})
        documents_by_staff: dict[str, list[str]] = {}
        for staff_record in staff_records:
            staff_id = staff_record.id or ""
            doc_ids = await self._documents.document_ids(staff_id)
            forward = staff_from_record(staff_record).document_ids
            doc_ids.extend(d for d in forward if d not in doc_ids)
            documents_by_staff[staff_id] = doc_ids

        result = CascadeDeleteResult(household_id=household_id)

        all_documents = [d for ids in documents_by_staff.values() for d in ids]
        gone_documents = await self._delete_level(all_documents, result)

        deletable_staff = [
            staff_id
            for staff_id, doc_ids in documents_by_staff.items()
            if all(d in gone_documents for d in doc_ids)
        ]
        gone_staff = await self._delete_level(deletable_staff, result)

        if len(gone_staff) == len(documents_by_staff):
            await self._delete_level([household_id], result)

        deleted = set(result.deleted_ids)
        for staff_id, doc_ids in documents_by_staff.items():
            result.remaining_ids.extend(d for d in doc_ids if d not in deleted)
            if staff_id not in deleted:
                result.remaining_ids.append(staff_id)
        if household_id not in deleted:
            result.remaining_ids.append(household_id)

        logger.info(
            f"Cascade delete of household {household_id}: "
            f"{len(result.deleted_ids)} deleted, {len(result.remaining_ids)} remaining"
        )
        return result
