"""Document synchronization between staged files and the record store.

Each staged ``DocumentItem`` becomes one StaffDocument record. Uploads and
deletes run as fail-independent batches joined by a single barrier; a batch
with any failure raises ``AggregateError`` after every sibling has finished.

The Staff record keeps a denormalized forward list of its documents
(``id_cards``). The reverse query on StaffDocument is authoritative; the
forward list is only ever changed through ``_reconcile`` and can be checked
with ``check_consistency`` and rewritten with ``repair_references``.

Per-item state machine:

    pending -> validating -> validation_failed
                          -> uploading -> uploaded
                                       -> upload_failed
"""

from __future__ import annotations

import asyncio
import enum
import os
import weakref
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from homecrew.core.async_utils import gather_partitioned
from homecrew.core.exceptions import (
    AggregateError,
    BatchFailure,
    HomeCrewError,
    NotFoundError,
    StoreError,
    StoreQueryError,
    ValidationError,
)
from homecrew.core.logging import get_logger, sanitize_error, sanitize_log_value
from homecrew.core.metrics import record_batch_items
from homecrew.core.protocols import RecordStoreProtocol
from homecrew.mappers import (
    DOCUMENT_REFERENCES_FIELD,
    document_item_to_fields,
    document_references,
    staff_document_from_record,
)
from homecrew.mappers.coercion import as_reference_ids
from homecrew.models.records import Record, RecordType
from homecrew.models.staff_document import DocumentItem, StaffDocument

logger = get_logger(__name__)


class UploadState(str, enum.Enum):
    PENDING = "pending"
    VALIDATING = "validating"
    VALIDATION_FAILED = "validation_failed"
    UPLOADING = "uploading"
    UPLOADED = "uploaded"
    UPLOAD_FAILED = "upload_failed"


_TRANSITIONS: dict[UploadState, frozenset[UploadState]] = {
    UploadState.PENDING: frozenset({UploadState.VALIDATING}),
    UploadState.VALIDATING: frozenset({UploadState.VALIDATION_FAILED, UploadState.UPLOADING}),
    UploadState.UPLOADING: frozenset({UploadState.UPLOADED, UploadState.UPLOAD_FAILED}),
    UploadState.VALIDATION_FAILED: frozenset(),
    UploadState.UPLOADED: frozenset(),
    UploadState.UPLOAD_FAILED: frozenset(),
}

TERMINAL_STATES = frozenset(state for state, nxt in _TRANSITIONS.items() if not nxt)


@dataclass(slots=True)
class DocumentUpload:
    """Tracks one staged item through a save batch."""

    item: DocumentItem
    state: UploadState = UploadState.PENDING
    record_id: str | None = None
    error: Exception | None = None

    def transition(self, state: UploadState) -> None:
        if state not in _TRANSITIONS[self.state]:
            raise RuntimeError(f"Illegal upload transition {self.state.value} -> {state.value}")
        self.state = state

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES


@dataclass(slots=True)
class DocumentBatchResult:
    """Outcome of ``save_documents``; uploads are in input order."""

    uploads: list[DocumentUpload] = field(default_factory=list)

    @property
    def created_ids(self) -> list[str]:
        return [u.record_id for u in self.uploads if u.record_id is not None]

    @property
    def failed(self) -> list[DocumentUpload]:
        return [u for u in self.uploads if u.state == UploadState.UPLOAD_FAILED]

    @property
    def all_succeeded(self) -> bool:
        return all(u.state == UploadState.UPLOADED for u in self.uploads)


@dataclass(frozen=True, slots=True)
class ReferenceConsistencyReport:
    """Comparison of a Staff record's forward list with the reverse query."""

    staff_id: str
    forward_ids: tuple[str, ...]
    reverse_ids: tuple[str, ...]

    @property
    def missing_from_forward(self) -> list[str]:
        forward = set(self.forward_ids)
        return [i for i in self.reverse_ids if i not in forward]

    @property
    def dangling_forward(self) -> list[str]:
        reverse = set(self.reverse_ids)
        return [i for i in self.forward_ids if i not in reverse]

    @property
    def is_consistent(self) -> bool:
        return not self.missing_from_forward and not self.dangling_forward


def _check_file(path: os.PathLike[str]) -> str | None:
    if not os.path.exists(path):
        return "file does not exist"
    if not os.path.isfile(path):
        return "not a regular file"
    if not os.access(path, os.R_OK):
        return "file is not readable"
    return None


class DocumentSyncService:
    """Uploads, deletes and lists StaffDocument records for staff members."""

    def __init__(self, store: RecordStoreProtocol) -> None:
        self._store = store
        self._locks: weakref.WeakValueDictionary[str, asyncio.Lock] = (
            weakref.WeakValueDictionary()
        )

    def _lock_for(self, staff_id: str) -> asyncio.Lock:
        lock = self._locks.get(staff_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[staff_id] = lock
        return lock

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    async def fetch_documents(self, staff_id: str) -> list[StaffDocument]:
        """Return the staff member's documents sorted by name.

        Names are compared in code-point order, so "Zeta" sorts before "alpha".

        Raises:
            StoreQueryError: If the store query fails
        """
        try:
            records = await self._store.query(RecordType.STAFF_DOCUMENT, {"staff_id": staff_id})
        except StoreError as e:
            raise StoreQueryError.from_store_error(e) from e
        documents = [staff_document_from_record(r) for r in records]
        return sorted(documents, key=lambda d: d.name)

    async def document_ids(self, staff_id: str) -> list[str]:
        """Document ids derived from the reverse query."""
        return [d.id for d in await self.fetch_documents(staff_id)]

    @staticmethod
    def to_document_items(documents: Iterable[StaffDocument]) -> list[DocumentItem]:
        """Convert fetched documents with a resolved file back into items."""
        return [
            DocumentItem(path=d.file_path, name=d.name, id=d.id)
            for d in documents
            if d.file_path is not None
        ]

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    @staticmethod
    def _validate(uploads: Sequence[DocumentUpload]) -> None:
        failures: list[tuple[DocumentUpload, str]] = []
        for upload in uploads:
            upload.transition(UploadState.VALIDATING)
            reason = _check_file(upload.item.path)
            if reason is not None:
                upload.transition(UploadState.VALIDATION_FAILED)
                failures.append((upload, reason))
        if failures:
            details = {
                "items": [{"item": u.item.name, "reason": reason} for u, reason in failures]
            }
            names = ", ".join(u.item.name for u, _ in failures)
            raise ValidationError(
                f"Document file check failed for: {names}",
                field="documents",
                details=details,
            )

    def validate_items(self, items: Iterable[DocumentItem]) -> None:
        """Check that every item's file exists, is a regular file and is readable.

        Runs synchronously and never touches the store.

        Raises:
            ValidationError: Naming every failing item
        """
        self._validate([DocumentUpload(item) for item in items])

    # ------------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------------

    async def save_documents(
        self, items: Sequence[DocumentItem], staff_id: str
    ) -> DocumentBatchResult:
        """Upload staged items as StaffDocument records of ``staff_id``.

        Raises:
            ValidationError: If any item's file fails the precheck (no store calls)
            NotFoundError: If the staff record does not exist (no uploads)
            AggregateError: If one or more uploads failed, or the forward list
                could not be updated afterwards; ``result`` holds the batch
                result including the ids that were created
        """
        uploads = [DocumentUpload(item) for item in items]
        result = DocumentBatchResult(uploads)
        if not uploads:
            return result

        self._validate(uploads)

        if await self._store.fetch(staff_id) is None:
            raise NotFoundError(RecordType.STAFF.value, staff_id)

        async def upload_one(upload: DocumentUpload) -> str:
            upload.transition(UploadState.UPLOADING)
            try:
                record_id = await self._store.create(
                    RecordType.STAFF_DOCUMENT, document_item_to_fields(upload.item, staff_id)
                )
            except Exception as e:
                upload.error = e
                upload.transition(UploadState.UPLOAD_FAILED)
                raise
            upload.record_id = record_id
            upload.transition(UploadState.UPLOADED)
            return record_id

        outcome = await gather_partitioned(uploads, upload_one)
        record_batch_items("upload", succeeded=len(outcome.succeeded), failed=len(outcome.failed))

        failures = [BatchFailure(upload.item.name, error) for upload, error in outcome.failed]
        for upload, error in outcome.failed:
            logger.warning(
                f"Upload of '{sanitize_log_value(upload.item.name)}' for staff "
                f"{staff_id} failed: {sanitize_error(error)}"
            )

        if outcome.succeeded:
            try:
                await self._reconcile(staff_id, add=result.created_ids)
            except HomeCrewError as e:
                # Created documents are still found by the reverse query
                logger.warning(
                    f"Reference update for staff {staff_id} failed after upload: "
                    f"{sanitize_error(e)}"
                )
                failures.append(BatchFailure(f"{DOCUMENT_REFERENCES_FIELD} of {staff_id}", e))

        if failures:
            raise AggregateError(failures, operation="upload", result=result)

        logger.info(f"Uploaded {len(uploads)} document(s) for staff {staff_id}")
        return result

    async def delete_documents(
        self, document_ids: Sequence[str], staff_id: str | None = None
    ) -> list[str]:
        """Delete document records and return the ids that were deleted.

        When ``staff_id`` is given, deleted ids are also removed from that
        staff member's forward list.

        Raises:
            AggregateError: If one or more deletes failed, or the forward list
                could not be updated afterwards; ``result`` holds the ids that
                were deleted
        """
        ids = list(document_ids)
        if not ids:
            return []

        outcome = await gather_partitioned(ids, self._store.delete)
        deleted = [doc_id for doc_id, _ in outcome.succeeded]
        record_batch_items("delete", succeeded=len(deleted), failed=len(outcome.failed))

        failures = [BatchFailure(doc_id, error) for doc_id, error in outcome.failed]
        if staff_id is not None and deleted:
            try:
                await self._reconcile(staff_id, remove=deleted, missing_ok=True)
            except HomeCrewError as e:
                logger.warning(
                    f"Reference update for staff {staff_id} failed after delete: "
                    f"{sanitize_error(e)}"
                )
                failures.append(BatchFailure(f"{DOCUMENT_REFERENCES_FIELD} of {staff_id}", e))

        if failures:
            raise AggregateError(failures, operation="delete", result=deleted)
        return deleted

    async def _reconcile(
        self,
        staff_id: str,
        *,
        add: Sequence[str] = (),
        remove: Sequence[str] = (),
        missing_ok: bool = False,
    ) -> list[str] | None:
        """Apply additions and removals to the Staff forward list.

        Re-reads the Staff record and appends ids not already present, so
        references written by other operations are preserved.
        """
        async with self._lock_for(staff_id):
            record = await self._store.fetch(staff_id)
            if record is None:
                if missing_ok:
                    logger.debug(f"Staff {staff_id} gone, skipping reference update")
                    return None
                raise NotFoundError(RecordType.STAFF.value, staff_id)

            current = as_reference_ids(record.get(DOCUMENT_REFERENCES_FIELD))
            removed = set(remove)
            updated = [doc_id for doc_id in current if doc_id not in removed]
            for doc_id in add:
                if doc_id not in updated:
                    updated.append(doc_id)
            if updated == current:
                return current

            await self._store.save(
                Record(
                    record_type=RecordType.STAFF,
                    id=staff_id,
                    fields={DOCUMENT_REFERENCES_FIELD: document_references(updated)},
                )
            )
            return updated

    # ------------------------------------------------------------------
    # Consistency
    # ------------------------------------------------------------------

    async def _forward_ids(self, staff_id: str) -> list[str]:
        record = await self._store.fetch(staff_id)
        if record is None:
            raise NotFoundError(RecordType.STAFF.value, staff_id)
        return as_reference_ids(record.get(DOCUMENT_REFERENCES_FIELD))

    async def check_consistency(self, staff_id: str) -> ReferenceConsistencyReport:
        forward = await self._forward_ids(staff_id)
        reverse = await self.document_ids(staff_id)
        return ReferenceConsistencyReport(staff_id, tuple(forward), tuple(reverse))

    async def repair_references(self, staff_id: str) -> ReferenceConsistencyReport:
        """Rewrite the forward list from the reverse query."""
        async with self._lock_for(staff_id):
            forward = await self._forward_ids(staff_id)
            reverse = await self.document_ids(staff_id)
            if forward != reverse:
                await self._store.save(
                    Record(
                        record_type=RecordType.STAFF,
                        id=staff_id,
                        fields={DOCUMENT_REFERENCES_FIELD: document_references(reverse)},
                    )
                )
                logger.info(
                    f"Repaired document references for staff {staff_id}: "
                    f"{len(forward)} -> {len(reverse)}"
                )
        return ReferenceConsistencyReport(staff_id, tuple(reverse), tuple(reverse))
