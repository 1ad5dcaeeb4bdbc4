"""Unit tests for CascadeDeleteService."""

from __future__ import annotations

import pytest

from homecrew.core.exceptions import NotFoundError, StoreError, StoreErrorKind
from homecrew.models import RecordType, Reference
from homecrew.services.cascade_delete import CascadeDeleteResult, CascadeDeleteService
from homecrew.services.document_sync import DocumentSyncService
from homecrew.tests.fakes import RecordingStore

pytestmark = pytest.mark.unit


@pytest.fixture
def recording() -> RecordingStore:
    return RecordingStore()


@pytest.fixture
def service(recording: RecordingStore) -> CascadeDeleteService:
    return CascadeDeleteService(recording, DocumentSyncService(recording))


async def _build_household(store: RecordingStore) -> tuple[str, dict[str, list[str]]]:
    """Household with two staff; the first has two documents, the second one."""
    household_id = await store.inner.create(RecordType.HOUSEHOLD, {"name": "Smith"})
    tree: dict[str, list[str]] = {}
    for name, doc_count in (("Maria", 2), ("Joe", 1)):
        staff_id = await store.inner.create(
            RecordType.STAFF,
            {"household_id": Reference(household_id), "full_legal_name": name},
        )
        doc_ids = [
            await store.inner.create(
                RecordType.STAFF_DOCUMENT,
                {"staff_id": Reference(staff_id), "name": f"{name}-{i}.pdf"},
            )
            for i in range(doc_count)
        ]
        record = await store.inner.fetch(staff_id)
        assert record is not None
        record.fields["id_cards"] = [Reference(d) for d in doc_ids]
        await store.inner.save(record)
        tree[staff_id] = doc_ids
    return household_id, tree


class TestCascadeDelete:
    @pytest.mark.asyncio
    async def test_deletes_everything_leaves_first(
        self, service: CascadeDeleteService, recording: RecordingStore
    ) -> None:
        household_id, tree = await _build_household(recording)

        result = await service.delete_household(household_id)

        assert result.complete
        assert result.failures == []
        assert len(recording.inner) == 0

        deletes = [arg for op, arg in recording.log if op == "delete"]
        all_docs = {d for docs in tree.values() for d in docs}
        assert set(deletes[:3]) == all_docs
        assert set(deletes[3:5]) == set(tree)
        assert deletes[5] == household_id

    @pytest.mark.asyncio
    async def test_empty_household(
        self, service: CascadeDeleteService, recording: RecordingStore
    ) -> None:
        household_id = await recording.inner.create(RecordType.HOUSEHOLD, {"name": "Empty"})

        result = await service.delete_household(household_id)

        assert result.complete
        assert result.deleted_ids == [household_id]

    @pytest.mark.asyncio
    async def test_document_failure_keeps_its_staff_and_household(
        self, service: CascadeDeleteService, recording: RecordingStore
    ) -> None:
        household_id, tree = await _build_household(recording)
        maria, joe = list(tree)
        stuck = tree[maria][0]
        recording.fail_on("delete", lambda record_id: record_id == stuck)

        result = await service.delete_household(household_id)

        assert not result.complete
        assert [f.item for f in result.failures] == [stuck]
        assert set(result.remaining_ids) == {stuck, maria, household_id}
        assert joe in result.deleted_ids
        assert tree[maria][1] in result.deleted_ids
        assert await recording.inner.fetch(maria) is not None
        assert await recording.inner.fetch(household_id) is not None

    @pytest.mark.asyncio
    async def test_already_deleted_document_counts_as_gone(
        self, service: CascadeDeleteService, recording: RecordingStore
    ) -> None:
        household_id, tree = await _build_household(recording)
        # Forward list still points at a document another client removed
        first_staff = next(iter(tree))
        await recording.inner.delete(tree[first_staff][0])

        result = await service.delete_household(household_id)

        assert result.complete
        assert len(recording.inner) == 0

    @pytest.mark.asyncio
    async def test_missing_household(self, service: CascadeDeleteService) -> None:
        with pytest.raises(NotFoundError):
            await service.delete_household("nope")

    @pytest.mark.asyncio
    async def test_query_failure_deletes_nothing(
        self, service: CascadeDeleteService, recording: RecordingStore
    ) -> None:
        household_id, _ = await _build_household(recording)
        recording.fail_on("query", kind=StoreErrorKind.NETWORK_UNAVAILABLE)

        with pytest.raises(StoreError, match="query failed"):
            await service.delete_household(household_id)

        assert recording.calls["delete"] == 0

    def test_result_to_dict(self) -> None:
        result = CascadeDeleteResult(household_id="h1", deleted_ids=["h1"])
        assert result.to_dict() == {
            "household_id": "h1",
            "deleted_ids": ["h1"],
            "remaining_ids": [],
            "failures": [],
            "complete": True,
        }
