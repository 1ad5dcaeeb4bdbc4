"""In-process record store.

Keeps records in a dict and yields to the event loop on every call, so batch
operations interleave the way they do against a remote store. Used for
development and as the backing store in tests.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Mapping
from typing import Any

from homecrew.core.exceptions import StoreError, StoreErrorKind
from homecrew.core.logging import get_logger
from homecrew.core.metrics import track_store_operation
from homecrew.models.records import Predicate, Record, RecordType, matches, merge_fields
from homecrew.store.assets import AssetStore, check_assets

logger = get_logger(__name__)


class InMemoryRecordStore:
    """Dict-backed implementation of RecordStoreProtocol.

    When an ``AssetStore`` is given, asset files are copied on write;
    otherwise the caller's path is kept and only checked for existence.
    """

    def __init__(self, asset_store: AssetStore | None = None) -> None:
        self._records: dict[str, Record] = {}
        self._assets = asset_store

    def __len__(self) -> int:
        return len(self._records)

    async def _store_assets(self, record_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        if self._assets is None:
            check_assets(fields)
            return dict(fields)
        return await asyncio.to_thread(self._assets.upload_fields, record_id, fields)

    async def create(self, record_type: RecordType, fields: Mapping[str, Any]) -> str:
        with track_store_operation("create"):
            await asyncio.sleep(0)
            record_id = uuid.uuid4().hex
            stored = await self._store_assets(record_id, merge_fields({}, fields))
            self._records[record_id] = Record(record_type=record_type, id=record_id, fields=stored)
            logger.debug(f"Created {record_type.value} record {record_id}")
            return record_id

    async def fetch(self, record_id: str) -> Record | None:
        with track_store_operation("fetch"):
            await asyncio.sleep(0)
            record = self._records.get(record_id)
            return record.copy() if record is not None else None

    async def save(self, record: Record) -> Record:
        with track_store_operation("save"):
            await asyncio.sleep(0)
            if record.id is None:
                record_id = await self.create(record.record_type, record.fields)
                return self._records[record_id].copy()

            existing = self._records.get(record.id)
            if existing is not None and existing.record_type != record.record_type:
                raise StoreError(
                    f"Record {record.id} is a {existing.record_type.value}, "
                    f"not a {record.record_type.value}",
                    kind=StoreErrorKind.INVALID_ARGUMENTS,
                    operation="save",
                )
            base = existing.fields if existing is not None else {}
            merged = await self._store_assets(record.id, merge_fields(base, record.fields))
            stored = Record(record_type=record.record_type, id=record.id, fields=merged)
            self._records[record.id] = stored
            return stored.copy()

    async def delete(self, record_id: str) -> None:
        with track_store_operation("delete"):
            await asyncio.sleep(0)
            if self._records.pop(record_id, None) is None:
                raise StoreError(
                    f"Record {record_id} does not exist",
                    kind=StoreErrorKind.UNKNOWN_ITEM,
                    operation="delete",
                )
            if self._assets is not None:
                await asyncio.to_thread(self._assets.remove, record_id)

    async def query(self, record_type: RecordType, predicate: Predicate) -> list[Record]:
        with track_store_operation("query"):
            await asyncio.sleep(0)
            return [
                record.copy()
                for record in self._records.values()
                if record.record_type == record_type and matches(record, predicate)
            ]
