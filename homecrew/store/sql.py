"""SQLAlchemy-backed record store.

All record types share one ``records`` table. Field values are stored as a
JSON document (see ``homecrew.store.codec``); predicates are evaluated after
decoding so reference fields match bare ids the same way the in-memory store
does.
"""

from __future__ import annotations

import asyncio
import uuid
from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Mapped, mapped_column

from homecrew.core.database import Base, Database
from homecrew.core.exceptions import StoreError, StoreErrorKind
from homecrew.core.logging import get_logger, sanitize_error
from homecrew.core.metrics import track_store_operation
from homecrew.models.records import Predicate, Record, RecordType, matches, merge_fields
from homecrew.store.assets import AssetStore, check_assets
from homecrew.store.codec import decode_fields, encode_fields

logger = get_logger(__name__)


class RecordRow(Base):
    """One stored record of any type."""

    __tablename__ = "records"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    record_type: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    fields: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )
    modified_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(UTC), nullable=False
    )

    def to_record(self) -> Record:
        return Record(
            record_type=RecordType(self.record_type),
            id=self.id,
            fields=decode_fields(self.fields),
        )


def _service_error(operation: str, error: SQLAlchemyError) -> StoreError:
    logger.error(f"Record store {operation} failed: {sanitize_error(error)}")
    return StoreError(
        f"Record store {operation} failed",
        kind=StoreErrorKind.SERVICE_UNAVAILABLE,
        operation=operation,
    )


class SqlRecordStore:
    """Implementation of RecordStoreProtocol on an async SQLAlchemy database."""

    def __init__(self, database: Database, asset_store: AssetStore | None = None) -> None:
        self._db = database
        self._assets = asset_store

    async def _store_assets(self, record_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        if self._assets is None:
            check_assets(fields)
            return dict(fields)
        return await asyncio.to_thread(self._assets.upload_fields, record_id, fields)

    async def create(self, record_type: RecordType, fields: Mapping[str, Any]) -> str:
        with track_store_operation("create"):
            record_id = uuid.uuid4().hex
            stored = await self._store_assets(record_id, merge_fields({}, fields))
            encoded = encode_fields(stored)
            try:
                async with self._db.session() as session:
                    session.add(
                        RecordRow(id=record_id, record_type=record_type.value, fields=encoded)
                    )
            except SQLAlchemyError as e:
                raise _service_error("create", e) from e
            logger.debug(f"Created {record_type.value} record {record_id}")
            return record_id

    async def fetch(self, record_id: str) -> Record | None:
        with track_store_operation("fetch"):
            try:
                async with self._db.session() as session:
                    row = await session.get(RecordRow, record_id)
                    return row.to_record() if row is not None else None
            except SQLAlchemyError as e:
                raise _service_error("fetch", e) from e

    async def save(self, record: Record) -> Record:
        with track_store_operation("save"):
            record_id = record.id or uuid.uuid4().hex
            try:
                async with self._db.session() as session:
                    row = await session.get(RecordRow, record_id)
                    if row is not None and row.record_type != record.record_type.value:
                        raise StoreError(
                            f"Record {record_id} is a {row.record_type}, "
                            f"not a {record.record_type.value}",
                            kind=StoreErrorKind.INVALID_ARGUMENTS,
                            operation="save",
                        )
                    base = decode_fields(row.fields) if row is not None else {}
                    merged = await self._store_assets(
                        record_id, merge_fields(base, record.fields)
                    )
                    encoded = encode_fields(merged)
                    if row is None:
                        row = RecordRow(
                            id=record_id, record_type=record.record_type.value, fields=encoded
                        )
                        session.add(row)
                    else:
                        # Assign a new dict so the JSON column is flagged dirty
                        row.fields = encoded
                        row.modified_at = datetime.now(UTC)
            except SQLAlchemyError as e:
                raise _service_error("save", e) from e
            return Record(record_type=record.record_type, id=record_id, fields=merged)

    async def delete(self, record_id: str) -> None:
        with track_store_operation("delete"):
            try:
                async with self._db.session() as session:
                    row = await session.get(RecordRow, record_id)
                    if row is None:
                        raise StoreError(
                            f"Record {record_id} does not exist",
                            kind=StoreErrorKind.UNKNOWN_ITEM,
                            operation="delete",
                        )
                    await session.delete(row)
            except SQLAlchemyError as e:
                raise _service_error("delete", e) from e
            if self._assets is not None:
                await asyncio.to_thread(self._assets.remove, record_id)

    async def query(self, record_type: RecordType, predicate: Predicate) -> list[Record]:
        with track_store_operation("query"):
            stmt = (
                select(RecordRow)
                .where(RecordRow.record_type == record_type.value)
                .order_by(RecordRow.created_at, RecordRow.id)
            )
            try:
                async with self._db.session() as session:
                    rows = (await session.execute(stmt)).scalars().all()
            except SQLAlchemyError as e:
                raise _service_error("query", e) from e
            records = [row.to_record() for row in rows]
            return [record for record in records if matches(record, predicate)]
