"""Test doubles for the record store and identity provider."""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping
from datetime import UTC, datetime
from typing import Any

from homecrew.core.exceptions import StoreError, StoreErrorKind
from homecrew.core.protocols import IdentityCredential
from homecrew.models.records import Predicate, Record, RecordType
from homecrew.store.memory import InMemoryRecordStore

FIXED_NOW = datetime(2025, 3, 1, 9, 30, tzinfo=UTC)

FailureRule = Callable[[str, Any], StoreError | None]


class RecordingStore:
    """In-memory store that counts calls and fails on demand.

    ``fail_on(op, match)`` makes every call to ``op`` whose argument matches
    raise the given StoreError. For ``create`` the argument is the fields
    mapping, for ``delete``/``fetch`` the record id, for ``save`` the record.
    """

    def __init__(self, inner: InMemoryRecordStore | None = None) -> None:
        self.inner = inner or InMemoryRecordStore()
        self.calls: Counter[str] = Counter()
        self.log: list[tuple[str, Any]] = []
        self._rules: list[tuple[str, FailureRule]] = []

    def fail_on(
        self,
        operation: str,
        match: Callable[[Any], bool] = lambda _: True,
        kind: StoreErrorKind = StoreErrorKind.NETWORK_UNAVAILABLE,
    ) -> None:
        def rule(op: str, arg: Any) -> StoreError | None:
            if op == operation and match(arg):
                return StoreError(f"{operation} failed", kind=kind, operation=operation)
            return None

        self._rules.append((operation, rule))

    def fail_create_named(
        self, name: str, kind: StoreErrorKind = StoreErrorKind.NETWORK_UNAVAILABLE
    ) -> None:
        """Fail creation of a StaffDocument whose name is ``name``."""
        self.fail_on("create", lambda fields: fields.get("name") == name, kind)

    def _enter(self, operation: str, arg: Any) -> None:
        self.calls[operation] += 1
        self.log.append((operation, arg))
        for _, rule in self._rules:
            error = rule(operation, arg)
            if error is not None:
                raise error

    def operations(self) -> list[str]:
        return [op for op, _ in self.log]

    async def create(self, record_type: RecordType, fields: Mapping[str, Any]) -> str:
        self._enter("create", fields)
        return await self.inner.create(record_type, fields)

    async def fetch(self, record_id: str) -> Record | None:
        self._enter("fetch", record_id)
        return await self.inner.fetch(record_id)

    async def save(self, record: Record) -> Record:
        self._enter("save", record)
        return await self.inner.save(record)

    async def delete(self, record_id: str) -> None:
        self._enter("delete", record_id)
        await self.inner.delete(record_id)

    async def query(self, record_type: RecordType, predicate: Predicate) -> list[Record]:
        self._enter("query", (record_type, dict(predicate)))
        return await self.inner.query(record_type, predicate)


class FailingIdentityProvider:
    def __init__(self, error: Exception | None = None) -> None:
        self.error = error or ConnectionError("provider unreachable")

    async def sign_in(self) -> IdentityCredential:
        raise self.error
