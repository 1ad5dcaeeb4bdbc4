"""Protocol definitions for external collaborators.

This module defines Protocol classes for the boundaries HomeCrew consumes but
does not own. Services depend on these protocols only, so tests can pass
in-memory fakes and deployments can swap the backing implementation.

Protocol Definitions:
    - RecordStoreProtocol: Cloud-style record database (households, staff, documents)
    - SecretStoreProtocol: Key-value secret storage for the signed-in profile
    - IdentityProviderProtocol: Opaque sign-in call returning a user identity

See Also:
    - homecrew/store/memory.py - Implements RecordStoreProtocol in process
    - homecrew/store/sql.py - Implements RecordStoreProtocol with SQLAlchemy
    - homecrew/store/secrets.py - Implements SecretStoreProtocol
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Protocol, runtime_checkable

if TYPE_CHECKING:
    from homecrew.models.records import Predicate, Record, RecordType


@runtime_checkable
class RecordStoreProtocol(Protocol):
    """Protocol for record stores.

    Every operation is asynchronous and fails independently with a
    ``StoreError``. Stores do not enforce referential integrity and offer no
    multi-record transactions.
    """

    async def create(self, record_type: RecordType, fields: Mapping[str, Any]) -> str:
        """Create a record and return its store-assigned id."""
        ...

    async def fetch(self, record_id: str) -> Record | None:
        """Fetch a record by id, or None when it does not exist."""
        ...

    async def save(self, record: Record) -> Record:
        """Write a record and return the stored version.

        Omitted fields keep their stored value; fields set to ``UNSET`` are
        removed. A record id the store does not know is created.
        """
        ...

    async def delete(self, record_id: str) -> None:
        """Delete a record. Unknown ids raise ``StoreError(UNKNOWN_ITEM)``."""
        ...

    async def query(self, record_type: RecordType, predicate: Predicate) -> list[Record]:
        """Return the records of a type matching every predicate field."""
        ...


@runtime_checkable
class SecretStoreProtocol(Protocol):
    """Protocol for a key-value secret store keyed by account name."""

    def save(self, key: str, value: bytes) -> None: ...

    def load(self, key: str) -> bytes | None: ...

    def delete(self, key: str) -> None: ...


@dataclass(frozen=True, slots=True)
class IdentityCredential:
    """Result of a successful identity provider sign-in."""

    user_id: str
    full_name: str | None = None
    email: str | None = None


@runtime_checkable
class IdentityProviderProtocol(Protocol):
    """Protocol for the platform identity provider.

    The handshake itself is opaque; implementations raise on failure.
    """

    async def sign_in(self) -> IdentityCredential: ...
