"""Exception hierarchy for HomeCrew.

This module provides the error taxonomy shared by the record store, the
document synchronization service and the lifecycle services:

1. ValidationError: a client-side precondition failed (never reaches the store)
2. NotFoundError: a referenced record is absent
3. StoreError: the record store failed (network, service, auth, quota, asset)
4. AggregateError: one or more items of a fan-out batch failed

Every error carries a machine-readable code and an HTTP status so the API
layer can render it without a lookup table of its own.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class HomeCrewError(Exception):
    """Base exception for all application-specific errors."""

    default_message: str = "An unexpected error occurred"
    default_error_code: str = "INTERNAL_ERROR"
    default_status_code: int = 500

    def __init__(
        self,
        message: str | None = None,
        *,
        error_code: str | None = None,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        self.error_code = error_code or self.default_error_code
        self.status_code = status_code or self.default_status_code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


# Validation Errors (400)
class ValidationError(HomeCrewError):
    default_message = "Validation failed"
    default_error_code = "VALIDATION_ERROR"
    default_status_code = 400

    def __init__(
        self,
        message: str | None = None,
        *,
        field: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        details = kwargs.pop("details", {}) or {}
        if field:
            details["field"] = field
        super().__init__(message, details=details, **kwargs)


# Auth Errors (401)
class AuthenticationError(HomeCrewError):
    default_message = "Authentication required"
    default_error_code = "AUTHENTICATION_REQUIRED"
    default_status_code = 401


# Not Found Errors (404)
class NotFoundError(HomeCrewError):
    default_message = "Record not found"
    default_error_code = "NOT_FOUND"
    default_status_code = 404

    def __init__(
        self,
        record_type: str,
        record_id: str,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.record_type = record_type
        self.record_id = record_id
        if message is None:
            message = f"{record_type} record '{record_id}' not found"
        details = kwargs.pop("details", {}) or {}
        details["record_type"] = record_type
        details["record_id"] = record_id
        super().__init__(message, details=details, **kwargs)


# Record store errors
class StoreErrorKind(str, enum.Enum):
    """Failure categories reported by a record store.

    The categories drive the user-facing message and the HTTP status.
    """

    NETWORK_UNAVAILABLE = "network_unavailable"
    SERVICE_UNAVAILABLE = "service_unavailable"
    NOT_AUTHENTICATED = "not_authenticated"
    QUOTA_EXCEEDED = "quota_exceeded"
    ASSET_NOT_FOUND = "asset_not_found"
    UNKNOWN_ITEM = "unknown_item"
    INVALID_ARGUMENTS = "invalid_arguments"
    UNKNOWN = "unknown"


_STORE_STATUS_CODES: dict[StoreErrorKind, int] = {
    StoreErrorKind.NETWORK_UNAVAILABLE: 503,
    StoreErrorKind.SERVICE_UNAVAILABLE: 503,
    StoreErrorKind.NOT_AUTHENTICATED: 401,
    StoreErrorKind.QUOTA_EXCEEDED: 507,
    StoreErrorKind.ASSET_NOT_FOUND: 409,
    StoreErrorKind.UNKNOWN_ITEM: 404,
    StoreErrorKind.INVALID_ARGUMENTS: 400,
    StoreErrorKind.UNKNOWN: 502,
}


class StoreError(HomeCrewError):
    default_message = "Record store request failed"
    default_error_code = "STORE_ERROR"
    default_status_code = 502

    def __init__(
        self,
        message: str | None = None,
        *,
        kind: StoreErrorKind = StoreErrorKind.UNKNOWN,
        operation: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.kind = kind
        self.operation = operation
        details = kwargs.pop("details", {}) or {}
        details["kind"] = kind.value
        if operation:
            details["operation"] = operation
        kwargs.setdefault("status_code", _STORE_STATUS_CODES[kind])
        super().__init__(message, details=details, **kwargs)


class StoreQueryError(StoreError):
    default_message = "Record store query failed"
    default_error_code = "STORE_QUERY_ERROR"

    @classmethod
    def from_store_error(cls, error: StoreError) -> StoreQueryError:
        if isinstance(error, StoreQueryError):
            return error
        return cls(
            error.message,
            kind=error.kind,
            operation=error.operation or "query",
        )


# Batch errors
@dataclass(frozen=True, slots=True)
class BatchFailure:
    """One failed item of a fan-out batch.

    Attributes:
        item: Identity of the failed item (document name or record id)
        cause: The exception raised for that item
    """

    item: str
    cause: BaseException

    def to_dict(self) -> dict[str, Any]:
        code = getattr(self.cause, "error_code", type(self.cause).__name__)
        return {"item": self.item, "code": code, "message": str(self.cause)}


class AggregateError(HomeCrewError):
    default_message = "One or more batch operations failed"
    default_error_code = "BATCH_FAILED"
    default_status_code = 502

    def __init__(
        self,
        failures: list[BatchFailure],
        message: str | None = None,
        *,
        operation: str | None = None,
        result: Any = None,
        **kwargs: Any,
    ) -> None:
        self.failures = list(failures)
        self.operation = operation
        self.result = result
        if message is None:
            names = ", ".join(f.item for f in self.failures)
            label = operation or "batch"
            message = f"{len(self.failures)} {label} item(s) failed: {names}"
        details = kwargs.pop("details", {}) or {}
        details["failures"] = [f.to_dict() for f in self.failures]
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, **kwargs)

    @property
    def failed_items(self) -> list[str]:
        return [f.item for f in self.failures]


class PartialSaveError(HomeCrewError):
    """Raised when a staff record was written but its documents were not.

    With the default policy the staff record is kept; ``rolled_back`` tells
    whether the compensating delete ran instead.
    """

    default_message = "Staff record saved but its documents failed to upload"
    default_error_code = "PARTIAL_SAVE"
    default_status_code = 502

    def __init__(
        self,
        record_id: str,
        cause: HomeCrewError,
        *,
        rolled_back: bool = False,
        message: str | None = None,
        **kwargs: Any,
    ) -> None:
        self.record_id = record_id
        self.cause = cause
        self.rolled_back = rolled_back
        if message is None:
            if rolled_back:
                message = f"Staff record '{record_id}' was rolled back: {cause.message}"
            else:
                message = f"Staff record '{record_id}' saved without documents: {cause.message}"
        details = kwargs.pop("details", {}) or {}
        details["record_id"] = record_id
        details["rolled_back"] = rolled_back
        details["cause"] = cause.to_dict()
        super().__init__(message, details=details, **kwargs)


# Utility functions
def get_exception_status_code(exc: Exception) -> int:
    if isinstance(exc, HomeCrewError):
        return exc.status_code
    return 500


def get_exception_error_code(exc: Exception) -> str:
    if isinstance(exc, HomeCrewError):
        return exc.error_code
    return "INTERNAL_ERROR"
