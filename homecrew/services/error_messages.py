"""User-facing messages for errors raised by the services."""

from __future__ import annotations

from homecrew.core.exceptions import (
    AggregateError,
    AuthenticationError,
    HomeCrewError,
    PartialSaveError,
    StoreError,
    StoreErrorKind,
)

NETWORK_MESSAGE = "Network issue. Please check your connection and try again."
SERVICE_UNAVAILABLE_MESSAGE = "The record service is currently unavailable. Please try again later."
SIGN_IN_MESSAGE = "Please sign in to your account and try again."
QUOTA_MESSAGE = "Your storage is full. Please free up space and try again."
SCHEMA_MESSAGE = "Database schema error: Please ensure record fields are properly configured."


def _store_message(error: StoreError) -> str:
    match error.kind:
        case StoreErrorKind.NETWORK_UNAVAILABLE:
            return NETWORK_MESSAGE
        case StoreErrorKind.SERVICE_UNAVAILABLE:
            return SERVICE_UNAVAILABLE_MESSAGE
        case StoreErrorKind.NOT_AUTHENTICATED:
            return SIGN_IN_MESSAGE
        case StoreErrorKind.QUOTA_EXCEEDED:
            return QUOTA_MESSAGE
        case StoreErrorKind.INVALID_ARGUMENTS:
            if "sortable" in error.message:
                return SCHEMA_MESSAGE
            return f"Invalid arguments: {error.message}"
    return f"Error: {error.message}"


def user_message(error: BaseException) -> str:
    """Map an error to the message shown to the user.

    Store errors are mapped by kind. Batch errors use the message of their
    first store failure when every failure shares the same kind, so a batch
    that failed because the network dropped still reads as a network issue.
    """
    if isinstance(error, StoreError):
        return _store_message(error)
    if isinstance(error, AuthenticationError):
        return SIGN_IN_MESSAGE
    if isinstance(error, PartialSaveError):
        if error.rolled_back:
            prefix = "Staff member was not saved because the documents failed to upload"
        else:
            prefix = "Staff member saved, but the documents failed to upload"
        return f"{prefix}. {user_message(error.cause)}"
    if isinstance(error, AggregateError):
        causes = [f.cause for f in error.failures]
        kinds = {c.kind for c in causes if isinstance(c, StoreError)}
        if causes and len(kinds) == 1 and all(isinstance(c, StoreError) for c in causes):
            return user_message(causes[0])
        return error.message
    if isinstance(error, HomeCrewError):
        return error.message
    return f"An unexpected error occurred: {error}"
