"""Record store, asset, secret and staging implementations."""

from .assets import AssetStore
from .memory import InMemoryRecordStore
from .secrets import FileSecretStore, InMemorySecretStore
from .sql import SqlRecordStore
from .staging import StagingArea

__all__ = [
    "AssetStore",
    "FileSecretStore",
    "InMemoryRecordStore",
    "InMemorySecretStore",
    "SqlRecordStore",
    "StagingArea",
]
