"""Asset storage shared by the record store implementations.

Uploading an asset copies the caller's file under ``root/<record_id>/`` so
the stored path stays valid after the caller's staging copy is removed.
"""

from __future__ import annotations

import re
import shutil
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from homecrew.core.exceptions import StoreError, StoreErrorKind
from homecrew.core.logging import get_logger
from homecrew.models.records import Asset

logger = get_logger(__name__)

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


def _safe_component(value: str) -> str:
    cleaned = _UNSAFE_CHARS.sub("_", value).strip(".")
    return cleaned or "_"


class AssetStore:
    """Directory-backed asset storage keyed by record id."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)

    def record_dir(self, record_id: str) -> Path:
        return self.root / _safe_component(record_id)

    def upload(self, record_id: str, asset: Asset) -> Asset:
        """Copy an asset file into the store.

        Raises:
            StoreError: ASSET_NOT_FOUND when the source file is missing
        """
        if not asset.path.is_file():
            raise StoreError(
                f"Asset file not found: {asset.path.name}",
                kind=StoreErrorKind.ASSET_NOT_FOUND,
                operation="upload",
            )
        target_dir = self.record_dir(record_id)
        target = target_dir / _safe_component(asset.path.name)
        if asset.path.resolve() == target.resolve():
            return asset
        target_dir.mkdir(parents=True, exist_ok=True)
        shutil.copy2(asset.path, target)
        logger.debug(f"Stored asset for record {record_id}: {target.name}")
        return Asset(target)

    def upload_fields(self, record_id: str, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Return ``fields`` with every Asset value replaced by its stored copy."""
        return {
            name: self.upload(record_id, value) if isinstance(value, Asset) else value
            for name, value in fields.items()
        }

    def remove(self, record_id: str) -> None:
        shutil.rmtree(self.record_dir(record_id), ignore_errors=True)


def check_assets(fields: Mapping[str, Any]) -> None:
    """Reject asset fields whose file is missing.

    Used by stores that keep caller paths as-is instead of copying.
    """
    for value in fields.values():
        if isinstance(value, Asset) and not value.exists:
            raise StoreError(
                f"Asset file not found: {value.path.name}",
                kind=StoreErrorKind.ASSET_NOT_FOUND,
                operation="upload",
            )
