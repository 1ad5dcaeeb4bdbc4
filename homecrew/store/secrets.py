"""Key-value secret storage keyed by account name.

``FileSecretStore`` keeps one file per key in a directory readable only by
the owner. Values are opaque bytes; no encryption is applied beyond the
filesystem permissions.
"""

from __future__ import annotations

import os
import re
import stat
from pathlib import Path

from homecrew.core.logging import get_logger

logger = get_logger(__name__)

_KEY_PATTERN = re.compile(r"[^A-Za-z0-9_.-]")


def _key_filename(key: str) -> str:
    if not key:
        raise ValueError("Secret key must not be empty")
    return _KEY_PATTERN.sub("_", key).lstrip(".") or "_"


class FileSecretStore:
    """Secret store backed by owner-only files under ``root``."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.root.chmod(stat.S_IRWXU)  # 700

    def _path(self, key: str) -> Path:
        return self.root / _key_filename(key)

    def save(self, key: str, value: bytes) -> None:
        """Write ``value`` under ``key``, replacing any previous value."""
        path = self._path(key)
        tmp = path.with_name(f".{path.name}.tmp")
        fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, stat.S_IRUSR | stat.S_IWUSR)
        with os.fdopen(fd, "wb") as f:
            f.write(value)
        tmp.chmod(stat.S_IRUSR | stat.S_IWUSR)  # 600
        tmp.replace(path)
        logger.debug(f"Saved secret {path.name}")

    def load(self, key: str) -> bytes | None:
        path = self._path(key)
        try:
            return path.read_bytes()
        except FileNotFoundError:
            return None

    def delete(self, key: str) -> None:
        self._path(key).unlink(missing_ok=True)


class InMemorySecretStore:
    """Process-local secret store for tests and ephemeral sessions."""

    def __init__(self) -> None:
        self._values: dict[str, bytes] = {}

    def save(self, key: str, value: bytes) -> None:
        self._values[key] = bytes(value)

    def load(self, key: str) -> bytes | None:
        return self._values.get(key)

    def delete(self, key: str) -> None:
        self._values.pop(key, None)
