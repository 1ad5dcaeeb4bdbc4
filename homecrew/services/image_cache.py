"""Two-tier image cache for decoded document images.

Tiers:
    - Memory: least-recently-used, bounded by entry count, one coarse lock
    - Disk: one file per key under ``cache_dir``, never evicted

``get`` checks memory, then disk (promoting disk hits into memory).
``set`` writes through to both tiers. The last write for a key wins.

Disk Format:
    - File: {cache_dir}/{sha256(key)}.png (or .jpg)
    - PNG by default so a disk hit returns the same pixels that were set

The disk tier grows without bound; ``disk_usage`` reports its size.
"""

from __future__ import annotations

import hashlib
import shutil
import threading
from collections import OrderedDict
from pathlib import Path
from typing import Literal

from PIL import Image, UnidentifiedImageError

from homecrew.core.logging import get_logger, sanitize_error
from homecrew.core.metrics import record_cache_lookup

logger = get_logger(__name__)

DEFAULT_CAPACITY = 100
JPEG_QUALITY = 70

_EXTENSIONS = {"PNG": ".png", "JPEG": ".jpg"}


class ImageCache:
    """Memory plus disk cache of PIL images keyed by opaque strings."""

    def __init__(
        self,
        cache_dir: str | Path,
        capacity: int = DEFAULT_CAPACITY,
        disk_format: Literal["PNG", "JPEG"] = "PNG",
    ) -> None:
        if capacity < 1:
            raise ValueError("capacity must be at least 1")
        self.cache_dir = Path(cache_dir)
        self.capacity = capacity
        self.disk_format = disk_format
        self._memory: OrderedDict[str, Image.Image] = OrderedDict()
        self._lock = threading.Lock()
        self.cache_dir.mkdir(parents=True, exist_ok=True)

    def _disk_path(self, key: str) -> Path:
        digest = hashlib.sha256(key.encode("utf-8")).hexdigest()
        return self.cache_dir / f"{digest}{_EXTENSIONS[self.disk_format]}"

    def _remember(self, key: str, image: Image.Image) -> None:
        with self._lock:
            self._memory[key] = image
            self._memory.move_to_end(key)
            while len(self._memory) > self.capacity:
                self._memory.popitem(last=False)

    def get(self, key: str) -> Image.Image | None:
        with self._lock:
            image = self._memory.get(key)
            if image is not None:
                self._memory.move_to_end(key)
        if image is not None:
            record_cache_lookup("memory", hit=True)
            return image
        record_cache_lookup("memory", hit=False)

        path = self._disk_path(key)
        try:
            with Image.open(path) as stored:
                stored.load()
                image = stored.copy()
        except FileNotFoundError:
            record_cache_lookup("disk", hit=False)
            return None
        except (UnidentifiedImageError, OSError) as e:
            logger.warning(f"Unreadable cache file for key, ignoring: {sanitize_error(e)}")
            record_cache_lookup("disk", hit=False)
            return None

        record_cache_lookup("disk", hit=True)
        self._remember(key, image)
        return image

    def set(self, key: str, image: Image.Image) -> None:
        self._remember(key, image)

        path = self._disk_path(key)
        tmp = path.with_name(f".{path.name}.tmp")
        to_write = image.convert("RGB") if self.disk_format == "JPEG" else image
        save_kwargs = {"quality": JPEG_QUALITY} if self.disk_format == "JPEG" else {}
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        to_write.save(tmp, format=self.disk_format, **save_kwargs)
        tmp.replace(path)

    def evict_memory(self, key: str | None = None) -> None:
        """Drop one key (or every key) from the memory tier only."""
        with self._lock:
            if key is None:
                self._memory.clear()
            else:
                self._memory.pop(key, None)

    def clear(self) -> None:
        """Drop all memory entries and recreate the disk directory empty."""
        with self._lock:
            self._memory.clear()
        shutil.rmtree(self.cache_dir, ignore_errors=True)
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Image cache cleared")

    @property
    def memory_count(self) -> int:
        with self._lock:
            return len(self._memory)

    def disk_usage(self) -> tuple[int, int]:
        """Return (file count, total bytes) of the disk tier."""
        files = [p for p in self.cache_dir.iterdir() if p.is_file()]
        return len(files), sum(p.stat().st_size for p in files)
