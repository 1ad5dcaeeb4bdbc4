"""Unit tests for the two-tier image cache and the document thumbnail loader."""

from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image

from homecrew.models import StaffDocument
from homecrew.services.image_cache import ImageCache
from homecrew.services.thumbnail_loader import DocumentThumbnailLoader

pytestmark = pytest.mark.unit


def _image(color: tuple[int, int, int] = (10, 120, 240)) -> Image.Image:
    return Image.new("RGB", (8, 6), color)


@pytest.fixture
def cache(tmp_path: Path) -> ImageCache:
    return ImageCache(tmp_path / "cache", capacity=2)


class TestImageCache:
    def test_miss_on_empty_cache(self, cache: ImageCache) -> None:
        assert cache.get("nope") is None

    def test_memory_hit_returns_same_object(self, cache: ImageCache) -> None:
        image = _image()
        cache.set("a", image)
        assert cache.get("a") is image

    def test_disk_fallback_after_memory_eviction(self, cache: ImageCache) -> None:
        cache.set("a", _image((1, 2, 3)))
        cache.evict_memory("a")
        assert cache.memory_count == 0

        restored = cache.get("a")

        assert restored is not None
        assert restored.getpixel((0, 0)) == (1, 2, 3)
        assert cache.memory_count == 1

    def test_capacity_evicts_least_recently_used(self, cache: ImageCache) -> None:
        cache.set("a", _image())
        cache.set("b", _image())
        cache.get("a")
        cache.set("c", _image())

        assert cache.memory_count == 2
        # "b" left memory but is still on disk
        cache.evict_memory("a")
        cache.evict_memory("c")
        assert cache.get("b") is not None

    def test_last_write_wins(self, cache: ImageCache) -> None:
        cache.set("a", _image((1, 1, 1)))
        cache.set("a", _image((9, 9, 9)))
        cache.evict_memory()

        restored = cache.get("a")

        assert restored is not None
        assert restored.getpixel((0, 0)) == (9, 9, 9)

    def test_clear_removes_both_tiers(self, cache: ImageCache) -> None:
        cache.set("a", _image())
        cache.clear()

        assert cache.get("a") is None
        assert cache.disk_usage() == (0, 0)

    def test_disk_tier_grows_without_eviction(self, cache: ImageCache) -> None:
        for key in "abcde":
            cache.set(key, _image())

        count, size = cache.disk_usage()

        assert count == 5
        assert size > 0
        assert cache.memory_count == 2

    def test_keys_are_hashed_on_disk(self, cache: ImageCache) -> None:
        cache.set("../../etc/passwd", _image())
        files = list(cache.cache_dir.iterdir())
        assert len(files) == 1
        assert files[0].parent == cache.cache_dir
        assert files[0].suffix == ".png"

    def test_corrupt_disk_entry_is_a_miss(self, cache: ImageCache) -> None:
        cache.set("a", _image())
        cache.evict_memory()
        next(cache.cache_dir.iterdir()).write_bytes(b"not an image")

        assert cache.get("a") is None

    def test_jpeg_disk_format(self, tmp_path: Path) -> None:
        cache = ImageCache(tmp_path / "jpeg", capacity=1, disk_format="JPEG")
        cache.set("a", Image.new("RGBA", (4, 4), (255, 0, 0, 128)))
        cache.evict_memory()

        restored = cache.get("a")

        assert restored is not None
        assert restored.mode == "RGB"
        assert next(cache.cache_dir.iterdir()).suffix == ".jpg"

    def test_capacity_must_be_positive(self, tmp_path: Path) -> None:
        with pytest.raises(ValueError):
            ImageCache(tmp_path, capacity=0)


class TestDocumentThumbnailLoader:
    @pytest.mark.asyncio
    async def test_loads_and_caches_image(self, cache: ImageCache, make_image) -> None:
        loader = DocumentThumbnailLoader(cache)
        document = StaffDocument(id="d1", staff_id="s1", file_path=make_image("front.png"))

        image = await loader.load(document)

        assert image is not None
        assert image.size == (16, 12)
        assert cache.get("d1") is not None

    @pytest.mark.asyncio
    async def test_cached_image_served_after_file_removed(
        self, cache: ImageCache, make_image
    ) -> None:
        loader = DocumentThumbnailLoader(cache)
        path = make_image("front.png")
        document = StaffDocument(id="d1", staff_id="s1", file_path=path)
        await loader.load(document)
        path.unlink()

        assert await loader.load(document) is not None

    @pytest.mark.asyncio
    async def test_pdf_is_not_loaded(self, cache: ImageCache, make_file) -> None:
        loader = DocumentThumbnailLoader(cache)
        document = StaffDocument(id="d1", staff_id="s1", file_path=make_file("a.pdf"))

        assert await loader.load(document) is None

    @pytest.mark.asyncio
    async def test_undecodable_image(self, cache: ImageCache, make_file) -> None:
        loader = DocumentThumbnailLoader(cache)
        document = StaffDocument(id="d1", staff_id="s1", file_path=make_file("a.jpg", b"junk"))

        assert await loader.load(document) is None
        assert cache.disk_usage() == (0, 0)

    @pytest.mark.asyncio
    async def test_document_without_file(self, cache: ImageCache) -> None:
        loader = DocumentThumbnailLoader(cache)
        assert await loader.load(StaffDocument(id="d1", staff_id="s1")) is None
