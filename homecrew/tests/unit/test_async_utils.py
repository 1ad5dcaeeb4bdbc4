"""Unit tests for async helpers."""

from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from homecrew.core.async_utils import async_open_image, gather_partitioned

pytestmark = pytest.mark.unit


class TestGatherPartitioned:
    @pytest.mark.asyncio
    async def test_empty_input(self) -> None:
        async def never(_: int) -> int:
            raise AssertionError("should not be called")

        outcome = await gather_partitioned([], never)

        assert outcome.succeeded == []
        assert outcome.all_succeeded

    @pytest.mark.asyncio
    async def test_failures_do_not_cancel_others(self) -> None:
        async def work(n: int) -> int:
            # Later items finish first
            await asyncio.sleep(0.001 * (4 - n))
            if n == 2:
                raise ValueError("two")
            return n * 10

        outcome = await gather_partitioned([1, 2, 3], work)

        assert outcome.succeeded == [(1, 10), (3, 30)]
        assert [(item, str(error)) for item, error in outcome.failed] == [(2, "two")]
        assert not outcome.all_succeeded

    @pytest.mark.asyncio
    async def test_base_exception_propagates(self) -> None:
        async def work(n: int) -> int:
            if n == 1:
                raise KeyboardInterrupt
            return n

        with pytest.raises(KeyboardInterrupt):
            await gather_partitioned([0, 1], work)


class TestAsyncOpenImage:
    @pytest.mark.asyncio
    async def test_opens_image(self, make_image) -> None:
        image = await async_open_image(make_image())
        assert image is not None
        assert image.size == (16, 12)

    @pytest.mark.asyncio
    async def test_missing_or_invalid(self, tmp_path: Path, make_file) -> None:
        assert await async_open_image(tmp_path / "gone.png") is None
        assert await async_open_image(make_file("fake.png", b"not an image")) is None
