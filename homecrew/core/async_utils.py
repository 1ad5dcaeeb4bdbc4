"""Async utility functions for fan-out batches and non-blocking I/O.

- gather_partitioned: run one coroutine per item, wait for all, split the
  outcomes into successes and failures
- async_open_image: Non-blocking PIL Image.open

Usage:
    from homecrew.core.async_utils import gather_partitioned

    outcome = await gather_partitioned(items, upload_one)
    for item, record_id in outcome.succeeded:
        ...
    for item, error in outcome.failed:
        ...
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Generic, TypeVar

from homecrew.core.logging import get_logger

if TYPE_CHECKING:
    from PIL import Image

logger = get_logger(__name__)

ItemT = TypeVar("ItemT")
ResultT = TypeVar("ResultT")


@dataclass(slots=True)
class PartitionedResults(Generic[ItemT, ResultT]):
    """Outcome of a fan-out batch, both lists in input order."""

    succeeded: list[tuple[ItemT, ResultT]] = field(default_factory=list)
    failed: list[tuple[ItemT, Exception]] = field(default_factory=list)

    @property
    def all_succeeded(self) -> bool:
        return not self.failed


async def gather_partitioned(  # noqa: UP047
    items: Iterable[ItemT],
    func: Callable[[ItemT], Awaitable[ResultT]],
) -> PartitionedResults[ItemT, ResultT]:
    """Run ``func`` once per item concurrently and wait for every call.

    Calls are fail-independent: one failure never cancels the others.
    Each call returns its own result, so callers never share a mutable
    accumulator across tasks.

    Raises:
        BaseException: Cancellation and other non-``Exception`` errors
            propagate unchanged
    """
    items = list(items)
    outcome: PartitionedResults[ItemT, ResultT] = PartitionedResults()
    if not items:
        return outcome

    results = await asyncio.gather(*(func(item) for item in items), return_exceptions=True)

    for item, result in zip(items, results, strict=True):
        if isinstance(result, Exception):
            outcome.failed.append((item, result))
        elif isinstance(result, BaseException):
            raise result
        else:
            outcome.succeeded.append((item, result))
    return outcome


async def async_open_image(path: str | Path) -> Image.Image | None:
    """Open and fully decode an image file without blocking the event loop.

    Returns:
        PIL Image object if successful, None if the file doesn't exist
        or is not a valid image.
    """
    from PIL import Image, UnidentifiedImageError

    def _open_image() -> Image.Image | None:
        try:
            with Image.open(path) as img:
                img.load()
                return img.copy()
        except FileNotFoundError:
            logger.debug(f"Image file not found: {Path(path).name}")
            return None
        except (UnidentifiedImageError, OSError) as e:
            logger.debug(f"Failed to open image {Path(path).name}: {e}")
            return None

    return await asyncio.to_thread(_open_image)
