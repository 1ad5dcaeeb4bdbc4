"""Prometheus metrics definitions and utilities for observability.

Metric Naming Conventions:
- All metrics are prefixed with 'homecrew_'
- Counters end with '_total'

Usage:
    from homecrew.core.metrics import record_cache_lookup, track_store_operation

    with track_store_operation("fetch"):
        ...

    record_cache_lookup("memory", hit=True)
"""

from collections.abc import Iterator
from contextlib import contextmanager

from prometheus_client import REGISTRY, Counter, generate_latest

from homecrew.core.logging import get_logger

logger = get_logger(__name__)

_registry = REGISTRY

# =============================================================================
# Record Store
# =============================================================================

STORE_OPERATIONS_TOTAL = Counter(
    "homecrew_store_operations_total",
    "Record store operations by operation and outcome",
    labelnames=["operation", "outcome"],
    registry=_registry,
)

# =============================================================================
# Image Cache
# =============================================================================

IMAGE_CACHE_LOOKUPS_TOTAL = Counter(
    "homecrew_image_cache_lookups_total",
    "Image cache lookups by tier and result",
    labelnames=["tier", "result"],
    registry=_registry,
)

# =============================================================================
# Document Batches
# =============================================================================

DOCUMENT_BATCH_ITEMS_TOTAL = Counter(
    "homecrew_document_batch_items_total",
    "Document batch items by operation and outcome",
    labelnames=["operation", "outcome"],
    registry=_registry,
)


@contextmanager
def track_store_operation(operation: str) -> Iterator[None]:
    """Count a store operation as success or error depending on how the block exits."""
    try:
        yield
    except Exception:
        STORE_OPERATIONS_TOTAL.labels(operation=operation, outcome="error").inc()
        raise
    STORE_OPERATIONS_TOTAL.labels(operation=operation, outcome="success").inc()


def record_cache_lookup(tier: str, *, hit: bool) -> None:
    IMAGE_CACHE_LOOKUPS_TOTAL.labels(tier=tier, result="hit" if hit else "miss").inc()


def record_batch_items(operation: str, *, succeeded: int, failed: int) -> None:
    if succeeded:
        DOCUMENT_BATCH_ITEMS_TOTAL.labels(operation=operation, outcome="success").inc(succeeded)
    if failed:
        DOCUMENT_BATCH_ITEMS_TOTAL.labels(operation=operation, outcome="failure").inc(failed)


def get_metrics_response() -> bytes:
    """Render all registered metrics in Prometheus text format."""
    return generate_latest(_registry)
