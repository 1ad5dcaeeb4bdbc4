"""Unit tests for Prometheus metric helpers."""

from __future__ import annotations

import pytest
from prometheus_client import REGISTRY

from homecrew.core.metrics import (
    get_metrics_response,
    record_batch_items,
    record_cache_lookup,
    track_store_operation,
)

pytestmark = pytest.mark.unit


def _sample(name: str, **labels: str) -> float:
    return REGISTRY.get_sample_value(name, labels) or 0.0


class TestMetrics:
    def test_track_store_operation_counts_outcome(self) -> None:
        before_ok = _sample("homecrew_store_operations_total", operation="fetch", outcome="success")
        before_err = _sample("homecrew_store_operations_total", operation="fetch", outcome="error")

        with track_store_operation("fetch"):
            pass
        with pytest.raises(OSError), track_store_operation("fetch"):
            raise OSError("disk")

        assert _sample(
            "homecrew_store_operations_total", operation="fetch", outcome="success"
        ) == before_ok + 1
        assert _sample(
            "homecrew_store_operations_total", operation="fetch", outcome="error"
        ) == before_err + 1

    def test_cache_lookup(self) -> None:
        before = _sample("homecrew_image_cache_lookups_total", tier="disk", result="miss")
        record_cache_lookup("disk", hit=False)
        assert _sample("homecrew_image_cache_lookups_total", tier="disk", result="miss") == (
            before + 1
        )

    def test_batch_items(self) -> None:
        before = _sample(
            "homecrew_document_batch_items_total", operation="upload", outcome="failure"
        )
        record_batch_items("upload", succeeded=2, failed=3)
        assert _sample(
            "homecrew_document_batch_items_total", operation="upload", outcome="failure"
        ) == before + 3

    def test_metrics_response(self) -> None:
        body = get_metrics_response().decode()
        assert "homecrew_store_operations_total" in body
        assert "homecrew_image_cache_lookups_total" in body
