"""Health and metrics endpoints."""

from fastapi import APIRouter, Depends, Response

from homecrew.api.dependencies import get_container
from homecrew.core.container import Container
from homecrew.core.metrics import get_metrics_response

router = APIRouter(tags=["system"])


@router.get("/health")
async def health(container: Container = Depends(get_container)) -> dict[str, str]:
    settings = container.get("settings")
    return {
        "status": "healthy",
        "version": settings.app_version,
        "record_store": settings.record_store_backend,
    }


@router.get("/api/metrics", response_class=Response)
async def metrics() -> Response:
    """Prometheus metrics in text exposition format."""
    return Response(
        content=get_metrics_response(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
