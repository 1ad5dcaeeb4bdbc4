"""FastAPI dependencies resolving services from the application container."""

from fastapi import Depends, Request

from homecrew.core.container import Container
from homecrew.services.auth_service import AuthService
from homecrew.services.cascade_delete import CascadeDeleteService
from homecrew.services.document_sync import DocumentSyncService
from homecrew.services.household_service import HouseholdService
from homecrew.services.staff_service import StaffService
from homecrew.services.thumbnail_loader import DocumentThumbnailLoader
from homecrew.store.staging import StagingArea


def get_container(request: Request) -> Container:
    container: Container = request.app.state.container
    return container


async def get_household_service(
    container: Container = Depends(get_container),
) -> HouseholdService:
    service: HouseholdService = await container.get_async("household_service")
    return service


async def get_staff_service(container: Container = Depends(get_container)) -> StaffService:
    service: StaffService = await container.get_async("staff_service")
    return service


async def get_document_sync(
    container: Container = Depends(get_container),
) -> DocumentSyncService:
    service: DocumentSyncService = await container.get_async("document_sync")
    return service


async def get_cascade_delete(
    container: Container = Depends(get_container),
) -> CascadeDeleteService:
    service: CascadeDeleteService = await container.get_async("cascade_delete")
    return service


def get_thumbnail_loader(
    container: Container = Depends(get_container),
) -> DocumentThumbnailLoader:
    loader: DocumentThumbnailLoader = container.get("thumbnail_loader")
    return loader


def get_staging_area(container: Container = Depends(get_container)) -> StagingArea:
    staging: StagingArea = container.get("staging_area")
    return staging


def get_auth_service(container: Container = Depends(get_container)) -> AuthService:
    service: AuthService = container.get("auth_service")
    return service
