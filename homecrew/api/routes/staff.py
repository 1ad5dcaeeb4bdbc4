"""API routes for staff members and their documents.

Endpoints:
- GET /api/staff/{staff_id} - Get staff member
- PATCH /api/staff/{staff_id} - Update fields and remove documents
- DELETE /api/staff/{staff_id} - Delete staff member and documents
- POST /api/staff/{staff_id}/deactivate - Soft delete (inactive, leaving date set)
- GET /api/staff/{staff_id}/documents - List documents sorted by name
- POST /api/staff/{staff_id}/documents - Upload documents (multipart)
- DELETE /api/staff/{staff_id}/documents - Delete documents (?ids=...)
- GET /api/staff/{staff_id}/documents/consistency - Compare forward list with documents
- POST /api/staff/{staff_id}/documents/consistency - Rewrite forward list from documents
- GET /api/staff/{staff_id}/documents/{document_id}/image - Decoded image as PNG
"""

import io

from fastapi import APIRouter, Depends, File, Query, Response, UploadFile, status

from homecrew.api.dependencies import (
    get_document_sync,
    get_staff_service,
    get_staging_area,
    get_thumbnail_loader,
)
from homecrew.api.schemas.staff import (
    ConsistencyResponse,
    DeletedDocumentsResponse,
    DocumentBatchResponse,
    StaffDocumentResponse,
    StaffResponse,
    StaffUpdate,
)
from homecrew.api.uploads import staged_uploads
from homecrew.core.exceptions import NotFoundError, ValidationError
from homecrew.models.records import RecordType
from homecrew.services.document_sync import DocumentSyncService
from homecrew.services.staff_service import StaffService
from homecrew.services.thumbnail_loader import DocumentThumbnailLoader
from homecrew.store.staging import StagingArea

router = APIRouter(prefix="/api/staff", tags=["staff"])


@router.get("/{staff_id}", response_model=StaffResponse)
async def get_staff(
    staff_id: str,
    service: StaffService = Depends(get_staff_service),
) -> StaffResponse:
    return StaffResponse.from_entity(await service.get_staff(staff_id))


@router.patch("/{staff_id}", response_model=StaffResponse)
async def update_staff(
    staff_id: str,
    body: StaffUpdate,
    service: StaffService = Depends(get_staff_service),
) -> StaffResponse:
    staff = await service.update_staff(
        staff_id, body.changes(), remove_document_ids=body.remove_document_ids
    )
    return StaffResponse.from_entity(staff)


@router.delete("/{staff_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_staff(
    staff_id: str,
    service: StaffService = Depends(get_staff_service),
) -> Response:
    await service.delete_staff(staff_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/{staff_id}/deactivate", response_model=StaffResponse)
async def deactivate_staff(
    staff_id: str,
    service: StaffService = Depends(get_staff_service),
) -> StaffResponse:
    return StaffResponse.from_entity(await service.deactivate_staff(staff_id))


# =============================================================================
# Documents
# =============================================================================


@router.get("/{staff_id}/documents", response_model=list[StaffDocumentResponse])
async def list_documents(
    staff_id: str,
    service: StaffService = Depends(get_staff_service),
    documents: DocumentSyncService = Depends(get_document_sync),
) -> list[StaffDocumentResponse]:
    await service.get_staff(staff_id)
    return [StaffDocumentResponse.from_entity(d) for d in await documents.fetch_documents(staff_id)]


@router.post(
    "/{staff_id}/documents",
    response_model=DocumentBatchResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_documents(
    staff_id: str,
    files: list[UploadFile] = File(...),
    documents: DocumentSyncService = Depends(get_document_sync),
    staging: StagingArea = Depends(get_staging_area),
) -> DocumentBatchResponse:
    async with staged_uploads(staging, files) as items:
        result = await documents.save_documents(items, staff_id)
    return DocumentBatchResponse.from_result(result)


@router.delete("/{staff_id}/documents", response_model=DeletedDocumentsResponse)
async def delete_documents(
    staff_id: str,
    ids: list[str] = Query(..., description="Document ids to delete"),
    service: StaffService = Depends(get_staff_service),
    documents: DocumentSyncService = Depends(get_document_sync),
) -> DeletedDocumentsResponse:
    await service.get_staff(staff_id)
    owned = set(await documents.document_ids(staff_id))
    foreign = [doc_id for doc_id in ids if doc_id not in owned]
    if foreign:
        raise ValidationError(
            f"Documents do not belong to staff {staff_id}: {', '.join(foreign)}", field="ids"
        )
    deleted = await documents.delete_documents(ids, staff_id=staff_id)
    return DeletedDocumentsResponse(deleted_ids=deleted)


@router.get("/{staff_id}/documents/consistency", response_model=ConsistencyResponse)
async def check_consistency(
    staff_id: str,
    documents: DocumentSyncService = Depends(get_document_sync),
) -> ConsistencyResponse:
    return ConsistencyResponse.from_report(await documents.check_consistency(staff_id))


@router.post("/{staff_id}/documents/consistency", response_model=ConsistencyResponse)
async def repair_consistency(
    staff_id: str,
    documents: DocumentSyncService = Depends(get_document_sync),
) -> ConsistencyResponse:
    return ConsistencyResponse.from_report(await documents.repair_references(staff_id))


@router.get(
    "/{staff_id}/documents/{document_id}/image",
    response_class=Response,
    responses={200: {"content": {"image/png": {}}}},
)
async def get_document_image(
    staff_id: str,
    document_id: str,
    documents: DocumentSyncService = Depends(get_document_sync),
    loader: DocumentThumbnailLoader = Depends(get_thumbnail_loader),
) -> Response:
    document = next(
        (d for d in await documents.fetch_documents(staff_id) if d.id == document_id), None
    )
    if document is None:
        raise NotFoundError(RecordType.STAFF_DOCUMENT.value, document_id)

    image = await loader.load(document)
    if image is None:
        raise NotFoundError(
            RecordType.STAFF_DOCUMENT.value,
            document_id,
            message=f"Document '{document_id}' has no image",
        )

    buffer = io.BytesIO()
    image.save(buffer, format="PNG")
    return Response(content=buffer.getvalue(), media_type="image/png")
