"""API routes for households and their staff.

Endpoints:
- GET /api/households - List households sorted by name
- POST /api/households - Create household
- GET /api/households/{household_id} - Get household
- PATCH /api/households/{household_id} - Update household fields
- DELETE /api/households/{household_id} - Delete household (?cascade=true for staff and documents)
- GET /api/households/{household_id}/staff - List staff (?include_inactive=true)
- POST /api/households/{household_id}/staff - Create staff with documents (multipart)
"""

from fastapi import APIRouter, Depends, File, Form, Query, Response, UploadFile, status
from pydantic import ValidationError as PydanticValidationError

from homecrew.api.dependencies import (
    get_cascade_delete,
    get_household_service,
    get_staff_service,
    get_staging_area,
)
from homecrew.api.schemas.household import (
    CascadeDeleteResponse,
    HouseholdCreate,
    HouseholdResponse,
    HouseholdUpdate,
)
from homecrew.api.schemas.staff import StaffCreate, StaffResponse
from homecrew.api.uploads import staged_uploads
from homecrew.core.exceptions import ValidationError
from homecrew.services.cascade_delete import CascadeDeleteService
from homecrew.services.household_service import HouseholdService
from homecrew.services.staff_service import StaffService
from homecrew.store.staging import StagingArea

router = APIRouter(prefix="/api/households", tags=["households"])


@router.get("", response_model=list[HouseholdResponse])
async def list_households(
    service: HouseholdService = Depends(get_household_service),
) -> list[HouseholdResponse]:
    households = await service.list_households()
    return [HouseholdResponse.model_validate(h) for h in households]


@router.post("", response_model=HouseholdResponse, status_code=status.HTTP_201_CREATED)
async def create_household(
    body: HouseholdCreate,
    service: HouseholdService = Depends(get_household_service),
) -> HouseholdResponse:
    household = await service.create_household(body.name, body.address, body.notes)
    return HouseholdResponse.model_validate(household)


@router.get("/{household_id}", response_model=HouseholdResponse)
async def get_household(
    household_id: str,
    service: HouseholdService = Depends(get_household_service),
) -> HouseholdResponse:
    return HouseholdResponse.model_validate(await service.get_household(household_id))


@router.patch("/{household_id}", response_model=HouseholdResponse)
async def update_household(
    household_id: str,
    body: HouseholdUpdate,
    service: HouseholdService = Depends(get_household_service),
) -> HouseholdResponse:
    household = await service.update_household(household_id, body.model_dump(exclude_unset=True))
    return HouseholdResponse.model_validate(household)


@router.delete(
    "/{household_id}",
    response_model=None,
    responses={200: {"model": CascadeDeleteResponse}, 204: {"description": "Household deleted"}},
)
async def delete_household(
    household_id: str,
    cascade: bool = Query(default=False, description="Also delete staff and their documents"),
    service: HouseholdService = Depends(get_household_service),
    cascade_service: CascadeDeleteService = Depends(get_cascade_delete),
) -> Response | CascadeDeleteResponse:
    """Delete a household.

    Without ``cascade`` only the household record is removed and its staff
    are left in place. With ``cascade`` the result lists what was deleted and
    what remains after any partial failure.
    """
    if cascade:
        result = await cascade_service.delete_household(household_id)
        return CascadeDeleteResponse.model_validate(result.to_dict())
    await service.delete_household(household_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/{household_id}/staff", response_model=list[StaffResponse])
async def list_staff(
    household_id: str,
    include_inactive: bool = Query(default=False),
    household_service: HouseholdService = Depends(get_household_service),
    service: StaffService = Depends(get_staff_service),
) -> list[StaffResponse]:
    await household_service.get_household(household_id)
    staff = await service.list_staff(household_id, include_inactive=include_inactive)
    return [StaffResponse.from_entity(s) for s in staff]


@router.post(
    "/{household_id}/staff",
    response_model=StaffResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_staff(
    household_id: str,
    staff: str = Form(..., description="StaffCreate fields as a JSON object"),
    files: list[UploadFile] = File(..., description="Identity documents"),
    service: StaffService = Depends(get_staff_service),
    staging: StagingArea = Depends(get_staging_area),
) -> StaffResponse:
    """Create a staff member together with at least one identity document."""
    try:
        body = StaffCreate.model_validate_json(staff)
    except PydanticValidationError as e:
        messages = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ValidationError(f"Invalid staff fields: {messages}", field="staff") from e

    async with staged_uploads(staging, files) as items:
        created = await service.create_staff(household_id, body.to_draft(), items)
    return StaffResponse.from_entity(created)
