"""Pydantic schemas for staff and staff document API endpoints."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from homecrew.models.staff import DEFAULT_CURRENCY_CODE, DEFAULT_LEAVES_ALLOCATED, Staff
from homecrew.models.staff_document import StaffDocument
from homecrew.services.document_sync import DocumentBatchResult, ReferenceConsistencyReport
from homecrew.services.staff_service import StaffDraft

_CURRENCY_PATTERN = r"^[A-Za-z]{3}$"


class StaffCreate(BaseModel):
    """Staff fields sent as the ``staff`` part of a multipart create request."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "full_legal_name": "Maria Cruz",
                "starting_date": "2024-01-15T00:00:00Z",
                "monthly_salary": "450.00",
                "currency_code": "USD",
                "leaves_allocated": 15,
                "agreed_duties": "Cooking, cleaning",
            }
        },
    )

    full_legal_name: str = Field(..., min_length=1, max_length=200)
    commonly_known_as: str | None = Field(default=None, max_length=100)
    starting_date: datetime
    leaving_date: datetime | None = None
    monthly_salary: Decimal = Field(..., gt=0)
    currency_code: str = Field(default=DEFAULT_CURRENCY_CODE, pattern=_CURRENCY_PATTERN)
    leaves_allocated: int = Field(default=DEFAULT_LEAVES_ALLOCATED, ge=0)
    agreed_duties: str = Field(..., min_length=1, max_length=2000)
    is_active: bool = True

    def to_draft(self) -> StaffDraft:
        return StaffDraft(**self.model_dump())


class StaffUpdate(BaseModel):
    """Partial staff update.

    Only fields present in the body change. ``null`` clears
    ``commonly_known_as`` and ``leaving_date``. The household cannot change.
    """

    model_config = ConfigDict(extra="forbid")

    full_legal_name: str | None = Field(default=None, max_length=200)
    commonly_known_as: str | None = Field(default=None, max_length=100)
    starting_date: datetime | None = None
    leaving_date: datetime | None = None
    monthly_salary: Decimal | None = None
    currency_code: str | None = None
    leaves_allocated: int | None = None
    agreed_duties: str | None = Field(default=None, max_length=2000)
    is_active: bool | None = None
    remove_document_ids: list[str] = Field(
        default_factory=list, description="Documents to delete after the fields are saved"
    )

    def changes(self) -> dict[str, object]:
        return self.model_dump(exclude_unset=True, exclude={"remove_document_ids"})


class StaffResponse(BaseModel):
    """Schema for staff response, including derived display fields."""

    id: str
    household_id: str
    full_legal_name: str
    commonly_known_as: str | None
    display_name: str
    starting_date: datetime
    leaving_date: datetime | None
    monthly_salary: Decimal
    currency_code: str
    formatted_salary: str
    leaves_allocated: int
    agreed_duties: str
    is_active: bool
    employment_status: str
    employment_duration: str
    document_ids: list[str]

    @classmethod
    def from_entity(cls, staff: Staff) -> StaffResponse:
        return cls(
            id=staff.id or "",
            household_id=staff.household_id,
            full_legal_name=staff.full_legal_name,
            commonly_known_as=staff.commonly_known_as,
            display_name=staff.display_name,
            starting_date=staff.starting_date,
            leaving_date=staff.leaving_date,
            monthly_salary=staff.monthly_salary,
            currency_code=staff.currency_code,
            formatted_salary=staff.formatted_salary,
            leaves_allocated=staff.leaves_allocated,
            agreed_duties=staff.agreed_duties,
            is_active=staff.is_active,
            employment_status=staff.employment_status,
            employment_duration=staff.employment_duration,
            document_ids=list(staff.document_ids),
        )


class StaffDocumentResponse(BaseModel):
    id: str
    staff_id: str
    name: str
    file_type: str
    is_image: bool
    is_pdf: bool
    has_file: bool

    @classmethod
    def from_entity(cls, document: StaffDocument) -> StaffDocumentResponse:
        return cls(
            id=document.id,
            staff_id=document.staff_id,
            name=document.name,
            file_type=document.file_type,
            is_image=document.is_image,
            is_pdf=document.is_pdf,
            has_file=document.file_path is not None,
        )


class DocumentUploadResponse(BaseModel):
    name: str
    state: str
    record_id: str | None = None


class DocumentBatchResponse(BaseModel):
    created_ids: list[str]
    uploads: list[DocumentUploadResponse]

    @classmethod
    def from_result(cls, result: DocumentBatchResult) -> DocumentBatchResponse:
        return cls(
            created_ids=result.created_ids,
            uploads=[
                DocumentUploadResponse(
                    name=u.item.name, state=u.state.value, record_id=u.record_id
                )
                for u in result.uploads
            ],
        )


class DeletedDocumentsResponse(BaseModel):
    deleted_ids: list[str]


class ConsistencyResponse(BaseModel):
    staff_id: str
    forward_ids: list[str]
    reverse_ids: list[str]
    missing_from_forward: list[str]
    dangling_forward: list[str]
    is_consistent: bool

    @classmethod
    def from_report(cls, report: ReferenceConsistencyReport) -> ConsistencyResponse:
        return cls(
            staff_id=report.staff_id,
            forward_ids=list(report.forward_ids),
            reverse_ids=list(report.reverse_ids),
            missing_from_forward=report.missing_from_forward,
            dangling_forward=report.dangling_forward,
            is_consistent=report.is_consistent,
        )
