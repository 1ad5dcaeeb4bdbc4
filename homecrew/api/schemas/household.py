"""Pydantic schemas for household API endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class HouseholdCreate(BaseModel):
    """Schema for creating a household."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "name": "Smith Residence",
                "address": "12 Oak St",
                "notes": "Gate code with the security desk",
            }
        },
    )

    name: str = Field(..., min_length=1, max_length=200, description="Household display name")
    address: str = Field(..., min_length=1, max_length=500, description="Postal address")
    notes: str | None = Field(default=None, max_length=2000, description="Free-form notes")


class HouseholdUpdate(BaseModel):
    """Schema for updating a household.

    Only the fields present in the request body change. Sending
    ``"notes": null`` clears the notes.
    """

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, max_length=200)
    address: str | None = Field(default=None, max_length=500)
    notes: str | None = Field(default=None, max_length=2000)


class HouseholdResponse(BaseModel):
    """Schema for household response."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(..., description="Record id")
    name: str
    address: str
    notes: str | None = None


class CascadeFailureResponse(BaseModel):
    item: str
    code: str
    message: str


class CascadeDeleteResponse(BaseModel):
    """Result of deleting a household with everything it owns."""

    household_id: str
    deleted_ids: list[str]
    remaining_ids: list[str]
    failures: list[CascadeFailureResponse]
    complete: bool
