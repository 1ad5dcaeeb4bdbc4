"""Pydantic schemas for session endpoints."""

from pydantic import BaseModel, ConfigDict, Field


class SessionCreate(BaseModel):
    """Identity returned to the client by the platform identity provider."""

    model_config = ConfigDict(extra="forbid")

    user_id: str = Field(..., min_length=1, max_length=255)
    full_name: str | None = Field(default=None, max_length=200)
    email: str | None = Field(default=None, max_length=320)


class SessionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str | None = None
    email: str | None = None
