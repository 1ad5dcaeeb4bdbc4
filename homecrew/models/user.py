"""Signed-in user profile."""

from pydantic import BaseModel, Field


class UserProfile(BaseModel):
    """Profile returned by the identity provider and kept in the secret store."""

    user_id: str = Field(..., min_length=1, description="Stable identity provider user id")
    full_name: str | None = Field(default=None, description="Given name, when shared")
    email: str | None = Field(default=None, description="Email address, when shared")
