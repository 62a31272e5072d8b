"""Request/response schemas for role assignments."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class AuthRolesDto(BaseModel):
    """Incoming role assignment (create and update share the same shape)."""

    auth_id: int = Field(..., ge=1, description="Credential id")
    role_id: int = Field(..., ge=1, description="Role id")
    state_id: int = Field(..., ge=1, description="Lifecycle state id")


class AuthRolesResponse(BaseModel):
    """Role assignment with denormalized display fields for callers."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    auth_id: int | None = None
    auth_email: str | None = None
    auth_username: str | None = None
    role_id: int | None = None
    role_name: str | None = None
    state_id: int | None = None
    state_name: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
