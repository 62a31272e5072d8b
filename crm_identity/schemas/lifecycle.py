"""Response schema for lifecycle states."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class LifecycleStateResponse(BaseModel):
    """Lifecycle state reference row."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
