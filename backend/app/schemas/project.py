"""Project request/response schemas."""

import uuid
from datetime import datetime

from pydantic import BaseModel, Field


class ProjectCreate(BaseModel):
    title: str = Field(..., min_length=3, max_length=50)
    description: str = Field("", max_length=250)


class ProjectUpdate(BaseModel):
    title: str | None = Field(None, min_length=3, max_length=50)
    description: str | None = Field(None, max_length=250)


class ProjectResponse(BaseModel):
    id: uuid.UUID
    title: str
    description: str
    owner_id: uuid.UUID
    created_at: datetime

    model_config = {"from_attributes": True}
