"""Community-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommunityCreate(BaseModel):
    """Schema for creating a new community."""

    slug: str = Field(..., min_length=1, max_length=64, pattern=r"^[a-z0-9-]+$")
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""


class CommunityResponse(BaseModel):
    """Schema for community information returned by the API."""

    id: int
    slug: str
    name: str
    description: str
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
