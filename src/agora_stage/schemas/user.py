"""User-related Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class UserResponse(BaseModel):
    """Public profile including reputation."""

    id: int
    username: str
    display_name: str
    bio: str | None
    reputation: int
    joined_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ReputationEventResponse(BaseModel):
    """One entry of a user's reputation history."""

    id: int
    delta: int
    reason: str
    target_kind: str | None
    target_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
