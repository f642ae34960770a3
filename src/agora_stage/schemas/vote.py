"""Vote-related Pydantic schemas."""

from pydantic import BaseModel, Field

from agora_stage.models import TargetKind, VoteType
from agora_stage.services.voting import VoteAction, VoteState


class VoteCreate(BaseModel):
    """Schema for submitting a vote action."""

    target_kind: TargetKind = Field(..., description="question or answer")
    target_id: int = Field(..., ge=1)
    action: VoteAction = Field(..., description="upvote or downvote")
    was_upvoted: bool = Field(False, description="Client's last known upvote state")
    was_downvoted: bool = Field(False, description="Client's last known downvote state")


class VoteResult(BaseModel):
    """Outcome of a vote action."""

    state: VoteState
    applied: bool
    voter_delta: int
    author_delta: int


class VoteStatusResponse(BaseModel):
    """Current vote of the caller on one target."""

    target_kind: TargetKind
    target_id: int
    type: VoteType | None


class VoteStatusBatchRequest(BaseModel):
    """Batch vote-status lookup for rendering lists."""

    target_kind: TargetKind
    target_ids: list[int] = Field(..., max_length=200)


class VoteStatusBatchResponse(BaseModel):
    """Vote per requested target id; targets without a vote map to null."""

    target_kind: TargetKind
    statuses: dict[int, VoteType | None]
