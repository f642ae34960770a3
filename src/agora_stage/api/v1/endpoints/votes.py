"""Vote-related endpoints for the Agora API."""

from fastapi import APIRouter, Query, status

from agora_stage.models import TargetKind
from agora_stage.schemas.vote import (
    VoteCreate,
    VoteResult,
    VoteStatusBatchRequest,
    VoteStatusBatchResponse,
    VoteStatusResponse,
)
from agora_stage.services.voting import (
    VoteRequest,
    cast_vote,
    get_vote_status,
    get_vote_statuses,
)

from ..dependencies import ActorIdDep, SessionDep

router = APIRouter(prefix="/votes", tags=["votes"])


@router.post("/", response_model=VoteResult, status_code=status.HTTP_200_OK)
async def submit_vote(
    vote_data: VoteCreate,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> VoteResult:
    """Apply an upvote/downvote action on a question or answer."""
    outcome = cast_vote(
        db,
        VoteRequest(
            actor_id=actor_id,
            target_kind=vote_data.target_kind,
            target_id=vote_data.target_id,
            action=vote_data.action,
            was_upvoted=vote_data.was_upvoted,
            was_downvoted=vote_data.was_downvoted,
        ),
    )
    db.commit()
    return VoteResult(
        state=outcome.state,
        applied=outcome.applied,
        voter_delta=outcome.transition.voter_delta,
        author_delta=outcome.transition.author_delta,
    )


@router.get("/status", response_model=VoteStatusResponse)
async def read_vote_status(
    actor_id: ActorIdDep,
    db: SessionDep,
    target_kind: TargetKind = Query(..., description="question or answer"),
    target_id: int = Query(..., ge=1),
) -> VoteStatusResponse:
    """Get the caller's current vote on a single target."""
    vote_status = get_vote_status(db, actor_id, target_kind, target_id)
    return VoteStatusResponse(target_kind=target_kind, target_id=target_id, type=vote_status.type)


@router.post("/status/batch", response_model=VoteStatusBatchResponse)
async def read_vote_status_batch(
    payload: VoteStatusBatchRequest,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> VoteStatusBatchResponse:
    """Get the caller's votes on many targets of one kind in a single round trip."""
    statuses = get_vote_statuses(db, actor_id, payload.target_kind, payload.target_ids)
    return VoteStatusBatchResponse(target_kind=payload.target_kind, statuses=statuses)
