"""User profile endpoints for the Agora API."""

from fastapi import APIRouter, HTTPException, Query, status

from agora_stage.models import ReputationEvent, User
from agora_stage.schemas.user import ReputationEventResponse, UserResponse
from agora_stage.services.reputation import list_reputation_events

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/users", tags=["users"])


def _get_user_or_404(db: SessionDep, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return user


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: CurrentUserDep) -> User:
    """Return the authenticated user's profile."""
    return current_user


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(user_id: int, db: SessionDep) -> User:
    """Return a user's public profile and reputation."""
    return _get_user_or_404(db, user_id)


@router.get("/{user_id}/reputation", response_model=list[ReputationEventResponse])
async def get_reputation_history(
    user_id: int,
    db: SessionDep,
    limit: int = Query(50, ge=1, le=200),
) -> list[ReputationEvent]:
    """Return a user's most recent reputation changes."""
    _get_user_or_404(db, user_id)
    return list(list_reputation_events(db, user_id, limit=limit))
