"""Community-related endpoints for the Agora API."""

from fastapi import APIRouter, HTTPException, Response, status

from agora_stage.models import Community, Question
from agora_stage.schemas.community import CommunityCreate, CommunityResponse
from agora_stage.schemas.question import QuestionCreate, QuestionResponse
from agora_stage.services.content import (
    ask_in_community,
    create_community,
    join_community,
    leave_community,
)

from ..dependencies import ActorIdDep, SessionDep

router = APIRouter(prefix="/communities", tags=["communities"])


@router.get("/", response_model=list[CommunityResponse])
async def list_communities(db: SessionDep) -> list[Community]:
    """List all communities."""
    return db.query(Community).order_by(Community.id).all()


@router.get("/{community_id}", response_model=CommunityResponse)
async def get_community(community_id: int, db: SessionDep) -> Community:
    """Get a specific community by ID."""
    community = db.get(Community, community_id)
    if not community:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Community not found"
        )
    return community


@router.post("/", response_model=CommunityResponse, status_code=status.HTTP_201_CREATED)
async def create_new_community(
    community_data: CommunityCreate,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> Community:
    """Create a new community; the creator becomes its first admin."""
    community = create_community(
        db,
        actor_id,
        community_data.slug,
        community_data.name,
        community_data.description,
    )
    db.commit()
    db.refresh(community)
    return community


@router.post("/{community_id}/join", status_code=status.HTTP_201_CREATED)
async def join(
    community_id: int,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> dict[str, str]:
    """Join a community."""
    join_community(db, community_id, actor_id)
    db.commit()
    return {"status": "joined"}


@router.delete(
    "/{community_id}/leave",
    status_code=status.HTTP_204_NO_CONTENT,
    response_class=Response,
)
async def leave(
    community_id: int,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> Response:
    """Leave a community."""
    leave_community(db, community_id, actor_id)
    db.commit()
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{community_id}/questions",
    response_model=QuestionResponse,
    status_code=status.HTTP_201_CREATED,
)
async def ask_community_question(
    community_id: int,
    question_data: QuestionCreate,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> Question:
    """Ask a question inside a community; other members are notified."""
    question = ask_in_community(
        db,
        actor_id,
        community_id,
        question_data.title,
        question_data.content,
    )
    db.commit()
    db.refresh(question)
    return question
