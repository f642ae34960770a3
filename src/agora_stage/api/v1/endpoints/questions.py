"""Question and answer endpoints for the Agora API."""

from fastapi import APIRouter, HTTPException, status

from agora_stage.models import Answer, Question
from agora_stage.schemas.question import (
    AnswerCreate,
    AnswerResponse,
    QuestionCreate,
    QuestionResponse,
)
from agora_stage.services.content import create_answer, create_question

from ..dependencies import ActorIdDep, SessionDep

router = APIRouter(prefix="/questions", tags=["questions"])


def _get_question_or_404(db: SessionDep, question_id: int) -> Question:
    question = db.get(Question, question_id)
    if question is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Question not found")
    return question


@router.post("/", response_model=QuestionResponse, status_code=status.HTTP_201_CREATED)
async def ask_question(
    question_data: QuestionCreate,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> Question:
    """Ask a site-wide question."""
    question = create_question(db, actor_id, question_data.title, question_data.content)
    db.commit()
    db.refresh(question)
    return question


@router.get("/{question_id}", response_model=QuestionResponse)
async def get_question(question_id: int, db: SessionDep) -> Question:
    """Get a specific question by ID."""
    return _get_question_or_404(db, question_id)


@router.post(
    "/{question_id}/answers",
    response_model=AnswerResponse,
    status_code=status.HTTP_201_CREATED,
)
async def answer_question(
    question_id: int,
    answer_data: AnswerCreate,
    actor_id: ActorIdDep,
    db: SessionDep,
) -> Answer:
    """Post an answer; the question's author is notified."""
    answer = create_answer(db, actor_id, question_id, answer_data.content)
    db.commit()
    db.refresh(answer)
    return answer


@router.get("/{question_id}/answers", response_model=list[AnswerResponse])
async def list_answers(
    question_id: int,
    db: SessionDep,
    limit: int = 50,
) -> list[Answer]:
    """List answers to a question, oldest first."""
    _get_question_or_404(db, question_id)
    return (
        db.query(Answer)
        .filter(Answer.question_id == question_id)
        .order_by(Answer.id)
        .limit(limit)
        .all()
    )
