"""Question and answer Pydantic schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class QuestionCreate(BaseModel):
    """Schema for asking a new question."""

    title: str = Field(..., min_length=1, max_length=300)
    content: str = Field(..., min_length=1, max_length=20000, description="Markdown body")


class QuestionResponse(BaseModel):
    """Schema for question information returned by the API."""

    id: int
    title: str
    content: str
    author_id: int
    community_id: int | None
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class AnswerCreate(BaseModel):
    """Schema for answering a question."""

    content: str = Field(..., min_length=1, max_length=20000, description="Markdown body")


class AnswerResponse(BaseModel):
    """Schema for answer information returned by the API."""

    id: int
    content: str
    author_id: int
    question_id: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
