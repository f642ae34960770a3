"""Models capturing voting interactions on questions and answers."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from agora_stage.db.session import Base
from agora_stage.db.time import utcnow


class TargetKind(StrEnum):
    """Content types that can receive votes."""

    QUESTION = "question"
    ANSWER = "answer"


class VoteType(StrEnum):
    """Direction of a stored vote."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class Vote(Base):
    """Per-user vote on a question or answer.

    At most one row exists per ``(voter_id, target_kind, target_id)``; the
    unique constraint is what keeps racing inserts from the same voter apart.
    """

    __tablename__ = "votes"
    __table_args__ = (
        UniqueConstraint("voter_id", "target_kind", "target_id", name="uq_votes_voter_target"),
        CheckConstraint("target_kind IN ('question', 'answer')", name="ck_votes_target_kind"),
        CheckConstraint("type IN ('upvote', 'downvote')", name="ck_votes_type"),
        Index("ix_votes_target", "target_kind", "target_id"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    voter_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    # Polymorphic reference to questions.id or answers.id.
    target_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    target_id: Mapped[int] = mapped_column(Integer, nullable=False)
    type: Mapped[str] = mapped_column(String(16), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
