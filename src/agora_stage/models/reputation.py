"""Append-only audit log of reputation changes."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from agora_stage.db.session import Base
from agora_stage.db.time import utcnow


class ReputationReason(StrEnum):
    """Why a reputation delta was applied."""

    ASK_QUESTION = "ask_question"
    POST_ANSWER = "post_answer"
    CREATE_COMMUNITY = "create_community"
    JOIN_COMMUNITY = "join_community"
    VOTE_CAST = "vote_cast"
    VOTE_RECEIVED = "vote_received"


class ReputationEvent(Base):
    """One applied delta.

    Rows are never updated or deleted. Summing ``delta`` per user reproduces
    ``users.reputation``.
    """

    __tablename__ = "reputation_events"
    __table_args__ = (Index("ix_reputation_events_user_id", "user_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    delta: Mapped[int] = mapped_column(Integer, nullable=False)
    reason: Mapped[str] = mapped_column(String(32), nullable=False)
    target_kind: Mapped[str | None] = mapped_column(String(16), nullable=True)
    target_id: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
