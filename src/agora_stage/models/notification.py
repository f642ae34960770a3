"""Models for user-facing notifications."""

from __future__ import annotations

from datetime import datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from agora_stage.db.session import Base
from agora_stage.db.time import utcnow


class NotificationType(StrEnum):
    """Events that notify a user."""

    ANSWER = "answer"
    FORUM_QUESTION = "forum_question"


class Notification(Base):
    """A notification addressed to a single recipient.

    Dedup keys:
      - answer notifications: one per (answer_id, recipient_user_id);
      - community broadcasts: one per (community_id, question_id, recipient_user_id).

    NULL columns never collide in a unique constraint, so each key only
    constrains the notification type that fills it in.
    """

    __tablename__ = "notifications"
    __table_args__ = (
        UniqueConstraint(
            "type",
            "answer_id",
            "recipient_user_id",
            name="uq_notifications_answer_recipient",
        ),
        UniqueConstraint(
            "type",
            "community_id",
            "question_id",
            "recipient_user_id",
            name="uq_notifications_community_question_recipient",
        ),
        # Backs the unread badge, which is polled.
        Index("ix_notifications_recipient_is_read", "recipient_user_id", "is_read"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    recipient_user_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    type: Mapped[str] = mapped_column(String(32), nullable=False)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    question_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("questions.id", ondelete="CASCADE"),
        nullable=True,
    )
    answer_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("answers.id", ondelete="CASCADE"),
        nullable=True,
    )
    community_id: Mapped[int | None] = mapped_column(
        Integer,
        ForeignKey("communities.id", ondelete="CASCADE"),
        nullable=True,
    )
    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )
