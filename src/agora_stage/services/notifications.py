"""Notification dispatcher.

Creates answer-received and community-question notifications exactly once per
dedup key, and serves the read/unread surface used by the notification bell.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora_stage.models import (
    Answer,
    Community,
    CommunityMember,
    Notification,
    NotificationType,
    Question,
    User,
)
from agora_stage.services.errors import NotFound, storage_errors

logger = logging.getLogger(__name__)

ANSWER_TITLE = "New Answer to Your Question"
FORUM_QUESTION_TITLE = "New Question in Forum"


@dataclass(frozen=True, slots=True)
class NotificationPage:
    """One page of a user's notifications, newest first."""

    items: Sequence[Notification]
    has_more: bool


def _insert_once(db: Session, notification: Notification) -> bool:
    """Insert ``notification`` unless its dedup key already exists.

    Returns:
        True if the row was inserted.
    """
    try:
        with db.begin_nested():
            db.add(notification)
            db.flush()
    except IntegrityError:
        logger.debug(
            "Skipping duplicate %s notification for user %s",
            notification.type,
            notification.recipient_user_id,
        )
        return False
    return True


def notify_answer_author(db: Session, question_id: int, answer_id: int) -> Notification | None:
    """Tell the question's author that an answer arrived.

    Nothing is created when the answerer is the question author, or when a
    notification for ``(answer_id, question author)`` already exists.

    Raises:
        NotFound: If the question or the answer does not exist.
    """
    with storage_errors("answer notification"):
        question = db.get(Question, question_id)
        if question is None:
            raise NotFound("Question not found")
        answer = db.get(Answer, answer_id)
        if answer is None or answer.question_id != question_id:
            raise NotFound("Answer not found")

        if answer.author_id == question.author_id:
            return None

        existing = db.scalars(
            select(Notification).where(
                Notification.type == NotificationType.ANSWER.value,
                Notification.answer_id == answer_id,
                Notification.recipient_user_id == question.author_id,
            )
        ).first()
        if existing is not None:
            return None

        answerer_name = db.scalar(select(User.display_name).where(User.id == answer.author_id))
        notification = Notification(
            recipient_user_id=question.author_id,
            type=NotificationType.ANSWER.value,
            title=ANSWER_TITLE,
            content=f'{answerer_name or "Someone"} answered your question: "{question.title}"',
            question_id=question_id,
            answer_id=answer_id,
        )
        if not _insert_once(db, notification):
            return None

    logger.info(
        "Notified user %s of answer %s on question %s",
        question.author_id,
        answer_id,
        question_id,
    )
    return notification


def notify_community_members(
    db: Session,
    question_id: int,
    community_id: int,
) -> list[Notification]:
    """Notify every community member except the asker about a new question.

    Re-running the broadcast for the same question only fills in members that
    were not notified yet.

    Raises:
        NotFound: If the question or the community does not exist.
    """
    with storage_errors("community notification"):
        question = db.get(Question, question_id)
        if question is None:
            raise NotFound("Question not found")
        community = db.get(Community, community_id)
        if community is None:
            raise NotFound("Community not found")

        asker_name = db.scalar(select(User.display_name).where(User.id == question.author_id))
        member_ids = db.scalars(
            select(CommunityMember.user_id).where(
                CommunityMember.community_id == community_id,
                CommunityMember.user_id != question.author_id,
            )
        ).all()

        created: list[Notification] = []
        for member_id in member_ids:
            notification = Notification(
                recipient_user_id=member_id,
                type=NotificationType.FORUM_QUESTION.value,
                title=FORUM_QUESTION_TITLE,
                content=(
                    f'{asker_name or "Someone"} posted a new question in '
                    f'{community.name}: "{question.title}"'
                ),
                question_id=question_id,
                community_id=community_id,
            )
            if _insert_once(db, notification):
                created.append(notification)

    logger.info(
        "Broadcast question %s to %d member(s) of community %s",
        question_id,
        len(created),
        community_id,
    )
    return created


def mark_read(db: Session, notification_id: int, user_id: int) -> bool:
    """Mark a notification as read for its recipient.

    A notification that belongs to someone else is left untouched.

    Returns:
        True if a row owned by ``user_id`` was updated.
    """
    with storage_errors("mark notification read"):
        result = db.execute(
            update(Notification)
            .where(
                Notification.id == notification_id,
                Notification.recipient_user_id == user_id,
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
    return bool(result.rowcount)


def unread_count(db: Session, user_id: int) -> int:
    """Count unread notifications for the badge."""
    with storage_errors("unread count"):
        count = db.scalar(
            select(func.count())
            .select_from(Notification)
            .where(
                Notification.recipient_user_id == user_id,
                Notification.is_read.is_(False),
            )
        )
    return int(count or 0)


def list_notifications(
    db: Session,
    user_id: int,
    page: int = 1,
    page_size: int = 20,
) -> NotificationPage:
    """Return one page of notifications for ``user_id``, newest first."""
    page = max(page, 1)
    page_size = max(page_size, 1)
    offset = (page - 1) * page_size

    with storage_errors("list notifications"):
        # Fetch one extra row to learn whether another page exists.
        rows = db.scalars(
            select(Notification)
            .where(Notification.recipient_user_id == user_id)
            .order_by(Notification.created_at.desc(), Notification.id.desc())
            .offset(offset)
            .limit(page_size + 1)
        ).all()

    return NotificationPage(items=rows[:page_size], has_more=len(rows) > page_size)
