"""Reputation ledger.

Every change to ``users.reputation`` goes through :func:`apply_reputation_delta`.
The counter is bumped with a single ``reputation = reputation + :amount``
statement so concurrent callers never lose an update, and each delta is
recorded in ``reputation_events`` for auditing.
"""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from agora_stage.models import ReputationEvent, ReputationReason, User
from agora_stage.services.errors import NotFound

logger = logging.getLogger(__name__)

# Content creation rewards.
ASK_QUESTION_POINTS = 5
POST_ANSWER_POINTS = 10
CREATE_COMMUNITY_POINTS = 20
JOIN_COMMUNITY_POINTS = 2


def apply_reputation_delta(
    db: Session,
    user_id: int,
    amount: int,
    reason: ReputationReason,
    *,
    target_kind: str | None = None,
    target_id: int | None = None,
) -> None:
    """Add ``amount`` (signed) to a user's reputation.

    Args:
        db: Database session; the caller owns the surrounding transaction.
        user_id: User whose counter changes.
        amount: Signed delta. Zero is accepted and still audited.
        reason: Tag stored on the audit row.
        target_kind: Optional kind of the content that caused the change.
        target_id: Optional id of the content that caused the change.

    Raises:
        NotFound: If no user row matches ``user_id``.
    """
    result = db.execute(
        update(User)
        .where(User.id == user_id)
        .values(reputation=User.reputation + amount)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFound(f"User {user_id} not found")

    db.add(
        ReputationEvent(
            user_id=user_id,
            delta=amount,
            reason=reason.value,
            target_kind=target_kind,
            target_id=target_id,
        )
    )
    db.flush()
    logger.debug("Reputation %+d for user %s (%s)", amount, user_id, reason.value)


def get_reputation(db: Session, user_id: int) -> int:
    """Return the stored reputation for ``user_id``, read fresh from the database."""
    value = db.scalar(select(User.reputation).where(User.id == user_id))
    if value is None:
        raise NotFound(f"User {user_id} not found")
    return int(value)


def list_reputation_events(
    db: Session,
    user_id: int,
    limit: int = 50,
) -> Sequence[ReputationEvent]:
    """Return the most recent reputation events for a user, newest first."""
    return db.scalars(
        select(ReputationEvent)
        .where(ReputationEvent.user_id == user_id)
        .order_by(ReputationEvent.id.desc())
        .limit(limit)
    ).all()
