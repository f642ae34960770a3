"""Vote ledger: the source of truth for an actor's vote on a target.

Rows are addressed by their natural key ``(voter_id, target_kind, target_id)``.
Only :mod:`agora_stage.services.voting` writes through this module.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from agora_stage.models import TargetKind, Vote, VoteType
from agora_stage.services.errors import Conflict

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class VoteStatus:
    """Current vote of one actor on one target."""

    type: VoteType | None

    @property
    def present(self) -> bool:
        return self.type is not None


def _natural_key(actor_id: int, target_kind: TargetKind, target_id: int):
    return (
        Vote.voter_id == actor_id,
        Vote.target_kind == target_kind.value,
        Vote.target_id == target_id,
    )


def _find_vote(
    db: Session,
    actor_id: int,
    target_kind: TargetKind,
    target_id: int,
) -> Vote | None:
    return db.scalars(
        select(Vote).where(*_natural_key(actor_id, target_kind, target_id))
    ).first()


def get_vote_state(
    db: Session,
    actor_id: int,
    target_kind: TargetKind,
    target_id: int,
) -> VoteStatus:
    """Return the actor's current vote on the target."""
    vote_type = db.scalar(
        select(Vote.type).where(*_natural_key(actor_id, target_kind, target_id))
    )
    return VoteStatus(type=VoteType(vote_type) if vote_type is not None else None)


def get_vote_states(
    db: Session,
    actor_id: int,
    target_kind: TargetKind,
    target_ids: Iterable[int],
) -> dict[int, VoteType | None]:
    """Return the actor's vote for each target in a single query.

    Every requested id appears in the result; targets without a vote map to None.
    """
    ids = list(dict.fromkeys(target_ids))
    states: dict[int, VoteType | None] = dict.fromkeys(ids)
    if not ids:
        return states

    rows = db.execute(
        select(Vote.target_id, Vote.type).where(
            Vote.voter_id == actor_id,
            Vote.target_kind == target_kind.value,
            Vote.target_id.in_(ids),
        )
    ).all()
    for target_id, vote_type in rows:
        states[target_id] = VoteType(vote_type)
    return states


def upsert_vote(
    db: Session,
    actor_id: int,
    target_kind: TargetKind,
    target_id: int,
    vote_type: VoteType,
) -> Vote:
    """Set the actor's vote on the target, overwriting any existing row.

    Raises:
        Conflict: If a concurrent request inserted the row first.
    """
    existing = _find_vote(db, actor_id, target_kind, target_id)
    if existing is not None:
        existing.type = vote_type.value
        db.flush()
        return existing

    vote = Vote(
        voter_id=actor_id,
        target_kind=target_kind.value,
        target_id=target_id,
        type=vote_type.value,
    )
    # The unique constraint decides racing inserts; the SAVEPOINT keeps the
    # outer transaction usable when it fires.
    try:
        with db.begin_nested():
            db.add(vote)
            db.flush()
    except IntegrityError as err:
        logger.info(
            "Duplicate vote insert for voter %s on %s %s",
            actor_id,
            target_kind.value,
            target_id,
        )
        raise Conflict("Vote already recorded for this target") from err
    return vote


def delete_vote(
    db: Session,
    actor_id: int,
    target_kind: TargetKind,
    target_id: int,
) -> bool:
    """Remove the actor's vote on the target.

    Returns:
        True if a row was deleted, False if there was nothing to delete.
    """
    result = db.execute(
        delete(Vote)
        .where(*_natural_key(actor_id, target_kind, target_id))
        .execution_options(synchronize_session="fetch")
    )
    return bool(result.rowcount)
