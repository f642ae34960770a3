"""Vote transition engine.

Translates an "upvote" or "downvote" request into vote-ledger writes and the
two reputation deltas (voter and content author) implied by the transition.

Callers send the state they last saw (``was_upvoted`` / ``was_downvoted``) so
the toggle semantics of the UI are preserved: clicking upvote on something you
already upvoted removes the vote. That assertion only selects the *intended*
end state. The prior state used to size the deltas is always re-read from the
ledger inside the same savepoint as the writes, so a stale or replayed request
can never apply a delta twice.
"""
from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import StrEnum
from typing import Literal

from sqlalchemy import select
from sqlalchemy.orm import Session

from agora_stage.core.settings import settings
from agora_stage.models import Answer, Question, ReputationReason, TargetKind, User, VoteType
from agora_stage.services.errors import Conflict, NotFound, Unauthenticated, storage_errors
from agora_stage.services.reputation import apply_reputation_delta
from agora_stage.services.vote_ledger import (
    VoteStatus,
    delete_vote,
    get_vote_state,
    get_vote_states,
    upsert_vote,
)

logger = logging.getLogger(__name__)

FlipMode = Literal["compound", "single"]


class VoteAction(StrEnum):
    """Button pressed by the user."""

    UPVOTE = "upvote"
    DOWNVOTE = "downvote"


class VoteState(StrEnum):
    """Relationship between one actor and one target."""

    NONE = "none"
    UPVOTED = "upvoted"
    DOWNVOTED = "downvoted"


@dataclass(frozen=True, slots=True)
class VoteWeights:
    """Reputation points moved by a vote on one kind of target."""

    voter_up: int
    author_up: int
    voter_down: int
    author_down: int


VOTE_WEIGHTS: dict[TargetKind, VoteWeights] = {
    TargetKind.QUESTION: VoteWeights(voter_up=1, author_up=10, voter_down=2, author_down=10),
    TargetKind.ANSWER: VoteWeights(voter_up=2, author_up=10, voter_down=2, author_down=10),
}


@dataclass(frozen=True, slots=True)
class VoteRequest:
    """A vote action as submitted by a client."""

    actor_id: int | None
    target_kind: TargetKind
    target_id: int
    action: VoteAction
    was_upvoted: bool = False
    was_downvoted: bool = False


@dataclass(frozen=True, slots=True)
class Transition:
    """Planned move between two vote states and the deltas it carries."""

    prior: VoteState
    target: VoteState
    voter_delta: int
    author_delta: int

    @property
    def changed(self) -> bool:
        return self.prior != self.target


@dataclass(frozen=True, slots=True)
class VoteOutcome:
    """Result reported back to the caller after a vote action."""

    state: VoteState
    transition: Transition
    applied: bool


def intended_state(action: VoteAction, was_upvoted: bool, was_downvoted: bool) -> VoteState:
    """Return the state the caller is asking for.

    Pressing the button that matches the asserted state clears the vote;
    anything else sets the vote to the pressed direction.
    """
    if action == VoteAction.UPVOTE:
        return VoteState.NONE if was_upvoted else VoteState.UPVOTED
    return VoteState.NONE if was_downvoted else VoteState.DOWNVOTED


def _contribution(weights: VoteWeights, state: VoteState) -> tuple[int, int]:
    """(voter, author) reputation held by a vote standing in ``state``."""
    if state is VoteState.UPVOTED:
        return weights.voter_up, weights.author_up
    if state is VoteState.DOWNVOTED:
        return -weights.voter_down, -weights.author_down
    return 0, 0


def plan_transition(
    target_kind: TargetKind,
    prior: VoteState,
    target: VoteState,
    flip_mode: FlipMode = "compound",
) -> Transition:
    """Compute the deltas for moving from ``prior`` to ``target``.

    In ``compound`` mode every transition moves reputation by the difference
    between the two states' contributions, so a user's reputation depends only
    on the votes currently standing. In ``single`` mode a direct flip between
    upvoted and downvoted applies just the new vote's contribution, as if the
    vote had been cast from scratch.
    """
    weights = VOTE_WEIGHTS[target_kind]
    if prior == target:
        return Transition(prior, target, 0, 0)

    new_voter, new_author = _contribution(weights, target)
    is_flip = prior is not VoteState.NONE and target is not VoteState.NONE
    if is_flip and flip_mode == "single":
        return Transition(prior, target, new_voter, new_author)

    old_voter, old_author = _contribution(weights, prior)
    return Transition(prior, target, new_voter - old_voter, new_author - old_author)


def _state_of(status: VoteStatus) -> VoteState:
    if status.type is VoteType.UPVOTE:
        return VoteState.UPVOTED
    if status.type is VoteType.DOWNVOTE:
        return VoteState.DOWNVOTED
    return VoteState.NONE


def _resolve_author(db: Session, target_kind: TargetKind, target_id: int) -> int:
    model = Question if target_kind == TargetKind.QUESTION else Answer
    author_id = db.scalar(select(model.author_id).where(model.id == target_id))
    if author_id is None:
        raise NotFound(f"{target_kind.value.capitalize()} not found")
    return author_id


def _ensure_user(db: Session, user_id: int) -> None:
    if db.scalar(select(User.id).where(User.id == user_id)) is None:
        raise NotFound(f"User {user_id} not found")


def cast_vote(
    db: Session,
    request: VoteRequest,
    *,
    flip_mode: FlipMode | None = None,
) -> VoteOutcome:
    """Apply a vote action.

    The ledger write and both reputation deltas share one SAVEPOINT; if any of
    them fails none is kept. The caller commits the surrounding transaction.

    Args:
        db: Database session.
        request: The client's vote action.
        flip_mode: Overrides ``settings.vote_flip_mode`` for this call.

    Returns:
        The resulting state and the transition that was (or was not) applied.

    Raises:
        Unauthenticated: If the request carries no actor.
        NotFound: If the target, its author or the voter does not exist.
        Unavailable: If the database could not be reached.
    """
    if request.actor_id is None:
        raise Unauthenticated("Authentication required to vote")

    mode: FlipMode = flip_mode or settings.vote_flip_mode
    actor_id = request.actor_id
    target = intended_state(request.action, request.was_upvoted, request.was_downvoted)

    with storage_errors("vote"):
        try:
            with db.begin_nested():
                author_id = _resolve_author(db, request.target_kind, request.target_id)
                _ensure_user(db, actor_id)

                prior = _state_of(
                    get_vote_state(db, actor_id, request.target_kind, request.target_id)
                )
                transition = plan_transition(request.target_kind, prior, target, mode)
                if not transition.changed:
                    logger.debug(
                        "Vote by %s on %s %s already %s",
                        actor_id,
                        request.target_kind.value,
                        request.target_id,
                        target.value,
                    )
                    return VoteOutcome(state=prior, transition=transition, applied=False)

                if target is VoteState.NONE:
                    delete_vote(db, actor_id, request.target_kind, request.target_id)
                else:
                    vote_type = (
                        VoteType.UPVOTE if target is VoteState.UPVOTED else VoteType.DOWNVOTE
                    )
                    upsert_vote(db, actor_id, request.target_kind, request.target_id, vote_type)

                apply_reputation_delta(
                    db,
                    actor_id,
                    transition.voter_delta,
                    ReputationReason.VOTE_CAST,
                    target_kind=request.target_kind.value,
                    target_id=request.target_id,
                )
                apply_reputation_delta(
                    db,
                    author_id,
                    transition.author_delta,
                    ReputationReason.VOTE_RECEIVED,
                    target_kind=request.target_kind.value,
                    target_id=request.target_id,
                )
        except Conflict:
            # A racing request from the same actor inserted first.
            current = _state_of(
                get_vote_state(db, actor_id, request.target_kind, request.target_id)
            )
            logger.info(
                "Concurrent vote by %s on %s %s resolved as no-op",
                actor_id,
                request.target_kind.value,
                request.target_id,
            )
            return VoteOutcome(
                state=current,
                transition=Transition(current, current, 0, 0),
                applied=False,
            )

    logger.debug(
        "Vote by %s on %s %s: %s -> %s (voter %+d, author %+d)",
        actor_id,
        request.target_kind.value,
        request.target_id,
        transition.prior.value,
        transition.target.value,
        transition.voter_delta,
        transition.author_delta,
    )
    return VoteOutcome(state=transition.target, transition=transition, applied=True)


def get_vote_status(
    db: Session,
    actor_id: int | None,
    target_kind: TargetKind,
    target_id: int,
) -> VoteStatus:
    """Vote-status lookup used to render buttons and seed the next vote action."""
    if actor_id is None:
        raise Unauthenticated("Authentication required to read vote status")
    with storage_errors("vote status lookup"):
        return get_vote_state(db, actor_id, target_kind, target_id)


def get_vote_statuses(
    db: Session,
    actor_id: int | None,
    target_kind: TargetKind,
    target_ids: Iterable[int],
) -> dict[int, VoteType | None]:
    """Batch vote-status lookup; avoids one query per row when rendering a list."""
    if actor_id is None:
        raise Unauthenticated("Authentication required to read vote status")
    with storage_errors("vote status lookup"):
        return get_vote_states(db, actor_id, target_kind, target_ids)
