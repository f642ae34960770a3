# mypy: ignore-errors
"""Tests for the vote transition engine."""

import pytest
from sqlalchemy.exc import OperationalError

from agora_stage.core.settings import settings
from agora_stage.models import Question, ReputationEvent, TargetKind, Vote, VoteType
from agora_stage.services.errors import Conflict, NotFound, Unauthenticated, Unavailable
from agora_stage.services.reputation import get_reputation
from agora_stage.services.voting import (
    VoteAction,
    VoteRequest,
    VoteState,
    cast_vote,
    get_vote_status,
    get_vote_statuses,
    intended_state,
    plan_transition,
)

UP = VoteAction.UPVOTE
DOWN = VoteAction.DOWNVOTE


@pytest.mark.parametrize(
    ("action", "was_up", "was_down", "expected"),
    [
        (UP, False, False, VoteState.UPVOTED),
        (UP, True, False, VoteState.NONE),
        (UP, False, True, VoteState.UPVOTED),
        (DOWN, False, False, VoteState.DOWNVOTED),
        (DOWN, False, True, VoteState.NONE),
        (DOWN, True, False, VoteState.DOWNVOTED),
        # Contradictory flags: only the one matching the pressed button counts.
        (UP, True, True, VoteState.NONE),
        (DOWN, True, True, VoteState.NONE),
    ],
)
def test_intended_state(action, was_up, was_down, expected) -> None:
    """The asserted flags select the end state the caller is asking for."""
    assert intended_state(action, was_up, was_down) is expected


@pytest.mark.parametrize(
    ("kind", "prior", "target", "voter", "author"),
    [
        (TargetKind.QUESTION, VoteState.NONE, VoteState.UPVOTED, 1, 10),
        (TargetKind.QUESTION, VoteState.UPVOTED, VoteState.NONE, -1, -10),
        (TargetKind.QUESTION, VoteState.NONE, VoteState.DOWNVOTED, -2, -10),
        (TargetKind.QUESTION, VoteState.DOWNVOTED, VoteState.NONE, 2, 10),
        (TargetKind.QUESTION, VoteState.UPVOTED, VoteState.DOWNVOTED, -3, -20),
        (TargetKind.QUESTION, VoteState.DOWNVOTED, VoteState.UPVOTED, 3, 20),
        (TargetKind.ANSWER, VoteState.NONE, VoteState.UPVOTED, 2, 10),
        (TargetKind.ANSWER, VoteState.UPVOTED, VoteState.NONE, -2, -10),
        (TargetKind.ANSWER, VoteState.NONE, VoteState.DOWNVOTED, -2, -10),
        (TargetKind.ANSWER, VoteState.UPVOTED, VoteState.DOWNVOTED, -4, -20),
        (TargetKind.ANSWER, VoteState.DOWNVOTED, VoteState.UPVOTED, 4, 20),
    ],
)
def test_compound_transitions(kind, prior, target, voter, author) -> None:
    """Compound mode moves reputation by the difference of standing contributions."""
    transition = plan_transition(kind, prior, target, "compound")
    assert (transition.voter_delta, transition.author_delta) == (voter, author)
    assert transition.changed


@pytest.mark.parametrize(
    ("kind", "prior", "target", "voter", "author"),
    [
        (TargetKind.QUESTION, VoteState.UPVOTED, VoteState.DOWNVOTED, -2, -10),
        (TargetKind.QUESTION, VoteState.DOWNVOTED, VoteState.UPVOTED, 1, 10),
        (TargetKind.ANSWER, VoteState.UPVOTED, VoteState.DOWNVOTED, -2, -10),
        (TargetKind.ANSWER, VoteState.DOWNVOTED, VoteState.UPVOTED, 2, 10),
        # Non-flip transitions are identical in both modes.
        (TargetKind.QUESTION, VoteState.NONE, VoteState.UPVOTED, 1, 10),
        (TargetKind.ANSWER, VoteState.DOWNVOTED, VoteState.NONE, 2, 10),
    ],
)
def test_single_mode_transitions(kind, prior, target, voter, author) -> None:
    """Single mode applies only the new vote's contribution on a flip."""
    transition = plan_transition(kind, prior, target, "single")
    assert (transition.voter_delta, transition.author_delta) == (voter, author)


@pytest.mark.parametrize("state", list(VoteState))
def test_same_state_is_noop(state) -> None:
    """Moving to the state already held carries no delta."""
    transition = plan_transition(TargetKind.ANSWER, state, state)
    assert not transition.changed
    assert (transition.voter_delta, transition.author_delta) == (0, 0)


def _vote(db, actor, kind, target_id, action, was_up=False, was_down=False, **kwargs):
    return cast_vote(
        db,
        VoteRequest(
            actor_id=actor.id,
            target_kind=kind,
            target_id=target_id,
            action=action,
            was_upvoted=was_up,
            was_downvoted=was_down,
        ),
        **kwargs,
    )


def test_first_upvote_on_answer(db_session, test_user, other_user, answer) -> None:
    """A fresh upvote on an answer pays the voter 2 and the author 10."""
    outcome = _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)

    assert outcome.applied
    assert outcome.state is VoteState.UPVOTED
    assert get_reputation(db_session, test_user.id) == 2
    assert get_reputation(db_session, other_user.id) == 10
    status = get_vote_status(db_session, test_user.id, TargetKind.ANSWER, answer.id)
    assert status.type is VoteType.UPVOTE


def test_toggle_off_question_upvote(db_session, test_user, other_user, question) -> None:
    """Pressing upvote again removes the vote and reverses both deltas."""
    _vote(db_session, test_user, TargetKind.QUESTION, question.id, UP)
    assert get_reputation(db_session, test_user.id) == 1
    assert get_reputation(db_session, other_user.id) == 10
    assert db_session.query(Vote).count() == 1

    outcome = _vote(db_session, test_user, TargetKind.QUESTION, question.id, UP, was_up=True)

    assert outcome.applied
    assert outcome.state is VoteState.NONE
    assert get_reputation(db_session, test_user.id) == 0
    assert get_reputation(db_session, other_user.id) == 0
    assert db_session.query(Vote).count() == 0


def test_compound_flip_on_question(db_session, test_user, other_user, question) -> None:
    """Up then down leaves reputation equal to a standing downvote."""
    _vote(db_session, test_user, TargetKind.QUESTION, question.id, UP)
    outcome = _vote(
        db_session, test_user, TargetKind.QUESTION, question.id, DOWN,
        was_up=True, flip_mode="compound",
    )

    assert outcome.state is VoteState.DOWNVOTED
    assert get_reputation(db_session, test_user.id) == -2
    assert get_reputation(db_session, other_user.id) == -10
    assert db_session.query(Vote).one().type == VoteType.DOWNVOTE.value


def test_single_flip_on_question(db_session, test_user, other_user, question) -> None:
    """Single mode keeps the historical flip arithmetic."""
    _vote(db_session, test_user, TargetKind.QUESTION, question.id, UP, flip_mode="single")
    _vote(
        db_session, test_user, TargetKind.QUESTION, question.id, DOWN,
        was_up=True, flip_mode="single",
    )

    assert get_reputation(db_session, test_user.id) == 1 - 2
    assert get_reputation(db_session, other_user.id) == 10 - 10


def test_replayed_request_is_noop(db_session, test_user, other_user, answer) -> None:
    """Retrying the exact same payload does not pay twice."""
    first = _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)
    second = _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)

    assert first.applied
    assert not second.applied
    assert second.state is VoteState.UPVOTED
    assert (second.transition.voter_delta, second.transition.author_delta) == (0, 0)
    assert get_reputation(db_session, other_user.id) == 10
    assert db_session.query(Vote).count() == 1


def test_stale_toggle_without_vote_is_noop(db_session, test_user, other_user, answer) -> None:
    """Asserting a vote that the ledger does not hold removes nothing."""
    outcome = _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP, was_up=True)

    assert not outcome.applied
    assert outcome.state is VoteState.NONE
    assert get_reputation(db_session, test_user.id) == 0
    assert get_reputation(db_session, other_user.id) == 0


def test_stale_prior_is_sized_from_ledger(db_session, test_user, other_user, answer) -> None:
    """A flip sent without the was_upvoted flag is still sized from the stored upvote."""
    _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)
    outcome = _vote(db_session, test_user, TargetKind.ANSWER, answer.id, DOWN, flip_mode="compound")

    assert outcome.transition.prior is VoteState.UPVOTED
    assert get_reputation(db_session, test_user.id) == -2
    assert get_reputation(db_session, other_user.id) == -10


def test_vote_writes_audit_events(db_session, test_user, other_user, answer) -> None:
    """Each applied vote records one event per affected user."""
    _vote(db_session, test_user, TargetKind.ANSWER, answer.id, DOWN)

    events = db_session.query(ReputationEvent).order_by(ReputationEvent.id).all()
    assert [(e.user_id, e.delta, e.reason) for e in events] == [
        (test_user.id, -2, "vote_cast"),
        (other_user.id, -10, "vote_received"),
    ]
    assert all(e.target_kind == "answer" and e.target_id == answer.id for e in events)


def test_self_vote_nets_both_deltas(db_session, other_user, answer) -> None:
    """Voting on your own answer applies the voter and author deltas to the same user."""
    _vote(db_session, other_user, TargetKind.ANSWER, answer.id, UP)
    assert get_reputation(db_session, other_user.id) == 12


def test_vote_requires_actor(db_session, answer) -> None:
    """Anonymous votes are rejected before touching storage."""
    with pytest.raises(Unauthenticated):
        cast_vote(
            db_session,
            VoteRequest(actor_id=None, target_kind=TargetKind.ANSWER, target_id=answer.id, action=UP),
        )


def test_vote_on_missing_target(db_session, test_user) -> None:
    """Voting on an unknown target raises NotFound and writes nothing."""
    with pytest.raises(NotFound):
        _vote(db_session, test_user, TargetKind.QUESTION, 424242, UP)
    assert db_session.query(Vote).count() == 0


def test_vote_by_unknown_user(db_session, answer, other_user) -> None:
    """A token for a deleted user cannot move the author's reputation."""
    with pytest.raises(NotFound):
        cast_vote(
            db_session,
            VoteRequest(actor_id=987654, target_kind=TargetKind.ANSWER, target_id=answer.id, action=UP),
        )
    assert get_reputation(db_session, other_user.id) == 0


def test_lost_insert_race_is_reported_as_noop(
    db_session, mocker, test_user, other_user, answer
) -> None:
    """A Conflict from the ledger is swallowed and no reputation moves."""
    mocker.patch(
        "agora_stage.services.voting.upsert_vote",
        side_effect=Conflict("Vote already recorded for this target"),
    )

    outcome = _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)

    assert not outcome.applied
    assert outcome.state is VoteState.NONE
    assert get_reputation(db_session, test_user.id) == 0
    assert get_reputation(db_session, other_user.id) == 0


def test_reputation_failure_rolls_back_vote(db_session, mocker, test_user, answer) -> None:
    """The ledger write is undone when a reputation update fails."""
    mocker.patch(
        "agora_stage.services.voting.apply_reputation_delta",
        side_effect=NotFound("User not found"),
    )

    with pytest.raises(NotFound):
        _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)
    assert db_session.query(Vote).count() == 0


def test_batch_status(db_session, test_user, question, other_user) -> None:
    """Batch lookup reports every requested id, including ones without a vote."""
    second = Question(title="Second", content="Body", author_id=other_user.id)
    db_session.add(second)
    db_session.flush()
    _vote(db_session, test_user, TargetKind.QUESTION, question.id, DOWN)

    statuses = get_vote_statuses(
        db_session, test_user.id, TargetKind.QUESTION, [question.id, second.id, 999]
    )

    assert statuses == {question.id: VoteType.DOWNVOTE, second.id: None, 999: None}


def test_status_requires_actor(db_session, question) -> None:
    """Vote status cannot be read anonymously."""
    with pytest.raises(Unauthenticated):
        get_vote_status(db_session, None, TargetKind.QUESTION, question.id)


@pytest.mark.parametrize(
    ("mode", "voter_after", "author_after"),
    [("single", 0, 0), ("compound", 2, 10)],
)
def test_downvote_then_upvote_answer(
    db_session, test_user, other_user, answer, mode, voter_after, author_after
) -> None:
    """Switching a downvote to an upvote follows the configured flip mode."""
    _vote(db_session, test_user, TargetKind.ANSWER, answer.id, DOWN, flip_mode=mode)
    assert get_reputation(db_session, test_user.id) == -2
    assert get_reputation(db_session, other_user.id) == -10

    _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP, was_down=True, flip_mode=mode)

    assert get_reputation(db_session, test_user.id) == voter_after
    assert get_reputation(db_session, other_user.id) == author_after
    assert db_session.query(Vote).one().type == VoteType.UPVOTE.value


def test_flip_mode_defaults_to_settings(db_session, mocker, test_user, other_user, answer) -> None:
    """Without an explicit mode the configured one is used."""
    mocker.patch.object(settings, "vote_flip_mode", "single")

    _vote(db_session, test_user, TargetKind.ANSWER, answer.id, DOWN)
    _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP, was_down=True)

    assert get_reputation(db_session, other_user.id) == 0


def test_storage_failure_raises_unavailable(db_session, mocker, test_user, other_user, answer) -> None:
    """A dropped database connection surfaces as Unavailable and moves no reputation."""
    mocker.patch(
        "agora_stage.services.voting.get_vote_state",
        side_effect=OperationalError("SELECT votes", {}, Exception("database is locked")),
    )

    with pytest.raises(Unavailable):
        _vote(db_session, test_user, TargetKind.ANSWER, answer.id, UP)

    assert get_reputation(db_session, test_user.id) == 0
    assert get_reputation(db_session, other_user.id) == 0
    assert db_session.query(Vote).count() == 0
