"""Service-level helpers for creating content and managing community membership.

Each helper writes its primary row and the matching reputation reward inside
one SAVEPOINT. Notifications run afterwards in their own SAVEPOINT: a failed
notification is logged and never undoes the question or answer it describes.
The caller commits.
"""
from __future__ import annotations

import logging

from sqlalchemy import func, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from agora_stage.models import (
    Answer,
    Community,
    CommunityMember,
    Question,
    ReputationReason,
    TargetKind,
    User,
)
from agora_stage.models.community import ROLE_ADMIN, ROLE_MEMBER
from agora_stage.services.errors import (
    Conflict,
    EngineError,
    LastAdminError,
    NotFound,
    Unauthenticated,
    storage_errors,
)
from agora_stage.services.notifications import notify_answer_author, notify_community_members
from agora_stage.services.reputation import (
    ASK_QUESTION_POINTS,
    CREATE_COMMUNITY_POINTS,
    JOIN_COMMUNITY_POINTS,
    POST_ANSWER_POINTS,
    apply_reputation_delta,
)

logger = logging.getLogger(__name__)


def _require_actor(actor_id: int | None) -> int:
    if actor_id is None:
        raise Unauthenticated("Authentication required")
    return actor_id


def _require_user(db: Session, user_id: int) -> None:
    if db.scalar(select(User.id).where(User.id == user_id)) is None:
        raise NotFound(f"User {user_id} not found")


def _find_community(db: Session, slug: str, name: str) -> Community | None:
    return db.scalars(
        select(Community).where(or_(Community.slug == slug, Community.name == name))
    ).first()


def get_membership(db: Session, community_id: int, user_id: int) -> CommunityMember | None:
    """Return the membership row for ``user_id`` in ``community_id`` if any."""
    return db.get(CommunityMember, (community_id, user_id))


def create_question(
    db: Session,
    author_id: int | None,
    title: str,
    content: str,
) -> Question:
    """Create a site-wide question and reward its author."""
    author_id = _require_actor(author_id)
    with storage_errors("create question"), db.begin_nested():
        _require_user(db, author_id)
        question = Question(title=title, content=content, author_id=author_id)
        db.add(question)
        db.flush()
        apply_reputation_delta(
            db,
            author_id,
            ASK_QUESTION_POINTS,
            ReputationReason.ASK_QUESTION,
            target_kind=TargetKind.QUESTION.value,
            target_id=question.id,
        )
    logger.info("User %s asked question %s", author_id, question.id)
    return question


def ask_in_community(
    db: Session,
    author_id: int | None,
    community_id: int,
    title: str,
    content: str,
) -> Question:
    """Create a question inside a community and broadcast it to the members.

    Raises:
        NotFound: If the community does not exist or the author is not a member.
    """
    author_id = _require_actor(author_id)
    with storage_errors("ask in community"), db.begin_nested():
        if db.get(Community, community_id) is None:
            raise NotFound("Community not found")
        if get_membership(db, community_id, author_id) is None:
            raise NotFound("You must be a member of this community to ask questions")

        question = Question(
            title=title,
            content=content,
            author_id=author_id,
            community_id=community_id,
        )
        db.add(question)
        db.flush()
        apply_reputation_delta(
            db,
            author_id,
            ASK_QUESTION_POINTS,
            ReputationReason.ASK_QUESTION,
            target_kind=TargetKind.QUESTION.value,
            target_id=question.id,
        )

    try:
        with db.begin_nested():
            notify_community_members(db, question.id, community_id)
    except (EngineError, SQLAlchemyError):
        logger.exception(
            "Failed to notify members of community %s about question %s",
            community_id,
            question.id,
        )
    return question


def create_answer(
    db: Session,
    author_id: int | None,
    question_id: int,
    content: str,
) -> Answer:
    """Post an answer, reward its author and notify the question author.

    Raises:
        NotFound: If the question does not exist.
    """
    author_id = _require_actor(author_id)
    with storage_errors("create answer"), db.begin_nested():
        if db.get(Question, question_id) is None:
            raise NotFound("Question not found")
        _require_user(db, author_id)

        answer = Answer(content=content, author_id=author_id, question_id=question_id)
        db.add(answer)
        db.flush()
        apply_reputation_delta(
            db,
            author_id,
            POST_ANSWER_POINTS,
            ReputationReason.POST_ANSWER,
            target_kind=TargetKind.ANSWER.value,
            target_id=answer.id,
        )

    try:
        with db.begin_nested():
            notify_answer_author(db, question_id, answer.id)
    except (EngineError, SQLAlchemyError):
        logger.exception(
            "Failed to notify author of question %s about answer %s",
            question_id,
            answer.id,
        )
    return answer


def create_community(
    db: Session,
    creator_id: int | None,
    slug: str,
    name: str,
    description: str = "",
) -> Community:
    """Create a community with its creator as the first admin.

    Raises:
        Conflict: If the slug or name is already taken.
    """
    creator_id = _require_actor(creator_id)
    with storage_errors("create community"), db.begin_nested():
        _require_user(db, creator_id)
        if _find_community(db, slug, name) is not None:
            raise Conflict("Community with this name or slug already exists")

        community = Community(slug=slug, name=name, description=description)
        try:
            with db.begin_nested():
                db.add(community)
                db.flush()
        except IntegrityError as err:
            raise Conflict("Community with this name or slug already exists") from err
        db.add(CommunityMember(community_id=community.id, user_id=creator_id, role=ROLE_ADMIN))
        apply_reputation_delta(
            db,
            creator_id,
            CREATE_COMMUNITY_POINTS,
            ReputationReason.CREATE_COMMUNITY,
        )
    logger.info("User %s created community %s", creator_id, community.id)
    return community


def join_community(db: Session, community_id: int, user_id: int | None) -> CommunityMember:
    """Add ``user_id`` to a community as a regular member.

    Raises:
        NotFound: If the community does not exist.
        Conflict: If the user already belongs to it.
    """
    user_id = _require_actor(user_id)
    with storage_errors("join community"), db.begin_nested():
        if db.get(Community, community_id) is None:
            raise NotFound("Community not found")
        if get_membership(db, community_id, user_id) is not None:
            raise Conflict("Already a member of this community")

        membership = CommunityMember(community_id=community_id, user_id=user_id, role=ROLE_MEMBER)
        # A racing join from the same user trips the primary key.
        try:
            with db.begin_nested():
                db.add(membership)
                db.flush()
        except IntegrityError as err:
            raise Conflict("Already a member of this community") from err
        apply_reputation_delta(
            db,
            user_id,
            JOIN_COMMUNITY_POINTS,
            ReputationReason.JOIN_COMMUNITY,
        )
    return membership


def leave_community(db: Session, community_id: int, user_id: int | None) -> None:
    """Remove ``user_id`` from a community. Reputation earned by joining is kept.

    Raises:
        NotFound: If the user is not a member.
        LastAdminError: If the user is the community's only admin.
    """
    user_id = _require_actor(user_id)
    with storage_errors("leave community"), db.begin_nested():
        membership = get_membership(db, community_id, user_id)
        if membership is None:
            raise NotFound("Not a member of this community")

        if membership.role == ROLE_ADMIN:
            admin_count = db.scalar(
                select(func.count())
                .select_from(CommunityMember)
                .where(
                    CommunityMember.community_id == community_id,
                    CommunityMember.role == ROLE_ADMIN,
                )
            )
            if (admin_count or 0) <= 1:
                raise LastAdminError("Cannot leave: you are the last admin of this community")

        db.delete(membership)
        db.flush()
