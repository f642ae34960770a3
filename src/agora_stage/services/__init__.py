# src/agora_stage/services/__init__.py
"""Business logic services for the Agora application."""

from .errors import Conflict, EngineError, LastAdminError, NotFound, Unauthenticated, Unavailable
from .notifications import (
    NotificationPage,
    list_notifications,
    mark_read,
    notify_answer_author,
    notify_community_members,
    unread_count,
)
from .reputation import apply_reputation_delta
from .voting import VoteAction, VoteOutcome, VoteRequest, VoteState, cast_vote, get_vote_status

__all__ = [
    "Conflict", "EngineError", "LastAdminError", "NotFound", "Unauthenticated", "Unavailable",
    "NotificationPage",
    "list_notifications",
    "mark_read",
    "notify_answer_author",
    "notify_community_members",
    "unread_count",
    "apply_reputation_delta",
    "VoteAction", "VoteOutcome", "VoteRequest", "VoteState", "cast_vote", "get_vote_status",
]
