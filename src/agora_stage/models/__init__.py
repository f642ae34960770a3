# src/agora_stage/models/__init__.py
"""SQLAlchemy models for the Agora application."""

from .community import Community, CommunityMember
from .notification import Notification, NotificationType
from .question import Answer, Question
from .reputation import ReputationEvent, ReputationReason
from .user import User
from .vote import TargetKind, Vote, VoteType

__all__ = [
    "Community", "CommunityMember",
    "Notification", "NotificationType",
    "Answer", "Question",
    "ReputationEvent", "ReputationReason",
    "User",
    "TargetKind", "Vote", "VoteType",
]
