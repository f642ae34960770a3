# src/agora_stage/schemas/__init__.py
"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .community import CommunityCreate, CommunityResponse
from .notification import NotificationListResponse, NotificationResponse, UnreadCountResponse
from .question import AnswerCreate, AnswerResponse, QuestionCreate, QuestionResponse
from .user import ReputationEventResponse, UserResponse
from .vote import (
    VoteCreate,
    VoteResult,
    VoteStatusBatchRequest,
    VoteStatusBatchResponse,
    VoteStatusResponse,
)

__all__ = [
    "CommunityCreate", "CommunityResponse",
    "NotificationListResponse", "NotificationResponse", "UnreadCountResponse",
    "AnswerCreate", "AnswerResponse", "QuestionCreate", "QuestionResponse",
    "ReputationEventResponse", "UserResponse",
    "VoteCreate", "VoteResult", "VoteStatusBatchRequest", "VoteStatusBatchResponse",
    "VoteStatusResponse",
]
