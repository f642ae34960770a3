# src/agora_stage/api/v1/__init__.py
"""Version 1 API endpoints."""

from .endpoints import (
    communities_router,
    notifications_router,
    questions_router,
    users_router,
    votes_router,
)

__all__ = [
    "communities_router",
    "notifications_router",
    "questions_router",
    "users_router",
    "votes_router",
]
