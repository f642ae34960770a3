# src/agora_stage/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .communities import router as communities_router
from .notifications import router as notifications_router
from .questions import router as questions_router
from .users import router as users_router
from .votes import router as votes_router

__all__ = [
    "communities_router",
    "notifications_router",
    "questions_router",
    "users_router",
    "votes_router",
]
