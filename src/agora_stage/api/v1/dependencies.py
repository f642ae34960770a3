"""Shared API dependencies for authentication and common functionality."""

from typing import Annotated

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from agora_stage.core.security import decode_access_token
from agora_stage.db.session import get_db
from agora_stage.models import User
from agora_stage.services.errors import Unauthenticated

# Missing credentials are reported by the service layer as Unauthenticated.
bearer_scheme = HTTPBearer(auto_error=False)

# Type alias for database session dependency
SessionDep = Annotated[Session, Depends(get_db)]
CredentialsDep = Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)]


def get_actor_id(credentials: CredentialsDep) -> int | None:
    """Return the user id carried by the bearer token, or None when absent or invalid.

    The id is not checked against the database here; the services do that as
    part of the operation they perform.
    """
    if credentials is None:
        return None
    return decode_access_token(credentials.credentials)


def get_current_user(credentials: CredentialsDep, db: SessionDep) -> User:
    """Get the current authenticated user from the JWT token.

    Raises:
        Unauthenticated: If the token is missing, invalid, or names an unknown user.
    """
    user_id = get_actor_id(credentials)
    if user_id is None:
        raise Unauthenticated("Could not validate credentials")

    user = db.get(User, user_id)
    if user is None:
        raise Unauthenticated("User not found")
    return user


# Type aliases for identity dependencies
ActorIdDep = Annotated[int | None, Depends(get_actor_id)]
CurrentUserDep = Annotated[User, Depends(get_current_user)]
