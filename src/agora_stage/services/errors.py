"""Error taxonomy shared by the vote, reputation and notification services."""
from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError

logger = logging.getLogger(__name__)


class EngineError(Exception):
    """Base class for errors raised by the service layer."""

    status_code = 500

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class Unauthenticated(EngineError):
    """No actor identity was supplied."""

    status_code = 401


class NotFound(EngineError):
    """A referenced user, target or notification does not exist."""

    status_code = 404


class Conflict(EngineError):
    """A uniqueness constraint rejected the write."""

    status_code = 409


class LastAdminError(Conflict):
    """The sole remaining admin tried to leave a community."""


class Unavailable(EngineError):
    """The relational store could not complete a round trip."""

    status_code = 503


@contextmanager
def storage_errors(operation: str) -> Iterator[None]:
    """Re-raise driver-level connectivity failures as :class:`Unavailable`."""
    try:
        yield
    except OperationalError as err:
        logger.warning("Storage failure during %s: %s", operation, err)
        raise Unavailable(f"Storage unavailable during {operation}") from err
