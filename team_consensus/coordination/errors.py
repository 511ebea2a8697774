"""
Coordination error taxonomy.

Every failure a coordination component can report falls into one of three
kinds: invalid input, a missing session/record, or a durable-store failure.
Components raise these; the public service boundary turns them into
failure results (see ``results.OperationResult``).
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from team_consensus.store.service import StoreError


class CoordinationError(Exception):
    """Base class for all coordination failures."""

    def __init__(self, message: str, **details: Any) -> None:
        super().__init__(message)
        self.message = message
        self.details = details


class ValidationError(CoordinationError):
    """Missing required field or unrecognized value."""


class InvalidCategoryError(ValidationError):
    """Decision category outside CRITICAL / MAJOR / MINOR."""


class SessionClosedError(ValidationError):
    """Attempt to complete a session that is already completed."""


class NotFoundError(CoordinationError):
    """The referenced session (or contribution) does not exist."""


class PersistenceError(CoordinationError):
    """The durable store rejected or failed a read or write."""


class EmergencyBroadcastError(PersistenceError):
    """The alert broadcast failed after its emergency session was created."""


@contextmanager
def store_errors(action: str) -> Iterator[None]:
    """Re-raise durable store failures inside the block as PersistenceError."""
    try:
        yield
    except StoreError as exc:
        raise PersistenceError(f"{action} failed: {exc}") from exc
