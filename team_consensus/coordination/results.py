"""
Tagged operation results.

Public coordination operations never raise taxonomy errors to their
callers. They return an ``OperationResult`` whose ``error_kind`` names
the failure variant, so transport adapters can map results straight to
status codes.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable

from pydantic import ValidationError as ModelValidationError

from team_consensus.coordination.errors import (
    CoordinationError,
    NotFoundError,
    PersistenceError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """One variant per entry of the error taxonomy."""

    VALIDATION = "validation_error"
    NOT_FOUND = "not_found"
    PERSISTENCE = "persistence_error"


def classify(error: CoordinationError) -> ErrorKind:
    """Map a taxonomy error to its result variant."""
    if isinstance(error, NotFoundError):
        return ErrorKind.NOT_FOUND
    if isinstance(error, PersistenceError):
        return ErrorKind.PERSISTENCE
    if isinstance(error, ValidationError):
        return ErrorKind.VALIDATION
    return ErrorKind.PERSISTENCE


@dataclass
class OperationResult:
    """Outcome of one public operation."""

    success: bool
    data: dict[str, Any] = field(default_factory=dict)
    error: str | None = None
    error_kind: ErrorKind | None = None

    @classmethod
    def ok(cls, **data: Any) -> OperationResult:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: CoordinationError) -> OperationResult:
        return cls(
            success=False,
            data=dict(error.details),
            error=error.message,
            error_kind=classify(error),
        )

    def to_dict(self) -> dict[str, Any]:
        """Flatten to the ``{success, ...}`` / ``{success, error}`` wire shape."""
        if self.success:
            return {"success": True, **self.data}
        return {
            "success": False,
            "error": self.error,
            "error_kind": self.error_kind.value if self.error_kind else None,
            **self.data,
        }


def operation(name: str) -> Callable[[Callable[..., OperationResult]], Callable[..., OperationResult]]:
    """
    Decorate a public operation so taxonomy errors become failure results.

    Pydantic validation errors raised while building inputs count as
    validation failures. Any other exception propagates unchanged.
    """

    def decorator(func: Callable[..., OperationResult]) -> Callable[..., OperationResult]:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> OperationResult:
            try:
                return func(*args, **kwargs)
            except CoordinationError as exc:
                logger.error("%s failed: %s", name, exc.message)
                return OperationResult.failure(exc)
            except ModelValidationError as exc:
                logger.error("%s rejected invalid input: %s", name, exc)
                return OperationResult.failure(
                    ValidationError(f"Invalid input: {exc.errors(include_url=False)}")
                )

        return wrapper

    return decorator
