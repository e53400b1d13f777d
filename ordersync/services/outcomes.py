from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Optional, TypeVar

from fastapi import HTTPException, status

T = TypeVar("T")


class ErrorKind(str, Enum):
    unauthorized = "unauthorized"
    invalid_transition = "invalid_transition"
    self_deletion_rejected = "self_deletion_rejected"
    not_found = "not_found"
    extraction_failed = "extraction_failed"


_HTTP_STATUS = {
    ErrorKind.unauthorized: status.HTTP_403_FORBIDDEN,
    ErrorKind.invalid_transition: status.HTTP_409_CONFLICT,
    ErrorKind.self_deletion_rejected: status.HTTP_400_BAD_REQUEST,
    ErrorKind.not_found: status.HTTP_404_NOT_FOUND,
    ErrorKind.extraction_failed: status.HTTP_422_UNPROCESSABLE_ENTITY,
}

_DEFAULT_DETAIL = {
    ErrorKind.unauthorized: "Not allowed",
    ErrorKind.invalid_transition: "Invalid status transition",
    ErrorKind.self_deletion_rejected: "You cannot delete your own account",
    ErrorKind.not_found: "Not found",
    ErrorKind.extraction_failed: "Could not extract order details",
}


@dataclass(frozen=True)
class Outcome(Generic[T]):
    """Result of a policy, state machine or adapter call.

    Exactly one of ``value`` (on success) or ``error`` (on failure) is meaningful.
    """

    ok: bool
    value: Optional[T] = None
    error: Optional[ErrorKind] = None
    detail: Optional[str] = None

    @classmethod
    def success(cls, value: Any = None) -> "Outcome":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: ErrorKind, detail: str | None = None) -> "Outcome":
        return cls(ok=False, error=error, detail=detail or _DEFAULT_DETAIL[error])

    def __bool__(self) -> bool:
        return self.ok


def raise_for_outcome(outcome: Outcome) -> Any:
    """Translate a failed outcome into the HTTP error the routers return."""
    if outcome.ok:
        return outcome.value
    raise HTTPException(status_code=_HTTP_STATUS[outcome.error], detail=outcome.detail)
