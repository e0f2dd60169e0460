from __future__ import annotations

from typing import Any, Mapping, Optional


class DomainError(Exception):
    """Base exception for business rule violations."""

    kind = "domain_error"


class NotFoundError(DomainError):
    """Raised when a device, room, booking or request id does not resolve."""

    kind = "not_found"


class ForbiddenError(DomainError):
    """Raised when the actor lacks the required role or does not own the entity."""

    kind = "forbidden"


class InvalidTransitionError(DomainError):
    """Raised when the current state does not permit the requested transition."""

    kind = "invalid_transition"


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""

    kind = "validation_error"


class InvalidIntervalError(ValidationError):
    """Raised when a booking interval is malformed (end <= start)."""

    kind = "invalid_interval"


class ConflictError(DomainError):
    """Raised on resource contention: a second active request or an overlapping booking.

    Callers may retry; the core never does.
    """

    kind = "conflict"

    def __init__(
        self,
        message: str,
        *,
        conflicting_id: Optional[int] = None,
        details: Optional[Mapping[str, Any]] = None,
    ):
        super().__init__(message)
        self.conflicting_id = conflicting_id
        self.details = dict(details) if details else None


class BookingLimitError(ConflictError):
    """Raised when the requester already holds an active (confirmed) booking."""

    kind = "booking_limit_exceeded"
