"""Domain errors raised by the scheduling core.

Routes stay thin: services raise these and the host maps them to HTTP
status codes through ERROR_STATUS (first matching class wins).
"""
from __future__ import annotations


class SchedulerError(Exception):
    """Base class for every error the core surfaces to callers."""


class PermissionDeniedError(SchedulerError):
    """Caller lacks team/admin/authentication standing or is outside the booking window."""


class NotFoundError(SchedulerError):
    """No active record matched."""


class DuplicateError(SchedulerError):
    """An active record already holds the key."""


class ConflictError(DuplicateError):
    """Another change claimed the key while this one waited for the lock."""


class ValidationError(SchedulerError):
    """Request is well-formed but not acceptable."""


class InitializationError(Exception):
    """A data file could not be loaded at startup. Fatal."""


STATUS_FORBIDDEN = 403
STATUS_NOT_FOUND = 404
STATUS_CONFLICT = 409
STATUS_UNPROCESSABLE = 422

# Order matters: subclasses before their bases.
ERROR_STATUS: list[tuple[type[SchedulerError], int]] = [
    (PermissionDeniedError, STATUS_FORBIDDEN),
    (NotFoundError, STATUS_NOT_FOUND),
    (ConflictError, STATUS_CONFLICT),
    (DuplicateError, STATUS_CONFLICT),
    (ValidationError, STATUS_UNPROCESSABLE),
]


def status_for(exc: SchedulerError) -> int:
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return 400
