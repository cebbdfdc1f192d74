"""
Domain error taxonomy.

Every failure of a roster operation is scoped to the single user action that
caused it. The HTTP layer maps these to status codes in
``core.middleware.error_handling``.
"""


class RosterError(Exception):
    """Base exception for roster domain errors."""

    code = "ROSTER_ERROR"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidInputError(RosterError):
    """Rejected before any store call (e.g. end before start)."""

    code = "INVALID_INPUT"


class NotFoundError(RosterError):
    """The addressed row does not exist."""

    code = "NOT_FOUND"


class PermissionDeniedError(RosterError):
    """Caller lacks the role required for the operation."""

    code = "PERMISSION_DENIED"


class ConflictError(RosterError):
    """A transition guard rejected the request (duplicate, full job, wrong state)."""

    code = "CONFLICT"


class StaleStateError(RosterError):
    """
    The row changed underneath the caller.

    Someone else already acted (invitation withdrawn, slot already claimed).
    Callers should drop the stale item instead of retrying.
    """

    code = "NO_LONGER_VALID"
