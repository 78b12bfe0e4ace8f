"""Error hierarchy for scheduling operations."""

from typing import Dict, List, Optional, Sequence


class ScheduleError(Exception):
    """Base class for scheduling errors."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ScheduleError, ValueError):
    """Input failed validation before any network call was made."""

    def __init__(self, errors: Dict[str, str], message: Optional[str] = None):
        self.errors = dict(errors)
        super().__init__(message or "; ".join(f"{k}: {v}" for k, v in self.errors.items()))


class ConflictError(ScheduleError):
    """An operation would overlap an existing booking or unavailable range.

    Nothing has been applied. Retrying with ``force=True`` overrides the
    warning.
    """

    def __init__(self, message: str, conflicts: Sequence = ()):
        super().__init__(message)
        self.conflicts: List = list(conflicts)


class NotAuthenticatedError(ScheduleError):
    """An admin call was attempted without a bearer token."""

    def __init__(self, message: str = "Not authenticated: sign in as an admin to continue"):
        super().__init__(message)


class BackendError(ScheduleError):
    """The backend rejected a request; ``message`` is its text verbatim."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class BackendUnavailableError(BackendError):
    """The backend could not be reached or did not answer in time."""


class AvailabilityUnavailableError(ScheduleError):
    """Booked-slot data is missing, so no slot can be offered as free."""


class EditorStateError(ScheduleError):
    """The schedule editor cannot perform the operation in its current state."""
