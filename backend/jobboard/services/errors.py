"""
Domain errors raised by the service layer.

Each error carries the HTTP status and a stable error code; the API layer
converts them into JSON responses in one exception handler (see main.py).
"""


class JobBoardError(Exception):
    """Base class for expected, caller-recoverable failures."""
    status_code = 400
    code = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFoundError(JobBoardError):
    """Entity is absent, or hidden from the caller by a visibility rule."""
    status_code = 404
    code = "not_found"


class ForbiddenError(JobBoardError):
    """Entity exists but the caller does not own it."""
    status_code = 403
    code = "forbidden"


class InvalidTransitionError(JobBoardError):
    """Raised when an invalid state transition is attempted"""
    status_code = 409
    code = "invalid_transition"


class DuplicateApplicationError(JobBoardError):
    status_code = 409
    code = "duplicate_application"


class JobInactiveError(JobBoardError):
    status_code = 400
    code = "inactive"


class DeadlinePassedError(JobBoardError):
    status_code = 400
    code = "deadline_passed"


class MissingResumeError(JobBoardError):
    status_code = 400
    code = "missing_resume"


class ValidationError(JobBoardError):
    """Malformed input that passed schema validation (e.g. salary_min > salary_max)."""
    status_code = 422
    code = "validation_error"
