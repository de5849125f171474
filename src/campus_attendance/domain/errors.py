"""Errors raised by the attendance services."""


class AttendanceError(Exception):
    """Base error carrying a stable code and inspectable details."""

    error_code = "ATTENDANCE_ERROR"

    def __init__(self, message: str, details: dict[str, object] | None = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFound(AttendanceError):
    """No meeting, session or record exists for the given key."""

    error_code = "NOT_FOUND"


class Unauthorized(AttendanceError):
    """The actor does not own the course behind the meeting."""

    error_code = "UNAUTHORIZED"


class NotEnrolled(Unauthorized):
    """The student is not enrolled in the course behind the meeting."""

    error_code = "NOT_ENROLLED"


class InvalidState(AttendanceError):
    """The session is not in a state that allows the operation."""

    error_code = "INVALID_STATE"


class SignInUnavailable(InvalidState):
    """Sign-in attempted while the session is missing, locked or closed."""

    error_code = "SIGN_IN_UNAVAILABLE"


class InvalidInput(AttendanceError):
    """A request value could not be parsed."""

    error_code = "INVALID_INPUT"


class InvalidStatus(InvalidInput):
    """An attendance status string is not one of the known statuses."""

    error_code = "INVALID_STATUS"
