"""Business-state errors raised by the attendance services.

All of these are expected, recoverable conditions. They map to 4xx responses
and are never retried. Storage errors are not wrapped and propagate as-is.
"""

from app.constants.error_messages import ErrorCode


class AttendanceError(Exception):
    """Base class for attendance business-rule violations."""

    code: ErrorCode
    status_code: int = 400

    # Localized message to show; defaults to the one for ``code``
    message_key: ErrorCode = None

    def __init__(self, detail: str = None):
        self.detail = detail
        super().__init__(detail or self.code.value)

    @property
    def message_code(self) -> ErrorCode:
        return self.message_key or self.code


class AlreadyClockedIn(AttendanceError):
    code = ErrorCode.ALREADY_CLOCKED_IN


class NotClockedIn(AttendanceError):
    code = ErrorCode.NOT_CLOCKED_IN


class NotClockedInForBreak(NotClockedIn):
    """StartBreak without an active session."""
    message_key = ErrorCode.BREAK_REQUIRES_CLOCK_IN


class CannotClockOutDuringBreak(AttendanceError):
    code = ErrorCode.CANNOT_CLOCK_OUT_DURING_BREAK


class AlreadyOnBreak(AttendanceError):
    code = ErrorCode.ALREADY_ON_BREAK


class NotOnBreak(AttendanceError):
    code = ErrorCode.NOT_ON_BREAK


class TimeEntryNotFound(AttendanceError):
    code = ErrorCode.TIME_ENTRY_NOT_FOUND
    status_code = 404


class BreakNotFound(AttendanceError):
    code = ErrorCode.BREAK_NOT_FOUND
    status_code = 404


class ReasonRequired(AttendanceError):
    code = ErrorCode.REASON_REQUIRED


class InvalidTimeRange(AttendanceError):
    """A manager edit would leave an end time before its start time."""
    code = ErrorCode.INVALID_TIME_RANGE
