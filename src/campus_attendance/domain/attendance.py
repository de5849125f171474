"""Domain models for attendance sessions and records."""

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

DEFAULT_AUTO_CLOSE_MINUTES = 20


class SessionStatus(Enum):
    """Lifecycle state of a sign-in window."""

    LOCKED = "LOCKED"
    UNLOCKED = "UNLOCKED"
    CLOSED = "CLOSED"


class AttendanceStatus(Enum):
    """Outcome recorded for a student on a date."""

    PRESENT = "PRESENT"
    ABSENT = "ABSENT"
    LATE = "LATE"
    EXCUSED = "EXCUSED"


@dataclass(frozen=True)
class AttendanceSession:
    """Sign-in window of one class meeting on one calendar date."""

    meeting_id: int
    session_date: date
    status: SessionStatus = SessionStatus.LOCKED
    unlocked_at: datetime | None = None
    locked_at: datetime | None = None
    closed_at: datetime | None = None
    unlocked_by: int | None = None
    auto_close_minutes: int = DEFAULT_AUTO_CLOSE_MINUTES
    id: int | None = None

    @property
    def expires_at(self) -> datetime | None:
        """Return when the current window runs out, if it was ever opened."""
        if self.unlocked_at is None:
            return None
        return self.unlocked_at + timedelta(minutes=self.auto_close_minutes)

    def is_expired(self, now: datetime) -> bool:
        """Return True when an unlocked window has outlived its auto-close minutes."""
        if self.status is not SessionStatus.UNLOCKED or self.expires_at is None:
            return False
        return now > self.expires_at

    def effective_status(self, now: datetime) -> SessionStatus:
        """Return the status as seen by readers, counting unswept expiry."""
        if self.is_expired(now):
            return SessionStatus.CLOSED
        return self.status


@dataclass(frozen=True)
class AttendanceRecord:
    """A student's attendance outcome for a course on a date."""

    student_id: int
    course_id: int
    attendance_date: date
    status: AttendanceStatus
    check_in_time: datetime | None = None
    remarks: str | None = None
    location: str | None = None
    id: int | None = None
