"""Read-side projections returned by the query facade."""

from dataclasses import dataclass
from datetime import datetime

from campus_attendance.domain.attendance import AttendanceStatus, SessionStatus
from campus_attendance.domain.schedule import ClassMeeting


@dataclass(frozen=True)
class MeetingDayView:
    """A class meeting on a date joined with its session state."""

    meeting: ClassMeeting
    session_status: SessionStatus
    unlocked_at: datetime | None = None
    has_signed: bool | None = None
    attendance_status: AttendanceStatus | None = None
    attended_classes: int | None = None
    total_signed_classes: int | None = None

    @property
    def attendance_rate(self) -> float | None:
        """Return attended / opened sessions, when both are known."""
        if self.attended_classes is None or not self.total_signed_classes:
            return None
        return self.attended_classes / self.total_signed_classes


@dataclass(frozen=True)
class RosterEntry:
    """Attendance of one enrolled student for a meeting's course on a date."""

    student_id: int
    full_name: str
    matric_number: str | None
    email: str | None
    has_attended: bool
    attendance_status: AttendanceStatus | None
    check_in_time: datetime | None
