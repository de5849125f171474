"""Pydantic models for the attendance HTTP API."""

from datetime import date, datetime, time

from pydantic import BaseModel

from campus_attendance.domain.attendance import AttendanceRecord, AttendanceSession
from campus_attendance.domain.schedule import WEEKDAY_NAMES
from campus_attendance.domain.views import MeetingDayView, RosterEntry


class SessionRequest(BaseModel):
    """Identifies one meeting on one date."""

    course_schedule_id: int
    session_date: date


class MarkAttendanceRequest(SessionRequest):
    """Teacher override of a student's attendance status."""

    student_id: int
    status: str
    remarks: str | None = None


class SessionResponse(BaseModel):
    """Attendance session payload."""

    id: int | None = None
    course_schedule_id: int
    session_date: date
    status: str
    unlocked_at: datetime | None = None
    locked_at: datetime | None = None
    closed_at: datetime | None = None
    unlocked_by: int | None = None
    auto_close_minutes: int

    @classmethod
    def from_domain(cls, session: AttendanceSession) -> "SessionResponse":
        return cls(
            id=session.id,
            course_schedule_id=session.meeting_id,
            session_date=session.session_date,
            status=session.status.value,
            unlocked_at=session.unlocked_at,
            locked_at=session.locked_at,
            closed_at=session.closed_at,
            unlocked_by=session.unlocked_by,
            auto_close_minutes=session.auto_close_minutes,
        )


class AttendanceResponse(BaseModel):
    """Attendance record payload."""

    id: int | None = None
    student_id: int
    course_id: int
    attendance_date: date
    status: str
    check_in_time: datetime | None = None
    remarks: str | None = None
    location: str | None = None

    @classmethod
    def from_domain(cls, record: AttendanceRecord) -> "AttendanceResponse":
        return cls(
            id=record.id,
            student_id=record.student_id,
            course_id=record.course_id,
            attendance_date=record.attendance_date,
            status=record.status.value,
            check_in_time=record.check_in_time,
            remarks=record.remarks,
            location=record.location,
        )


class CourseScheduleResponse(BaseModel):
    """A meeting on a date with its session and attendance state."""

    id: int
    course_id: int
    course_code: str
    course_name: str
    semester: str | None = None
    day_of_week: str
    start_time: time
    end_time: time
    room: str | None = None
    building: str | None = None
    course_type: str
    session_status: str
    unlocked_at: datetime | None = None
    has_student_signed: bool | None = None
    attendance_status: str | None = None
    attended_classes: int | None = None
    total_signed_classes: int | None = None
    attendance_rate: float | None = None

    @classmethod
    def from_domain(cls, view: MeetingDayView) -> "CourseScheduleResponse":
        meeting = view.meeting
        return cls(
            id=meeting.id,
            course_id=meeting.course_id,
            course_code=meeting.course_code,
            course_name=meeting.course_name,
            semester=meeting.semester,
            day_of_week=WEEKDAY_NAMES[meeting.weekday],
            start_time=meeting.start_time,
            end_time=meeting.end_time,
            room=meeting.room,
            building=meeting.building,
            course_type=meeting.course_type.value,
            session_status=view.session_status.value,
            unlocked_at=view.unlocked_at,
            has_student_signed=view.has_signed,
            attendance_status=(
                view.attendance_status.value if view.attendance_status else None
            ),
            attended_classes=view.attended_classes,
            total_signed_classes=view.total_signed_classes,
            attendance_rate=view.attendance_rate,
        )


class StudentAttendanceResponse(BaseModel):
    """One enrolled student's attendance for a meeting's course on a date."""

    student_id: int
    student_name: str
    matric_number: str | None = None
    email: str | None = None
    has_attended: bool
    attendance_status: str | None = None
    check_in_time: datetime | None = None

    @classmethod
    def from_domain(cls, entry: RosterEntry) -> "StudentAttendanceResponse":
        return cls(
            student_id=entry.student_id,
            student_name=entry.full_name,
            matric_number=entry.matric_number,
            email=entry.email,
            has_attended=entry.has_attended,
            attendance_status=(
                entry.attendance_status.value if entry.attendance_status else None
            ),
            check_in_time=entry.check_in_time,
        )
