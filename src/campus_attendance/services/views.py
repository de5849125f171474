"""Read-side composition of meetings, sessions and attendance."""

from dataclasses import dataclass
from datetime import date, datetime

from campus_attendance.domain.attendance import AttendanceStatus, SessionStatus
from campus_attendance.domain.errors import NotFound, Unauthorized
from campus_attendance.domain.schedule import ClassMeeting, Role
from campus_attendance.domain.views import MeetingDayView, RosterEntry
from campus_attendance.services.sessions import SessionLifecycleService


@dataclass
class DayViewService:
    """Pure read projection over the catalog, sessions and the ledger."""

    session_service: SessionLifecycleService

    def day_view(
        self, person_id: int, role: Role, day: date
    ) -> list[MeetingDayView]:
        """Return a person's meetings on a date with session and attendance state."""
        catalog = self.session_service.catalog
        weekday = day.weekday()
        if role is Role.TEACHER:
            meetings = catalog.meetings_for_teacher_on_weekday(person_id, weekday)
        else:
            meetings = catalog.meetings_for_student_on_weekday(person_id, weekday)
        now = self.session_service.clock()
        student_id = person_id if role is Role.STUDENT else None
        views = [
            self._meeting_view(meeting, day, now, student_id) for meeting in meetings
        ]
        return sorted(views, key=lambda view: view.meeting.start_time)

    def roster(
        self, meeting_id: int, day: date, teacher_id: int
    ) -> list[RosterEntry]:
        """Return every enrolled student with their attendance on a date."""
        catalog = self.session_service.catalog
        meeting = catalog.get_meeting(meeting_id)
        if meeting is None:
            raise NotFound("Course schedule not found", {"meeting_id": meeting_id})
        if catalog.owner_of(meeting_id) != teacher_id:
            raise Unauthorized(
                "Unauthorized: You don't teach this course",
                {"meeting_id": meeting_id, "teacher_id": teacher_id},
            )
        records = self.session_service.ledger.records_for_course(
            meeting.course_id, day
        )
        entries = []
        for student in catalog.enrolled_students(meeting.course_id):
            record = records.get(student.id)
            entries.append(
                RosterEntry(
                    student_id=student.id,
                    full_name=student.full_name,
                    matric_number=student.matric_number,
                    email=student.email,
                    has_attended=record is not None,
                    attendance_status=record.status if record else None,
                    check_in_time=record.check_in_time if record else None,
                )
            )
        return entries

    def _meeting_view(
        self,
        meeting: ClassMeeting,
        day: date,
        now: datetime,
        student_id: int | None,
    ) -> MeetingDayView:
        session = self.session_service.get_session(meeting.id, day)
        if session is None:
            status = SessionStatus.LOCKED
            unlocked_at = None
        else:
            status = session.effective_status(now)
            unlocked_at = session.unlocked_at
        if student_id is None:
            return MeetingDayView(
                meeting=meeting, session_status=status, unlocked_at=unlocked_at
            )

        ledger = self.session_service.ledger
        record = ledger.get_record(student_id, meeting.course_id, day)
        course_meeting_ids = [
            course_meeting.id
            for course_meeting in self.session_service.catalog.meetings_for_course(
                meeting.course_id
            )
        ]
        # Denominator spans every meeting slot of the course, not just this one.
        session_repository = self.session_service.session_repository
        total_signed = session_repository.count_sessions_excluding_status(
            course_meeting_ids, SessionStatus.LOCKED
        )
        return MeetingDayView(
            meeting=meeting,
            session_status=status,
            unlocked_at=unlocked_at,
            has_signed=(
                record is not None and record.status is AttendanceStatus.PRESENT
            ),
            attendance_status=record.status if record else None,
            attended_classes=ledger.count_present(student_id, meeting.course_id),
            total_signed_classes=total_signed,
        )
