"""Read-only access to class meetings, ownership and enrollment."""

from typing import Protocol

from campus_attendance.domain.schedule import ClassMeeting, StudentProfile


class ScheduleCatalog(Protocol):
    """Lookup interface over courses, meetings and enrollments."""

    def get_meeting(self, meeting_id: int) -> ClassMeeting | None:
        """Return a class meeting by id, if present."""

    def meetings_for_teacher_on_weekday(
        self, teacher_id: int, weekday: int
    ) -> list[ClassMeeting]:
        """Return meetings of courses taught by the teacher on a weekday."""

    def meetings_for_student_on_weekday(
        self, student_id: int, weekday: int
    ) -> list[ClassMeeting]:
        """Return meetings of courses the student is enrolled in on a weekday."""

    def meetings_for_course(self, course_id: int) -> list[ClassMeeting]:
        """Return every meeting slot of a course."""

    def owner_of(self, meeting_id: int) -> int | None:
        """Return the teacher id owning the meeting's course."""

    def is_enrolled(self, student_id: int, course_id: int) -> bool:
        """Return True when the student is enrolled in the course."""

    def enrolled_students(self, course_id: int) -> list[StudentProfile]:
        """Return the students enrolled in a course."""
