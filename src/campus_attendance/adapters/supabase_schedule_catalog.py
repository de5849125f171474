"""Supabase-backed read access to courses, meetings and enrollments."""

from dataclasses import dataclass
from datetime import time

from supabase import Client

from campus_attendance.domain.schedule import (
    WEEKDAY_NAMES,
    ClassMeeting,
    CourseType,
    StudentProfile,
)
from campus_attendance.services.catalog import ScheduleCatalog

_COURSE_COLUMNS = "id, course_code, course_name, semester, teacher_id"
_SCHEDULE_COLUMNS = (
    "id, course_id, day_of_week, start_time, end_time, room, building, course_type"
)


@dataclass
class SupabaseScheduleCatalog(ScheduleCatalog):
    """Supabase implementation of the schedule catalog."""

    client: Client

    def get_meeting(self, meeting_id: int) -> ClassMeeting | None:
        """Return a class meeting by id, if present."""
        response = (
            self.client.table("course_schedules")
            .select(_SCHEDULE_COLUMNS)
            .eq("id", meeting_id)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        row = response.data[0]
        courses = self._courses_by_id([int(row["course_id"])])
        course = courses.get(int(row["course_id"]))
        if course is None:
            return None
        return _parse_meeting(row, course)

    def meetings_for_teacher_on_weekday(
        self, teacher_id: int, weekday: int
    ) -> list[ClassMeeting]:
        """Return meetings of the teacher's courses on a weekday."""
        response = (
            self.client.table("courses")
            .select(_COURSE_COLUMNS)
            .eq("teacher_id", teacher_id)
            .execute()
        )
        courses = {int(row["id"]): row for row in response.data or []}
        return self._meetings_on_weekday(courses, weekday)

    def meetings_for_student_on_weekday(
        self, student_id: int, weekday: int
    ) -> list[ClassMeeting]:
        """Return meetings of the student's enrolled courses on a weekday."""
        response = (
            self.client.table("enrollments")
            .select("course_id")
            .eq("student_id", student_id)
            .execute()
        )
        course_ids = [int(row["course_id"]) for row in response.data or []]
        if not course_ids:
            return []
        return self._meetings_on_weekday(self._courses_by_id(course_ids), weekday)

    def meetings_for_course(self, course_id: int) -> list[ClassMeeting]:
        """Return every meeting slot of a course."""
        courses = self._courses_by_id([course_id])
        course = courses.get(course_id)
        if course is None:
            return []
        response = (
            self.client.table("course_schedules")
            .select(_SCHEDULE_COLUMNS)
            .eq("course_id", course_id)
            .execute()
        )
        return [_parse_meeting(row, course) for row in response.data or []]

    def owner_of(self, meeting_id: int) -> int | None:
        """Return the teacher owning the meeting's course."""
        meeting = self.get_meeting(meeting_id)
        return meeting.teacher_id if meeting else None

    def is_enrolled(self, student_id: int, course_id: int) -> bool:
        """Return True when an enrollment row exists."""
        response = (
            self.client.table("enrollments")
            .select("student_id")
            .eq("student_id", student_id)
            .eq("course_id", course_id)
            .limit(1)
            .execute()
        )
        return bool(response.data)

    def enrolled_students(self, course_id: int) -> list[StudentProfile]:
        """Return students enrolled in a course ordered by name."""
        response = (
            self.client.table("enrollments")
            .select("student_id")
            .eq("course_id", course_id)
            .execute()
        )
        student_ids = [int(row["student_id"]) for row in response.data or []]
        if not student_ids:
            return []
        response = (
            self.client.table("students")
            .select("id, full_name, matric_number, email")
            .in_("id", student_ids)
            .order("full_name", desc=False)
            .execute()
        )
        return [
            StudentProfile(
                id=int(row["id"]),
                full_name=str(row.get("full_name") or ""),
                matric_number=row.get("matric_number"),
                email=row.get("email"),
            )
            for row in response.data or []
        ]

    def _courses_by_id(self, course_ids: list[int]) -> dict[int, dict[str, object]]:
        response = (
            self.client.table("courses")
            .select(_COURSE_COLUMNS)
            .in_("id", course_ids)
            .execute()
        )
        return {int(row["id"]): row for row in response.data or []}

    def _meetings_on_weekday(
        self, courses: dict[int, dict[str, object]], weekday: int
    ) -> list[ClassMeeting]:
        if not courses:
            return []
        response = (
            self.client.table("course_schedules")
            .select(_SCHEDULE_COLUMNS)
            .in_("course_id", list(courses))
            .eq("day_of_week", WEEKDAY_NAMES[weekday])
            .order("start_time", desc=False)
            .execute()
        )
        return [
            _parse_meeting(row, courses[int(row["course_id"])])
            for row in response.data or []
            if int(row["course_id"]) in courses
        ]


def _parse_meeting(row: dict[str, object], course: dict[str, object]) -> ClassMeeting:
    course_type = row.get("course_type")
    return ClassMeeting(
        id=int(row["id"]),
        course_id=int(course["id"]),
        course_code=str(course.get("course_code") or ""),
        course_name=str(course.get("course_name") or ""),
        semester=course.get("semester"),
        teacher_id=int(course["teacher_id"]),
        weekday=WEEKDAY_NAMES.index(str(row["day_of_week"]).upper()),
        start_time=time.fromisoformat(str(row["start_time"])),
        end_time=time.fromisoformat(str(row["end_time"])),
        room=row.get("room"),
        building=row.get("building"),
        course_type=CourseType(course_type) if course_type else CourseType.LECTURE,
    )
