"""Domain models for the schedule catalog."""

from dataclasses import dataclass
from datetime import time
from enum import Enum

WEEKDAY_NAMES = (
    "MONDAY",
    "TUESDAY",
    "WEDNESDAY",
    "THURSDAY",
    "FRIDAY",
    "SATURDAY",
    "SUNDAY",
)


class CourseType(Enum):
    """Kind of class meeting."""

    LECTURE = "LECTURE"
    TUTORIAL = "TUTORIAL"
    COMPUTING = "COMPUTING"
    LAB = "LAB"


class Role(Enum):
    """Who is asking for a day view."""

    TEACHER = "TEACHER"
    STUDENT = "STUDENT"


@dataclass(frozen=True)
class ClassMeeting:
    """A recurring weekly meeting slot of a course."""

    id: int
    course_id: int
    course_code: str
    course_name: str
    teacher_id: int
    weekday: int
    start_time: time
    end_time: time
    semester: str | None = None
    room: str | None = None
    building: str | None = None
    course_type: CourseType = CourseType.LECTURE


@dataclass(frozen=True)
class StudentProfile:
    """Minimal view of a student enrolled in a course."""

    id: int
    full_name: str
    matric_number: str | None = None
    email: str | None = None
