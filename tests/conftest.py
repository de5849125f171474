"""Shared test fixtures."""

import threading
import time as time_module
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime, time, timedelta

import pytest

from campus_attendance.config import Settings
from campus_attendance.containers import AppContainer
from campus_attendance.domain.attendance import (
    AttendanceRecord,
    AttendanceSession,
    SessionStatus,
)
from campus_attendance.domain.schedule import ClassMeeting, StudentProfile
from campus_attendance.services.catalog import ScheduleCatalog
from campus_attendance.services.ledger import AttendanceLedger, AttendanceRepository
from campus_attendance.services.sessions import (
    SessionLifecycleService,
    SessionRepository,
)
from campus_attendance.services.sweeper import AutoCloseSweeper
from campus_attendance.services.views import DayViewService

# A Monday.
SESSION_DATE = date(2025, 11, 10)
TEACHER_ID = 7
OTHER_TEACHER_ID = 8
STUDENT_ID = 100
SECOND_STUDENT_ID = 101
OUTSIDER_ID = 999
COURSE_ID = 1
MEETING_ID = 11
SECOND_MEETING_ID = 12
OTHER_COURSE_MEETING_ID = 21


@dataclass
class FakeClock:
    """Controllable clock returning a fixed instant."""

    now: datetime = field(
        default_factory=lambda: datetime(2025, 11, 10, 9, 0, tzinfo=UTC)
    )

    def __call__(self) -> datetime:
        return self.now

    def advance(self, minutes: float) -> datetime:
        self.now = self.now + timedelta(minutes=minutes)
        return self.now


@dataclass
class InMemoryScheduleCatalog(ScheduleCatalog):
    """In-memory schedule catalog for tests."""

    meetings: dict[int, ClassMeeting] = field(default_factory=dict)
    enrollments: set[tuple[int, int]] = field(default_factory=set)
    students: dict[int, StudentProfile] = field(default_factory=dict)

    def get_meeting(self, meeting_id: int) -> ClassMeeting | None:
        return self.meetings.get(meeting_id)

    def meetings_for_teacher_on_weekday(
        self, teacher_id: int, weekday: int
    ) -> list[ClassMeeting]:
        return [
            meeting
            for meeting in self.meetings.values()
            if meeting.teacher_id == teacher_id and meeting.weekday == weekday
        ]

    def meetings_for_student_on_weekday(
        self, student_id: int, weekday: int
    ) -> list[ClassMeeting]:
        return [
            meeting
            for meeting in self.meetings.values()
            if (student_id, meeting.course_id) in self.enrollments
            and meeting.weekday == weekday
        ]

    def meetings_for_course(self, course_id: int) -> list[ClassMeeting]:
        return [m for m in self.meetings.values() if m.course_id == course_id]

    def owner_of(self, meeting_id: int) -> int | None:
        meeting = self.meetings.get(meeting_id)
        return meeting.teacher_id if meeting else None

    def is_enrolled(self, student_id: int, course_id: int) -> bool:
        return (student_id, course_id) in self.enrollments

    def enrolled_students(self, course_id: int) -> list[StudentProfile]:
        return [
            self.students[student_id]
            for student_id, enrolled_course in sorted(self.enrollments)
            if enrolled_course == course_id and student_id in self.students
        ]


@dataclass
class InMemorySessionRepository(SessionRepository):
    """In-memory session repository for tests."""

    sessions: dict[tuple[int, date], AttendanceSession] = field(default_factory=dict)
    saves: int = 0
    created: int = 0
    failing_meetings: set[int] = field(default_factory=set)
    read_delay: float = 0.0
    _next_id: int = 1

    def get_session(
        self, meeting_id: int, session_date: date
    ) -> AttendanceSession | None:
        session = self.sessions.get((meeting_id, session_date))
        if self.read_delay:
            time_module.sleep(self.read_delay)
        return session

    def save_session(self, session: AttendanceSession) -> AttendanceSession:
        if session.meeting_id in self.failing_meetings:
            raise RuntimeError("store unavailable")
        if session.id is None:
            session = replace(session, id=self._next_id)
            self._next_id += 1
            self.created += 1
        self.sessions[(session.meeting_id, session.session_date)] = session
        self.saves += 1
        return session

    def list_sessions_by_status(
        self, status: SessionStatus
    ) -> list[AttendanceSession]:
        return [s for s in self.sessions.values() if s.status is status]

    def count_sessions_excluding_status(
        self, meeting_ids: list[int], status: SessionStatus
    ) -> int:
        return sum(
            1
            for s in self.sessions.values()
            if s.meeting_id in meeting_ids and s.status is not status
        )


@dataclass
class InMemoryAttendanceRepository(AttendanceRepository):
    """In-memory attendance repository that keeps every write."""

    records: dict[tuple[int, int, date], AttendanceRecord] = field(
        default_factory=dict
    )
    writes: list[AttendanceRecord] = field(default_factory=list)
    read_delay: float = 0.0
    _lock: threading.Lock = field(default_factory=threading.Lock)
    _next_id: int = 1

    def get_record(
        self, student_id: int, course_id: int, attendance_date: date
    ) -> AttendanceRecord | None:
        record = self.records.get((student_id, course_id, attendance_date))
        if self.read_delay:
            time_module.sleep(self.read_delay)
        return record

    def save_record(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            key = (record.student_id, record.course_id, record.attendance_date)
            if record.id is None:
                record = replace(record, id=self._next_id)
                self._next_id += 1
            self.records[key] = record
            self.writes.append(record)
        return record

    def add_record_if_absent(self, record: AttendanceRecord) -> AttendanceRecord:
        with self._lock:
            key = (record.student_id, record.course_id, record.attendance_date)
            if key in self.records:
                return self.records[key]
            record = replace(record, id=self._next_id)
            self._next_id += 1
            self.records[key] = record
            self.writes.append(record)
        return record

    def list_student_course_records(
        self, student_id: int, course_id: int
    ) -> list[AttendanceRecord]:
        return [
            r
            for r in self.records.values()
            if r.student_id == student_id and r.course_id == course_id
        ]

    def list_course_records(
        self, course_id: int, attendance_date: date
    ) -> list[AttendanceRecord]:
        return [
            r
            for r in self.records.values()
            if r.course_id == course_id and r.attendance_date == attendance_date
        ]


def make_meeting(  # noqa: PLR0913
    meeting_id: int,
    course_id: int = COURSE_ID,
    teacher_id: int = TEACHER_ID,
    weekday: int = 0,
    start: time = time(9, 0),
    end: time = time(11, 0),
    course_code: str = "COMP1001",
) -> ClassMeeting:
    return ClassMeeting(
        id=meeting_id,
        course_id=course_id,
        course_code=course_code,
        course_name="Programming Fundamentals",
        semester="2025-AUT",
        teacher_id=teacher_id,
        weekday=weekday,
        start_time=start,
        end_time=end,
        room="BB80",
        building="Trent",
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def catalog() -> InMemoryScheduleCatalog:
    catalog = InMemoryScheduleCatalog()
    catalog.meetings[MEETING_ID] = make_meeting(MEETING_ID)
    catalog.meetings[SECOND_MEETING_ID] = make_meeting(
        SECOND_MEETING_ID, weekday=2, start=time(14, 0), end=time(15, 0)
    )
    catalog.meetings[OTHER_COURSE_MEETING_ID] = make_meeting(
        OTHER_COURSE_MEETING_ID,
        course_id=2,
        teacher_id=OTHER_TEACHER_ID,
        start=time(8, 0),
        end=time(9, 0),
        course_code="MATH1002",
    )
    catalog.enrollments.update(
        {(STUDENT_ID, COURSE_ID), (SECOND_STUDENT_ID, COURSE_ID), (STUDENT_ID, 2)}
    )
    catalog.students[STUDENT_ID] = StudentProfile(
        id=STUDENT_ID, full_name="Ada Lovelace", matric_number="20001", email="a@x"
    )
    catalog.students[SECOND_STUDENT_ID] = StudentProfile(
        id=SECOND_STUDENT_ID, full_name="Alan Turing", matric_number="20002"
    )
    return catalog


@pytest.fixture
def session_repository() -> InMemorySessionRepository:
    return InMemorySessionRepository()


@pytest.fixture
def attendance_repository() -> InMemoryAttendanceRepository:
    return InMemoryAttendanceRepository()


@pytest.fixture
def session_service(
    catalog: InMemoryScheduleCatalog,
    session_repository: InMemorySessionRepository,
    attendance_repository: InMemoryAttendanceRepository,
    clock: FakeClock,
) -> SessionLifecycleService:
    return SessionLifecycleService(
        catalog=catalog,
        session_repository=session_repository,
        ledger=AttendanceLedger(attendance_repository),
        clock=clock,
    )


@pytest.fixture
def sweeper(session_service: SessionLifecycleService) -> AutoCloseSweeper:
    return AutoCloseSweeper(session_service, interval_seconds=0.01)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        sweeper_enabled=False,
    )


@pytest.fixture
def container(
    settings: Settings,
    session_service: SessionLifecycleService,
    sweeper: AutoCloseSweeper,
) -> AppContainer:
    return AppContainer(
        settings=settings,
        session_service=session_service,
        sweeper=sweeper,
        day_view_service=DayViewService(session_service),
    )
