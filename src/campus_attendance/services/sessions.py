"""Session lifecycle state machine for attendance sign-in windows."""

import logging
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from datetime import UTC, date, datetime
from typing import Protocol

from campus_attendance.domain.attendance import (
    DEFAULT_AUTO_CLOSE_MINUTES,
    AttendanceRecord,
    AttendanceSession,
    AttendanceStatus,
    SessionStatus,
)
from campus_attendance.domain.errors import (
    InvalidState,
    InvalidStatus,
    NotEnrolled,
    NotFound,
    SignInUnavailable,
    Unauthorized,
)
from campus_attendance.domain.schedule import ClassMeeting
from campus_attendance.services.catalog import ScheduleCatalog
from campus_attendance.services.ledger import AttendanceLedger
from campus_attendance.services.locks import KeyedLocks

logger = logging.getLogger(__name__)


class SessionRepository(Protocol):
    """Persistence interface for attendance sessions."""

    def get_session(
        self, meeting_id: int, session_date: date
    ) -> AttendanceSession | None:
        """Return the session for a meeting and date, if present."""

    def save_session(self, session: AttendanceSession) -> AttendanceSession:
        """Insert or update the session keyed by meeting and date."""

    def list_sessions_by_status(
        self, status: SessionStatus
    ) -> list[AttendanceSession]:
        """Return every session currently in the given status."""

    def count_sessions_excluding_status(
        self, meeting_ids: list[int], status: SessionStatus
    ) -> int:
        """Count sessions of the given meetings whose status differs."""


def utcnow() -> datetime:
    """Return the current time in UTC."""
    return datetime.now(tz=UTC)


def parse_attendance_status(raw: str | AttendanceStatus) -> AttendanceStatus:
    """Parse a status name case-insensitively."""
    if isinstance(raw, AttendanceStatus):
        return raw
    try:
        return AttendanceStatus[raw.strip().upper()]
    except (KeyError, AttributeError):
        raise InvalidStatus(
            f"Invalid attendance status: {raw}", {"status": raw}
        ) from None


@dataclass
class SessionLifecycleService:
    """Owns every transition of attendance sessions.

    Each transition reads the current session, checks its precondition and
    writes the new state while holding the (meeting, date) key, so manual
    actions and the auto-close sweep never interleave on one session.
    """

    catalog: ScheduleCatalog
    session_repository: SessionRepository
    ledger: AttendanceLedger
    auto_close_minutes: int = DEFAULT_AUTO_CLOSE_MINUTES
    clock: Callable[[], datetime] = utcnow
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def get_session(
        self, meeting_id: int, session_date: date
    ) -> AttendanceSession | None:
        """Return the stored session for a meeting and date, if any."""
        return self.session_repository.get_session(meeting_id, session_date)

    def open_sessions(self) -> list[AttendanceSession]:
        """Return sessions currently in the UNLOCKED state."""
        return self.session_repository.list_sessions_by_status(SessionStatus.UNLOCKED)

    def unlock(
        self, meeting_id: int, session_date: date, teacher_id: int
    ) -> AttendanceSession:
        """Open the sign-in window, creating the session on first use.

        Unlocking an already open session restarts its auto-close timer.
        """
        self._require_owner(meeting_id, teacher_id)
        with self.locks.hold((meeting_id, session_date)):
            current = self.session_repository.get_session(meeting_id, session_date)
            now = self.clock()
            if current is None:
                current = AttendanceSession(
                    meeting_id=meeting_id,
                    session_date=session_date,
                    auto_close_minutes=self.auto_close_minutes,
                )
            else:
                _reject_closed(current, now)
            session = self.session_repository.save_session(
                replace(
                    current,
                    status=SessionStatus.UNLOCKED,
                    unlocked_at=now,
                    unlocked_by=teacher_id,
                )
            )
        logger.info(
            "Session unlocked: meeting=%s date=%s teacher=%s",
            meeting_id,
            session_date,
            teacher_id,
        )
        return session

    def lock(
        self, meeting_id: int, session_date: date, teacher_id: int
    ) -> AttendanceSession:
        """Pause the sign-in window; the teacher may unlock it again."""
        self._require_owner(meeting_id, teacher_id)
        with self.locks.hold((meeting_id, session_date)):
            current = self.session_repository.get_session(meeting_id, session_date)
            if current is None:
                raise NotFound(
                    "Session not found",
                    {"meeting_id": meeting_id, "date": session_date.isoformat()},
                )
            now = self.clock()
            _reject_closed(current, now)
            session = self.session_repository.save_session(
                replace(current, status=SessionStatus.LOCKED, locked_at=now)
            )
        logger.info(
            "Session locked: meeting=%s date=%s teacher=%s",
            meeting_id,
            session_date,
            teacher_id,
        )
        return session

    def close_if_expired(
        self, meeting_id: int, session_date: date
    ) -> AttendanceSession | None:
        """Close the session if it is still unlocked and past its window."""
        with self.locks.hold((meeting_id, session_date)):
            current = self.session_repository.get_session(meeting_id, session_date)
            now = self.clock()
            if current is None or not current.is_expired(now):
                return None
            session = self.session_repository.save_session(
                replace(current, status=SessionStatus.CLOSED, closed_at=now)
            )
        logger.info("Session auto-closed: meeting=%s date=%s", meeting_id, session_date)
        return session

    def sign_in(
        self, meeting_id: int, session_date: date, student_id: int
    ) -> AttendanceRecord:
        """Record the student as present while the window is open.

        Signing in twice returns the existing record unchanged.
        """
        meeting = self._require_meeting(meeting_id)
        if not self.catalog.is_enrolled(student_id, meeting.course_id):
            raise NotEnrolled(
                "You are not enrolled in this course",
                {"student_id": student_id, "course_id": meeting.course_id},
            )
        with self.locks.hold((meeting_id, session_date)):
            session = self.session_repository.get_session(meeting_id, session_date)
            now = self.clock()
            if session is None:
                raise SignInUnavailable(
                    "Sign-in is not available. Status: LOCKED",
                    {"meeting_id": meeting_id, "status": SessionStatus.LOCKED.value},
                )
            status = session.effective_status(now)
            if status is not SessionStatus.UNLOCKED:
                raise SignInUnavailable(
                    f"Sign-in is not available. Status: {status.value}",
                    {"meeting_id": meeting_id, "status": status.value},
                )
            record = self.ledger.record_once(
                AttendanceRecord(
                    student_id=student_id,
                    course_id=meeting.course_id,
                    attendance_date=session_date,
                    status=AttendanceStatus.PRESENT,
                    check_in_time=now,
                )
            )
        logger.debug(
            "Student signed in: student=%s meeting=%s date=%s",
            student_id,
            meeting_id,
            session_date,
        )
        return record

    def mark_manually(  # noqa: PLR0913
        self,
        meeting_id: int,
        session_date: date,
        student_id: int,
        status: str | AttendanceStatus,
        teacher_id: int,
        remarks: str | None = None,
    ) -> AttendanceRecord:
        """Set a student's status for the meeting's course, whatever the session."""
        meeting = self._require_owner(meeting_id, teacher_id)
        parsed = parse_attendance_status(status)
        if not self.catalog.is_enrolled(student_id, meeting.course_id):
            raise NotEnrolled(
                "Student is not enrolled in this course",
                {"student_id": student_id, "course_id": meeting.course_id},
            )
        now = self.clock()

        def _mark(current: AttendanceRecord | None) -> AttendanceRecord:
            if current is None:
                current = AttendanceRecord(
                    student_id=student_id,
                    course_id=meeting.course_id,
                    attendance_date=session_date,
                    status=parsed,
                )
            check_in_time = current.check_in_time
            if parsed is AttendanceStatus.PRESENT and check_in_time is None:
                check_in_time = now
            return replace(
                current,
                status=parsed,
                check_in_time=check_in_time,
                remarks=remarks if remarks is not None else current.remarks,
            )

        record = self.ledger.upsert(student_id, meeting.course_id, session_date, _mark)
        logger.info(
            "Attendance marked: student=%s course=%s date=%s status=%s",
            student_id,
            meeting.course_id,
            session_date,
            parsed.value,
        )
        return record

    def _require_meeting(self, meeting_id: int) -> ClassMeeting:
        meeting = self.catalog.get_meeting(meeting_id)
        if meeting is None:
            raise NotFound("Course schedule not found", {"meeting_id": meeting_id})
        return meeting

    def _require_owner(self, meeting_id: int, teacher_id: int) -> ClassMeeting:
        meeting = self._require_meeting(meeting_id)
        if self.catalog.owner_of(meeting_id) != teacher_id:
            raise Unauthorized(
                "Unauthorized: You don't teach this course",
                {"meeting_id": meeting_id, "teacher_id": teacher_id},
            )
        return meeting


def _reject_closed(session: AttendanceSession, now: datetime) -> None:
    # An expired window counts as closed before the sweeper persists it.
    if session.effective_status(now) is SessionStatus.CLOSED:
        raise InvalidState(
            "Session is closed for this date",
            {"meeting_id": session.meeting_id, "status": SessionStatus.CLOSED.value},
        )
