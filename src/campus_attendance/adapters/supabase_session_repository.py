"""Supabase-backed attendance session repository."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from campus_attendance.domain.attendance import (
    DEFAULT_AUTO_CLOSE_MINUTES,
    AttendanceSession,
    SessionStatus,
)
from campus_attendance.services.sessions import SessionRepository

_TABLE = "attendance_sessions"
_COLUMNS = (
    "id, course_schedule_id, session_date, status, unlocked_at, locked_at, "
    "closed_at, unlocked_by_teacher_id, auto_close_minutes"
)
_UNIQUE_KEY = "course_schedule_id,session_date"


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for attendance sessions."""

    client: Client

    def get_session(
        self, meeting_id: int, session_date: date
    ) -> AttendanceSession | None:
        """Return the session for a meeting and date, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("course_schedule_id", meeting_id)
            .eq("session_date", session_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def save_session(self, session: AttendanceSession) -> AttendanceSession:
        """Upsert the session row on its (meeting, date) key."""
        response = (
            self.client.table(_TABLE)
            .upsert(
                {
                    "course_schedule_id": session.meeting_id,
                    "session_date": session.session_date.isoformat(),
                    "status": session.status.value,
                    "unlocked_at": _format_ts(session.unlocked_at),
                    "locked_at": _format_ts(session.locked_at),
                    "closed_at": _format_ts(session.closed_at),
                    "unlocked_by_teacher_id": session.unlocked_by,
                    "auto_close_minutes": session.auto_close_minutes,
                    "updated_at": datetime.now(tz=UTC).isoformat(),
                },
                on_conflict=_UNIQUE_KEY,
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save attendance session")
        return _parse_row(response.data[0])

    def list_sessions_by_status(
        self, status: SessionStatus
    ) -> list[AttendanceSession]:
        """Return every session in the given status."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("status", status.value)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def count_sessions_excluding_status(
        self, meeting_ids: list[int], status: SessionStatus
    ) -> int:
        """Count sessions of the meetings whose status is not `status`."""
        if not meeting_ids:
            return 0
        response = (
            self.client.table(_TABLE)
            .select("id", count="exact")
            .in_("course_schedule_id", meeting_ids)
            .neq("status", status.value)
            .execute()
        )
        return response.count or 0


def _format_ts(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def _parse_ts(value: object) -> datetime | None:
    if isinstance(value, str) and value:
        return datetime.fromisoformat(value)
    return None


def _parse_row(row: dict[str, object]) -> AttendanceSession:
    unlocked_by = row.get("unlocked_by_teacher_id")
    auto_close = row.get("auto_close_minutes")
    return AttendanceSession(
        id=int(row["id"]) if row.get("id") is not None else None,
        meeting_id=int(row["course_schedule_id"]),
        session_date=date.fromisoformat(str(row["session_date"])),
        status=SessionStatus(row["status"]),
        unlocked_at=_parse_ts(row.get("unlocked_at")),
        locked_at=_parse_ts(row.get("locked_at")),
        closed_at=_parse_ts(row.get("closed_at")),
        unlocked_by=int(unlocked_by) if unlocked_by is not None else None,
        auto_close_minutes=(
            int(auto_close) if auto_close is not None else DEFAULT_AUTO_CLOSE_MINUTES
        ),
    )
