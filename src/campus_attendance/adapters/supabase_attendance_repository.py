"""Supabase-backed attendance record repository."""

from dataclasses import dataclass
from datetime import UTC, date, datetime

from supabase import Client

from campus_attendance.domain.attendance import AttendanceRecord, AttendanceStatus
from campus_attendance.services.ledger import AttendanceRepository

_TABLE = "attendances"
_COLUMNS = (
    "id, student_id, course_id, attendance_date, status, check_in_time, "
    "remarks, location"
)
_UNIQUE_KEY = "student_id,course_id,attendance_date"


@dataclass
class SupabaseAttendanceRepository(AttendanceRepository):
    """Supabase implementation for attendance records."""

    client: Client

    def get_record(
        self, student_id: int, course_id: int, attendance_date: date
    ) -> AttendanceRecord | None:
        """Return the record for a student, course and date, if present."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("student_id", student_id)
            .eq("course_id", course_id)
            .eq("attendance_date", attendance_date.isoformat())
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return _parse_row(response.data[0])

    def save_record(self, record: AttendanceRecord) -> AttendanceRecord:
        """Upsert the record on its (student, course, date) key."""
        response = (
            self.client.table(_TABLE)
            .upsert(_to_row(record), on_conflict=_UNIQUE_KEY)
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save attendance record")
        return _parse_row(response.data[0])

    def add_record_if_absent(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert the record, keeping any row another writer stored first."""
        response = (
            self.client.table(_TABLE)
            .upsert(_to_row(record), on_conflict=_UNIQUE_KEY, ignore_duplicates=True)
            .execute()
        )
        if response.data:
            return _parse_row(response.data[0])
        stored = self.get_record(
            record.student_id, record.course_id, record.attendance_date
        )
        if stored is None:
            raise RuntimeError("Failed to save attendance record")
        return stored

    def list_student_course_records(
        self, student_id: int, course_id: int
    ) -> list[AttendanceRecord]:
        """Return all records of a student for a course."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("student_id", student_id)
            .eq("course_id", course_id)
            .order("attendance_date", desc=False)
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]

    def list_course_records(
        self, course_id: int, attendance_date: date
    ) -> list[AttendanceRecord]:
        """Return all records of a course on a date."""
        response = (
            self.client.table(_TABLE)
            .select(_COLUMNS)
            .eq("course_id", course_id)
            .eq("attendance_date", attendance_date.isoformat())
            .execute()
        )
        return [_parse_row(row) for row in response.data or []]


def _to_row(record: AttendanceRecord) -> dict[str, object]:
    return {
        "student_id": record.student_id,
        "course_id": record.course_id,
        "attendance_date": record.attendance_date.isoformat(),
        "status": record.status.value,
        "check_in_time": (
            record.check_in_time.isoformat() if record.check_in_time else None
        ),
        "remarks": record.remarks,
        "location": record.location,
        "updated_at": datetime.now(tz=UTC).isoformat(),
    }


def _parse_row(row: dict[str, object]) -> AttendanceRecord:
    check_in_raw = row.get("check_in_time")
    return AttendanceRecord(
        id=int(row["id"]) if row.get("id") is not None else None,
        student_id=int(row["student_id"]),
        course_id=int(row["course_id"]),
        attendance_date=date.fromisoformat(str(row["attendance_date"])),
        status=AttendanceStatus(row["status"]),
        check_in_time=(
            datetime.fromisoformat(check_in_raw)
            if isinstance(check_in_raw, str) and check_in_raw
            else None
        ),
        remarks=row.get("remarks"),
        location=row.get("location"),
    )
