"""Attendance ledger: the single write path for attendance records."""

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol

from campus_attendance.domain.attendance import AttendanceRecord, AttendanceStatus
from campus_attendance.services.locks import KeyedLocks


class AttendanceRepository(Protocol):
    """Persistence interface for attendance records."""

    def get_record(
        self, student_id: int, course_id: int, attendance_date: date
    ) -> AttendanceRecord | None:
        """Return the record for a student, course and date, if present."""

    def save_record(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert or update the record keyed by student, course and date."""

    def add_record_if_absent(self, record: AttendanceRecord) -> AttendanceRecord:
        """Insert the record unless its key exists; return the stored record."""

    def list_student_course_records(
        self, student_id: int, course_id: int
    ) -> list[AttendanceRecord]:
        """Return every record of a student for a course."""

    def list_course_records(
        self, course_id: int, attendance_date: date
    ) -> list[AttendanceRecord]:
        """Return every record of a course on a date."""


RecordUpdate = Callable[[AttendanceRecord | None], AttendanceRecord]


@dataclass
class AttendanceLedger:
    """Serializes record upserts per (student, course, date)."""

    repository: AttendanceRepository
    locks: KeyedLocks = field(default_factory=KeyedLocks)

    def upsert(
        self,
        student_id: int,
        course_id: int,
        attendance_date: date,
        update: RecordUpdate,
    ) -> AttendanceRecord:
        """Apply `update` to the current record and persist the result.

        The read, the update and the write happen while holding the record's
        key. When `update` returns the current record unchanged nothing is
        written.
        """
        with self.locks.hold((student_id, course_id, attendance_date)):
            current = self.repository.get_record(student_id, course_id, attendance_date)
            updated = update(current)
            if current is not None and updated == current:
                return current
            return self.repository.save_record(updated)

    def record_once(self, record: AttendanceRecord) -> AttendanceRecord:
        """Store `record` only if none exists yet for its key.

        The store decides the winner, so a record written first by another
        process is returned as is.
        """
        key = (record.student_id, record.course_id, record.attendance_date)
        with self.locks.hold(key):
            current = self.repository.get_record(*key)
            if current is not None:
                return current
            return self.repository.add_record_if_absent(record)

    def get_record(
        self, student_id: int, course_id: int, attendance_date: date
    ) -> AttendanceRecord | None:
        """Return the record for a student, course and date, if present."""
        return self.repository.get_record(student_id, course_id, attendance_date)

    def count_present(self, student_id: int, course_id: int) -> int:
        """Count PRESENT records of a student for a course across all dates."""
        records = self.repository.list_student_course_records(student_id, course_id)
        return sum(1 for record in records if record.status is AttendanceStatus.PRESENT)

    def records_for_course(
        self, course_id: int, attendance_date: date
    ) -> dict[int, AttendanceRecord]:
        """Return a course's records on a date keyed by student id."""
        records = self.repository.list_course_records(course_id, attendance_date)
        return {record.student_id: record for record in records}
