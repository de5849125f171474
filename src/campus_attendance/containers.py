"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from campus_attendance.adapters.supabase_attendance_repository import (
    SupabaseAttendanceRepository,
)
from campus_attendance.adapters.supabase_schedule_catalog import (
    SupabaseScheduleCatalog,
)
from campus_attendance.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from campus_attendance.config import Settings
from campus_attendance.services.ledger import AttendanceLedger
from campus_attendance.services.sessions import SessionLifecycleService
from campus_attendance.services.sweeper import AutoCloseSweeper
from campus_attendance.services.views import DayViewService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session_service: SessionLifecycleService
    sweeper: AutoCloseSweeper
    day_view_service: DayViewService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    catalog = SupabaseScheduleCatalog(supabase_client)
    session_repository = SupabaseSessionRepository(supabase_client)
    ledger = AttendanceLedger(SupabaseAttendanceRepository(supabase_client))
    session_service = SessionLifecycleService(
        catalog=catalog,
        session_repository=session_repository,
        ledger=ledger,
        auto_close_minutes=resolved_settings.auto_close_minutes,
    )
    sweeper = AutoCloseSweeper(
        session_service=session_service,
        interval_seconds=resolved_settings.sweep_interval_seconds,
    )
    day_view_service = DayViewService(session_service)

    return AppContainer(
        settings=resolved_settings,
        session_service=session_service,
        sweeper=sweeper,
        day_view_service=day_view_service,
    )
