"""FastAPI application factory."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager, suppress
from datetime import date, datetime
from zoneinfo import ZoneInfo

from fastapi import FastAPI, Query, Request

from campus_attendance.api.admin import router as admin_router
from campus_attendance.api.errors import register_error_handlers
from campus_attendance.api.models import (
    AttendanceResponse,
    CourseScheduleResponse,
    MarkAttendanceRequest,
    SessionRequest,
    SessionResponse,
    StudentAttendanceResponse,
)
from campus_attendance.app_logging import configure_logging
from campus_attendance.containers import AppContainer
from campus_attendance.domain.schedule import Role


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)
    campus_tz = ZoneInfo(container.settings.campus_timezone)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        sweeper_task: asyncio.Task[None] | None = None
        if container.settings.sweeper_enabled:
            sweeper_task = asyncio.create_task(
                app.state.container.sweeper.run_forever()
            )
            logger.info(
                "Auto-close sweeper started (interval=%ss)",
                container.settings.sweep_interval_seconds,
            )
        yield
        if sweeper_task is not None:
            sweeper_task.cancel()
            with suppress(asyncio.CancelledError):
                await sweeper_task

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    register_error_handlers(app)

    app.include_router(admin_router)

    def _resolve_date(value: date | None) -> date:
        return value or datetime.now(tz=campus_tz).date()

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/attendance/teacher/{teacher_id}/courses")
    def teacher_courses(
        teacher_id: int,
        request: Request,
        day: date | None = Query(default=None, alias="date"),
    ) -> list[CourseScheduleResponse]:
        """Return the teacher's meetings for a day with their session state."""
        state_container: AppContainer = request.app.state.container
        views = state_container.day_view_service.day_view(
            teacher_id, Role.TEACHER, _resolve_date(day)
        )
        return [CourseScheduleResponse.from_domain(view) for view in views]

    @app.get("/attendance/student/{student_id}/courses")
    def student_courses(
        student_id: int,
        request: Request,
        day: date | None = Query(default=None, alias="date"),
    ) -> list[CourseScheduleResponse]:
        """Return the student's meetings for a day with attendance totals."""
        state_container: AppContainer = request.app.state.container
        views = state_container.day_view_service.day_view(
            student_id, Role.STUDENT, _resolve_date(day)
        )
        return [CourseScheduleResponse.from_domain(view) for view in views]

    @app.post("/attendance/teacher/{teacher_id}/unlock")
    def unlock_session(
        teacher_id: int, payload: SessionRequest, request: Request
    ) -> SessionResponse:
        """Open a meeting's sign-in window."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_service.unlock(
            payload.course_schedule_id, payload.session_date, teacher_id
        )
        return SessionResponse.from_domain(session)

    @app.post("/attendance/teacher/{teacher_id}/lock")
    def lock_session(
        teacher_id: int, payload: SessionRequest, request: Request
    ) -> SessionResponse:
        """Pause a meeting's sign-in window."""
        state_container: AppContainer = request.app.state.container
        session = state_container.session_service.lock(
            payload.course_schedule_id, payload.session_date, teacher_id
        )
        return SessionResponse.from_domain(session)

    @app.post("/attendance/student/{student_id}/signin")
    def sign_in(
        student_id: int, payload: SessionRequest, request: Request
    ) -> AttendanceResponse:
        """Sign a student in while the window is open."""
        state_container: AppContainer = request.app.state.container
        record = state_container.session_service.sign_in(
            payload.course_schedule_id, payload.session_date, student_id
        )
        return AttendanceResponse.from_domain(record)

    @app.post("/attendance/teacher/{teacher_id}/mark")
    def mark_attendance(
        teacher_id: int, payload: MarkAttendanceRequest, request: Request
    ) -> AttendanceResponse:
        """Record a student's status on the teacher's authority."""
        state_container: AppContainer = request.app.state.container
        record = state_container.session_service.mark_manually(
            payload.course_schedule_id,
            payload.session_date,
            payload.student_id,
            payload.status,
            teacher_id,
            remarks=payload.remarks,
        )
        return AttendanceResponse.from_domain(record)

    @app.get("/attendance/teacher/{teacher_id}/course/{course_schedule_id}/students")
    def course_students(
        teacher_id: int,
        course_schedule_id: int,
        request: Request,
        day: date | None = Query(default=None, alias="date"),
    ) -> list[StudentAttendanceResponse]:
        """Return enrolled students with their attendance for a date."""
        state_container: AppContainer = request.app.state.container
        entries = state_container.day_view_service.roster(
            course_schedule_id, _resolve_date(day), teacher_id
        )
        return [StudentAttendanceResponse.from_domain(entry) for entry in entries]

    return app
