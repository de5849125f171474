"""Tests for the auto-close sweeper."""

import asyncio

from campus_attendance.domain.attendance import SessionStatus
from campus_attendance.services.sessions import SessionLifecycleService
from campus_attendance.services.sweeper import AutoCloseSweeper
from tests.conftest import (
    MEETING_ID,
    OTHER_COURSE_MEETING_ID,
    OTHER_TEACHER_ID,
    SECOND_MEETING_ID,
    SESSION_DATE,
    TEACHER_ID,
    FakeClock,
    InMemorySessionRepository,
)


def _status(repository: InMemorySessionRepository, meeting_id: int) -> SessionStatus:
    return repository.sessions[(meeting_id, SESSION_DATE)].status


def test_run_once_closes_only_expired_unlocked_sessions(
    session_service: SessionLifecycleService,
    session_repository: InMemorySessionRepository,
    sweeper: AutoCloseSweeper,
    clock: FakeClock,
) -> None:
    session_service.unlock(MEETING_ID, SESSION_DATE, TEACHER_ID)
    session_service.unlock(SECOND_MEETING_ID, SESSION_DATE, TEACHER_ID)
    session_service.lock(SECOND_MEETING_ID, SESSION_DATE, TEACHER_ID)
    clock.advance(10)
    session_service.unlock(OTHER_COURSE_MEETING_ID, SESSION_DATE, OTHER_TEACHER_ID)
    clock.advance(15)

    result = sweeper.run_once()

    assert result.checked == 2
    assert result.closed == 1
    assert result.failed == 0
    assert _status(session_repository, MEETING_ID) is SessionStatus.CLOSED
    assert _status(session_repository, SECOND_MEETING_ID) is SessionStatus.LOCKED
    assert _status(session_repository, OTHER_COURSE_MEETING_ID) is SessionStatus.UNLOCKED
    closed = session_repository.sessions[(MEETING_ID, SESSION_DATE)]
    assert closed.closed_at == clock.now


def test_run_once_leaves_closed_sessions_untouched(
    session_service: SessionLifecycleService,
    session_repository: InMemorySessionRepository,
    sweeper: AutoCloseSweeper,
    clock: FakeClock,
) -> None:
    session_service.unlock(MEETING_ID, SESSION_DATE, TEACHER_ID)
    clock.advance(21)
    sweeper.run_once()
    saves = session_repository.saves
    clock.advance(60)

    result = sweeper.run_once()

    assert result.checked == 0
    assert session_repository.saves == saves


def test_refreshed_window_survives_sweep(
    session_service: SessionLifecycleService,
    session_repository: InMemorySessionRepository,
    sweeper: AutoCloseSweeper,
    clock: FakeClock,
) -> None:
    session_service.unlock(MEETING_ID, SESSION_DATE, TEACHER_ID)
    clock.advance(15)
    session_service.unlock(MEETING_ID, SESSION_DATE, TEACHER_ID)
    clock.advance(10)

    assert sweeper.run_once().closed == 0
    assert _status(session_repository, MEETING_ID) is SessionStatus.UNLOCKED


def test_failure_on_one_session_does_not_abort_tick(
    session_service: SessionLifecycleService,
    session_repository: InMemorySessionRepository,
    sweeper: AutoCloseSweeper,
    clock: FakeClock,
) -> None:
    session_service.unlock(MEETING_ID, SESSION_DATE, TEACHER_ID)
    session_service.unlock(OTHER_COURSE_MEETING_ID, SESSION_DATE, OTHER_TEACHER_ID)
    clock.advance(30)
    session_repository.failing_meetings.add(MEETING_ID)

    result = sweeper.run_once()

    assert result.closed == 1
    assert result.failed == 1
    assert _status(session_repository, MEETING_ID) is SessionStatus.UNLOCKED
    assert _status(session_repository, OTHER_COURSE_MEETING_ID) is SessionStatus.CLOSED

    session_repository.failing_meetings.clear()
    retry = sweeper.run_once()

    assert retry.closed == 1
    assert _status(session_repository, MEETING_ID) is SessionStatus.CLOSED


def test_run_forever_ticks_until_stopped(
    session_service: SessionLifecycleService,
    session_repository: InMemorySessionRepository,
    sweeper: AutoCloseSweeper,
    clock: FakeClock,
) -> None:
    session_service.unlock(MEETING_ID, SESSION_DATE, TEACHER_ID)
    clock.advance(21)

    async def scenario() -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(sweeper.run_forever(stop))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if _status(session_repository, MEETING_ID) is SessionStatus.CLOSED:
                break
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())

    assert _status(session_repository, MEETING_ID) is SessionStatus.CLOSED


def test_run_forever_survives_failing_tick(
    session_service: SessionLifecycleService,
    sweeper: AutoCloseSweeper,
    monkeypatch,
) -> None:
    calls = []

    def broken_listing() -> list:
        calls.append(1)
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(session_service, "open_sessions", broken_listing)

    async def scenario() -> None:
        stop = asyncio.Event()
        task = asyncio.create_task(sweeper.run_forever(stop))
        for _ in range(100):
            await asyncio.sleep(0.01)
            if len(calls) >= 2:
                break
        stop.set()
        await asyncio.wait_for(task, timeout=1)

    asyncio.run(scenario())

    assert len(calls) >= 2
