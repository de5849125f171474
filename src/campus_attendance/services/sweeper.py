"""Periodic auto-close of expired sign-in windows."""

import asyncio
import logging
from dataclasses import dataclass

from campus_attendance.services.sessions import SessionLifecycleService

logger = logging.getLogger(__name__)

DEFAULT_SWEEP_INTERVAL_SECONDS = 60.0


@dataclass(frozen=True)
class SweepResult:
    """Outcome of a single sweep tick."""

    checked: int
    closed: int
    failed: int


@dataclass
class AutoCloseSweeper:
    """Closes unlocked sessions whose auto-close window has run out."""

    session_service: SessionLifecycleService
    interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS

    def run_once(self) -> SweepResult:
        """Run one tick over every unlocked session.

        A failure on one session is logged and skipped; that session stays
        unlocked and is retried on the next tick.
        """
        sessions = self.session_service.open_sessions()
        now = self.session_service.clock()
        closed = 0
        failed = 0
        for session in sessions:
            if not session.is_expired(now):
                continue
            try:
                result = self.session_service.close_if_expired(
                    session.meeting_id, session.session_date
                )
            except Exception:
                failed += 1
                logger.exception(
                    "Failed to auto-close session: meeting=%s date=%s",
                    session.meeting_id,
                    session.session_date,
                )
                continue
            if result is not None:
                closed += 1
        if closed or failed:
            logger.info(
                "Sweep finished: checked=%s closed=%s failed=%s",
                len(sessions),
                closed,
                failed,
            )
        return SweepResult(checked=len(sessions), closed=closed, failed=failed)

    async def run_forever(self, stop: asyncio.Event | None = None) -> None:
        """Tick every interval until `stop` is set or the task is cancelled."""
        stop = stop or asyncio.Event()
        while not stop.is_set():
            try:
                await asyncio.to_thread(self.run_once)
            except Exception:
                logger.exception("Auto-close sweep failed")
            try:
                await asyncio.wait_for(stop.wait(), timeout=self.interval_seconds)
            except TimeoutError:
                continue
