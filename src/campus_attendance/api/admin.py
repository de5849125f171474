"""Admin API endpoints with simple token auth."""

from __future__ import annotations

import asyncio
from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status

from campus_attendance.api.models import SessionResponse

if TYPE_CHECKING:
    from campus_attendance.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.get("/health", dependencies=[Depends(require_admin)])
async def admin_health() -> dict[str, str]:
    """Admin health check endpoint."""
    return {"status": "ok"}


@router.get("/sessions/open", dependencies=[Depends(require_admin)])
async def open_sessions(request: Request) -> dict[str, object]:
    """Return sessions currently open for sign-in."""
    container: AppContainer = request.app.state.container
    sessions = await asyncio.to_thread(container.session_service.open_sessions)
    return {
        "sessions": [
            SessionResponse.from_domain(session).model_dump(mode="json")
            for session in sessions
        ]
    }


@router.post("/sweep", dependencies=[Depends(require_admin)])
async def run_sweep(request: Request) -> dict[str, object]:
    """Run one auto-close sweep immediately."""
    container: AppContainer = request.app.state.container
    result = await asyncio.to_thread(container.sweeper.run_once)
    return asdict(result)
