from typing import Any

from fastapi import Depends, HTTPException, Request

from backend.security import require_session
from backend.services.accounts import SessionUser, load_session_user
from backend.services.checkin import CheckInOrchestrator
from backend.services.state import SchoolState


def get_school_state(request: Request) -> SchoolState:
    return request.app.state.school


def get_checkin(request: Request) -> CheckInOrchestrator:
    return request.app.state.checkin


def get_current_user(session: dict[str, Any] = Depends(require_session)) -> SessionUser:
    user = load_session_user(session)
    if user is None:
        raise HTTPException(status_code=401, detail="Account no longer exists.")
    return user
