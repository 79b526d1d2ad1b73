from fastapi import APIRouter, Depends, HTTPException

from backend.config import (
    DB_PATH,
    ENABLE_DEBUG_ENDPOINTS,
    LESSONS_PER_CYCLE,
    SCAN_FRAME_INTERVAL_SECONDS,
    STUDENT_CODE_LENGTH,
)
from backend.dependencies import get_school_state
from backend.security import require_admin
from backend.services.state import SchoolState

router = APIRouter()


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/debug/dbpath")
def dbpath(_session: dict = Depends(require_admin)):
    if not ENABLE_DEBUG_ENDPOINTS:
        raise HTTPException(status_code=404, detail="Not found.")
    return {"db_path": str(DB_PATH)}


@router.get("/debug/state")
def state_info(
    _session: dict = Depends(require_admin),
    state: SchoolState = Depends(get_school_state),
):
    if not ENABLE_DEBUG_ENDPOINTS:
        raise HTTPException(status_code=404, detail="Not found.")
    return {
        "loaded_at": state.loaded_at,
        "students": len(state.students),
        "attendance": len(state.attendance),
    }


@router.get("/config/attendance")
def attendance_config():
    return {
        "lessons_per_cycle": LESSONS_PER_CYCLE,
        "student_code_length": STUDENT_CODE_LENGTH,
        "scan_frame_interval_seconds": SCAN_FRAME_INTERVAL_SECONDS,
    }
