import logging

from fastapi import APIRouter, Depends, HTTPException

from backend.dependencies import get_school_state
from backend.security import require_admin
from backend.services.state import SchoolState
from database.db import clear_all_tables

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


@router.post("/admin/state/reload")
def reload_state(state: SchoolState = Depends(get_school_state)):
    if not state.load():
        raise HTTPException(status_code=503, detail="Store unavailable; snapshot kept as is.")
    return {
        "ok": True,
        "loaded_at": state.loaded_at,
        "students": len(state.students),
        "attendance": len(state.attendance),
    }


@router.post("/admin/reset/hard")
def reset_hard(state: SchoolState = Depends(get_school_state)):
    clear_all_tables()
    # snapshot must not keep resolving codes of deleted students
    state.load()
    logger.warning("Hard reset: all school data cleared")
    return {"ok": True, "message": "Reset complete: students, parents, attendance, grades, content and payments cleared"}
