import logging
import sqlite3
from typing import Literal

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from pydantic import BaseModel

from backend.decoder import decode_image_bytes
from backend.dependencies import get_checkin, get_current_user, get_school_state
from backend.security import require_admin
from backend.services.accounts import SessionUser, student_ids_for
from backend.services.checkin import CheckInOrchestrator
from backend.services.recorder import AttendanceRecorder, RecordingError
from backend.services.state import SchoolState
from database.db import (
    delete_attendance_record,
    get_attendance_records,
    get_student_by_id,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class CheckInRequest(BaseModel):
    code: str


class ManualAttendance(BaseModel):
    student_id: str
    status: Literal["present", "absent"] = "present"
    lesson_number: int = 1


@router.get("/attendance")
def attendance(
    date: str | None = None,
    student_id: str | None = None,
    _session: dict = Depends(require_admin),
):
    return get_attendance_records(date, student_id)


@router.post("/attendance")
def add_attendance(
    payload: ManualAttendance,
    _session: dict = Depends(require_admin),
    state: SchoolState = Depends(get_school_state),
):
    if payload.lesson_number < 1:
        raise HTTPException(status_code=400, detail="Lesson number must be at least 1.")

    student = get_student_by_id(payload.student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")

    try:
        return AttendanceRecorder(state).record(
            student["id"],
            student["name"],
            payload.status,
            payload.lesson_number,
        )
    except RecordingError as e:
        raise HTTPException(status_code=503, detail=f"Could not record attendance: {e}")


@router.delete("/attendance/{record_id}")
def delete_attendance(
    record_id: str,
    _session: dict = Depends(require_admin),
    state: SchoolState = Depends(get_school_state),
):
    ok = delete_attendance_record(record_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Attendance record not found.")
    state.remove_attendance(record_id)
    return {"ok": True}


@router.post("/attendance/checkin")
def checkin(
    payload: CheckInRequest,
    _session: dict = Depends(require_admin),
    orchestrator: CheckInOrchestrator = Depends(get_checkin),
):
    return orchestrator.submit(payload.code, source="manual")


@router.post("/attendance/checkin/retry")
def checkin_retry(
    _session: dict = Depends(require_admin),
    orchestrator: CheckInOrchestrator = Depends(get_checkin),
):
    result = orchestrator.retry()
    if result is None:
        raise HTTPException(status_code=404, detail="No pending code to retry.")
    return result


@router.get("/attendance/checkin/state")
def checkin_state(
    _session: dict = Depends(require_admin),
    orchestrator: CheckInOrchestrator = Depends(get_checkin),
):
    return orchestrator.snapshot()


@router.post("/attendance/scan")
def scan_frame(
    _session: dict = Depends(require_admin),
    orchestrator: CheckInOrchestrator = Depends(get_checkin),
    file: UploadFile = File(...),
):
    if file.content_type not in ("image/jpeg", "image/png"):
        raise HTTPException(status_code=400, detail="Upload JPG/PNG only.")

    data = file.file.read()
    try:
        code = decode_image_bytes(data)
    except ValueError:
        raise HTTPException(status_code=400, detail="Invalid image data.")

    if code is None:
        # nothing in this frame; the client sends the next one
        return {"decoded": False}

    return {"decoded": True, **orchestrator.submit(code, source="camera")}


@router.get("/me/attendance")
def my_attendance(user: SessionUser = Depends(get_current_user)):
    if user["role"] == "admin":
        raise HTTPException(status_code=403, detail="Not allowed for this account.")

    records = []
    try:
        for student_id in student_ids_for(user):
            records.extend(get_attendance_records(student_id=student_id))
    except sqlite3.Error as e:
        logger.error("Failed to load attendance for %s: %s", user["role"], e)
        raise HTTPException(status_code=503, detail="Attendance is unavailable. Please retry.")
    return records
