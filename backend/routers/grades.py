from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.dependencies import get_current_user
from backend.security import require_admin
from backend.services.accounts import SessionUser, student_ids_for
from database.db import (
    add_grade,
    delete_grade,
    get_grades,
    get_student_by_id,
    update_grade,
)

router = APIRouter()


class GradeCreate(BaseModel):
    student_id: str
    exam_name: str
    score: float
    total_score: float = 100
    lesson_number: int = 1
    group: str | None = None


class GradeUpdate(BaseModel):
    exam_name: str
    score: float
    total_score: float
    lesson_number: int = 1
    group: str = ""


def _validate_scores(score: float, total_score: float) -> None:
    if total_score <= 0:
        raise HTTPException(status_code=400, detail="Total score must be positive.")
    if score < 0 or score > total_score:
        raise HTTPException(status_code=400, detail="Score must be between 0 and the total score.")


@router.get("/grades")
def grades(student_id: str | None = None, _session: dict = Depends(require_admin)):
    return get_grades(student_id)


@router.post("/grades")
def create_grade(payload: GradeCreate, _session: dict = Depends(require_admin)):
    exam_name = payload.exam_name.strip()
    if not exam_name:
        raise HTTPException(status_code=400, detail="Exam name is required.")
    _validate_scores(payload.score, payload.total_score)

    student = get_student_by_id(payload.student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")

    return add_grade(
        student_id=student["id"],
        student_name=student["name"],
        exam_name=exam_name,
        score=payload.score,
        total_score=payload.total_score,
        lesson_number=payload.lesson_number,
        group=payload.group if payload.group is not None else student["group"],
    )


@router.put("/grades/{grade_id}")
def edit_grade(grade_id: str, payload: GradeUpdate, _session: dict = Depends(require_admin)):
    exam_name = payload.exam_name.strip()
    if not exam_name:
        raise HTTPException(status_code=400, detail="Exam name is required.")
    _validate_scores(payload.score, payload.total_score)

    ok = update_grade(
        grade_id,
        exam_name=exam_name,
        score=payload.score,
        total_score=payload.total_score,
        lesson_number=payload.lesson_number,
        group=payload.group,
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Grade not found.")
    return {"ok": True}


@router.delete("/grades/{grade_id}")
def remove_grade(grade_id: str, _session: dict = Depends(require_admin)):
    ok = delete_grade(grade_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Grade not found.")
    return {"ok": True}


@router.get("/me/grades")
def my_grades(user: SessionUser = Depends(get_current_user)):
    if user["role"] == "admin":
        raise HTTPException(status_code=403, detail="Not allowed for this account.")
    out = []
    for student_id in student_ids_for(user):
        out.extend(get_grades(student_id))
    return out
