import io
import logging
import sqlite3
from typing import Literal

import qrcode
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import Response
from pydantic import BaseModel

from backend.dependencies import get_school_state
from backend.security import require_admin
from backend.services.accounts import generate_password, generate_student_code
from backend.services.lessons import has_paid, next_ordinal, prior_lesson_count
from backend.services.state import SchoolState
from database.db import (
    add_student,
    delete_student,
    get_all_students,
    get_payments,
    get_student_by_code,
    get_student_by_id,
    update_student,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class StudentCreate(BaseModel):
    name: str
    phone: str
    parent_phone: str = ""
    group: str = ""
    grade: Literal["first", "second", "third"]


class StudentUpdate(StudentCreate):
    # blank keeps the current password
    password: str | None = None


@router.get("/students")
def students(grade: str | None = None, group: str | None = None):
    rows = get_all_students()
    if grade:
        rows = [r for r in rows if r["grade"] == grade]
    if group:
        rows = [r for r in rows if r["group"] == group]
    return rows


@router.post("/students")
def create_student(payload: StudentCreate, state: SchoolState = Depends(get_school_state)):
    name = payload.name.strip()
    phone = payload.phone.strip()
    if not name or not phone:
        raise HTTPException(status_code=400, detail="Name and phone are required.")

    code = generate_student_code()
    password = generate_password()
    try:
        student = add_student(
            name=name,
            phone=phone,
            password=password,
            code=code,
            parent_phone=payload.parent_phone.strip(),
            group=payload.group.strip(),
            grade=payload.grade,
        )
    except sqlite3.IntegrityError:
        raise HTTPException(status_code=409, detail="Student code already exists. Please retry.")

    state.upsert_student(student)
    logger.info("Created student %s with code %s", student["id"], code)
    # the generated password is only ever shown here
    return {**student, "password": password}


@router.get("/students/by-code/{code}")
def student_by_code(code: str):
    student = get_student_by_code(code)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")
    return student


@router.get("/students/{student_id}")
def student_detail(student_id: str):
    student = get_student_by_id(student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")
    return student


@router.put("/students/{student_id}")
def edit_student(
    student_id: str,
    payload: StudentUpdate,
    state: SchoolState = Depends(get_school_state),
):
    name = payload.name.strip()
    phone = payload.phone.strip()
    if not name or not phone:
        raise HTTPException(status_code=400, detail="Name and phone are required.")

    ok = update_student(
        student_id,
        name=name,
        phone=phone,
        parent_phone=payload.parent_phone.strip(),
        group=payload.group.strip(),
        grade=payload.grade,
        password=(payload.password or "").strip() or None,
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Student not found.")

    student = get_student_by_id(student_id)
    if student:
        state.upsert_student(student)
    return student


@router.delete("/students/{student_id}")
def remove_student(student_id: str, state: SchoolState = Depends(get_school_state)):
    ok = delete_student(student_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Student not found.")
    state.remove_student(student_id)
    logger.info("Deleted student %s with dependent records", student_id)
    return {"ok": True}


@router.get("/students/{student_id}/qr")
def student_qr(student_id: str):
    student = get_student_by_id(student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")

    img = qrcode.make(student["code"])
    buf = io.BytesIO()
    img.save(buf)
    return Response(
        content=buf.getvalue(),
        media_type="image/png",
        headers={"Content-Disposition": f'inline; filename="{student["code"]}.png"'},
    )


@router.get("/students/{student_id}/payment-status")
def payment_status(student_id: str, state: SchoolState = Depends(get_school_state)):
    student = get_student_by_id(student_id)
    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")

    raw, display = next_ordinal(prior_lesson_count(student_id, state))
    paid_months: list[str] = []
    for payment in get_payments(student_id):
        paid_months.extend(m for m in payment["paid_months"] if m not in paid_months)

    return {
        "student_id": student_id,
        "paid_months": paid_months,
        "next_lesson_number": raw,
        "next_display_lesson_number": display,
        "next_lesson_paid": has_paid(student_id, raw),
    }
