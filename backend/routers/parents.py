import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.security import require_admin
from backend.services.accounts import generate_password
from database.db import (
    add_parent,
    delete_parent,
    get_all_parents,
    get_student_by_code,
    update_parent,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class ParentCreate(BaseModel):
    phone: str
    student_code: str


class ParentUpdate(ParentCreate):
    password: str | None = None


@router.get("/parents")
def parents():
    return get_all_parents()


@router.post("/parents")
def create_parent(payload: ParentCreate):
    phone = payload.phone.strip()
    code = payload.student_code.strip()
    if not phone or not code:
        raise HTTPException(status_code=400, detail="Phone and student code are required.")

    student = get_student_by_code(code)
    if not student:
        raise HTTPException(status_code=404, detail="Student code is invalid.")

    password = generate_password()
    parent = add_parent(
        phone=phone,
        student_code=student["code"],
        student_name=student["name"],
        password=password,
    )
    logger.info("Created parent %s for student %s", parent["id"], student["id"])
    return {**parent, "password": password}


@router.put("/parents/{parent_id}")
def edit_parent(parent_id: str, payload: ParentUpdate):
    phone = payload.phone.strip()
    code = payload.student_code.strip()
    if not phone or not code:
        raise HTTPException(status_code=400, detail="Phone and student code are required.")

    student = get_student_by_code(code)
    if not student:
        raise HTTPException(status_code=404, detail="Student code is invalid.")

    ok = update_parent(
        parent_id,
        phone=phone,
        student_code=student["code"],
        student_name=student["name"],
        password=(payload.password or "").strip() or None,
    )
    if not ok:
        raise HTTPException(status_code=404, detail="Parent not found.")
    return {
        "id": parent_id,
        "phone": phone,
        "student_code": student["code"],
        "student_name": student["name"],
    }


@router.delete("/parents/{parent_id}")
def remove_parent(parent_id: str):
    ok = delete_parent(parent_id)
    if not ok:
        raise HTTPException(status_code=404, detail="Parent not found.")
    return {"ok": True}
