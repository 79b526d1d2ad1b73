import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.security import require_admin
from database.db import (
    add_payment,
    delete_all_payments,
    delete_payment,
    get_payments,
    get_student_by_code,
    get_student_by_id,
)

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


class PaymentCreate(BaseModel):
    month: str
    student_id: str | None = None
    student_code: str | None = None


@router.get("/payments")
def payments(student_id: str | None = None):
    return get_payments(student_id)


@router.post("/payments")
def create_payment(payload: PaymentCreate):
    month = payload.month.strip()
    if not month:
        raise HTTPException(status_code=400, detail="Month is required.")

    student = None
    if payload.student_id:
        student = get_student_by_id(payload.student_id.strip())
    elif payload.student_code:
        student = get_student_by_code(payload.student_code.strip())
    else:
        raise HTTPException(status_code=400, detail="Student id or code is required.")

    if not student:
        raise HTTPException(status_code=404, detail="Student not found.")

    payment = add_payment(student, month)
    logger.info("Recorded payment of %s for student %s", month, student["id"])
    return payment


@router.delete("/payments/{payment_id}")
def remove_payment(payment_id: str):
    if not delete_payment(payment_id):
        raise HTTPException(status_code=404, detail="Payment not found.")
    return {"ok": True}


@router.delete("/payments")
def remove_all_payments():
    delete_all_payments()
    logger.warning("All payment data deleted")
    return {"ok": True, "message": "All payment data deleted"}
