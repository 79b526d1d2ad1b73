import logging
import sqlite3
import time

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.dependencies import get_current_user
from backend.security import issue_session_token
from backend.services.accounts import SessionUser
from database.db import (
    create_tables,
    verify_admin_credentials,
    verify_parent_credentials,
    verify_student_credentials,
)

logger = logging.getLogger(__name__)

router = APIRouter()


class LoginRequest(BaseModel):
    # admin username, or the phone number of a student/parent account
    phone: str
    password: str


def _authenticate(phone: str, password: str) -> tuple[str, str] | None:
    admin = verify_admin_credentials(phone, password)
    if admin:
        return admin["username"], "admin"

    student = verify_student_credentials(phone, password)
    if student:
        return student["id"], "student"

    parent = verify_parent_credentials(phone, password)
    if parent:
        return parent["id"], "parent"

    return None


@router.post("/auth/login")
def login(payload: LoginRequest):
    phone = payload.phone.strip()
    password = payload.password.strip()

    if not phone:
        raise HTTPException(status_code=400, detail="Phone is required.")
    if not password:
        raise HTTPException(status_code=400, detail="Password is required.")

    try:
        account = _authenticate(phone, password)
    except sqlite3.OperationalError:
        # Self-heal when DB schema is missing (e.g., lifespan skipped).
        try:
            create_tables()
            account = _authenticate(phone, password)
        except sqlite3.OperationalError:
            raise HTTPException(
                status_code=503,
                detail="Authentication service unavailable. Please retry.",
            )

    if not account:
        logger.info("Failed login attempt for %r", phone)
        raise HTTPException(status_code=401, detail="Invalid phone or password.")

    subject, role = account
    token, claims = issue_session_token(subject, role=role)
    now = int(time.time())
    return {
        "access_token": token,
        "token_type": "bearer",
        "subject": claims["sub"],
        "role": claims["role"],
        "expires_at": claims["exp"],
        "expires_in": max(0, int(claims["exp"]) - now),
    }


@router.get("/auth/me")
def auth_me(user: SessionUser = Depends(get_current_user)):
    return user
