import secrets
import string
from typing import Any, Literal, TypedDict

from backend.config import GENERATED_PASSWORD_LENGTH, STUDENT_CODE_LENGTH
from database.db import (
    GradeTier,
    get_parent_by_id,
    get_student_by_code,
    get_student_by_id,
    student_code_exists,
)

# No 0/O or 1/I so codes survive being read aloud and typed back in.
CODE_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
PASSWORD_ALPHABET = string.ascii_letters + string.digits


class AdminAccount(TypedDict):
    role: Literal["admin"]
    username: str


class StudentAccount(TypedDict):
    role: Literal["student"]
    id: str
    name: str
    phone: str
    code: str
    group: str
    grade: GradeTier


class ParentAccount(TypedDict):
    role: Literal["parent"]
    id: str
    name: str
    phone: str
    student_code: str
    children_ids: list[str]


SessionUser = AdminAccount | StudentAccount | ParentAccount


def generate_student_code(length: int = STUDENT_CODE_LENGTH, *, max_attempts: int = 20) -> str:
    for _ in range(max_attempts):
        code = "".join(secrets.choice(CODE_ALPHABET) for _ in range(length))
        if not student_code_exists(code):
            return code
    raise RuntimeError("Could not generate a unique student code.")


def generate_password(length: int = GENERATED_PASSWORD_LENGTH) -> str:
    return "".join(secrets.choice(PASSWORD_ALPHABET) for _ in range(length))


def load_session_user(session: dict[str, Any]) -> SessionUser | None:
    """Resolve token claims to the account they name. None if it no longer exists."""
    role = session.get("role")
    subject = str(session.get("sub") or "")

    if role == "admin":
        return {"role": "admin", "username": subject}

    if role == "student":
        student = get_student_by_id(subject)
        if not student:
            return None
        return {
            "role": "student",
            "id": student["id"],
            "name": student["name"],
            "phone": student["phone"],
            "code": student["code"],
            "group": student["group"],
            "grade": student["grade"],
        }

    if role == "parent":
        parent = get_parent_by_id(subject)
        if not parent:
            return None
        child = get_student_by_code(parent["student_code"])
        return {
            "role": "parent",
            "id": parent["id"],
            "name": f"Parent of {parent['student_name']}",
            "phone": parent["phone"],
            "student_code": parent["student_code"],
            "children_ids": [child["id"]] if child else [],
        }

    return None


def student_ids_for(user: SessionUser) -> list[str]:
    """Students whose records this account may read."""
    if user["role"] == "student":
        return [user["id"]]
    if user["role"] == "parent":
        return list(user["children_ids"])
    return []
