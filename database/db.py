import hashlib
import hmac
import logging
import secrets
import sqlite3
import uuid
from datetime import datetime
from pathlib import Path
from typing import Any, Literal, TypedDict

from backend.config import ADMIN_PASSWORD, ADMIN_USERNAME, DB_PATH

logger = logging.getLogger(__name__)

PASSWORD_HASH_ALGO = "pbkdf2_sha256"
PASSWORD_HASH_ITERATIONS = 120_000
INITIAL_MIGRATION_FILE = Path(__file__).resolve().parent / "migrations" / "001_initial.sql"

GradeTier = Literal["first", "second", "third"]
AttendanceStatus = Literal["present", "absent"]
PerformanceIndicator = Literal["excellent", "very-good", "good", "fair", "needs-improvement"]

ATTENDANCE_STATUSES: tuple[str, ...] = ("present", "absent")


class Student(TypedDict):
    id: str
    name: str
    phone: str
    code: str
    group: str
    grade: GradeTier
    parent_phone: str


class Parent(TypedDict):
    id: str
    phone: str
    student_code: str
    student_name: str


class AttendanceRecord(TypedDict):
    id: str
    student_id: str
    student_name: str
    date: str
    time: str
    status: AttendanceStatus
    lesson_number: int


class GradeRecord(TypedDict):
    id: str
    student_id: str
    student_name: str
    exam_name: str
    score: float
    total_score: float
    date: str
    lesson_number: int
    group: str
    performance_indicator: PerformanceIndicator


class Video(TypedDict):
    id: str
    title: str
    url: str
    grade: GradeTier
    is_youtube: bool
    upload_date: str


class Book(TypedDict):
    id: str
    title: str
    url: str
    grade: GradeTier
    upload_date: str


class Payment(TypedDict):
    id: str
    student_id: str
    student_name: str
    student_code: str
    student_group: str
    month: str
    date: str
    paid_months: list[str]


def new_id() -> str:
    return str(uuid.uuid4())


def _now_iso() -> str:
    return datetime.now().isoformat(timespec="seconds")


def _hash_password(password: str, *, salt: str | None = None) -> str:
    salt_value = salt or secrets.token_hex(16)
    digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_value.encode("utf-8"),
        PASSWORD_HASH_ITERATIONS,
    ).hex()
    return f"{PASSWORD_HASH_ALGO}${PASSWORD_HASH_ITERATIONS}${salt_value}${digest}"


def _verify_password(password: str, password_hash: str) -> bool:
    try:
        algo, rounds_text, salt_value, expected_digest = password_hash.split("$", 3)
        rounds = int(rounds_text)
    except (ValueError, TypeError):
        return False

    if algo != PASSWORD_HASH_ALGO or rounds <= 0:
        return False

    candidate_digest = hashlib.pbkdf2_hmac(
        "sha256",
        password.encode("utf-8"),
        salt_value.encode("utf-8"),
        rounds,
    ).hex()
    return hmac.compare_digest(candidate_digest, expected_digest)


def connect_db():
    conn = sqlite3.connect(str(DB_PATH), check_same_thread=False)
    # attendance/grades/payments cascade from students
    conn.execute("PRAGMA foreign_keys = ON;")
    return conn


def _ensure_default_admin(cursor: sqlite3.Cursor) -> None:
    username = (ADMIN_USERNAME or "").strip()
    password = (ADMIN_PASSWORD or "").strip()
    if not username or not password:
        return

    cursor.execute(
        """
        SELECT id
        FROM admin_users
        WHERE username = ? COLLATE NOCASE
        """,
        (username,),
    )
    if cursor.fetchone():
        return

    cursor.execute(
        """
        INSERT INTO admin_users (username, password_hash)
        VALUES (?, ?)
        """,
        (username, _hash_password(password)),
    )


def create_tables():
    conn = connect_db()
    conn.executescript(INITIAL_MIGRATION_FILE.read_text(encoding="utf-8"))
    cursor = conn.cursor()
    _ensure_default_admin(cursor)
    conn.commit()
    conn.close()


def clear_all_tables():
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM paid_months;")
    cur.execute("DELETE FROM payments;")
    cur.execute("DELETE FROM attendance;")
    cur.execute("DELETE FROM grades;")
    cur.execute("DELETE FROM parents;")
    cur.execute("DELETE FROM students;")
    cur.execute("DELETE FROM videos;")
    cur.execute("DELETE FROM books;")
    conn.commit()
    conn.close()


# -----------------------------
# Admin users
# -----------------------------
def verify_admin_credentials(username: str, password: str) -> dict | None:
    clean_username = username.strip()
    clean_password = password.strip()
    if not clean_username or not clean_password:
        return None

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(
        """
        SELECT id, username, password_hash
        FROM admin_users
        WHERE username = ? COLLATE NOCASE
        """,
        (clean_username,),
    )
    row = cur.fetchone()
    conn.close()

    if not row:
        return None

    admin_id, saved_username, password_hash = row
    if not _verify_password(clean_password, password_hash):
        return None

    return {"id": admin_id, "username": saved_username}


# -----------------------------
# Students
# -----------------------------
_STUDENT_COLUMNS = "id, name, phone, code, group_name, grade, parent_phone"


def _student_from_row(row) -> Student:
    return {
        "id": str(row[0]),
        "name": str(row[1]),
        "phone": str(row[2]),
        "code": str(row[3]),
        "group": str(row[4] or ""),
        "grade": row[5],
        "parent_phone": str(row[6] or ""),
    }


def get_all_students() -> list[Student]:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"""
        SELECT {_STUDENT_COLUMNS}
        FROM students
        ORDER BY name
    """)
    rows = cur.fetchall()
    conn.close()
    return [_student_from_row(r) for r in rows]


def get_student_by_id(student_id: str) -> Student | None:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"""
        SELECT {_STUDENT_COLUMNS}
        FROM students
        WHERE id = ?
    """, (student_id,))
    row = cur.fetchone()
    conn.close()
    return _student_from_row(row) if row else None


def get_student_by_code(code: str) -> Student | None:
    """Exact, case-sensitive match on the student code."""
    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"""
        SELECT {_STUDENT_COLUMNS}
        FROM students
        WHERE code = ?
    """, (code,))
    row = cur.fetchone()
    conn.close()
    return _student_from_row(row) if row else None


def student_code_exists(code: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("SELECT 1 FROM students WHERE code = ?", (code,))
    row = cur.fetchone()
    conn.close()
    return row is not None


def add_student(
    *,
    name: str,
    phone: str,
    password: str,
    code: str,
    parent_phone: str,
    group: str,
    grade: GradeTier,
) -> Student:
    student_id = new_id()
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO students (id, name, phone, password_hash, code, group_name, grade, parent_phone)
        VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """, (student_id, name, phone, _hash_password(password), code, group, grade, parent_phone))
    conn.commit()
    conn.close()
    return {
        "id": student_id,
        "name": name,
        "phone": phone,
        "code": code,
        "group": group,
        "grade": grade,
        "parent_phone": parent_phone,
    }


def update_student(
    student_id: str,
    *,
    name: str,
    phone: str,
    parent_phone: str,
    group: str,
    grade: GradeTier,
    password: str | None = None,
) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        UPDATE students
        SET name = ?,
            phone = ?,
            parent_phone = ?,
            group_name = ?,
            grade = ?
        WHERE id = ?
    """, (name, phone, parent_phone, group, grade, student_id))
    updated = cur.rowcount > 0
    if updated and password:
        cur.execute(
            "UPDATE students SET password_hash = ? WHERE id = ?",
            (_hash_password(password), student_id),
        )
    conn.commit()
    conn.close()
    return updated


def delete_student(student_id: str) -> bool:
    """Delete a student with its payments, attendance, grades and parent accounts."""
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("SELECT code FROM students WHERE id = ?", (student_id,))
    row = cur.fetchone()
    if not row:
        conn.close()
        return False
    code = row[0]
    try:
        cur.execute("""
            DELETE FROM paid_months
            WHERE payment_id IN (SELECT id FROM payments WHERE student_id = ?)
        """, (student_id,))
        cur.execute("DELETE FROM payments WHERE student_id = ?", (student_id,))
        cur.execute("DELETE FROM attendance WHERE student_id = ?", (student_id,))
        cur.execute("DELETE FROM grades WHERE student_id = ?", (student_id,))
        cur.execute("DELETE FROM parents WHERE student_code = ?", (code,))
        cur.execute("DELETE FROM students WHERE id = ?", (student_id,))
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()
    return True


def verify_student_credentials(phone: str, password: str) -> Student | None:
    clean_phone = phone.strip()
    if not clean_phone or not password:
        return None

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(f"""
        SELECT {_STUDENT_COLUMNS}, password_hash
        FROM students
        WHERE phone = ?
    """, (clean_phone,))
    rows = cur.fetchall()
    conn.close()

    # several siblings may share a phone number; the password picks the account
    for row in rows:
        if _verify_password(password, row[7]):
            return _student_from_row(row)
    return None


# -----------------------------
# Parents
# -----------------------------
def _parent_from_row(row) -> Parent:
    return {
        "id": str(row[0]),
        "phone": str(row[1]),
        "student_code": str(row[2]),
        "student_name": str(row[3]),
    }


def get_all_parents() -> list[Parent]:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        SELECT id, phone, student_code, student_name
        FROM parents
        ORDER BY student_name
    """)
    rows = cur.fetchall()
    conn.close()
    return [_parent_from_row(r) for r in rows]


def get_parent_by_id(parent_id: str) -> Parent | None:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        SELECT id, phone, student_code, student_name
        FROM parents
        WHERE id = ?
    """, (parent_id,))
    row = cur.fetchone()
    conn.close()
    return _parent_from_row(row) if row else None


def add_parent(*, phone: str, student_code: str, student_name: str, password: str) -> Parent:
    parent_id = new_id()
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO parents (id, phone, student_code, student_name, password_hash)
        VALUES (?, ?, ?, ?, ?)
    """, (parent_id, phone, student_code, student_name, _hash_password(password)))
    conn.commit()
    conn.close()
    return {
        "id": parent_id,
        "phone": phone,
        "student_code": student_code,
        "student_name": student_name,
    }


def update_parent(
    parent_id: str,
    *,
    phone: str,
    student_code: str,
    student_name: str,
    password: str | None = None,
) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        UPDATE parents
        SET phone = ?,
            student_code = ?,
            student_name = ?
        WHERE id = ?
    """, (phone, student_code, student_name, parent_id))
    updated = cur.rowcount > 0
    if updated and password:
        cur.execute(
            "UPDATE parents SET password_hash = ? WHERE id = ?",
            (_hash_password(password), parent_id),
        )
    conn.commit()
    conn.close()
    return updated


def delete_parent(parent_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM parents WHERE id = ?", (parent_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


def verify_parent_credentials(phone: str, password: str) -> Parent | None:
    clean_phone = phone.strip()
    if not clean_phone or not password:
        return None

    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        SELECT id, phone, student_code, student_name, password_hash
        FROM parents
        WHERE phone = ?
    """, (clean_phone,))
    rows = cur.fetchall()
    conn.close()

    for row in rows:
        if _verify_password(password, row[4]):
            return _parent_from_row(row)
    return None


# -----------------------------
# Attendance
# -----------------------------
def _attendance_from_row(row) -> AttendanceRecord:
    return {
        "id": str(row[0]),
        "student_id": str(row[1]),
        "student_name": str(row[2]),
        "date": str(row[3]),
        "time": str(row[4] or ""),
        "status": row[5],
        "lesson_number": int(row[6] or 1),
    }


def get_attendance_records(date: str | None = None, student_id: str | None = None) -> list[AttendanceRecord]:
    where: list[str] = []
    params: list[Any] = []
    if date:
        where.append("date = ?")
        params.append(date)
    if student_id:
        where.append("student_id = ?")
        params.append(student_id)

    query = """
        SELECT id, student_id, student_name, date, time, status, lesson_number
        FROM attendance
    """
    if where:
        query += f" WHERE {' AND '.join(where)}"
    query += " ORDER BY date ASC, time ASC, rowid ASC"

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(query, params)
    rows = cur.fetchall()
    conn.close()
    return [_attendance_from_row(r) for r in rows]


def count_student_attendance(student_id: str) -> int:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("SELECT COUNT(1) FROM attendance WHERE student_id = ?", (student_id,))
    row = cur.fetchone()
    conn.close()
    return int(row[0] or 0) if row else 0


def add_attendance_record(
    *,
    student_id: str,
    student_name: str,
    status: AttendanceStatus,
    lesson_number: int,
    date: str,
    time: str,
) -> AttendanceRecord:
    record_id = new_id()
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO attendance (id, student_id, student_name, date, time, status, lesson_number)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """, (record_id, student_id, student_name, date, time, status, lesson_number))
    conn.commit()
    conn.close()
    return {
        "id": record_id,
        "student_id": student_id,
        "student_name": student_name,
        "date": date,
        "time": time,
        "status": status,
        "lesson_number": lesson_number,
    }


def delete_attendance_record(record_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM attendance WHERE id = ?", (record_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


# -----------------------------
# Grades
# -----------------------------
def performance_indicator(score: float, total_score: float) -> PerformanceIndicator:
    percentage = (score / total_score) * 100 if total_score else 0.0
    if percentage >= 90:
        return "excellent"
    if percentage >= 80:
        return "very-good"
    if percentage >= 70:
        return "good"
    if percentage >= 60:
        return "fair"
    return "needs-improvement"


def _grade_from_row(row) -> GradeRecord:
    return {
        "id": str(row[0]),
        "student_id": str(row[1]),
        "student_name": str(row[2]),
        "exam_name": str(row[3]),
        "score": float(row[4]),
        "total_score": float(row[5]),
        "date": str(row[6]),
        "lesson_number": int(row[7] or 1),
        "group": str(row[8] or ""),
        "performance_indicator": row[9] or "good",
    }


def get_grades(student_id: str | None = None) -> list[GradeRecord]:
    query = """
        SELECT id, student_id, student_name, exam_name, score, total_score,
               date, lesson_number, group_name, performance_indicator
        FROM grades
    """
    params: list[Any] = []
    if student_id:
        query += " WHERE student_id = ?"
        params.append(student_id)
    query += " ORDER BY date ASC"

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(query, params)
    rows = cur.fetchall()
    conn.close()
    return [_grade_from_row(r) for r in rows]


def add_grade(
    *,
    student_id: str,
    student_name: str,
    exam_name: str,
    score: float,
    total_score: float = 100,
    lesson_number: int = 1,
    group: str = "",
) -> GradeRecord:
    grade_id = new_id()
    indicator = performance_indicator(score, total_score)
    date = _now_iso()
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO grades (
            id, student_id, student_name, exam_name, score, total_score,
            date, lesson_number, group_name, performance_indicator
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
    """, (
        grade_id, student_id, student_name, exam_name, score, total_score,
        date, lesson_number, group, indicator,
    ))
    conn.commit()
    conn.close()
    return {
        "id": grade_id,
        "student_id": student_id,
        "student_name": student_name,
        "exam_name": exam_name,
        "score": float(score),
        "total_score": float(total_score),
        "date": date,
        "lesson_number": lesson_number,
        "group": group,
        "performance_indicator": indicator,
    }


def update_grade(
    grade_id: str,
    *,
    exam_name: str,
    score: float,
    total_score: float,
    lesson_number: int = 1,
    group: str = "",
) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        UPDATE grades
        SET exam_name = ?,
            score = ?,
            total_score = ?,
            lesson_number = ?,
            group_name = ?,
            performance_indicator = ?
        WHERE id = ?
    """, (
        exam_name, score, total_score, lesson_number, group,
        performance_indicator(score, total_score), grade_id,
    ))
    updated = cur.rowcount > 0
    conn.commit()
    conn.close()
    return updated


def delete_grade(grade_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM grades WHERE id = ?", (grade_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


# -----------------------------
# Videos + books
# -----------------------------
def get_videos(grade: str | None = None) -> list[Video]:
    query = "SELECT id, title, url, grade, is_youtube, upload_date FROM videos"
    params: list[Any] = []
    if grade:
        query += " WHERE grade = ?"
        params.append(grade)
    query += " ORDER BY upload_date DESC"

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(query, params)
    rows = cur.fetchall()
    conn.close()
    return [
        {
            "id": str(r[0]),
            "title": str(r[1]),
            "url": str(r[2]),
            "grade": r[3],
            "is_youtube": bool(r[4]),
            "upload_date": str(r[5]),
        }
        for r in rows
    ]


def add_video(*, title: str, url: str, grade: GradeTier, is_youtube: bool = False) -> Video:
    video_id = new_id()
    upload_date = _now_iso()
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO videos (id, title, url, grade, is_youtube, upload_date)
        VALUES (?, ?, ?, ?, ?, ?)
    """, (video_id, title, url, grade, 1 if is_youtube else 0, upload_date))
    conn.commit()
    conn.close()
    return {
        "id": video_id,
        "title": title,
        "url": url,
        "grade": grade,
        "is_youtube": is_youtube,
        "upload_date": upload_date,
    }


def update_video(video_id: str, *, title: str, url: str, grade: GradeTier, is_youtube: bool = False) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        UPDATE videos
        SET title = ?, url = ?, grade = ?, is_youtube = ?
        WHERE id = ?
    """, (title, url, grade, 1 if is_youtube else 0, video_id))
    updated = cur.rowcount > 0
    conn.commit()
    conn.close()
    return updated


def delete_video(video_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM videos WHERE id = ?", (video_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


def get_books(grade: str | None = None) -> list[Book]:
    query = "SELECT id, title, url, grade, upload_date FROM books"
    params: list[Any] = []
    if grade:
        query += " WHERE grade = ?"
        params.append(grade)
    query += " ORDER BY upload_date DESC"

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(query, params)
    rows = cur.fetchall()
    conn.close()
    return [
        {
            "id": str(r[0]),
            "title": str(r[1]),
            "url": str(r[2]),
            "grade": r[3],
            "upload_date": str(r[4]),
        }
        for r in rows
    ]


def add_book(*, title: str, url: str, grade: GradeTier) -> Book:
    book_id = new_id()
    upload_date = _now_iso()
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        INSERT INTO books (id, title, url, grade, upload_date)
        VALUES (?, ?, ?, ?, ?)
    """, (book_id, title, url, grade, upload_date))
    conn.commit()
    conn.close()
    return {"id": book_id, "title": title, "url": url, "grade": grade, "upload_date": upload_date}


def delete_book(book_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM books WHERE id = ?", (book_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


# -----------------------------
# Payments
# -----------------------------
def _paid_months_by_payment(cur: sqlite3.Cursor, payment_ids: list[str]) -> dict[str, list[str]]:
    if not payment_ids:
        return {}
    placeholders = ",".join("?" for _ in payment_ids)
    cur.execute(f"""
        SELECT payment_id, month
        FROM paid_months
        WHERE payment_id IN ({placeholders})
        ORDER BY date ASC, rowid ASC
    """, payment_ids)
    out: dict[str, list[str]] = {pid: [] for pid in payment_ids}
    for payment_id, month in cur.fetchall():
        out[str(payment_id)].append(str(month))
    return out


def get_payments(student_id: str | None = None) -> list[Payment]:
    query = """
        SELECT id, student_id, student_name, student_code, student_group, month, date
        FROM payments
    """
    params: list[Any] = []
    if student_id:
        query += " WHERE student_id = ?"
        params.append(student_id)
    query += " ORDER BY created_at ASC, rowid ASC"

    conn = connect_db()
    cur = conn.cursor()
    cur.execute(query, params)
    rows = cur.fetchall()
    months = _paid_months_by_payment(cur, [str(r[0]) for r in rows])
    conn.close()
    return [
        {
            "id": str(r[0]),
            "student_id": str(r[1]),
            "student_name": str(r[2]),
            "student_code": str(r[3]),
            "student_group": str(r[4] or ""),
            "month": str(r[5]),
            "date": str(r[6]),
            "paid_months": months.get(str(r[0]), []),
        }
        for r in rows
    ]


def add_payment(student: Student, month: str) -> Payment:
    """
    Record `month` as paid for `student`.

    A student carries one payment row; every further month becomes another
    `paid_months` child row of it. Re-paying a month is a no-op.
    """
    now = _now_iso()
    conn = connect_db()
    cur = conn.cursor()
    try:
        cur.execute("""
            SELECT id
            FROM payments
            WHERE student_id = ?
            ORDER BY created_at ASC, rowid ASC
            LIMIT 1
        """, (student["id"],))
        row = cur.fetchone()
        if row:
            payment_id = str(row[0])
            cur.execute("""
                UPDATE payments
                SET month = ?, date = ?
                WHERE id = ?
            """, (month, now, payment_id))
        else:
            payment_id = new_id()
            cur.execute("""
                INSERT INTO payments (id, student_id, student_name, student_code, student_group, month, date)
                VALUES (?, ?, ?, ?, ?, ?, ?)
            """, (
                payment_id, student["id"], student["name"], student["code"],
                student["group"], month, now,
            ))
        cur.execute("""
            INSERT OR IGNORE INTO paid_months (id, payment_id, month, date)
            VALUES (?, ?, ?, ?)
        """, (new_id(), payment_id, month, now))
        conn.commit()
    except sqlite3.Error:
        conn.rollback()
        raise
    finally:
        conn.close()

    payments = [p for p in get_payments(student["id"]) if p["id"] == payment_id]
    return payments[0]


def delete_payment(payment_id: str) -> bool:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM paid_months WHERE payment_id = ?", (payment_id,))
    cur.execute("DELETE FROM payments WHERE id = ?", (payment_id,))
    deleted = cur.rowcount > 0
    conn.commit()
    conn.close()
    return deleted


def delete_all_payments() -> None:
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("DELETE FROM paid_months;")
    cur.execute("DELETE FROM payments;")
    conn.commit()
    conn.close()


def count_paid_months(student_id: str) -> int:
    """Distinct month labels paid across all of a student's payments."""
    conn = connect_db()
    cur = conn.cursor()
    cur.execute("""
        SELECT COUNT(DISTINCT pm.month)
        FROM paid_months pm
        JOIN payments p ON p.id = pm.payment_id
        WHERE p.student_id = ?
    """, (student_id,))
    row = cur.fetchone()
    conn.close()
    return int(row[0] or 0) if row else 0
