import logging
import sqlite3
import threading
from datetime import datetime

from database.db import (
    AttendanceRecord,
    Student,
    get_all_students,
    get_attendance_records,
)

logger = logging.getLogger(__name__)


class SchoolState:
    """
    In-memory mirror of the student and attendance collections.

    Loaded from the store on startup and kept in step by the code paths that
    write to the store. Every mutation replaces the whole list under a lock,
    so readers always see a complete collection.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._students: list[Student] = []
        self._attendance: list[AttendanceRecord] = []
        self.loaded_at: str | None = None

    def load(self) -> bool:
        """Refresh both collections from the store. Returns False on store errors."""
        try:
            students = get_all_students()
            attendance = get_attendance_records()
        except sqlite3.Error as e:
            logger.error("Failed to load school state from store: %s", e)
            return False

        with self._lock:
            self._students = students
            self._attendance = attendance
            self.loaded_at = datetime.now().isoformat(timespec="seconds")
        logger.info("Loaded %d students and %d attendance records", len(students), len(attendance))
        return True

    # -----------------------------
    # Students
    # -----------------------------
    @property
    def students(self) -> list[Student]:
        with self._lock:
            return list(self._students)

    def find_student_by_code(self, code: str) -> Student | None:
        with self._lock:
            for student in self._students:
                if student["code"] == code:
                    return student
        return None

    def upsert_student(self, student: Student) -> None:
        with self._lock:
            others = [s for s in self._students if s["id"] != student["id"]]
            self._students = others + [student]

    def remove_student(self, student_id: str) -> None:
        with self._lock:
            self._students = [s for s in self._students if s["id"] != student_id]
            self._attendance = [a for a in self._attendance if a["student_id"] != student_id]

    # -----------------------------
    # Attendance
    # -----------------------------
    @property
    def attendance(self) -> list[AttendanceRecord]:
        with self._lock:
            return list(self._attendance)

    def student_lesson_count(self, student_id: str) -> int:
        with self._lock:
            return sum(1 for a in self._attendance if a["student_id"] == student_id)

    def append_attendance(self, record: AttendanceRecord) -> None:
        with self._lock:
            self._attendance = self._attendance + [record]

    def remove_attendance(self, record_id: str) -> None:
        with self._lock:
            self._attendance = [a for a in self._attendance if a["id"] != record_id]
