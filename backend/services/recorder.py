import logging
import sqlite3
from datetime import datetime

from backend.services.state import SchoolState
from database.db import (
    ATTENDANCE_STATUSES,
    AttendanceRecord,
    AttendanceStatus,
    add_attendance_record,
)

logger = logging.getLogger(__name__)


class RecordingError(Exception):
    """The store refused or failed to persist an attendance row."""


class AttendanceRecorder:
    def __init__(self, state: SchoolState) -> None:
        self.state = state

    def record(
        self,
        student_id: str,
        student_name: str,
        status: AttendanceStatus = "present",
        lesson_number: int = 1,
    ) -> AttendanceRecord:
        """
        Persist a new attendance row, then mirror it into the in-memory state.

        The state is only touched after the store confirms the insert. There is
        no dedup: two identical calls produce two records.
        """
        if status not in ATTENDANCE_STATUSES:
            raise ValueError(f"Unknown attendance status: {status}")
        if lesson_number < 1:
            raise ValueError("lesson_number must be >= 1")

        now = datetime.now()
        try:
            record = add_attendance_record(
                student_id=student_id,
                student_name=student_name,
                status=status,
                lesson_number=lesson_number,
                date=now.strftime("%Y-%m-%d"),
                time=now.strftime("%H:%M:%S"),
            )
        except sqlite3.Error as e:
            logger.error("Failed to record attendance for student %s: %s", student_id, e)
            raise RecordingError(str(e)) from e

        self.state.append_attendance(record)
        return record
