import logging
import sqlite3

from backend.config import LESSONS_PER_CYCLE
from backend.services.state import SchoolState
from database.db import count_paid_months, count_student_attendance

logger = logging.getLogger(__name__)


def prior_lesson_count(student_id: str, state: SchoolState) -> int:
    """
    Attendance rows already recorded for the student.

    The store is the source of truth, since other processes (the scanner CLI)
    write to it too. The in-memory snapshot only answers when the store errors.
    """
    try:
        return count_student_attendance(student_id)
    except sqlite3.Error as e:
        logger.warning("Store count failed for student %s, using snapshot: %s", student_id, e)
        return state.student_lesson_count(student_id)


def next_ordinal(prior_count: int, *, cycle_length: int = LESSONS_PER_CYCLE) -> tuple[int, int]:
    """
    Returns (raw, display) for the lesson after `prior_count` recorded ones.

    raw never resets and is what gets persisted; display folds it into the
    repeating 1..cycle_length numbering shown to people.
    """
    if prior_count < 0:
        raise ValueError("prior_count must be >= 0")
    raw = prior_count + 1
    display = ((raw - 1) % cycle_length) + 1
    return raw, display


def cycle_index(raw: int, *, cycle_length: int = LESSONS_PER_CYCLE) -> int:
    """1-based billing period that a raw lesson ordinal falls into."""
    if raw < 1:
        raise ValueError("raw ordinal must be >= 1")
    return ((raw - 1) // cycle_length) + 1


def has_paid(student_id: str, raw: int, *, cycle_length: int = LESSONS_PER_CYCLE) -> bool:
    # One paid month covers one cycle of lessons.
    paid = count_paid_months(student_id)
    if paid <= 0:
        return False
    return cycle_index(raw, cycle_length=cycle_length) <= paid
