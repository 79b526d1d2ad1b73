import logging
import sqlite3
from typing import Callable, Literal, TypedDict

from database.db import Student, get_student_by_code

logger = logging.getLogger(__name__)

LookupSource = Literal["store", "snapshot"]


class LookupResult(TypedDict):
    student: Student
    source: LookupSource


class StudentResolver:
    """
    Two-tier student lookup by code: the store first, then a local snapshot.

    The snapshot is only as fresh as its last load, so a hit there may name a
    student whose code has since been reassigned or removed. `source` on the
    result says which tier answered.
    """

    def __init__(
        self,
        snapshot_lookup: Callable[[str], Student | None],
        store_lookup: Callable[[str], Student | None] = get_student_by_code,
    ) -> None:
        self._store_lookup = store_lookup
        self._snapshot_lookup = snapshot_lookup

    def resolve(self, code: str) -> LookupResult | None:
        clean_code = (code or "").strip()
        if not clean_code:
            return None

        try:
            student = self._store_lookup(clean_code)
        except sqlite3.Error as e:
            logger.warning("Store lookup failed for code %r, using snapshot: %s", clean_code, e)
            student = None

        if student:
            return {"student": student, "source": "store"}

        student = self._snapshot_lookup(clean_code)
        if student:
            logger.info("Resolved code %r from local snapshot", clean_code)
            return {"student": student, "source": "snapshot"}
        return None
