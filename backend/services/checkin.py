import logging
import threading
from typing import Callable, Literal, TypedDict

from backend.config import LESSONS_PER_CYCLE
from backend.services.lessons import has_paid, next_ordinal, prior_lesson_count
from backend.services.lookup import LookupSource, StudentResolver
from backend.services.recorder import AttendanceRecorder
from backend.services.state import SchoolState
from database.db import AttendanceRecord

logger = logging.getLogger(__name__)

CheckInOutcome = Literal[
    "SUCCESS",
    "NOT_FOUND",
    "PERMISSION_DENIED",
    "CAMERA_UNAVAILABLE",
    "PROCESSING_ERROR",
    "BUSY",
]
CheckInState = Literal["idle", "scanning", "processing", "success", "not_found", "error"]
CodeSource = Literal["manual", "camera"]
CameraFailure = Literal["permission_denied", "camera_unavailable"]


class CheckInResult(TypedDict):
    outcome: CheckInOutcome
    message: str
    code: str | None
    source: CodeSource | None
    student_id: str | None
    student_name: str | None
    lesson_number: int | None
    display_lesson_number: int | None
    paid: bool | None
    lookup_source: LookupSource | None
    record: AttendanceRecord | None


def _result(
    outcome: CheckInOutcome,
    message: str,
    *,
    code: str | None = None,
    source: CodeSource | None = None,
) -> CheckInResult:
    return {
        "outcome": outcome,
        "message": message,
        "code": code,
        "source": source,
        "student_id": None,
        "student_name": None,
        "lesson_number": None,
        "display_lesson_number": None,
        "paid": None,
        "lookup_source": None,
        "record": None,
    }


class CheckInOrchestrator:
    """
    Drives one check-in at a time: lookup, lesson ordinal, payment check, record.

    State goes idle -> scanning -> processing -> {success, not_found, error}
    and back to idle before the next attempt; `last_state` keeps the terminal
    state of the previous attempt. A second submit while one is processing
    is rejected with BUSY rather than queued.
    """

    def __init__(
        self,
        state: SchoolState,
        *,
        resolver: StudentResolver | None = None,
        recorder: AttendanceRecorder | None = None,
        paid_check: Callable[[str, int], bool] = has_paid,
        cycle_length: int = LESSONS_PER_CYCLE,
    ) -> None:
        self.state = state
        self.resolver = resolver or StudentResolver(state.find_student_by_code)
        self.recorder = recorder or AttendanceRecorder(state)
        self.paid_check = paid_check
        self.cycle_length = cycle_length

        self._guard = threading.Lock()
        self._state_lock = threading.Lock()
        self.current_state: CheckInState = "idle"
        self.last_state: CheckInState | None = None
        self.pending_code: str | None = None

    def _set_state(self, value: CheckInState) -> None:
        with self._state_lock:
            self.current_state = value

    def _finish(self, terminal: CheckInState) -> None:
        with self._state_lock:
            self.last_state = terminal
            self.current_state = "idle"

    @property
    def is_processing(self) -> bool:
        return self._guard.locked()

    def begin_scanning(self) -> bool:
        with self._state_lock:
            if self.current_state != "idle":
                return False
            self.current_state = "scanning"
            return True

    def cancel_scanning(self) -> None:
        with self._state_lock:
            if self.current_state == "scanning":
                self.current_state = "idle"

    def report_camera_failure(self, kind: CameraFailure) -> CheckInResult:
        self.cancel_scanning()
        if kind == "permission_denied":
            logger.warning("Camera permission denied; scan not started")
            return _result("PERMISSION_DENIED", "Camera access was denied. Allow camera access and retry.")
        logger.warning("Camera unavailable; scan not started")
        return _result("CAMERA_UNAVAILABLE", "Camera could not be started. Check the device and retry.")

    def submit(self, code: str, *, source: CodeSource = "manual") -> CheckInResult:
        if not self._guard.acquire(blocking=False):
            logger.info("Rejected check-in for %r: another check-in is in flight", code)
            return _result("BUSY", "A check-in is already being processed.", code=code, source=source)
        try:
            return self._process(code, source)
        finally:
            self._guard.release()

    def retry(self) -> CheckInResult | None:
        """Resubmit the code preserved by a failed check-in, if any."""
        code = self.pending_code
        if not code:
            return None
        return self.submit(code, source="manual")

    def _process(self, code: str, source: CodeSource) -> CheckInResult:
        clean_code = (code or "").strip()
        self.pending_code = clean_code
        self._set_state("processing")

        if not clean_code:
            self.pending_code = None
            self._finish("not_found")
            return _result("NOT_FOUND", "Enter a student code.", code=clean_code, source=source)

        try:
            lookup = self.resolver.resolve(clean_code)
            if lookup is None:
                self.pending_code = None
                self._finish("not_found")
                logger.info("Check-in code %r did not match any student", clean_code)
                return _result("NOT_FOUND", "No student found with this code.", code=clean_code, source=source)

            student = lookup["student"]
            prior = prior_lesson_count(student["id"], self.state)
            raw, display = next_ordinal(prior, cycle_length=self.cycle_length)
            paid = bool(self.paid_check(student["id"], raw))

            record = self.recorder.record(student["id"], student["name"], "present", raw)
        except Exception as e:
            # pending_code survives so the operator can retry without retyping
            logger.exception("Check-in for code %r failed", clean_code)
            self._finish("error")
            return _result(
                "PROCESSING_ERROR",
                f"Could not process the code: {e}",
                code=clean_code,
                source=source,
            )

        self.pending_code = None
        self._finish("success")

        message = f"Attendance recorded for {student['name']} (lesson {display})"
        if not paid:
            message += " (unpaid)"
        logger.info(
            "Checked in %s via %s: lesson %d (raw %d), paid=%s",
            student["name"], source, display, raw, paid,
        )
        return {
            "outcome": "SUCCESS",
            "message": message,
            "code": clean_code,
            "source": source,
            "student_id": student["id"],
            "student_name": student["name"],
            "lesson_number": raw,
            "display_lesson_number": display,
            "paid": paid,
            "lookup_source": lookup["source"],
            "record": record,
        }

    def snapshot(self) -> dict:
        with self._state_lock:
            return {
                "state": self.current_state,
                "last_state": self.last_state,
                "pending_code": self.pending_code,
                "processing": self._guard.locked(),
            }
