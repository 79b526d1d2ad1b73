import sqlite3
import threading

import pytest

import backend.services.lessons as lessons_module
import backend.services.recorder as recorder_module
import database.db as db
from backend.services.checkin import CheckInOrchestrator
from backend.services.lessons import cycle_index, has_paid, next_ordinal, prior_lesson_count
from backend.services.lookup import StudentResolver
from backend.services.recorder import AttendanceRecorder, RecordingError
from backend.services.state import SchoolState


@pytest.fixture()
def state(db_path):
    s = SchoolState()
    assert s.load()
    return s


# -----------------------------
# Lesson cycle
# -----------------------------
@pytest.mark.parametrize(
    "prior, expected",
    [
        (0, (1, 1)),
        (6, (7, 7)),
        (7, (8, 8)),
        (8, (9, 1)),
        (15, (16, 8)),
        (16, (17, 1)),
        (100, (101, 5)),
    ],
)
def test_next_ordinal(prior, expected):
    assert next_ordinal(prior) == expected


def test_display_ordinal_stays_in_cycle():
    for prior in range(0, 50):
        raw, display = next_ordinal(prior)
        assert raw == prior + 1
        assert 1 <= display <= 8
        assert display == ((raw - 1) % 8) + 1


def test_next_ordinal_rejects_negative_count():
    with pytest.raises(ValueError):
        next_ordinal(-1)


def test_cycle_index():
    assert cycle_index(1) == 1
    assert cycle_index(8) == 1
    assert cycle_index(9) == 2
    assert cycle_index(17) == 3


# -----------------------------
# Payment cross-reference
# -----------------------------
def test_has_paid_without_payments_is_false(make_student):
    student = make_student()
    assert has_paid(student["id"], 1) is False


def test_has_paid_covers_one_cycle_per_month(make_student):
    student = make_student()
    db.add_payment(student, "2026-01")
    assert has_paid(student["id"], 1) is True
    assert has_paid(student["id"], 8) is True
    assert has_paid(student["id"], 9) is False

    db.add_payment(student, "2026-02")
    assert has_paid(student["id"], 9) is True
    assert has_paid(student["id"], 16) is True
    assert has_paid(student["id"], 17) is False


def test_repaying_same_month_does_not_extend_coverage(make_student):
    student = make_student()
    db.add_payment(student, "2026-01")
    db.add_payment(student, "2026-01")
    assert db.count_paid_months(student["id"]) == 1
    assert has_paid(student["id"], 9) is False


# -----------------------------
# Lookup
# -----------------------------
def test_lookup_is_idempotent(make_student, state):
    student = make_student(code="S001")
    resolver = StudentResolver(state.find_student_by_code)

    first = resolver.resolve("S001")
    second = resolver.resolve("S001")
    assert first is not None and second is not None
    assert first["student"]["id"] == second["student"]["id"] == student["id"]
    assert first["source"] == "store"


def test_lookup_is_case_sensitive(make_student, state):
    make_student(code="S001")
    resolver = StudentResolver(state.find_student_by_code)
    assert resolver.resolve("s001") is None


def test_lookup_falls_back_to_snapshot_on_store_error(make_student, state):
    student = make_student(code="S001")
    state.load()

    def broken_store(code):
        raise sqlite3.OperationalError("database is locked")

    resolver = StudentResolver(state.find_student_by_code, store_lookup=broken_store)
    result = resolver.resolve("S001")
    assert result is not None
    assert result["source"] == "snapshot"
    assert result["student"]["id"] == student["id"]


def test_snapshot_can_be_stale(make_student, state):
    student = make_student(code="S001")
    state.load()
    db.delete_student(student["id"])

    # store no longer has the code, the snapshot still does
    result = StudentResolver(state.find_student_by_code).resolve("S001")
    assert result is not None
    assert result["source"] == "snapshot"

    state.load()
    assert StudentResolver(state.find_student_by_code).resolve("S001") is None


# -----------------------------
# Recorder
# -----------------------------
def test_record_is_not_idempotent(make_student, state):
    student = make_student()
    recorder = AttendanceRecorder(state)

    a = recorder.record(student["id"], student["name"], "present", 1)
    b = recorder.record(student["id"], student["name"], "present", 1)
    assert a["id"] != b["id"]
    assert len(db.get_attendance_records(student_id=student["id"])) == 2
    assert state.student_lesson_count(student["id"]) == 2


def test_record_failure_leaves_state_untouched(make_student, state, monkeypatch):
    student = make_student()

    def failing_insert(**kwargs):
        raise sqlite3.OperationalError("disk I/O error")

    monkeypatch.setattr(recorder_module, "add_attendance_record", failing_insert)
    with pytest.raises(RecordingError):
        AttendanceRecorder(state).record(student["id"], student["name"], "present", 1)
    assert state.attendance == []


# -----------------------------
# Orchestrator
# -----------------------------
def test_end_to_end_first_checkin(make_student, state):
    student = make_student(code="S001")
    state.load()
    orchestrator = CheckInOrchestrator(state)

    result = orchestrator.submit("S001")
    assert result["outcome"] == "SUCCESS"
    assert result["student_id"] == student["id"]
    assert result["lesson_number"] == 1
    assert result["display_lesson_number"] == 1
    assert result["paid"] is False
    assert "(unpaid)" in result["message"]

    rows = db.get_attendance_records(student_id=student["id"])
    assert len(rows) == 1
    assert rows[0]["status"] == "present"
    assert rows[0]["lesson_number"] == 1
    assert orchestrator.current_state == "idle"
    assert orchestrator.last_state == "success"
    assert orchestrator.pending_code is None


def test_ninth_checkin_starts_new_cycle(make_student, state):
    student = make_student(code="S001")
    db.add_payment(student, "2026-01")
    state.load()
    orchestrator = CheckInOrchestrator(state)

    results = [orchestrator.submit("S001") for _ in range(9)]
    assert [r["display_lesson_number"] for r in results] == [1, 2, 3, 4, 5, 6, 7, 8, 1]
    assert results[7]["lesson_number"] == 8
    assert results[7]["paid"] is True
    assert results[8]["lesson_number"] == 9
    assert results[8]["paid"] is False


def test_unknown_code_does_not_touch_attendance(make_student, state):
    make_student(code="S001")
    state.load()
    orchestrator = CheckInOrchestrator(state)
    before = len(state.attendance)

    result = orchestrator.submit("UNKNOWN")
    assert result["outcome"] == "NOT_FOUND"
    assert len(state.attendance) == before
    assert db.get_attendance_records() == []
    assert orchestrator.last_state == "not_found"
    assert orchestrator.pending_code is None


def test_processing_error_preserves_pending_code(make_student, state, monkeypatch):
    make_student(code="S001")
    state.load()
    orchestrator = CheckInOrchestrator(state)

    store_down = {"value": True}

    def flaky_insert(**kwargs):
        if store_down["value"]:
            raise sqlite3.OperationalError("database is locked")
        return db.add_attendance_record(**kwargs)

    monkeypatch.setattr(recorder_module, "add_attendance_record", flaky_insert)
    result = orchestrator.submit("S001")
    assert result["outcome"] == "PROCESSING_ERROR"
    assert orchestrator.pending_code == "S001"
    assert orchestrator.last_state == "error"
    assert state.attendance == []

    store_down["value"] = False
    retried = orchestrator.retry()
    assert retried is not None
    assert retried["outcome"] == "SUCCESS"
    assert orchestrator.pending_code is None


def test_retry_without_pending_code(state):
    assert CheckInOrchestrator(state).retry() is None


def test_second_submission_rejected_while_processing(make_student, state):
    make_student(code="A", phone="01000000010")
    make_student(name="Other Student", code="B", phone="01000000011")
    state.load()

    entered = threading.Event()
    release = threading.Event()

    def slow_store(code):
        entered.set()
        release.wait(timeout=5)
        return db.get_student_by_code(code)

    resolver = StudentResolver(state.find_student_by_code, store_lookup=slow_store)
    orchestrator = CheckInOrchestrator(state, resolver=resolver)

    results = {}
    worker = threading.Thread(target=lambda: results.setdefault("A", orchestrator.submit("A")))
    worker.start()
    assert entered.wait(timeout=5)

    second = orchestrator.submit("B")
    assert second["outcome"] == "BUSY"

    release.set()
    worker.join(timeout=5)
    assert results["A"]["outcome"] == "SUCCESS"

    names = [r["student_name"] for r in db.get_attendance_records()]
    assert names == ["Test Student"]


def test_camera_failure_returns_to_idle(state):
    orchestrator = CheckInOrchestrator(state)
    assert orchestrator.begin_scanning()
    assert orchestrator.current_state == "scanning"

    result = orchestrator.report_camera_failure("permission_denied")
    assert result["outcome"] == "PERMISSION_DENIED"
    assert orchestrator.current_state == "idle"

    result = orchestrator.report_camera_failure("camera_unavailable")
    assert result["outcome"] == "CAMERA_UNAVAILABLE"


# -----------------------------
# Prior lesson count
# -----------------------------
def _seed_attendance(student, count: int) -> None:
    for n in range(1, count + 1):
        db.add_attendance_record(
            student_id=student["id"],
            student_name=student["name"],
            status="present",
            lesson_number=n,
            date="2026-02-10",
            time=f"08:0{n}:00",
        )


def test_ordinals_keep_increasing_across_processes(make_student):
    make_student(code="S001")
    api_state = SchoolState()
    scanner_state = SchoolState()
    assert api_state.load() and scanner_state.load()

    # two snapshots over one store, like the API and the scanner CLI
    first = CheckInOrchestrator(api_state).submit("S001")
    second = CheckInOrchestrator(scanner_state).submit("S001")

    assert [first["lesson_number"], second["lesson_number"]] == [1, 2]
    assert [r["lesson_number"] for r in db.get_attendance_records()] == [1, 2]


def test_unloaded_snapshot_does_not_reset_ordinal(make_student):
    student = make_student(code="S001")
    _seed_attendance(student, 3)

    result = CheckInOrchestrator(SchoolState()).submit("S001")
    assert result["outcome"] == "SUCCESS"
    assert result["lesson_number"] == 4
    assert result["display_lesson_number"] == 4


def test_prior_count_falls_back_to_snapshot_on_store_error(make_student, state, monkeypatch):
    student = make_student(code="S001")
    _seed_attendance(student, 2)
    state.load()

    def broken_count(student_id):
        raise sqlite3.OperationalError("database is locked")

    monkeypatch.setattr(lessons_module, "count_student_attendance", broken_count)
    assert prior_lesson_count(student["id"], state) == 2
