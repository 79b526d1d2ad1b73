import os
import secrets
from pathlib import Path

BASE_DIR = Path(__file__).resolve().parents[1]

DB_PATH = Path(os.getenv("LESSONBOOK_DB_PATH", BASE_DIR / "database" / "lessonbook.db"))
ADMIN_USERNAME = os.getenv("LESSONBOOK_ADMIN_USERNAME", "admin").strip() or "admin"
ADMIN_PASSWORD = os.getenv("LESSONBOOK_ADMIN_PASSWORD", "admin123").strip() or "admin123"
SIGNING_KEY = os.getenv("LESSONBOOK_SIGNING_KEY", "").strip() or secrets.token_urlsafe(32)
AUTH_TOKEN_TTL_SECONDS = int(os.getenv("LESSONBOOK_AUTH_TOKEN_TTL_SECONDS", "43200"))
LOG_LEVEL = os.getenv("LESSONBOOK_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def _parse_bool(value: str | None, fallback: bool) -> bool:
    if value is None:
        return fallback
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "on"}:
        return True
    if normalized in {"0", "false", "no", "off"}:
        return False
    return fallback


def _parse_csv(value: str | None, fallback: list[str]) -> list[str]:
    if not value:
        return fallback
    parsed = [item.strip() for item in value.split(",") if item.strip()]
    return parsed or fallback


def _parse_positive_int(value: str | None, fallback: int) -> int:
    try:
        parsed = int(value) if value is not None else fallback
    except ValueError:
        return fallback
    return parsed if parsed > 0 else fallback


def _parse_camera_index(value: str | None) -> int | str:
    # Either a device index ("0") or a capture URL / file path.
    if not value:
        return 0
    value = value.strip()
    return int(value) if value.isdigit() else value


CORS_ALLOW_ORIGINS = _parse_csv(
    os.getenv("LESSONBOOK_CORS_ALLOW_ORIGINS"),
    ["http://localhost:5173", "http://127.0.0.1:5173"],
)
CORS_ALLOW_METHODS = _parse_csv(
    os.getenv("LESSONBOOK_CORS_ALLOW_METHODS"),
    ["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
)
CORS_ALLOW_HEADERS = _parse_csv(
    os.getenv("LESSONBOOK_CORS_ALLOW_HEADERS"),
    ["Authorization", "Content-Type", "Accept"],
)
CORS_ALLOW_CREDENTIALS = _parse_bool(os.getenv("LESSONBOOK_CORS_ALLOW_CREDENTIALS"), True)
ENABLE_DEBUG_ENDPOINTS = _parse_bool(os.getenv("LESSONBOOK_ENABLE_DEBUG_ENDPOINTS"), False)

# Lessons are billed and numbered in fixed blocks (one paid month per block).
LESSONS_PER_CYCLE = _parse_positive_int(os.getenv("LESSONBOOK_LESSONS_PER_CYCLE"), 8)

STUDENT_CODE_LENGTH = _parse_positive_int(os.getenv("LESSONBOOK_STUDENT_CODE_LENGTH"), 6)
GENERATED_PASSWORD_LENGTH = _parse_positive_int(os.getenv("LESSONBOOK_GENERATED_PASSWORD_LENGTH"), 8)

# Local camera scanner
CAMERA_INDEX = _parse_camera_index(os.getenv("LESSONBOOK_CAMERA_INDEX"))
SCAN_FRAME_INTERVAL_SECONDS = max(
    0.0,
    float(os.getenv("LESSONBOOK_SCAN_FRAME_INTERVAL_SECONDS", str(1 / 30))),
)
