import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.config import (
    CORS_ALLOW_CREDENTIALS,
    CORS_ALLOW_HEADERS,
    CORS_ALLOW_METHODS,
    CORS_ALLOW_ORIGINS,
    LOG_LEVEL,
)
from backend.routers import admin, attendance, auth, content, core, grades, parents, payments, students
from backend.services.checkin import CheckInOrchestrator
from backend.services.state import SchoolState
from database.db import create_tables

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    create_tables()
    school = SchoolState()
    if not school.load():
        logger.warning("Starting with an empty school snapshot; store load failed")
    app.state.school = school
    app.state.checkin = CheckInOrchestrator(school)
    logger.info("Lessonbook API started")
    yield


app = FastAPI(title="Lessonbook API", lifespan=lifespan)

# -----------------------------
# CORS (browser client)
# -----------------------------
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ALLOW_ORIGINS,
    allow_credentials=CORS_ALLOW_CREDENTIALS,
    allow_methods=CORS_ALLOW_METHODS,
    allow_headers=CORS_ALLOW_HEADERS,
)

app.include_router(core.router)
app.include_router(auth.router)
app.include_router(students.router)
app.include_router(parents.router)
app.include_router(attendance.router)
app.include_router(grades.router)
app.include_router(content.router)
app.include_router(payments.router)
app.include_router(admin.router)
