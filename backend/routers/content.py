from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from backend.dependencies import get_current_user
from backend.security import require_admin
from backend.services.accounts import SessionUser
from database.db import (
    add_book,
    add_video,
    delete_book,
    delete_video,
    get_books,
    get_videos,
    update_video,
)

router = APIRouter()


class VideoCreate(BaseModel):
    title: str
    url: str
    grade: Literal["first", "second", "third"]
    is_youtube: bool = False


class BookCreate(BaseModel):
    title: str
    url: str
    grade: Literal["first", "second", "third"]


def _grade_filter(user: SessionUser, requested: str | None) -> str | None:
    # students only ever see their own grade tier
    if user["role"] == "student":
        return user["grade"]
    if user["role"] == "admin":
        return requested
    raise HTTPException(status_code=403, detail="Not allowed for this account.")


def _clean(title: str, url: str) -> tuple[str, str]:
    title = title.strip()
    url = url.strip()
    if not title or not url:
        raise HTTPException(status_code=400, detail="Title and URL are required.")
    return title, url


# -----------------------------
# Videos
# -----------------------------
@router.get("/videos")
def videos(grade: str | None = None, user: SessionUser = Depends(get_current_user)):
    return get_videos(_grade_filter(user, grade))


@router.post("/videos")
def create_video(payload: VideoCreate, _session: dict = Depends(require_admin)):
    title, url = _clean(payload.title, payload.url)
    return add_video(title=title, url=url, grade=payload.grade, is_youtube=payload.is_youtube)


@router.put("/videos/{video_id}")
def edit_video(video_id: str, payload: VideoCreate, _session: dict = Depends(require_admin)):
    title, url = _clean(payload.title, payload.url)
    ok = update_video(video_id, title=title, url=url, grade=payload.grade, is_youtube=payload.is_youtube)
    if not ok:
        raise HTTPException(status_code=404, detail="Video not found.")
    return {"ok": True}


@router.delete("/videos/{video_id}")
def remove_video(video_id: str, _session: dict = Depends(require_admin)):
    if not delete_video(video_id):
        raise HTTPException(status_code=404, detail="Video not found.")
    return {"ok": True}


# -----------------------------
# Books
# -----------------------------
@router.get("/books")
def books(grade: str | None = None, user: SessionUser = Depends(get_current_user)):
    return get_books(_grade_filter(user, grade))


@router.post("/books")
def create_book(payload: BookCreate, _session: dict = Depends(require_admin)):
    title, url = _clean(payload.title, payload.url)
    return add_book(title=title, url=url, grade=payload.grade)


@router.delete("/books/{book_id}")
def remove_book(book_id: str, _session: dict = Depends(require_admin)):
    if not delete_book(book_id):
        raise HTTPException(status_code=404, detail="Book not found.")
    return {"ok": True}
