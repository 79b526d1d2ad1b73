import pytest
from fastapi.testclient import TestClient

import backend.config as config
import backend.main as main
import database.db as db


@pytest.fixture()
def db_path(tmp_path, monkeypatch):
    test_db = tmp_path / "lessonbook_test.db"

    # Point DB to a temp file for isolation.
    monkeypatch.setattr(config, "DB_PATH", test_db)
    monkeypatch.setattr(db, "DB_PATH", test_db)

    db.create_tables()
    return test_db


@pytest.fixture()
def client(db_path):
    with TestClient(main.app) as c:
        yield c


@pytest.fixture()
def auth_headers(client):
    res = client.post(
        "/auth/login",
        json={
            "phone": config.ADMIN_USERNAME,
            "password": config.ADMIN_PASSWORD,
        },
    )
    assert res.status_code == 200
    token = res.json()["access_token"]
    return {"Authorization": f"Bearer {token}"}


def insert_student(
    *,
    name: str = "Test Student",
    code: str = "S001",
    phone: str = "01000000001",
    password: str = "secret-pass",
    group: str = "A",
    grade: str = "first",
) -> db.Student:
    return db.add_student(
        name=name,
        phone=phone,
        password=password,
        code=code,
        parent_phone="01100000000",
        group=group,
        grade=grade,
    )


@pytest.fixture()
def make_student(db_path):
    return insert_student
