import os
import tempfile

_TMP_ROOT = tempfile.mkdtemp(prefix="openleaf-tests-")
os.environ.setdefault("UPLOAD_DIR", os.path.join(_TMP_ROOT, "uploads"))
os.environ.setdefault("DATABASE_URL", f"sqlite:///{os.path.join(_TMP_ROOT, 'import.db')}")
os.environ.setdefault("ENVIRONMENT", "test")

import fitz
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from openleaf.db.session import get_db, init_db, make_engine
from openleaf.main import app


@pytest.fixture
def db_session_factory(tmp_path):
    engine = make_engine(f"sqlite:///{tmp_path / 'test.db'}")
    init_db(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    yield factory
    engine.dispose()


@pytest.fixture
def db(db_session_factory):
    session = db_session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(db_session_factory):
    def _get_db():
        session = db_session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


def make_pdf(pages: int) -> bytes:
    doc = fitz.open()
    for number in range(1, pages + 1):
        page = doc.new_page(width=200, height=300)
        page.insert_text((40, 60), f"Page {number}")
    data = doc.tobytes()
    doc.close()
    return data


@pytest.fixture
def pdf_bytes():
    return make_pdf(5)


def register(client: TestClient, username: str = "reader", password: str = "password123") -> dict:
    resp = client.post(
        "/api/auth/register",
        json={"username": username, "email": f"{username}@example.com", "password": password},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["user"]


def upload(client: TestClient, pdf: bytes, title: str = "Dune", author: str = "Frank Herbert") -> dict:
    resp = client.post(
        "/api/books",
        data={"title": title, "author": author, "description": "Spice"},
        files={"book": ("dune.pdf", pdf, "application/pdf")},
    )
    assert resp.status_code == 200, resp.text
    return resp.json()["book"]
