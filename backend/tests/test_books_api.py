import os

from fastapi.testclient import TestClient

from conftest import register, upload
from openleaf.main import app
from openleaf.models import Favorite, ReadingProgress
from openleaf.services.storage import local_path


def test_upload_stores_pdf_and_renders_cover(client, pdf_bytes):
    user = register(client)
    book = upload(client, pdf_bytes)

    assert book["title"] == "Dune"
    assert book["uploader"] == user["username"]
    assert book["file_path"].startswith("/uploads/books/")
    assert book["file_path"].endswith(".pdf")
    assert book["cover_path"].startswith("/uploads/covers/")
    assert os.path.exists(local_path(book["file_path"]))
    assert os.path.exists(local_path(book["cover_path"]))

    served = client.get(book["file_path"])
    assert served.status_code == 200
    assert served.content == pdf_bytes


def test_upload_keeps_given_cover(client, pdf_bytes):
    register(client)
    resp = client.post(
        "/api/books",
        data={"title": "Emma", "author": "Jane Austen"},
        files={
            "book": ("emma.pdf", pdf_bytes, "application/pdf"),
            "cover": ("emma.png", b"\x89PNG fake", "image/png"),
        },
    )
    assert resp.status_code == 200
    cover_path = resp.json()["book"]["cover_path"]
    assert cover_path.endswith(".png")
    with open(local_path(cover_path), "rb") as f:
        assert f.read() == b"\x89PNG fake"


def test_upload_validation(client, pdf_bytes):
    register(client)
    missing = client.post("/api/books", data={"title": "No file", "author": "Nobody"})
    assert missing.status_code == 400
    assert missing.json()["detail"] == "Title, author, and book file are required"

    wrong_type = client.post(
        "/api/books",
        data={"title": "Notes", "author": "Me"},
        files={"book": ("notes.txt", b"hello", "text/plain")},
    )
    assert wrong_type.status_code == 400
    assert wrong_type.json()["detail"] == "Invalid file type"

    not_pdf = client.post(
        "/api/books",
        data={"title": "Fake", "author": "Me"},
        files={"book": ("fake.pdf", b"not really a pdf", "application/pdf")},
    )
    assert not_pdf.status_code == 400

    bad_cover = client.post(
        "/api/books",
        data={"title": "Cover", "author": "Me"},
        files={
            "book": ("ok.pdf", pdf_bytes, "application/pdf"),
            "cover": ("cover.bmp", b"BM", "image/bmp"),
        },
    )
    assert bad_cover.status_code == 400
    assert client.get("/api/books").json()["books"] == []


def test_search_matches_title_or_author(client, pdf_bytes):
    register(client)
    upload(client, pdf_bytes, title="Dune", author="Frank Herbert")
    upload(client, pdf_bytes, title="Emma", author="Jane Austen")

    def titles(search):
        return [b["title"] for b in client.get("/api/books", params={"search": search}).json()["books"]]

    assert titles("dun") == ["Dune"]
    assert titles("AUSTEN") == ["Emma"]
    assert titles("zzz") == []
    assert titles("") == ["Emma", "Dune"]


def test_get_unknown_book_is_404(client):
    register(client)
    resp = client.get("/api/books/12345")
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Book not found"


def test_book_detail_has_no_progress_until_opened(client, pdf_bytes):
    register(client)
    book = upload(client, pdf_bytes)
    detail = client.get(f"/api/books/{book['id']}").json()
    assert detail["book"]["id"] == book["id"]
    assert detail["progress"] is None


def test_only_uploader_can_delete(client, db, pdf_bytes):
    register(client, "owner")
    book = upload(client, pdf_bytes)
    client.post("/api/progress", json={"bookId": book["id"], "currentPage": 2, "totalPages": 5})
    client.post(f"/api/favorites/{book['id']}")

    with TestClient(app) as other:
        register(other, "stranger")
        assert [b["id"] for b in other.get("/api/books").json()["books"]] == [book["id"]]
        assert other.get("/api/my-books").json()["books"] == []
        assert other.delete(f"/api/books/{book['id']}").status_code == 403

    pdf_path = local_path(book["file_path"])
    cover_path = local_path(book["cover_path"])
    assert client.delete(f"/api/books/{book['id']}").json() == {"success": True}
    assert not os.path.exists(pdf_path)
    assert not os.path.exists(cover_path)
    assert client.get(f"/api/books/{book['id']}").status_code == 404
    assert db.query(ReadingProgress).count() == 0
    assert db.query(Favorite).count() == 0
    assert client.delete(f"/api/books/{book['id']}").status_code == 404


def test_stats_counts(client, pdf_bytes):
    register(client)
    upload(client, pdf_bytes)
    upload(client, pdf_bytes, title="Emma")
    assert client.get("/api/stats").json()["stats"] == {
        "totalBooks": 2,
        "myBooks": 2,
        "favoritesCount": 0,
        "booksRead": 0,
    }
    assert len(client.get("/api/my-books").json()["books"]) == 2


def test_stored_extension_follows_content_type(client, pdf_bytes):
    register(client)
    resp = client.post(
        "/api/books",
        data={"title": "Trap", "author": "Mallory"},
        files={
            "book": ("trap.html", pdf_bytes, "application/pdf"),
            "cover": ("evil.html", b"<script>alert(1)</script>", "image/png"),
        },
    )
    assert resp.status_code == 200
    book = resp.json()["book"]
    assert book["file_path"].endswith(".pdf")
    assert book["cover_path"].endswith(".png")

    served = client.get(book["cover_path"])
    assert served.status_code == 200
    assert served.headers["content-type"].startswith("image/png")
