import pytest

from conftest import make_pdf, register, upload
from openleaf.reader.client import LibraryAPIError, LibraryClient
from openleaf.reader.rendering import PdfRenderer
from openleaf.reader.scheduler import ManualClock, Scheduler
from openleaf.reader.session import ReaderSession

PNG_MAGIC = b"\x89PNG"


def test_reader_round_trip_against_api(client):
    register(client)
    book = upload(client, make_pdf(10))
    clock = ManualClock()
    api = LibraryClient(http=client)
    session = ReaderSession(
        book["id"], api, renderer=PdfRenderer(), scheduler=Scheduler(clock=clock), flip_duration=0.6
    )

    assert session.load_book()
    assert session.total_pages == 10
    assert all(page.image.startswith(PNG_MAGIC) for page in session.spread)
    assert api.get_progress(book["id"])["current_page"] == 1

    session.go_to_page(9)
    session.flip_next()
    clock.advance(0.6)
    session.scheduler.run_due()

    assert session.current_page == 10
    assert [p.number for p in session.spread] == [10]
    progress = api.get_progress(book["id"])
    assert (progress["current_page"], progress["total_pages"]) == (10, 10)
    assert api.list_books()[0]["current_page"] == 10

    resumed = ReaderSession(book["id"], api, renderer=PdfRenderer(), scheduler=Scheduler(clock=clock))
    assert resumed.load_book()
    assert resumed.current_page == 10


def test_client_raises_api_errors(client):
    api = LibraryClient(http=client)
    with pytest.raises(LibraryAPIError) as excinfo:
        api.stats()
    assert excinfo.value.status_code == 401
    assert excinfo.value.detail == "Authentication required"


def test_renderer_returns_none_for_missing_page():
    renderer = PdfRenderer()
    doc = renderer.open(make_pdf(2))
    try:
        assert renderer.page_count(doc) == 2
        assert renderer.render(doc, 1, 1.0).startswith(PNG_MAGIC)
        assert renderer.render(doc, 5, 1.0) is None
    finally:
        renderer.close(doc)
