import pytest

from openleaf.reader.state import FlipDirection, ReaderState, clamp_page, spread_pages, target_page


@pytest.mark.parametrize(
    "page,total,expected",
    [(-3, 10, 1), (0, 10, 1), (1, 10, 1), (7, 10, 7), (10, 10, 10), (11, 10, 10), (500, 10, 10), (4, 0, 1)],
)
def test_clamp_page(page, total, expected):
    assert clamp_page(page, total) == expected


def test_spread_shows_two_pages_when_available():
    assert spread_pages(ReaderState(book_id=1, current_page=3, total_pages=10)) == (3, 4)


def test_spread_shows_last_page_alone():
    assert spread_pages(ReaderState(book_id=1, current_page=10, total_pages=10)) == (10,)
    assert spread_pages(ReaderState(book_id=1, current_page=9, total_pages=9)) == (9,)


def test_spread_empty_without_pages():
    assert spread_pages(ReaderState(book_id=1, current_page=1, total_pages=0)) == ()


def test_flip_targets_clamp_instead_of_wrapping():
    state = ReaderState(book_id=1, current_page=9, total_pages=10)
    assert target_page(state, FlipDirection.NEXT) == 10
    state.current_page = 2
    assert target_page(state, FlipDirection.PREV) == 1
