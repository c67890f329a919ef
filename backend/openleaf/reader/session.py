"""Reader-session controller.

One :class:`ReaderSession` owns the pagination state of one open book and
drives it through ``IDLE -> ANIMATING -> COMMITTING -> IDLE``. A flip request
is accepted only in ``IDLE``; anything that arrives while a flip is in flight
is dropped, not queued. The animation-complete event comes from the
:class:`~openleaf.reader.scheduler.Scheduler`, so the controller never sleeps
or spawns threads.

Every settled page change is persisted through the API. Persist failures are
logged and swallowed: the next successful save heals the server state.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Protocol
import httpx
from openleaf.core.config import settings
from openleaf.reader.client import LibraryAPIError
from openleaf.reader.rendering import PdfRenderer
from openleaf.reader.scheduler import Scheduler
from openleaf.reader.state import (
    FlipDirection,
    ReaderPhase,
    ReaderState,
    clamp_page,
    spread_pages,
    target_page,
)

logger = logging.getLogger(__name__)

Notifier = Callable[[str, str], None]

KEY_PREV = "ArrowLeft"
KEY_NEXT = "ArrowRight"
KEY_CLOSE = "Escape"

_API_ERRORS = (LibraryAPIError, httpx.HTTPError)


class LibraryAPI(Protocol):
    def get_book(self, book_id: int) -> dict: ...

    def get_progress(self, book_id: int) -> dict: ...

    def save_progress(self, book_id: int, current_page: int, total_pages: int) -> None: ...

    def toggle_favorite(self, book_id: int) -> bool: ...

    def download(self, file_path: str) -> bytes: ...


class PageRenderer(Protocol):
    def open(self, data: bytes): ...

    def page_count(self, doc) -> int: ...

    def render(self, doc, page_number: int, scale: float) -> bytes | None: ...

    def close(self, doc) -> None: ...


@dataclass
class RenderedPage:
    number: int
    image: bytes | None

    @property
    def is_blank(self) -> bool:
        return self.image is None


def _log_notifier(message: str, kind: str) -> None:
    logger.info("Reader notice", extra={"notice": message, "kind": kind})


class ReaderSession:
    def __init__(
        self,
        book_id: int,
        api: LibraryAPI,
        renderer: PageRenderer | None = None,
        scheduler: Scheduler | None = None,
        notify: Notifier | None = None,
        render_scale: float | None = None,
        flip_duration: float | None = None,
    ) -> None:
        self.state = ReaderState(book_id=book_id)
        self.api = api
        self.renderer = renderer or PdfRenderer()
        self.scheduler = scheduler or Scheduler()
        self.notify = notify or _log_notifier
        self.render_scale = render_scale or settings.reader_render_scale
        self.flip_duration = flip_duration if flip_duration is not None else settings.flip_duration_ms / 1000
        self.book: dict | None = None
        self.is_favorite = False
        self.loaded = False
        self.closed = False
        self._doc = None
        self._spread: list[RenderedPage] = []

    @property
    def book_id(self) -> int:
        return self.state.book_id

    @property
    def current_page(self) -> int:
        return self.state.current_page

    @property
    def total_pages(self) -> int:
        return self.state.total_pages

    @property
    def is_flipping(self) -> bool:
        return self.state.is_flipping

    @property
    def spread(self) -> list[RenderedPage]:
        return list(self._spread)

    @property
    def can_flip_prev(self) -> bool:
        return self.loaded and not self.state.at_start

    @property
    def can_flip_next(self) -> bool:
        return self.loaded and not self.state.at_end

    def load_book(self) -> bool:
        try:
            detail = self.api.get_book(self.book_id)
            book = detail["book"]
            progress = self.api.get_progress(self.book_id)
            data = self.api.download(book["file_path"])
            doc = self.renderer.open(data)
        except (*_API_ERRORS, KeyError, RuntimeError, ValueError):
            logger.warning("Error loading book", extra={"book_id": self.book_id}, exc_info=True)
            self.notify("Failed to load book", "error")
            return False

        self.book = book
        self.is_favorite = bool(book.get("is_favorite"))
        self._doc = doc
        self.state.total_pages = self.renderer.page_count(doc)
        self.state.current_page = clamp_page(progress.get("current_page") or 1, self.state.total_pages)
        self.loaded = True
        self._render_spread()
        self._persist()
        return True

    def flip_next(self) -> bool:
        return self._begin_flip(FlipDirection.NEXT)

    def flip_prev(self) -> bool:
        return self._begin_flip(FlipDirection.PREV)

    def go_to_page(self, page: int) -> int:
        """Jump without animation; out-of-range pages are clamped, never rejected."""
        if not self.loaded or self.closed:
            return self.state.current_page
        self.state.current_page = clamp_page(page, self.state.total_pages)
        self._render_spread()
        self._persist()
        return self.state.current_page

    def slide_to(self, page: int) -> bool:
        # Every intermediate slider value renders and saves; there is no debounce.
        if not self.loaded or self.closed:
            return False
        page = clamp_page(page, self.state.total_pages)
        if page == self.state.current_page:
            return False
        self.go_to_page(page)
        return True

    def handle_key(self, key: str) -> bool:
        if key == KEY_PREV:
            return self.flip_prev()
        if key == KEY_NEXT:
            return self.flip_next()
        if key == KEY_CLOSE:
            self.close()
            return True
        return False

    def toggle_favorite(self) -> bool:
        try:
            self.is_favorite = self.api.toggle_favorite(self.book_id)
        except _API_ERRORS:
            logger.warning("Error toggling favorite", extra={"book_id": self.book_id}, exc_info=True)
            return self.is_favorite
        if self.is_favorite:
            self.notify("Added to favorites", "success")
        else:
            self.notify("Removed from favorites", "")
        return self.is_favorite

    def close(self) -> None:
        """Leave the reader. No final save; the last settled page is already persisted."""
        if self.closed:
            return
        self.closed = True
        if self._doc is not None:
            self.renderer.close(self._doc)
            self._doc = None
        self._spread = []

    def _begin_flip(self, direction: FlipDirection) -> bool:
        state = self.state
        if not self.loaded or self.closed or state.is_flipping:
            return False
        if direction is FlipDirection.NEXT and state.at_end:
            return False
        if direction is FlipDirection.PREV and state.at_start:
            return False
        state.phase = ReaderPhase.ANIMATING
        state.pending = direction
        self.scheduler.call_later(self.flip_duration, self._on_animation_complete)
        return True

    def _on_animation_complete(self) -> None:
        state = self.state
        if state.phase is not ReaderPhase.ANIMATING:
            return
        state.phase = ReaderPhase.COMMITTING
        try:
            if not self.closed:
                state.current_page = target_page(state, state.pending)
                self._render_spread()
                self._persist()
        finally:
            state.phase = ReaderPhase.IDLE
            state.pending = None

    def _render_spread(self) -> None:
        if self._doc is None:
            self._spread = []
            return
        self._spread = [
            RenderedPage(number, self.renderer.render(self._doc, number, self.render_scale))
            for number in spread_pages(self.state)
        ]

    def _persist(self) -> None:
        try:
            self.api.save_progress(self.book_id, self.state.current_page, self.state.total_pages)
        except _API_ERRORS:
            logger.warning(
                "Error saving progress",
                extra={"book_id": self.book_id, "current_page": self.state.current_page},
                exc_info=True,
            )
