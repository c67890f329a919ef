from dataclasses import dataclass
from enum import Enum


class ReaderPhase(str, Enum):
    IDLE = "idle"
    ANIMATING = "animating"
    COMMITTING = "committing"


class FlipDirection(str, Enum):
    NEXT = "next"
    PREV = "prev"


PAGES_PER_SPREAD = 2


def clamp_page(page: int, total_pages: int) -> int:
    """Clamp ``page`` into ``[1, total_pages]``; never wraps."""
    if total_pages < 1:
        return 1
    return max(1, min(int(page), total_pages))


@dataclass
class ReaderState:
    book_id: int
    current_page: int = 1
    total_pages: int = 0
    phase: ReaderPhase = ReaderPhase.IDLE
    pending: FlipDirection | None = None

    @property
    def is_flipping(self) -> bool:
        return self.phase is not ReaderPhase.IDLE

    @property
    def at_start(self) -> bool:
        return self.current_page <= 1

    @property
    def at_end(self) -> bool:
        return self.current_page >= self.total_pages


def spread_pages(state: ReaderState) -> tuple[int, ...]:
    if state.total_pages < 1:
        return ()
    if state.current_page + 1 <= state.total_pages:
        return (state.current_page, state.current_page + 1)
    return (state.current_page,)


def target_page(state: ReaderState, direction: FlipDirection) -> int:
    step = PAGES_PER_SPREAD if direction is FlipDirection.NEXT else -PAGES_PER_SPREAD
    return clamp_page(state.current_page + step, state.total_pages)
