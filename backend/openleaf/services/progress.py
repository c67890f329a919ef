"""Per-user reading progress.

Exactly one ``reading_progress`` row exists per (user, book). Writes go
through a single ``INSERT ... ON CONFLICT DO UPDATE`` so concurrent saves for
the same pair never produce a second row; the last write wins.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from sqlalchemy.orm import Session
from openleaf.db.dialects import insert_for
from openleaf.models import ReadingProgress

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_TOTAL = 0


@dataclass
class DefaultProgress:
    user_id: int
    book_id: int
    current_page: int = DEFAULT_PAGE
    total_pages: int = DEFAULT_TOTAL
    last_accessed: datetime | None = None


def save_progress(
    db: Session, user_id: int, book_id: int, current_page: int | None, total_pages: int | None
) -> None:
    values = {
        "user_id": user_id,
        "book_id": book_id,
        "current_page": current_page or DEFAULT_PAGE,
        "total_pages": total_pages or DEFAULT_TOTAL,
        "last_accessed": datetime.utcnow(),
    }
    insert = insert_for(db)
    stmt = insert(ReadingProgress).values(**values)
    stmt = stmt.on_conflict_do_update(
        index_elements=[ReadingProgress.user_id, ReadingProgress.book_id],
        set_={
            "current_page": stmt.excluded.current_page,
            "total_pages": stmt.excluded.total_pages,
            "last_accessed": stmt.excluded.last_accessed,
        },
    )
    db.execute(stmt)
    db.commit()
    logger.debug(
        "Progress saved",
        extra={"user_id": user_id, "book_id": book_id, "current_page": values["current_page"]},
    )


def find_progress(db: Session, user_id: int, book_id: int) -> ReadingProgress | None:
    return (
        db.query(ReadingProgress)
        .filter(ReadingProgress.user_id == user_id, ReadingProgress.book_id == book_id)
        .first()
    )


def get_progress(db: Session, user_id: int, book_id: int) -> ReadingProgress | DefaultProgress:
    return find_progress(db, user_id, book_id) or DefaultProgress(user_id=user_id, book_id=book_id)
