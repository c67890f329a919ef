import os
import time
from sqlalchemy import select
from sqlalchemy.orm import Session
from openleaf.core.config import settings
from openleaf.db.session import SessionLocal
from openleaf.models import Book, Favorite, ReadingProgress
from openleaf.services.storage import local_path

# Files younger than this may belong to an upload whose row is not committed yet.
GRACE_SECONDS = 3600


def _stored_files() -> set[str]:
    found = set()
    for folder in (settings.books_dir, settings.covers_dir):
        if not os.path.isdir(folder):
            continue
        for name in os.listdir(folder):
            found.add(os.path.abspath(os.path.join(folder, name)))
    return found


def cleanup(db: Session, now: float | None = None, grace_seconds: int = GRACE_SECONDS) -> tuple[int, int, int]:
    book_ids = select(Book.id)
    progress = db.query(ReadingProgress).filter(ReadingProgress.book_id.not_in(book_ids)).delete(
        synchronize_session=False
    )
    favorites = db.query(Favorite).filter(Favorite.book_id.not_in(book_ids)).delete(synchronize_session=False)
    db.commit()

    referenced = set()
    for file_path, cover_path in db.query(Book.file_path, Book.cover_path).all():
        for url_path in (file_path, cover_path):
            path = local_path(url_path) if url_path else None
            if path:
                referenced.add(path)

    cutoff = (now if now is not None else time.time()) - grace_seconds
    removed_files = 0
    for path in _stored_files() - referenced:
        try:
            if os.path.getmtime(path) > cutoff:
                continue
            os.remove(path)
        except FileNotFoundError:
            continue
        removed_files += 1
    return progress, favorites, removed_files


def main() -> None:
    db = SessionLocal()
    try:
        progress, favorites, removed_files = cleanup(db)
        print(f"Removed {progress} progress rows, {favorites} favorites, {removed_files} files")
    finally:
        db.close()


if __name__ == "__main__":
    main()
