import logging
from sqlalchemy import and_, exists, func, or_, select
from sqlalchemy.orm import Session, aliased
from openleaf.models import Book, Favorite, ReadingProgress, User
from openleaf.services.storage import remove_stored_file

logger = logging.getLogger(__name__)


class BookNotFound(LookupError):
    pass


class NotBookOwner(PermissionError):
    pass


def _favorite_flag(user_id: int):
    fav = aliased(Favorite)
    return exists().where(fav.user_id == user_id, fav.book_id == Book.id).correlate(Book).label("is_favorite")


def _catalog_query(db: Session, user_id: int):
    progress_join = and_(ReadingProgress.user_id == user_id, ReadingProgress.book_id == Book.id)
    return (
        db.query(
            Book,
            User.username.label("uploader"),
            func.coalesce(ReadingProgress.current_page, 1).label("current_page"),
            func.coalesce(ReadingProgress.total_pages, 0).label("total_pages"),
            _favorite_flag(user_id),
        )
        .outerjoin(User, Book.uploaded_by == User.id)
        .outerjoin(ReadingProgress, progress_join)
    )


def _row_to_dict(row) -> dict:
    book, uploader, current_page, total_pages, favorite = row
    return {
        "id": book.id,
        "title": book.title,
        "author": book.author,
        "description": book.description,
        "file_path": book.file_path,
        "cover_path": book.cover_path,
        "uploaded_by": book.uploaded_by,
        "uploader": uploader,
        "created_at": book.created_at,
        "current_page": current_page,
        "total_pages": total_pages,
        "is_favorite": bool(favorite),
    }


def list_books(db: Session, user_id: int, search: str | None = None) -> list[dict]:
    query = _catalog_query(db, user_id)
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(Book.title.ilike(pattern), Book.author.ilike(pattern)))
    rows = query.order_by(Book.created_at.desc(), Book.id.desc()).all()
    return [_row_to_dict(row) for row in rows]


def list_my_books(db: Session, user_id: int) -> list[dict]:
    rows = (
        _catalog_query(db, user_id)
        .filter(Book.uploaded_by == user_id)
        .order_by(Book.created_at.desc(), Book.id.desc())
        .all()
    )
    return [_row_to_dict(row) for row in rows]


def list_favorites(db: Session, user_id: int) -> list[dict]:
    rows = (
        _catalog_query(db, user_id)
        .join(Favorite, and_(Favorite.book_id == Book.id, Favorite.user_id == user_id))
        .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        .all()
    )
    return [_row_to_dict(row) for row in rows]


def get_book(db: Session, user_id: int, book_id: int) -> dict | None:
    row = _catalog_query(db, user_id).filter(Book.id == book_id).first()
    return _row_to_dict(row) if row else None


def get_stats(db: Session, user_id: int) -> dict:
    total_books = db.scalar(select(func.count()).select_from(Book))
    my_books = db.scalar(select(func.count()).select_from(Book).where(Book.uploaded_by == user_id))
    favorites_count = db.scalar(select(func.count()).select_from(Favorite).where(Favorite.user_id == user_id))
    books_read = db.scalar(
        select(func.count(func.distinct(ReadingProgress.book_id))).where(
            ReadingProgress.user_id == user_id, ReadingProgress.total_pages > 0
        )
    )
    return {
        "totalBooks": total_books or 0,
        "myBooks": my_books or 0,
        "favoritesCount": favorites_count or 0,
        "booksRead": books_read or 0,
    }


def create_book(
    db: Session,
    user_id: int,
    title: str,
    author: str,
    description: str | None,
    file_path: str,
    cover_path: str | None,
) -> Book:
    book = Book(
        title=title,
        author=author,
        description=description or "",
        file_path=file_path,
        cover_path=cover_path,
        uploaded_by=user_id,
    )
    db.add(book)
    db.commit()
    db.refresh(book)
    logger.info("Book uploaded", extra={"book_id": book.id, "user_id": user_id})
    return book


def delete_book(db: Session, user_id: int, book_id: int) -> None:
    book = db.get(Book, book_id)
    if not book:
        raise BookNotFound(book_id)
    if book.uploaded_by != user_id:
        raise NotBookOwner(book_id)
    paths = [book.file_path, book.cover_path]
    db.delete(book)
    db.commit()
    for path in paths:
        if path:
            remove_stored_file(path)
    logger.info("Book deleted", extra={"book_id": book_id, "user_id": user_id})
