import logging
from fastapi import APIRouter, Depends, File, Form, HTTPException, Query, UploadFile
from sqlalchemy.orm import Session
from openleaf.db.session import get_db
from openleaf.schemas.book import BookCreatedOut, BookDetailOut, BookList, StatsEnvelope
from openleaf.schemas.progress import ProgressOut
from openleaf.services.auth import CurrentUserId
from openleaf.services import catalog, storage
from openleaf.services.progress import find_progress

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/books", response_model=BookList)
def list_books(search: str | None = Query(None), user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    return {"books": catalog.list_books(db, user_id, search=search)}


@router.get("/books/{book_id}", response_model=BookDetailOut)
def get_book(book_id: int, user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    book = catalog.get_book(db, user_id, book_id)
    if not book:
        raise HTTPException(status_code=404, detail="Book not found")
    progress = find_progress(db, user_id, book_id)
    return {"book": book, "progress": ProgressOut.model_validate(progress) if progress else None}


@router.post("/books", response_model=BookCreatedOut)
async def upload_book(
    title: str | None = Form(None),
    author: str | None = Form(None),
    description: str | None = Form(None),
    book: UploadFile | None = File(None),
    cover: UploadFile | None = File(None),
    user_id: int = CurrentUserId,
    db: Session = Depends(get_db),
):
    title = (title or "").strip()
    author = (author or "").strip()
    if not title or not author or book is None:
        raise HTTPException(status_code=400, detail="Title, author, and book file are required")

    pdf_data = await book.read()
    cover_data = await cover.read() if cover is not None else None
    file_path = None
    try:
        file_path = storage.save_book_file(book.content_type, pdf_data)
        if cover_data:
            cover_path = storage.save_cover_file(cover.content_type, cover_data)
        else:
            cover_path = storage.render_cover(pdf_data)
    except storage.InvalidUpload as exc:
        if file_path:
            storage.remove_stored_file(file_path)
        raise HTTPException(status_code=400, detail=str(exc))

    created = catalog.create_book(db, user_id, title, author, description, file_path, cover_path)
    return {"success": True, "book": catalog.get_book(db, user_id, created.id)}


@router.delete("/books/{book_id}")
def delete_book(book_id: int, user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    try:
        catalog.delete_book(db, user_id, book_id)
    except catalog.BookNotFound:
        raise HTTPException(status_code=404, detail="Book not found")
    except catalog.NotBookOwner:
        raise HTTPException(status_code=403, detail="Not authorized to delete this book")
    return {"success": True}


@router.get("/my-books", response_model=BookList)
def my_books(user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    return {"books": catalog.list_my_books(db, user_id)}


@router.get("/stats", response_model=StatsEnvelope)
def stats(user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    return {"stats": catalog.get_stats(db, user_id)}
