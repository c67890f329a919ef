from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from openleaf.db.session import get_db
from openleaf.models import Book
from openleaf.schemas.book import BookList
from openleaf.schemas.progress import FavoriteToggleOut
from openleaf.services.auth import CurrentUserId
from openleaf.services import catalog
from openleaf.services.favorites import toggle_favorite

router = APIRouter()


@router.post("/favorites/{book_id}", response_model=FavoriteToggleOut)
def toggle(book_id: int, user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    if not db.get(Book, book_id):
        raise HTTPException(status_code=404, detail="Book not found")
    return {"favorited": toggle_favorite(db, user_id, book_id)}


@router.get("/favorites", response_model=BookList)
def list_favorites(user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    return {"books": catalog.list_favorites(db, user_id)}
