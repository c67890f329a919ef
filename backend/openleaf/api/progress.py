from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from openleaf.db.session import get_db
from openleaf.models import Book
from openleaf.schemas.progress import ProgressEnvelope, ProgressIn, ProgressOut
from openleaf.services.auth import CurrentUserId
from openleaf.services import progress as progress_service

router = APIRouter()


@router.post("/progress")
def update_progress(payload: ProgressIn, user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    if not db.get(Book, payload.book_id):
        raise HTTPException(status_code=404, detail="Book not found")
    progress_service.save_progress(db, user_id, payload.book_id, payload.current_page, payload.total_pages)
    return {"success": True}


@router.get("/progress/{book_id}", response_model=ProgressEnvelope)
def get_progress(book_id: int, user_id: int = CurrentUserId, db: Session = Depends(get_db)):
    progress = progress_service.get_progress(db, user_id, book_id)
    return {"progress": ProgressOut.model_validate(progress, from_attributes=True)}
