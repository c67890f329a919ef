from datetime import datetime
from pydantic import BaseModel
from openleaf.schemas.progress import ProgressOut


class BookOut(BaseModel):
    id: int
    title: str
    author: str
    description: str | None = ""
    file_path: str
    cover_path: str | None = None
    uploaded_by: int | None = None
    uploader: str | None = None
    created_at: datetime | None = None
    is_favorite: bool = False
    current_page: int = 1
    total_pages: int = 0

    class Config:
        from_attributes = True


class BookList(BaseModel):
    books: list[BookOut]


class BookDetailOut(BaseModel):
    book: BookOut
    progress: ProgressOut | None = None


class BookCreatedOut(BaseModel):
    success: bool = True
    book: BookOut


class StatsOut(BaseModel):
    totalBooks: int
    myBooks: int
    favoritesCount: int
    booksRead: int


class StatsEnvelope(BaseModel):
    stats: StatsOut
