from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class ProgressOut(BaseModel):
    user_id: int | None = None
    book_id: int | None = None
    current_page: int = 1
    total_pages: int = 0
    last_accessed: datetime | None = None

    class Config:
        from_attributes = True


class ProgressEnvelope(BaseModel):
    progress: ProgressOut


class ProgressIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    book_id: int = Field(alias="bookId")
    current_page: int | None = Field(default=None, alias="currentPage")
    total_pages: int | None = Field(default=None, alias="totalPages")


class FavoriteToggleOut(BaseModel):
    favorited: bool
