from openleaf.models.base import Base
from openleaf.models.user import User
from openleaf.models.book import Book
from openleaf.models.reading_progress import ReadingProgress
from openleaf.models.favorite import Favorite

__all__ = [
    "Base",
    "User",
    "Book",
    "ReadingProgress",
    "Favorite",
]
