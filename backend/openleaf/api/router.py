from fastapi import APIRouter
from openleaf.api import auth, books, favorites, progress

api_router = APIRouter(prefix="/api")
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(books.router, tags=["books"])
api_router.include_router(progress.router, tags=["progress"])
api_router.include_router(favorites.router, tags=["favorites"])
