from sqlalchemy import delete
from sqlalchemy.orm import Session
from openleaf.db.dialects import insert_for
from openleaf.models import Favorite


def toggle_favorite(db: Session, user_id: int, book_id: int) -> bool:
    """Flip the favorite row for (user, book) and return the new state."""
    removed = db.execute(
        delete(Favorite).where(Favorite.user_id == user_id, Favorite.book_id == book_id)
    ).rowcount
    if removed:
        db.commit()
        return False
    insert = insert_for(db)
    db.execute(
        insert(Favorite)
        .values(user_id=user_id, book_id=book_id)
        .on_conflict_do_nothing(index_elements=[Favorite.user_id, Favorite.book_id])
    )
    db.commit()
    return True

