"""
Review and saved-book repositories backed by SQLAlchemy.
"""
from typing import List
from sqlalchemy.orm import Session

from domain.models import Review
from repositories.models import ReviewORM, SavedBookORM


def _review_from_orm(orm: ReviewORM) -> Review:
    return Review(
        id=orm.id,
        book_isbn=orm.book_isbn,
        user_id=orm.user_id,
        comment=orm.comment,
        rating=orm.rating,
    )


class ReviewsRepository:
    """Reviews are append-only."""

    def get_reviews(self, session: Session, isbn: str) -> List[Review]:
        rows = (
            session.query(ReviewORM)
            .filter(ReviewORM.book_isbn == isbn)
            .order_by(ReviewORM.created_at, ReviewORM.id)
            .all()
        )
        return [_review_from_orm(r) for r in rows]

    def add_review(self, session: Session, user_id: int, isbn: str, comment: str, rating: int) -> Review:
        orm = ReviewORM(user_id=user_id, book_isbn=isbn, comment=comment, rating=rating)
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _review_from_orm(orm)


class SavedBooksRepository:
    """User -> book bookmark links."""

    def get_saved_books(self, session: Session, user_id: int) -> List[str]:
        rows = (
            session.query(SavedBookORM.book_isbn)
            .filter(SavedBookORM.user_id == user_id)
            .order_by(SavedBookORM.created_at, SavedBookORM.id)
            .all()
        )
        return [row.book_isbn for row in rows]

    def is_saved(self, session: Session, user_id: int, isbn: str) -> bool:
        return (
            session.query(SavedBookORM.id)
            .filter(SavedBookORM.user_id == user_id, SavedBookORM.book_isbn == isbn)
            .first()
            is not None
        )

    def save_book(self, session: Session, user_id: int, isbn: str) -> bool:
        """Returns False when the link already existed."""
        if self.is_saved(session, user_id, isbn):
            return False
        session.add(SavedBookORM(user_id=user_id, book_isbn=isbn))
        session.commit()
        return True

    def unsave_book(self, session: Session, user_id: int, isbn: str) -> bool:
        deleted = (
            session.query(SavedBookORM)
            .filter(SavedBookORM.user_id == user_id, SavedBookORM.book_isbn == isbn)
            .delete(synchronize_session=False)
        )
        session.commit()
        return deleted > 0
