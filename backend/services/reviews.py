"""
Reader-owned data: reviews and saved books.
"""
import logging
from typing import List

from sqlalchemy.orm import Session

from domain.models import Book, Review, SessionPrincipal
from repositories import BooksRepository, ReviewsRepository, SavedBooksRepository
from services.authorization import Action, require, require_user
from services.catalog import get_book
from services.validators import COMMENT_MAX, clean_rating, clean_text

logger = logging.getLogger(__name__)
books_repo = BooksRepository()
reviews_repo = ReviewsRepository()
saved_repo = SavedBooksRepository()


def list_reviews(session: Session, principal: SessionPrincipal, isbn: str) -> List[Review]:
    require(principal, Action.VIEW_REVIEWS)
    get_book(session, isbn)
    return reviews_repo.get_reviews(session, isbn)


def add_review(
    session: Session, principal: SessionPrincipal, isbn: str, comment: str, rating
) -> Review:
    user = require_user(principal, Action.WRITE_REVIEW)
    comment = clean_text(comment, "comment", COMMENT_MAX)
    rating = clean_rating(rating)
    get_book(session, isbn)
    review = reviews_repo.add_review(session, user.id, isbn, comment, rating)
    logger.info("review %s on %s by user %s", review.id, isbn, user.id)
    return review


def save_book(session: Session, principal: SessionPrincipal, isbn: str) -> bool:
    user = require_user(principal, Action.SAVE_BOOK)
    get_book(session, isbn)
    return saved_repo.save_book(session, user.id, isbn)


def unsave_book(session: Session, principal: SessionPrincipal, isbn: str) -> bool:
    user = require_user(principal, Action.SAVE_BOOK)
    return saved_repo.unsave_book(session, user.id, isbn)


def saved_books(session: Session, principal: SessionPrincipal, owner_id: int) -> List[Book]:
    """Saved list of ``owner_id``, readable only by that user."""
    user = require_user(principal, Action.VIEW_SAVED, resource_owner=owner_id)
    isbns = saved_repo.get_saved_books(session, user.id)
    return books_repo.get_books(session, isbns)
