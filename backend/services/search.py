"""
Search composition.

Both searches return ordered isbn lists; turning them into books is a
separate ``hydrate`` step.
"""
from typing import List, Optional

from sqlalchemy.orm import Session

from domain.errors import EmptyQuery
from domain.models import AdvancedSearchQuery, Book
from repositories import BooksRepository
from services.validators import normalize_isbn

books_repo = BooksRepository()


def term_search(session: Session, term: Optional[str]) -> Optional[List[str]]:
    """
    Match ``term`` as a substring of title, author, description or subject.

    Returns None for a blank term so the caller can fall back to browsing.
    """
    term = (term or "").strip()
    if not term:
        return None
    return books_repo.search_book_by_term(session, term)


def advanced_search(session: Session, query: AdvancedSearchQuery) -> List[str]:
    """
    AND together every supplied criterion. isbn and release_date match
    exactly, the text fields by case-insensitive substring.
    """
    if query.isbn:
        query.isbn = normalize_isbn(query.isbn)
    # A criterion that normalizes to nothing constrains nothing
    if query.is_empty():
        raise EmptyQuery()
    return books_repo.search_book(session, query)


def hydrate(session: Session, isbns: List[str]) -> List[Book]:
    return books_repo.get_books(session, isbns)
