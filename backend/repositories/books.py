"""
Book repository backed by SQLAlchemy.
"""
from typing import Iterable, List, Optional
from sqlalchemy import or_
from sqlalchemy.orm import Session

from domain.models import AdvancedSearchQuery, Book
from repositories.models import BookORM, ReviewORM, SavedBookORM

TERM_SEARCH_FIELDS = ("title", "author", "description", "subject")


def _book_from_orm(orm: BookORM) -> Book:
    return Book(
        isbn=orm.isbn,
        title=orm.title,
        author=orm.author,
        subject=orm.subject,
        publisher=orm.publisher,
        language=orm.language,
        description=orm.description,
        release_date=orm.release_date,
        pdf_asset_ref=orm.pdf,
        image_asset_ref=orm.image,
        added_by=orm.added_by,
    )


def _orm_from_book(book: Book) -> BookORM:
    return BookORM(
        isbn=book.isbn,
        title=book.title,
        author=book.author,
        subject=book.subject,
        publisher=book.publisher,
        language=book.language,
        description=book.description,
        release_date=book.release_date,
        pdf=book.pdf_asset_ref,
        image=book.image_asset_ref,
        added_by=book.added_by,
    )


def _update_orm_from_book(orm: BookORM, book: Book) -> None:
    orm.title = book.title
    orm.author = book.author
    orm.subject = book.subject
    orm.publisher = book.publisher
    orm.language = book.language
    orm.description = book.description
    orm.release_date = book.release_date
    orm.pdf = book.pdf_asset_ref
    orm.image = book.image_asset_ref
    orm.added_by = book.added_by


def _contains(column, value: str):
    """Case-insensitive substring match with LIKE wildcards escaped."""
    escaped = value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")


class BooksRepository:
    """CRUD and search primitives for books."""

    def list_books(self, session: Session) -> List[Book]:
        books = session.query(BookORM).order_by(BookORM.isbn).all()
        return [_book_from_orm(b) for b in books]

    def get_book(self, session: Session, isbn: str) -> Optional[Book]:
        orm = session.get(BookORM, isbn)
        if not orm:
            return None
        return _book_from_orm(orm)

    def get_books(self, session: Session, isbns: Iterable[str]) -> List[Book]:
        """Hydrate isbns into books, keeping the caller's order and skipping unknown keys."""
        wanted = list(dict.fromkeys(isbns))
        if not wanted:
            return []
        rows = session.query(BookORM).filter(BookORM.isbn.in_(wanted)).all()
        by_isbn = {row.isbn: row for row in rows}
        return [_book_from_orm(by_isbn[i]) for i in wanted if i in by_isbn]

    def search_book(self, session: Session, query: AdvancedSearchQuery) -> List[str]:
        criteria = query.criteria()
        q = session.query(BookORM.isbn)
        for name, value in criteria.items():
            column = getattr(BookORM, name)
            if name in ("isbn", "release_date"):
                q = q.filter(column == value)
            else:
                q = q.filter(_contains(column, value))
        return [row.isbn for row in q.order_by(BookORM.isbn).all()]

    def search_book_by_term(self, session: Session, term: str) -> List[str]:
        clauses = [_contains(getattr(BookORM, name), term) for name in TERM_SEARCH_FIELDS]
        rows = session.query(BookORM.isbn).filter(or_(*clauses)).order_by(BookORM.isbn).all()
        return [row.isbn for row in rows]

    def add_book(self, session: Session, book: Book) -> Book:
        orm = _orm_from_book(book)
        session.add(orm)
        session.commit()
        session.refresh(orm)
        return _book_from_orm(orm)

    def replace_book(self, session: Session, old_isbn: str, book: Book) -> Book:
        """
        Replace the record for ``old_isbn`` with ``book`` in a single transaction.

        Same isbn: the row's columns are overwritten in place. New isbn: the
        new row is inserted, reviews and saved links are repointed to it, and
        only then is the old row deleted, so foreign keys hold at every step.
        Nothing is committed if any step fails.
        """
        try:
            old = session.get(BookORM, old_isbn)
            if old is not None and old_isbn == book.isbn:
                orm = old
                _update_orm_from_book(orm, book)
                session.flush()
            else:
                orm = _orm_from_book(book)
                session.add(orm)
                session.flush()
                if old is not None:
                    for model in (ReviewORM, SavedBookORM):
                        session.query(model).filter(model.book_isbn == old_isbn).update(
                            {model.book_isbn: book.isbn}, synchronize_session=False
                        )
                    session.delete(old)
                    session.flush()
            session.commit()
        except Exception:
            session.rollback()
            raise
        session.refresh(orm)
        return _book_from_orm(orm)

    def remove_book(self, session: Session, isbn: str) -> bool:
        orm = session.get(BookORM, isbn)
        if not orm:
            return False
        session.query(ReviewORM).filter(ReviewORM.book_isbn == isbn).delete(synchronize_session=False)
        session.query(SavedBookORM).filter(SavedBookORM.book_isbn == isbn).delete(synchronize_session=False)
        session.delete(orm)
        session.commit()
        return True
