"""
Books API routes: browsing, book pages, reviews and saved books.
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, Form
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from api.deps import get_principal, login_redirect
from db import SessionLocal
from domain.models import Book, Review, SessionPrincipal
from services import catalog, reviews

router = APIRouter()


class BookResponse(BaseModel):
    isbn: str
    title: str
    author: Optional[str] = None
    subject: Optional[str] = None
    publisher: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    release_date: Optional[date] = None
    pdf: Optional[str] = None
    image: Optional[str] = None
    added_by: Optional[int] = None


class BookListResponse(BaseModel):
    books: List[BookResponse]


class ReviewResponse(BaseModel):
    id: int
    book_isbn: str
    user_id: int
    comment: str
    rating: int


class SavedResponse(BaseModel):
    isbn: str
    saved: bool


def book_to_response(book: Book) -> BookResponse:
    """Convert domain Book to API response."""
    return BookResponse(
        isbn=book.isbn,
        title=book.title,
        author=book.author,
        subject=book.subject,
        publisher=book.publisher,
        language=book.language,
        description=book.description,
        release_date=book.release_date,
        pdf=f"/pdf/{book.pdf_asset_ref}" if book.pdf_asset_ref else None,
        image=f"/image/{book.image_asset_ref}" if book.image_asset_ref else None,
        added_by=book.added_by,
    )


def books_to_response(books: List[Book]) -> BookListResponse:
    return BookListResponse(books=[book_to_response(b) for b in books])


def review_to_response(review: Review) -> ReviewResponse:
    return ReviewResponse(
        id=review.id,
        book_isbn=review.book_isbn,
        user_id=review.user_id,
        comment=review.comment,
        rating=review.rating,
    )


@router.get("/", response_model=BookListResponse)
async def browse():
    """Browse the whole catalog."""
    with SessionLocal() as session:
        return books_to_response(catalog.browse(session))


@router.get("/saved", response_model=BookListResponse)
async def saved(principal: SessionPrincipal = Depends(get_principal)):
    """The current user's saved books."""
    owner_id = getattr(principal.identity, "id", None)
    with SessionLocal() as session:
        return books_to_response(reviews.saved_books(session, principal, owner_id))


@router.get("/book/{isbn}", response_model=BookResponse)
async def get_book(isbn: str):
    with SessionLocal() as session:
        return book_to_response(catalog.get_book(session, isbn))


@router.get("/book/{isbn}/reading")
async def reading(isbn: str, principal: SessionPrincipal = Depends(get_principal)):
    """Hand the PDF to the browser."""
    with SessionLocal() as session:
        pdf = catalog.reading_asset(session, principal, isbn)
    return RedirectResponse(f"/pdf/{pdf}", status_code=303)


@router.get("/book/{isbn}/reviews", response_model=List[ReviewResponse])
async def list_reviews(isbn: str, principal: SessionPrincipal = Depends(get_principal)):
    with SessionLocal() as session:
        return [review_to_response(r) for r in reviews.list_reviews(session, principal, isbn)]


@router.post("/book/{isbn}/reviews", response_model=ReviewResponse, status_code=201)
async def add_review(
    isbn: str,
    comment: str = Form(""),
    rating: str = Form(""),
    principal: SessionPrincipal = Depends(get_principal),
):
    if principal.is_anonymous:
        return login_redirect()
    with SessionLocal() as session:
        return review_to_response(reviews.add_review(session, principal, isbn, comment, rating))


@router.post("/book/{isbn}/save", response_model=SavedResponse)
async def save_book(isbn: str, principal: SessionPrincipal = Depends(get_principal)):
    with SessionLocal() as session:
        reviews.save_book(session, principal, isbn)
    return SavedResponse(isbn=isbn, saved=True)


@router.delete("/book/{isbn}/save", response_model=SavedResponse)
async def unsave_book(isbn: str, principal: SessionPrincipal = Depends(get_principal)):
    with SessionLocal() as session:
        reviews.unsave_book(session, principal, isbn)
    return SavedResponse(isbn=isbn, saved=False)
