"""
Search routes.

Both routes accept their criteria as query parameters, e.g.
``/search?term=dune`` or ``/advancedsearch?author=herbert&language=en``.
"""
from typing import Optional
from fastapi import APIRouter
from fastapi.responses import RedirectResponse

from api.routes.books import BookListResponse, books_to_response
from db import SessionLocal
from domain.models import AdvancedSearchQuery
from services import search
from services.validators import parse_release_date

router = APIRouter()


@router.api_route("/search", methods=["GET", "POST"], response_model=BookListResponse)
async def term_search(term: Optional[str] = None):
    with SessionLocal() as session:
        isbns = search.term_search(session, term)
        if isbns is None:
            return RedirectResponse("/", status_code=303)
        return books_to_response(search.hydrate(session, isbns))


@router.api_route("/advancedsearch", methods=["GET", "POST"], response_model=BookListResponse)
async def advanced_search(
    isbn: Optional[str] = None,
    title: Optional[str] = None,
    author: Optional[str] = None,
    subject: Optional[str] = None,
    publisher: Optional[str] = None,
    language: Optional[str] = None,
    description: Optional[str] = None,
    release_date: Optional[str] = None,
):
    query = AdvancedSearchQuery(
        isbn=isbn,
        title=title,
        author=author,
        subject=subject,
        publisher=publisher,
        language=language,
        description=description,
        release_date=parse_release_date(release_date),
    )
    with SessionLocal() as session:
        isbns = search.advanced_search(session, query)
        return books_to_response(search.hydrate(session, isbns))
