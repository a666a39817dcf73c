"""
Admin catalog routes.

Uploads are multipart forms; the file parts MUST be named "pdf" and "image".
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel

from api.deps import get_principal, read_upload
from api.routes.books import BookResponse, book_to_response
from db import SessionLocal
from domain.models import AssetKind, SessionPrincipal
from services import catalog
from services.authorization import Action, require

router = APIRouter()

BOOK_FIELDS = ["isbn", "title", "author", "subject", "publisher", "language", "description", "release_date"]


class BookFormResponse(BaseModel):
    form: str
    fields: List[str]
    files: List[str]
    book: Optional[BookResponse] = None


def _fields(**values: Optional[str]) -> dict:
    return {name: values.get(name) for name in BOOK_FIELDS}


@router.get("/addbook", response_model=BookFormResponse)
async def add_book_form(principal: SessionPrincipal = Depends(get_principal)):
    require(principal, Action.ADD_BOOK)
    return BookFormResponse(form="addbook", fields=BOOK_FIELDS, files=[k.value for k in AssetKind])


@router.post("/addbook", response_model=BookResponse, status_code=201)
async def add_book(
    isbn: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    publisher: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    release_date: Optional[str] = Form(None),
    pdf: Optional[UploadFile] = File(None),
    image: Optional[UploadFile] = File(None),
    principal: SessionPrincipal = Depends(get_principal),
):
    require(principal, Action.ADD_BOOK)
    fields = _fields(
        isbn=isbn, title=title, author=author, subject=subject, publisher=publisher,
        language=language, description=description, release_date=release_date,
    )
    pdf_upload = await read_upload(pdf, AssetKind.PDF)
    image_upload = await read_upload(image, AssetKind.IMAGE)
    with SessionLocal() as session:
        book = catalog.add_book(session, principal, fields, pdf_upload, image_upload)
        return book_to_response(book)


@router.get("/updatebook/{book_isbn}", response_model=BookFormResponse)
async def update_book_form(book_isbn: str, principal: SessionPrincipal = Depends(get_principal)):
    require(principal, Action.UPDATE_BOOK)
    with SessionLocal() as session:
        book = catalog.get_book(session, book_isbn)
    return BookFormResponse(
        form="updatebook",
        fields=BOOK_FIELDS,
        files=[k.value for k in AssetKind],
        book=book_to_response(book),
    )


@router.put("/updatebook/{book_isbn}", response_model=BookResponse)
async def update_book(
    book_isbn: str,
    isbn: Optional[str] = Form(None),
    title: Optional[str] = Form(None),
    author: Optional[str] = Form(None),
    subject: Optional[str] = Form(None),
    publisher: Optional[str] = Form(None),
    language: Optional[str] = Form(None),
    description: Optional[str] = Form(None),
    release_date: Optional[str] = Form(None),
    pdf: Optional[UploadFile] = File(None),
    image: Optional[UploadFile] = File(None),
    principal: SessionPrincipal = Depends(get_principal),
):
    """Replace a book and both of its assets."""
    require(principal, Action.UPDATE_BOOK)
    fields = _fields(
        isbn=isbn, title=title, author=author, subject=subject, publisher=publisher,
        language=language, description=description, release_date=release_date,
    )
    pdf_upload = await read_upload(pdf, AssetKind.PDF)
    image_upload = await read_upload(image, AssetKind.IMAGE)
    with SessionLocal() as session:
        book = catalog.update_book(session, principal, book_isbn, fields, pdf_upload, image_upload)
        return book_to_response(book)


@router.delete("/book/{book_isbn}", status_code=204)
async def remove_book(book_isbn: str, principal: SessionPrincipal = Depends(get_principal)):
    with SessionLocal() as session:
        catalog.remove_book(session, principal, book_isbn)
    return Response(status_code=204)
