"""
Catalog curation: adding, replacing and removing books together with their
PDF and cover image assets.

A book update is modeled as "remove the isbn, re-add it". To avoid leaving
the isbn without a record (or a record pointing at missing files) the
sequence is:

1. check the admin and both uploads before anything is touched
2. stage the new files on disk
3. rewrite the row (or insert the new isbn, repoint reviews and saved
   links, delete the old isbn) in one transaction
4. promote the staged files, then drop old files whose names changed

Any failure before step 4 discards the staged files and leaves the previous
record and assets exactly as they were. Work on one isbn is serialized.
"""
import logging
import threading
from contextlib import contextmanager
from io import BytesIO
from typing import Dict, List, Optional

from PIL import Image, UnidentifiedImageError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from domain.errors import Conflict, MissingAsset, NotFound, StoreError, ValidationError
from domain.models import AssetKind, AssetUpload, Book, SessionPrincipal
from repositories import BooksRepository
from services.authorization import Action, require, require_admin
from services.validators import TITLE_MAX, clean_isbn, clean_text, parse_release_date
from storage.file_storage import FileStorage, StagedAsset, asset_name

logger = logging.getLogger(__name__)
books_repo = BooksRepository()
storage = FileStorage()

PDF_SIGNATURE = b"%PDF-"
IMAGE_FORMAT_EXTENSIONS = {"JPEG": "jpg", "PNG": "png", "GIF": "gif", "WEBP": "webp"}
ALLOWED_IMAGE_EXTENSIONS = {"jpg", "jpeg", "png", "gif", "webp"}
OPTIONAL_TEXT_FIELDS = ("author", "subject", "publisher", "language")


class KeyedLocks:
    """
    One mutex per key, acquired in sorted order so multi-key holders cannot deadlock.

    Each entry counts its holders and waiters and is dropped when the last
    one leaves, so the map only contains keys in use.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: Dict[str, list] = {}  # key -> [lock, users]

    @contextmanager
    def hold(self, *keys: str):
        ordered = sorted(set(keys))
        with self._guard:
            for key in ordered:
                entry = self._locks.setdefault(key, [threading.Lock(), 0])
                entry[1] += 1
            entries = [self._locks[key] for key in ordered]
        acquired = []
        try:
            for entry in entries:
                entry[0].acquire()
                acquired.append(entry)
            yield
        finally:
            for entry in reversed(acquired):
                entry[0].release()
            with self._guard:
                for key, entry in zip(ordered, entries):
                    entry[1] -= 1
                    if entry[1] == 0:
                        del self._locks[key]

    def __len__(self) -> int:
        return len(self._locks)


isbn_locks = KeyedLocks()


def browse(session: Session) -> List[Book]:
    return books_repo.list_books(session)


def get_book(session: Session, isbn: str) -> Book:
    book = books_repo.get_book(session, isbn)
    if not book:
        raise NotFound("Book not found")
    return book


def reading_asset(session: Session, principal: SessionPrincipal, isbn: str) -> str:
    """Name of the PDF to serve for the reading view."""
    require(principal, Action.READ_BOOK)
    book = get_book(session, isbn)
    if not book.pdf_asset_ref:
        raise NotFound("Book has no pdf")
    return book.pdf_asset_ref


def build_book(fields: Dict[str, Optional[str]], added_by: int) -> Book:
    """Validate form fields into a Book without asset refs."""
    book = Book(
        isbn=clean_isbn(fields.get("isbn")),
        title=clean_text(fields.get("title"), "title", TITLE_MAX),
        description=clean_text(fields.get("description"), "description", 10000, required=False),
        release_date=parse_release_date(fields.get("release_date")),
        added_by=added_by,
    )
    for name in OPTIONAL_TEXT_FIELDS:
        setattr(book, name, clean_text(fields.get(name), name, TITLE_MAX, required=False))
    return book


def _image_extension(upload: AssetUpload) -> str:
    try:
        with Image.open(BytesIO(upload.content)) as img:
            detected = img.format
            img.verify()
    except (UnidentifiedImageError, OSError, SyntaxError):
        raise ValidationError("image must be a valid image file")
    ext = upload.extension
    if ext in ALLOWED_IMAGE_EXTENSIONS:
        return ext
    if detected in IMAGE_FORMAT_EXTENSIONS:
        return IMAGE_FORMAT_EXTENSIONS[detected]
    raise ValidationError(f"Unsupported image format: {detected}")


def check_assets(pdf: Optional[AssetUpload], image: Optional[AssetUpload]) -> str:
    """
    Both assets must be present and well formed.

    Returns:
        The file extension to store the image under
    """
    if pdf is None or image is None or not pdf.content or not image.content:
        raise MissingAsset()
    if not pdf.content.startswith(PDF_SIGNATURE):
        raise ValidationError("pdf must be a PDF document")
    return _image_extension(image)


def _stage_assets(book: Book, pdf: AssetUpload, image: AssetUpload, image_ext: str) -> List[StagedAsset]:
    staged: List[StagedAsset] = []
    try:
        for upload, ext in ((pdf, "pdf"), (image, image_ext)):
            staged.append(storage.stage(upload, asset_name(book.isbn, upload.kind, ext)))
    except OSError:
        _discard(staged)
        logger.exception("failed to stage assets for %s", book.isbn)
        raise StoreError()
    book.pdf_asset_ref = staged[0].name
    book.image_asset_ref = staged[1].name
    return staged


def _discard(staged: List[StagedAsset]) -> None:
    for item in staged:
        storage.discard(item)


def _promote(staged: List[StagedAsset]) -> None:
    try:
        for item in staged:
            storage.promote(item)
    except OSError:
        logger.exception("failed to promote staged assets")
        _discard(staged)
        raise StoreError()


def add_book(
    session: Session,
    principal: SessionPrincipal,
    fields: Dict[str, Optional[str]],
    pdf: Optional[AssetUpload],
    image: Optional[AssetUpload],
) -> Book:
    admin = require_admin(principal, Action.ADD_BOOK)
    image_ext = check_assets(pdf, image)
    book = build_book(fields, added_by=admin.id)

    with isbn_locks.hold(book.isbn):
        if books_repo.get_book(session, book.isbn):
            raise Conflict(f"Book {book.isbn} already exists")
        staged = _stage_assets(book, pdf, image, image_ext)
        try:
            saved = books_repo.add_book(session, book)
        except SQLAlchemyError:
            session.rollback()
            _discard(staged)
            logger.exception("failed to add book %s", book.isbn)
            raise StoreError()
        _promote(staged)

    logger.info("book %s added by admin %s", saved.isbn, admin.id)
    return saved


def update_book(
    session: Session,
    principal: SessionPrincipal,
    isbn: str,
    fields: Dict[str, Optional[str]],
    pdf: Optional[AssetUpload],
    image: Optional[AssetUpload],
) -> Book:
    admin = require_admin(principal, Action.UPDATE_BOOK)
    image_ext = check_assets(pdf, image)
    if not fields.get("isbn"):
        fields = {**fields, "isbn": isbn}
    book = build_book(fields, added_by=admin.id)

    with isbn_locks.hold(isbn, book.isbn):
        previous = get_book(session, isbn)
        if book.isbn != isbn and books_repo.get_book(session, book.isbn):
            raise Conflict(f"Book {book.isbn} already exists")

        staged = _stage_assets(book, pdf, image, image_ext)
        try:
            saved = books_repo.replace_book(session, isbn, book)
        except SQLAlchemyError:
            _discard(staged)
            logger.exception("failed to replace book %s", isbn)
            raise StoreError()
        _promote(staged)

        for kind in AssetKind:
            old_ref = previous.asset_ref(kind)
            if old_ref and old_ref != saved.asset_ref(kind):
                storage.delete_file(kind, old_ref)

    logger.info("book %s replaced by admin %s (now %s)", isbn, admin.id, saved.isbn)
    return saved


def remove_book(session: Session, principal: SessionPrincipal, isbn: str) -> None:
    admin = require_admin(principal, Action.REMOVE_BOOK)
    with isbn_locks.hold(isbn):
        book = get_book(session, isbn)
        books_repo.remove_book(session, isbn)
        for kind in AssetKind:
            ref = book.asset_ref(kind)
            if ref:
                storage.delete_file(kind, ref)
    logger.info("book %s removed by admin %s", isbn, admin.id)
