"""
Core domain models for the library catalog.
These are framework-agnostic and can be used across all services.
"""
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from enum import Enum
from typing import Optional, Union


class RequestStatus(str, Enum):
    """Status of a book request in the adjudication workflow."""
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"

    @property
    def is_terminal(self) -> bool:
        return self is not RequestStatus.PENDING


class AssetKind(str, Enum):
    """Kind of stored file attached to a book. Values double as upload field names."""
    PDF = "pdf"
    IMAGE = "image"


# ============================================
# Identities
# ============================================

@dataclass(frozen=True)
class Anonymous:
    """Visitor without a session."""


@dataclass(frozen=True)
class User:
    """Registered reader. Owns reviews, saved books and requests."""
    id: int
    name: str


@dataclass(frozen=True)
class Admin:
    """Catalog curator. Never owns reviews or saved books."""
    id: int
    name: str


Identity = Union[Anonymous, User, Admin]

ANONYMOUS = Anonymous()


@dataclass(frozen=True)
class SessionPrincipal:
    """
    The identity attached to one session.

    Anonymous principals carry no token and never expire.
    """
    identity: Identity
    created_at: datetime
    expires_at: Optional[datetime] = None
    token: Optional[str] = None

    @classmethod
    def anonymous(cls) -> "SessionPrincipal":
        return cls(identity=ANONYMOUS, created_at=datetime.utcnow())

    @classmethod
    def start(cls, identity: Identity, token: str, ttl: timedelta,
              now: Optional[datetime] = None) -> "SessionPrincipal":
        created = now or datetime.utcnow()
        return cls(identity=identity, created_at=created, expires_at=created + ttl, token=token)

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        if self.expires_at is None:
            return False
        return (now or datetime.utcnow()) >= self.expires_at

    @property
    def is_anonymous(self) -> bool:
        return isinstance(self.identity, Anonymous)


# ============================================
# Credential records
# ============================================

@dataclass
class UserRecord:
    id: int
    username: str
    password_hash: str
    email: str


@dataclass
class AdminRecord:
    id: int
    username: str
    password_hash: str


# ============================================
# Catalog
# ============================================

@dataclass
class Book:
    """
    A catalog entry, addressed solely by isbn.

    Asset refs are file names relative to the asset kind's directory,
    e.g. ``9780141439518.pdf`` under ``media/pdf``.
    """
    isbn: str
    title: str
    author: Optional[str] = None
    subject: Optional[str] = None
    publisher: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    release_date: Optional[date] = None
    pdf_asset_ref: Optional[str] = None
    image_asset_ref: Optional[str] = None
    added_by: Optional[int] = None

    def asset_ref(self, kind: AssetKind) -> Optional[str]:
        return self.pdf_asset_ref if kind is AssetKind.PDF else self.image_asset_ref


@dataclass
class Review:
    id: int
    book_isbn: str
    user_id: int
    comment: str
    rating: int


@dataclass
class SavedBook:
    user_id: int
    book_isbn: str


@dataclass
class BookRequest:
    """A reader's request for a title the catalog does not carry yet."""
    id: int
    user_id: int
    title: str
    letter: str
    status: RequestStatus = RequestStatus.PENDING
    decided_by: Optional[int] = None


# ============================================
# Search
# ============================================

@dataclass
class AdvancedSearchQuery:
    """
    Sparse set of search criteria. Absent (None or blank) fields impose no constraint.
    """
    isbn: Optional[str] = None
    title: Optional[str] = None
    author: Optional[str] = None
    subject: Optional[str] = None
    publisher: Optional[str] = None
    language: Optional[str] = None
    description: Optional[str] = None
    release_date: Optional[date] = None

    TEXT_FIELDS = ("title", "author", "subject", "publisher", "language", "description")

    def criteria(self) -> dict:
        """Return only the fields that were actually supplied."""
        present = {}
        for name in ("isbn",) + self.TEXT_FIELDS + ("release_date",):
            value = getattr(self, name)
            if isinstance(value, str):
                value = value.strip()
            if value in (None, ""):
                continue
            present[name] = value
        return present

    def is_empty(self) -> bool:
        return not self.criteria()


@dataclass
class AssetUpload:
    """An uploaded file as received from the transport layer."""
    kind: AssetKind
    filename: str
    content: bytes = field(repr=False)

    @property
    def extension(self) -> str:
        if "." not in self.filename:
            return ""
        return self.filename.rsplit(".", 1)[1].lower()
