import os
import sys
import tempfile
from datetime import timedelta
from io import BytesIO
from pathlib import Path

import pytest

# Ensure the backend package root is on sys.path for direct pytest runs
BACKEND_ROOT = Path(__file__).resolve().parents[1]
if str(BACKEND_ROOT) not in sys.path:
    sys.path.insert(0, str(BACKEND_ROOT))

# Keep import-time media directories out of the working tree
os.environ.setdefault("MEDIA_ROOT", tempfile.mkdtemp(prefix="library-media-"))

from PIL import Image  # noqa: E402

from db import SessionLocal, configure_database  # noqa: E402
from domain.models import Admin, AssetKind, AssetUpload, SessionPrincipal, User  # noqa: E402
from services import auth, catalog  # noqa: E402
from services.sessions import session_store  # noqa: E402
from storage.file_storage import FileStorage  # noqa: E402

PDF_BYTES = b"%PDF-1.4\n1 0 obj <<>> endobj\ntrailer <<>>\n%%EOF\n"


def png_bytes(color=(200, 30, 30)) -> bytes:
    buf = BytesIO()
    Image.new("RGB", (4, 4), color).save(buf, format="PNG")
    return buf.getvalue()


def principal_for(identity) -> SessionPrincipal:
    return SessionPrincipal.start(identity, token=f"tok-{identity.name}", ttl=timedelta(hours=1))


def pdf_upload(name: str = "book.pdf") -> AssetUpload:
    return AssetUpload(kind=AssetKind.PDF, filename=name, content=PDF_BYTES)


def image_upload(name: str = "cover.png", color=(200, 30, 30)) -> AssetUpload:
    return AssetUpload(kind=AssetKind.IMAGE, filename=name, content=png_bytes(color))


@pytest.fixture
def database(tmp_path):
    configure_database(f"sqlite:///{tmp_path / 'library.db'}")
    return SessionLocal


@pytest.fixture
def session(database):
    with SessionLocal() as s:
        yield s


@pytest.fixture
def media(tmp_path, monkeypatch):
    store = FileStorage(str(tmp_path / "media"))
    monkeypatch.setattr(catalog, "storage", store)
    return store


@pytest.fixture(autouse=True)
def fresh_sessions():
    session_store.clear()
    yield
    session_store.clear()


@pytest.fixture
def alice(session) -> User:
    record = auth.register(session, "alice", "pw12345", "a@x.com")
    return User(id=record.id, name=record.username)


@pytest.fixture
def bob(session) -> User:
    record = auth.register(session, "bob", "hunter22", "b@x.com")
    return User(id=record.id, name=record.username)


@pytest.fixture
def admin(session) -> Admin:
    record = auth.create_admin(session, "curator", "adminpw1")
    return Admin(id=record.id, name=record.username)


@pytest.fixture
def add_book(session, admin, media):
    """Factory adding a book through the real catalog service."""

    def _add(isbn: str, title: str = "Untitled", **fields):
        data = {"isbn": isbn, "title": title, **fields}
        return catalog.add_book(session, principal_for(admin), data, pdf_upload(), image_upload())

    return _add
