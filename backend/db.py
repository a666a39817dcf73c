"""
Database setup for the FastAPI backend.
Provides SQLAlchemy engine/session utilities, SQLite by default.
"""
from pathlib import Path
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from settings import settings


DB_PATH = Path(__file__).resolve().parent / "library.db"
DATABASE_URL = settings.DATABASE_URL or f"sqlite:///{DB_PATH}"


def _make_engine(url: str) -> Engine:
    if url.startswith("sqlite"):
        # check_same_thread=False allows usage across FastAPI threads
        return create_engine(url, connect_args={"check_same_thread": False})
    return create_engine(url)


engine = _make_engine(DATABASE_URL)
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()


def init_db() -> None:
    """Create tables if they don't exist."""
    from repositories import models  # noqa: F401  Ensures models are registered

    Base.metadata.create_all(bind=engine)


def configure_database(url: str) -> Engine:
    """Point the shared session factory at another database and create its tables.

    Every module that imported ``SessionLocal`` sees the new binding, which is
    how tests swap in a throwaway SQLite file.
    """
    global engine
    engine = _make_engine(url)
    SessionLocal.configure(bind=engine)
    init_db()
    return engine


def get_session():
    """FastAPI dependency-style session generator."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
