"""
FastAPI application entry point.

Run with: uvicorn api.main:app --reload
"""
import logging
from pathlib import Path
from dotenv import load_dotenv
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from fastapi.staticfiles import StaticFiles
from sqlalchemy.exc import SQLAlchemyError

# Load environment variables from backend/.env (optional) before other imports that read env
env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(env_path)

from api.routes import admin, auth, books, requests, search
from db import init_db
from domain.errors import CatalogError, Forbidden, StoreError
from domain.models import AssetKind
from services.catalog import storage
from settings import settings

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


# Create app
app = FastAPI(
    title="Library Catalog API",
    description="Browse, search and curate a library catalog",
    version="0.1.0",
)

# CORS middleware for frontend
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Mount static files for book assets
for kind in AssetKind:
    app.mount(
        f"/{kind.value}",
        StaticFiles(directory=str(storage.get_kind_dir(kind))),
        name=kind.value,
    )

# Include routers
app.include_router(auth.router, tags=["auth"])
app.include_router(books.router, tags=["books"])
app.include_router(search.router, tags=["search"])
app.include_router(requests.router, tags=["requests"])
app.include_router(admin.router, tags=["admin"])


@app.exception_handler(CatalogError)
async def catalog_error_handler(request: Request, exc: CatalogError):
    """Map domain errors to their HTTP status with a public message."""
    if isinstance(exc, StoreError):
        logger.error("store error on %s %s", request.method, request.url.path)
    content = {"detail": exc.message}
    if isinstance(exc, Forbidden):
        content["reason"] = exc.reason.value
    return JSONResponse(status_code=exc.status_code, content=content)


@app.exception_handler(SQLAlchemyError)
async def store_error_handler(request: Request, exc: SQLAlchemyError):
    logger.error("database failure on %s %s", request.method, request.url.path, exc_info=exc)
    return JSONResponse(status_code=500, content={"detail": StoreError.default_message})


@app.on_event("startup")
def startup_event():
    """Initialize database tables on startup."""
    init_db()


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy"}
