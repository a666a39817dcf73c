"""
Request-scoped helpers shared by the route modules.
"""
from typing import Optional

from fastapi import Request, UploadFile
from fastapi.responses import RedirectResponse, Response

from domain.models import AssetKind, AssetUpload, SessionPrincipal
from services.sessions import session_store
from settings import settings


def get_principal(request: Request) -> SessionPrincipal:
    """FastAPI dependency resolving the session cookie to a principal."""
    return session_store.resolve(request.cookies.get(settings.SESSION_COOKIE_NAME))


def login_redirect() -> RedirectResponse:
    return RedirectResponse("/login", status_code=303)


def set_session_cookie(response: Response, principal: SessionPrincipal) -> None:
    response.set_cookie(
        settings.SESSION_COOKIE_NAME,
        principal.token,
        max_age=settings.SESSION_TTL_SECONDS,
        httponly=True,
        samesite="lax",
        secure=settings.SESSION_COOKIE_SECURE,
    )


def clear_session_cookie(response: Response) -> None:
    response.delete_cookie(settings.SESSION_COOKIE_NAME)


async def read_upload(file: Optional[UploadFile], kind: AssetKind) -> Optional[AssetUpload]:
    """Read a multipart part into memory. Missing or empty parts become None."""
    if file is None or not file.filename:
        return None
    content = await file.read()
    if not content:
        return None
    return AssetUpload(kind=kind, filename=file.filename, content=content)
