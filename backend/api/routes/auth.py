"""
Registration, login and logout routes.
"""
import logging
from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from api.deps import clear_session_cookie, get_principal, set_session_cookie
from db import SessionLocal
from domain.models import SessionPrincipal
from services import auth
from services.sessions import session_store
from settings import settings

router = APIRouter()
logger = logging.getLogger(__name__)


class UserResponse(BaseModel):
    id: int
    username: str
    email: str


class FormResponse(BaseModel):
    form: str
    fields: list[str]


@router.get("/register", response_model=FormResponse)
async def register_form(principal: SessionPrincipal = Depends(get_principal)):
    if not principal.is_anonymous:
        return RedirectResponse("/", status_code=303)
    return FormResponse(form="register", fields=["username", "password", "email"])


@router.post("/register", response_model=UserResponse, status_code=201)
def register(
    username: str = Form(""),
    password: str = Form(""),
    email: str = Form(""),
):
    """Create a user account. Usernames are unique across users and admins."""
    with SessionLocal() as session:
        user = auth.register(session, username, password, email)
        return UserResponse(id=user.id, username=user.username, email=user.email)


@router.get("/login", response_model=FormResponse)
async def login_form(principal: SessionPrincipal = Depends(get_principal)):
    if not principal.is_anonymous:
        return RedirectResponse("/", status_code=303)
    return FormResponse(form="login", fields=["username", "password"])


@router.post("/login")
def login(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
):
    with SessionLocal() as session:
        identity = auth.authenticate(session, username.strip(), password)

    # A new login always starts a new session.
    session_store.terminate(request.cookies.get(settings.SESSION_COOKIE_NAME))
    principal = session_store.establish(identity)
    response = RedirectResponse("/", status_code=303)
    set_session_cookie(response, principal)
    return response


@router.get("/logout")
async def logout(request: Request):
    session_store.terminate(request.cookies.get(settings.SESSION_COOKIE_NAME))
    response = RedirectResponse("/", status_code=303)
    clear_session_cookie(response)
    return response
