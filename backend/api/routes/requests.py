"""
Book request routes. Users submit, admins adjudicate.
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, Form
from pydantic import BaseModel

from api.deps import get_principal, login_redirect
from db import SessionLocal
from domain.models import BookRequest, SessionPrincipal
from services import book_requests
from services.authorization import Action, require

router = APIRouter()


class RequestResponse(BaseModel):
    id: int
    user_id: int
    title: str
    letter: str
    status: str
    decided_by: Optional[int] = None


class RequestFormResponse(BaseModel):
    form: str
    fields: List[str]


class Decision(BaseModel):
    request_id: int
    status: str  # "approved" or "denied"


def request_to_response(request: BookRequest) -> RequestResponse:
    return RequestResponse(
        id=request.id,
        user_id=request.user_id,
        title=request.title,
        letter=request.letter,
        status=request.status.value,
        decided_by=request.decided_by,
    )


@router.get("/request", response_model=RequestFormResponse)
async def request_form(principal: SessionPrincipal = Depends(get_principal)):
    if principal.is_anonymous:
        return login_redirect()
    require(principal, Action.SUBMIT_REQUEST)
    return RequestFormResponse(form="request", fields=["title", "letter"])


@router.post("/request", response_model=RequestResponse, status_code=201)
async def submit_request(
    title: str = Form(""),
    letter: str = Form(""),
    principal: SessionPrincipal = Depends(get_principal),
):
    if principal.is_anonymous:
        return login_redirect()
    with SessionLocal() as session:
        return request_to_response(book_requests.submit(session, principal, title, letter))


@router.get("/request/mine", response_model=List[RequestResponse])
async def my_requests(principal: SessionPrincipal = Depends(get_principal)):
    owner_id = getattr(principal.identity, "id", None)
    with SessionLocal() as session:
        return [request_to_response(r) for r in book_requests.list_own(session, principal, owner_id)]


@router.get("/requests", response_model=List[RequestResponse])
async def list_requests(
    status: Optional[str] = None,
    principal: SessionPrincipal = Depends(get_principal),
):
    """Admin view of all requests, optionally narrowed to one status."""
    with SessionLocal() as session:
        return [request_to_response(r) for r in book_requests.list_requests(session, principal, status)]


@router.put("/requests", response_model=RequestResponse)
async def decide_request(data: Decision, principal: SessionPrincipal = Depends(get_principal)):
    with SessionLocal() as session:
        decided = book_requests.decide(session, principal, data.request_id, data.status)
        return request_to_response(decided)
