"""
Book request lifecycle.

    pending --(admin approves)--> approved
    pending --(admin denies)----> denied

approved and denied are terminal. Decisions are a compare-and-set on
``status = pending`` so concurrent deciders cannot both succeed.
"""
import logging
from typing import List, Optional, Union

from sqlalchemy.orm import Session

from domain.errors import InvalidTransition, NotFound, ValidationError
from domain.models import BookRequest, RequestStatus, SessionPrincipal
from repositories import RequestsRepository
from services.authorization import Action, require_admin, require_user
from services.validators import LETTER_MAX, TITLE_MAX, clean_text

logger = logging.getLogger(__name__)
requests_repo = RequestsRepository()

DECISIONS = frozenset({RequestStatus.APPROVED, RequestStatus.DENIED})


def parse_status(raw: Union[str, RequestStatus, None]) -> Optional[RequestStatus]:
    if raw is None or raw == "":
        return None
    try:
        return RequestStatus(raw)
    except ValueError:
        raise ValidationError(f"Invalid status: {raw}")


def submit(session: Session, principal: SessionPrincipal, title: str, letter: str) -> BookRequest:
    user = require_user(principal, Action.SUBMIT_REQUEST)
    title = clean_text(title, "title", TITLE_MAX)
    letter = clean_text(letter, "letter", LETTER_MAX)
    request = requests_repo.add_request(session, user.id, title, letter)
    logger.info("request %s submitted by user %s", request.id, user.id)
    return request


def list_requests(
    session: Session, principal: SessionPrincipal, status: Union[str, RequestStatus, None] = None
) -> List[BookRequest]:
    require_admin(principal, Action.LIST_REQUESTS)
    return requests_repo.get_requests(session, status=parse_status(status))


def list_own(session: Session, principal: SessionPrincipal, owner_id: int) -> List[BookRequest]:
    user = require_user(principal, Action.VIEW_OWN_REQUESTS, resource_owner=owner_id)
    return requests_repo.get_requests(session, user_id=user.id)


def decide(
    session: Session,
    principal: SessionPrincipal,
    request_id: int,
    new_status: Union[str, RequestStatus],
) -> BookRequest:
    admin = require_admin(principal, Action.DECIDE_REQUEST)
    status = parse_status(new_status)
    if status not in DECISIONS:
        raise ValidationError("status must be 'approved' or 'denied'")

    if not requests_repo.update_request_status(session, request_id, status, admin.id):
        current = requests_repo.get_request(session, request_id)
        if current is None:
            raise NotFound("Request not found")
        logger.info(
            "request %s already %s; refusing %s", request_id, current.status.value, status.value
        )
        raise InvalidTransition(f"Request {request_id} is already {current.status.value}")

    logger.info("request %s %s by admin %s", request_id, status.value, admin.id)
    return requests_repo.get_request(session, request_id)
