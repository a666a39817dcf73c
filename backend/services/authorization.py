"""
Authorization guard.

A pure decision over (principal, action, resource owner). Nothing here reads
the clock, the database or any ambient request state.
"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from domain.errors import Forbidden, ForbiddenReason
from domain.models import Admin, Anonymous, SessionPrincipal, User


class Action(str, Enum):
    # public
    BROWSE_CATALOG = "browse_catalog"
    VIEW_BOOK = "view_book"
    READ_BOOK = "read_book"
    VIEW_REVIEWS = "view_reviews"
    SEARCH = "search"
    LOGIN = "login"
    REGISTER = "register"
    # admin
    ADD_BOOK = "add_book"
    UPDATE_BOOK = "update_book"
    REMOVE_BOOK = "remove_book"
    LIST_REQUESTS = "list_requests"
    DECIDE_REQUEST = "decide_request"
    # user
    SAVE_BOOK = "save_book"
    WRITE_REVIEW = "write_review"
    SUBMIT_REQUEST = "submit_request"
    VIEW_SAVED = "view_saved"
    VIEW_OWN_REQUESTS = "view_own_requests"


PUBLIC_ACTIONS = frozenset({
    Action.BROWSE_CATALOG,
    Action.VIEW_BOOK,
    Action.READ_BOOK,
    Action.VIEW_REVIEWS,
    Action.SEARCH,
    Action.LOGIN,
    Action.REGISTER,
})

ADMIN_ACTIONS = frozenset({
    Action.ADD_BOOK,
    Action.UPDATE_BOOK,
    Action.REMOVE_BOOK,
    Action.LIST_REQUESTS,
    Action.DECIDE_REQUEST,
})

USER_ACTIONS = frozenset({
    Action.SAVE_BOOK,
    Action.WRITE_REVIEW,
    Action.SUBMIT_REQUEST,
    Action.VIEW_SAVED,
    Action.VIEW_OWN_REQUESTS,
})

# User actions that additionally require the principal to own the resource.
OWNER_BOUND_ACTIONS = frozenset({Action.VIEW_SAVED, Action.VIEW_OWN_REQUESTS})


@dataclass(frozen=True)
class Decision:
    allowed: bool
    reason: Optional[ForbiddenReason] = None

    def __bool__(self) -> bool:
        return self.allowed


ALLOW = Decision(True)


def _deny(reason: ForbiddenReason) -> Decision:
    return Decision(False, reason)


def allow(principal: SessionPrincipal, action: Action, resource_owner: Optional[int] = None) -> Decision:
    """
    Decide whether ``principal`` may perform ``action``.

    Rules, in order:
    1. public actions are open to everyone;
    2. anonymous principals are denied everything else;
    3. admin actions need an Admin;
    4. user actions need a User, never an Admin;
    5. owner-bound user actions also need ``resource_owner`` to be the user.
    """
    identity = principal.identity
    if action in PUBLIC_ACTIONS:
        return ALLOW
    if isinstance(identity, Anonymous):
        return _deny(ForbiddenReason.UNAUTHENTICATED)

    if action in ADMIN_ACTIONS:
        return ALLOW if isinstance(identity, Admin) else _deny(ForbiddenReason.NOT_ADMIN)

    if action in USER_ACTIONS:
        if not isinstance(identity, User):
            return _deny(ForbiddenReason.NOT_USER)
        if action in OWNER_BOUND_ACTIONS and resource_owner != identity.id:
            return _deny(ForbiddenReason.NOT_OWNER)
        return ALLOW

    raise ValueError(f"Unknown action: {action}")


def require(principal: SessionPrincipal, action: Action, resource_owner: Optional[int] = None) -> None:
    """Like ``allow`` but raises ``Forbidden`` on denial."""
    decision = allow(principal, action, resource_owner)
    if not decision:
        raise Forbidden(decision.reason)


def require_user(principal: SessionPrincipal, action: Action, resource_owner: Optional[int] = None) -> User:
    require(principal, action, resource_owner)
    return principal.identity


def require_admin(principal: SessionPrincipal, action: Action) -> Admin:
    require(principal, action)
    return principal.identity
