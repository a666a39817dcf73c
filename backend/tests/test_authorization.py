from datetime import timedelta

import pytest

from domain.errors import Forbidden, ForbiddenReason
from domain.models import Admin, SessionPrincipal, User
from services.authorization import (
    ADMIN_ACTIONS,
    PUBLIC_ACTIONS,
    USER_ACTIONS,
    Action,
    allow,
    require,
)

ANON = SessionPrincipal.anonymous()
ALICE = SessionPrincipal.start(User(id=1, name="alice"), "t1", timedelta(hours=1))
BOB = SessionPrincipal.start(User(id=2, name="bob"), "t2", timedelta(hours=1))
ADMIN = SessionPrincipal.start(Admin(id=1, name="root"), "t3", timedelta(hours=1))


def test_action_sets_cover_every_action_once():
    assert PUBLIC_ACTIONS | ADMIN_ACTIONS | USER_ACTIONS == set(Action)
    assert not (PUBLIC_ACTIONS & ADMIN_ACTIONS)
    assert not (PUBLIC_ACTIONS & USER_ACTIONS)
    assert not (ADMIN_ACTIONS & USER_ACTIONS)


@pytest.mark.parametrize("action", sorted(PUBLIC_ACTIONS))
@pytest.mark.parametrize("principal", [ANON, ALICE, ADMIN])
def test_public_actions_open_to_everyone(principal, action):
    assert allow(principal, action)


@pytest.mark.parametrize("action", sorted(ADMIN_ACTIONS | USER_ACTIONS))
def test_anonymous_is_unauthenticated_for_guarded_actions(action):
    decision = allow(ANON, action, resource_owner=1)
    assert not decision
    assert decision.reason is ForbiddenReason.UNAUTHENTICATED


@pytest.mark.parametrize("action", sorted(ADMIN_ACTIONS))
def test_admin_actions(action):
    assert allow(ADMIN, action)
    decision = allow(ALICE, action)
    assert decision.reason is ForbiddenReason.NOT_ADMIN


@pytest.mark.parametrize("action", sorted(USER_ACTIONS))
def test_admin_never_passes_user_actions_even_as_owner(action):
    # Admin id 1 collides with alice's id; ownership must not matter
    decision = allow(ADMIN, action, resource_owner=1)
    assert not decision
    assert decision.reason is ForbiddenReason.NOT_USER


def test_owner_bound_actions_compare_ids():
    assert allow(ALICE, Action.VIEW_SAVED, resource_owner=1)
    decision = allow(BOB, Action.VIEW_SAVED, resource_owner=1)
    assert decision.reason is ForbiddenReason.NOT_OWNER
    assert allow(ALICE, Action.VIEW_SAVED).reason is ForbiddenReason.NOT_OWNER


def test_non_owner_bound_user_actions_ignore_owner():
    assert allow(ALICE, Action.WRITE_REVIEW, resource_owner=99)


def test_decisions_are_deterministic():
    for principal in (ANON, ALICE, BOB, ADMIN):
        for action in Action:
            for owner in (None, 1, 2):
                assert allow(principal, action, owner) == allow(principal, action, owner)


def test_require_raises_forbidden_with_reason():
    with pytest.raises(Forbidden) as exc:
        require(ADMIN, Action.WRITE_REVIEW)
    assert exc.value.reason is ForbiddenReason.NOT_USER
    assert exc.value.status_code == 403

    with pytest.raises(Forbidden) as exc:
        require(ANON, Action.SAVE_BOOK)
    assert exc.value.status_code == 401
