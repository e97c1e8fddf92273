import pytest

from isoko_ui.guards import (
    UNAUTHORIZED_PATH,
    Allowed,
    Loading,
    RedirectTo,
    check_protected,
    check_public,
    protected,
    public_only,
)
from isoko_ui.roles import Role
from isoko_ui.session import LOGIN_PATH, Session, User


def session_for(role=None, loading=False):
    user = None
    if role is not None:
        user = User(id="u1", email="u@isoko.rw", role=Role.parse(role))
    return Session(user=user, auth_token="t" if user else None, loading=loading)


ROLE_SETS = [(), ("admin",), ("cashier",), ("admin", "supervisor")]


@pytest.mark.parametrize("allowed", ROLE_SETS)
@pytest.mark.parametrize("role", [None, "admin", "cashier"])
def test_loading_defers_decision(allowed, role):
    assert check_protected(session_for(role, loading=True), allowed) == Loading()
    assert check_public(session_for(role, loading=True)) == Loading()


@pytest.mark.parametrize("allowed", ROLE_SETS)
def test_anonymous_goes_to_login(allowed):
    assert check_protected(session_for(None), allowed) == RedirectTo(LOGIN_PATH)


def test_wrong_role_goes_to_unauthorized():
    assert check_protected(session_for("cashier"), ["admin"]) == RedirectTo(UNAUTHORIZED_PATH)


@pytest.mark.parametrize("allowed", [(), ("cashier",), ("admin", "cashier")])
def test_allowed_role_renders(allowed):
    assert check_protected(session_for("cashier"), allowed) == Allowed()


def test_role_spelling_in_allowed_list_is_normalized():
    assert check_protected(session_for("loan-officer"), ["loan_officer"]) == Allowed()


def test_user_with_unknown_role_only_passes_open_routes():
    session = session_for("auditor")
    assert check_protected(session, ()) == Allowed()
    assert check_protected(session, ["admin"]) == RedirectTo(UNAUTHORIZED_PATH)


def test_public_guard_sends_signed_in_users_to_their_dashboard():
    assert check_public(session_for("supervisor")) == RedirectTo("/dashboard/supervisor")
    assert check_public(session_for(None)) == Allowed()


def test_protected_decorator_wraps_handler():
    @protected("admin")
    def page(ctx):
        return f"rendered for {ctx}"

    assert page.allowed_roles == frozenset({Role.ADMIN})
    assert page.check(session_for("admin")) == Allowed()
    assert page.check(session_for("cashier")) == RedirectTo(UNAUTHORIZED_PATH)
    assert page("ctx") == "rendered for ctx"


def test_protected_rejects_unknown_roles_at_definition():
    with pytest.raises(ValueError):
        protected("auditor")


def test_public_only_decorator():
    page = public_only(lambda ctx: "login form")
    assert page.check(session_for(None)) == Allowed()
    assert page.check(session_for("admin")) == RedirectTo("/dashboard/admin")


def test_guards_do_not_touch_session():
    session = session_for(None, loading=True)
    check_protected(session, ["admin"])
    check_public(session)
    assert session == session_for(None, loading=True)


@pytest.mark.parametrize("raw", [" Admin ", "ADMIN", "Admin"])
def test_mixed_case_payload_role_is_not_admin(raw):
    user = User.from_payload({"id": "u1", "email": "u@isoko.rw", "role": raw})
    session = Session(user=user, auth_token="t", loading=False)

    assert user.role is None
    assert check_protected(session, ["admin"]) == RedirectTo(UNAUTHORIZED_PATH)
    assert check_protected(session, ()) == Allowed()
