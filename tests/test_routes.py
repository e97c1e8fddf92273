from types import SimpleNamespace

import pytest

from isoko_ui.guards import Allowed, Loading, RedirectTo
from isoko_ui.recovery import LOAN_DETAILS_PATH, SELECTED_LOAN_KEY, open_loan
from isoko_ui.roles import Role
from isoko_ui.routes import (
    NOT_FOUND_PATH,
    ROUTES,
    dispatch,
    match,
    navigate_to,
    normalize_path,
)
from isoko_ui.session import LOGIN_PATH, Session, User


def session_for(role=None, loading=False):
    user = User(id="u1", email="u@isoko.rw", role=Role.parse(role)) if role else None
    return Session(user=user, auth_token="t" if user else None, loading=loading)


@pytest.mark.parametrize("raw, expected", [
    (None, "/"),
    ("", "/"),
    ("dashboard/admin/", "/dashboard/admin"),
    (" /login ", "/login"),
])
def test_normalize_path(raw, expected):
    assert normalize_path(raw) == expected


def test_unknown_path_matches_not_found():
    assert match("/nowhere").path == NOT_FOUND_PATH


def test_dispatch_returns_guard_decision():
    route, decision = dispatch("/dashboard/admin/users", session_for("cashier"))
    assert route.path == "/dashboard/admin/users"
    assert decision == RedirectTo("/unauthorized")


@pytest.mark.parametrize("role, landing", [
    ("admin", "/dashboard/admin"),
    ("supervisor", "/dashboard/supervisor"),
    ("loan-officer", "/dashboard/loan-officer"),
    ("cashier", "/dashboard/cashier"),
])
def test_login_page_forwards_signed_in_user_to_dashboard(role, landing):
    route, decision = navigate_to(LOGIN_PATH, session_for(role))
    assert route.path == landing
    assert decision == Allowed()
    assert route.in_shell


def test_anonymous_root_lands_on_login():
    route, decision = navigate_to("/", session_for(None))
    assert route.path == LOGIN_PATH
    assert decision == Allowed()
    assert not route.in_shell


def test_anonymous_protected_page_lands_on_login():
    route, _ = navigate_to("/dashboard/cashier", session_for(None))
    assert route.path == LOGIN_PATH


def test_wrong_role_lands_on_unauthorized():
    route, decision = navigate_to("/dashboard/admin", session_for("cashier"))
    assert route.path == "/unauthorized"
    assert decision == Allowed()


def test_loading_stops_without_redirect():
    route, decision = navigate_to("/dashboard/admin", session_for(None, loading=True))
    assert route.path == "/dashboard/admin"
    assert decision == Loading()


@pytest.mark.parametrize("path", sorted(ROUTES))
@pytest.mark.parametrize("role", [None, "admin", "supervisor", "loan-officer", "cashier", "auditor"])
def test_every_route_settles_without_looping(path, role):
    route, decision = navigate_to(path, session_for(role))
    assert decision == Allowed()
    assert route.path in ROUTES


def test_role_dashboards_are_reachable_by_their_role():
    for role in Role:
        landing = {
            Role.ADMIN: "/dashboard/admin",
            Role.SUPERVISOR: "/dashboard/supervisor",
            Role.LOAN_OFFICER: "/dashboard/loan-officer",
            Role.CASHIER: "/dashboard/cashier",
        }[role]
        route, decision = navigate_to(landing, session_for(role.value))
        assert (route.path, decision) == (landing, Allowed())


@pytest.mark.parametrize("role, allowed", [
    ("admin", True),
    ("supervisor", True),
    ("loan-officer", False),
    ("cashier", False),
])
def test_loan_details_page_is_for_oversight_roles(role, allowed):
    _, decision = dispatch(LOAN_DETAILS_PATH, session_for(role))
    assert (decision == Allowed()) is allowed


def test_open_loan_hands_the_id_to_the_details_page():
    ctx = SimpleNamespace(ui={})
    ctx.navigate = lambda path: ctx.ui.__setitem__("path", path)

    open_loan(ctx, "L42")

    assert ctx.ui == {SELECTED_LOAN_KEY: "L42", "path": LOAN_DETAILS_PATH}
    assert LOAN_DETAILS_PATH in ROUTES
