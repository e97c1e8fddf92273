import pytest

from isoko_ui.guards import Allowed
from isoko_ui.navigation import (
    NAVIGATION,
    SHARED,
    NavigationEntry,
    get_all_navigation_items,
    resolve_navigation,
)
from isoko_ui.roles import Role
from isoko_ui.routes import ROUTES, dispatch
from isoko_ui.session import Session, User


@pytest.mark.parametrize("role", list(Role))
def test_every_role_has_entries_then_shared_tail(role):
    entries = resolve_navigation(role)
    assert len(entries) > len(SHARED)
    assert entries[-len(SHARED):] == list(SHARED)


@pytest.mark.parametrize("a, b", [
    ("loan-officer", "loan_officer"),
    ("supervisor", Role.SUPERVISOR),
    ("cashier", Role.CASHIER),
])
def test_spelling_variants_resolve_identically(a, b):
    assert resolve_navigation(a) == resolve_navigation(b)


@pytest.mark.parametrize("role", [None, "", "auditor", "loan officer", "ADMIN", " admin ", "Loan_Officer", 42])
def test_unknown_roles_get_shared_only(role):
    assert resolve_navigation(role) == list(SHARED)


def test_result_is_a_fresh_list():
    first = resolve_navigation("admin")
    first.clear()
    assert resolve_navigation("admin")


def test_entries_are_frozen():
    entry = NAVIGATION[Role.ADMIN][0]
    with pytest.raises(AttributeError):
        entry.name = "Changed"


def test_every_entry_points_at_a_route():
    for entry in get_all_navigation_items():
        assert entry.path in ROUTES, entry.path


def test_all_items_deduplicates_by_path():
    paths = [e.path for e in get_all_navigation_items()]
    assert len(paths) == len(set(paths))
    assert NavigationEntry("Add Loan", "/dashboard/admin/loans/add", "➕") in get_all_navigation_items()


@pytest.mark.parametrize("role", list(Role))
def test_sidebar_entries_pass_the_route_guard_for_the_same_role(role):
    session = Session(user=User(id="u1", email="u@isoko.rw", role=role), auth_token="t", loading=False)
    for entry in resolve_navigation(role):
        route, decision = dispatch(entry.path, session)
        assert route.path == entry.path
        assert decision == Allowed(), f"{role.value} is shown {entry.path} but the guard refuses it"


RECOVERY_PATHS = [
    "/dashboard/admin/no-repayment",
    "/dashboard/admin/past-maturity",
    "/dashboard/admin/principal-outstanding",
]


@pytest.mark.parametrize("role, sees", [
    (Role.ADMIN, True),
    (Role.SUPERVISOR, True),
    (Role.LOAN_OFFICER, False),
    (Role.CASHIER, False),
])
def test_recovery_reports_in_oversight_menus_only(role, sees):
    paths = [e.path for e in resolve_navigation(role)]
    assert all((p in paths) == sees for p in RECOVERY_PATHS)
