import pytest

from conftest import ADMIN_PAYLOAD, login_ok
from isoko_ui.api_client import ApiError, AuthenticationError
from isoko_ui.roles import Role
from isoko_ui.session import DEFAULT_DASHBOARD, LOGIN_PATH, User, get_dashboard_route
from isoko_ui.storage import TOKEN_KEY, USER_KEY


def assert_consistent(store):
    if store.auth_token is None:
        assert not store.is_authenticated


# ── User payloads ─────────────────────────────────────

def test_user_from_payload_parses_role_once():
    user = User.from_payload({**ADMIN_PAYLOAD, "role": "loan_officer"})
    assert user.role is Role.LOAN_OFFICER
    assert user.full_name == "Aline Uwase"


def test_user_from_payload_accepts_mongo_id():
    user = User.from_payload({"_id": "abc", "email": "x@y.z", "role": "cashier"})
    assert user.id == "abc"


@pytest.mark.parametrize("payload", [None, "admin", [], {}, {"role": "admin"}])
def test_user_from_payload_rejects_unusable(payload):
    assert User.from_payload(payload) is None


def test_unknown_role_parses_to_none():
    assert User.from_payload({**ADMIN_PAYLOAD, "role": "auditor"}).role is None


# ── check_session ─────────────────────────────────────

def test_check_session_without_token_makes_no_call(store, fake_api):
    store.check_session()
    assert fake_api.auth.calls == []
    assert store.loading is False
    assert not store.is_authenticated


def test_check_session_success_populates_user(store, fake_api, storage):
    storage.set(TOKEN_KEY, "t1")
    fake_api.auth.me_response = {"success": True, "data": {"user": ADMIN_PAYLOAD}}

    store.check_session()

    assert store.loading is False
    assert store.auth_token == "t1"
    assert store.user.email == "a@b.com"
    assert storage.get(USER_KEY)["email"] == "a@b.com"


@pytest.mark.parametrize("response", [
    ApiError("Cannot reach backend"),
    AuthenticationError("Token expired", status_code=401),
    {"success": False, "message": "nope"},
    {"success": True, "data": {"user": "not-a-user"}},
    {"success": True},
])
def test_check_session_failure_clears_token(store, fake_api, storage, response):
    storage.set(TOKEN_KEY, "stale")
    storage.set(USER_KEY, ADMIN_PAYLOAD)
    fake_api.auth.me_response = response

    store.check_session()

    assert store.loading is False
    assert store.user is None
    assert store.auth_token is None
    assert storage.get(TOKEN_KEY) is None
    assert storage.get(USER_KEY) is None


def test_check_session_runs_once(store, fake_api, storage):
    storage.set(TOKEN_KEY, "t1")
    fake_api.auth.me_response = {"success": True, "data": {"user": ADMIN_PAYLOAD}}
    store.check_session()
    store.check_session()
    assert fake_api.auth.calls.count(("me",)) == 1


# ── login ─────────────────────────────────────────────

def test_login_success_then_dashboard_route(store, fake_api, storage):
    fake_api.auth.login_response = login_ok("t1")

    result = store.login({"email": "a@b.com", "password": "x"})

    assert result.success
    assert result.user.role is Role.ADMIN
    assert store.auth_token == "t1"
    assert storage.get(TOKEN_KEY) == "t1"
    assert store.is_authenticated
    assert store.get_dashboard_route("admin") == "/dashboard/admin"


def test_login_rejected_returns_message_verbatim(store, fake_api):
    fake_api.auth.login_response = {"success": False, "message": "Invalid credentials"}

    result = store.login({"email": "a@b.com", "password": "bad"})

    assert not result.success
    assert result.message == "Invalid credentials"
    assert store.user is None


@pytest.mark.parametrize("data", [{"user": ADMIN_PAYLOAD}, {"token": "t1"}, None])
def test_login_success_without_token_or_user_does_not_mutate(store, fake_api, storage, data):
    store.session.last_error = "earlier"
    fake_api.auth.login_response = {"success": True, "data": data}

    result = store.login({"email": "a@b.com", "password": "x"})

    assert not result.success
    assert store.user is None
    assert store.auth_token is None
    assert storage.get(TOKEN_KEY) is None
    assert store.last_error == "earlier"


def test_login_transport_failure_sets_last_error(store, fake_api, network_down):
    fake_api.auth.login_response = network_down

    result = store.login({"email": "a@b.com", "password": "x"})

    assert not result.success
    assert result.message == network_down.message
    assert store.last_error == network_down.message
    assert store.user is None


# ── logout ────────────────────────────────────────────

@pytest.mark.parametrize("server_reply", [{"success": True}, ApiError("Cannot reach backend")])
def test_logout_always_clears_state(store, fake_api, storage, navigations, server_reply):
    fake_api.auth.login_response = login_ok("t1")
    store.login({"email": "a@b.com", "password": "x"})
    fake_api.auth.logout_response = server_reply

    store.logout()

    assert store.user is None
    assert store.auth_token is None
    assert storage.get(TOKEN_KEY) is None
    assert navigations[-1] == LOGIN_PATH
    assert ("logout", "t1") in fake_api.auth.calls


def test_logout_clears_before_notifying_server(store, fake_api):
    fake_api.auth.login_response = login_ok("t1")
    store.login({"email": "a@b.com", "password": "x"})
    seen = {}

    def logout(token=None):
        seen["authenticated"] = store.is_authenticated
        seen["token"] = store.auth_token
        return {"success": True}

    fake_api.auth.logout = logout
    store.logout()

    assert seen == {"authenticated": False, "token": None}


def test_logout_without_session_skips_server(store, fake_api, navigations):
    store.logout()
    assert fake_api.auth.calls == []
    assert navigations == [LOGIN_PATH]


def test_expire_goes_to_login_once(store, fake_api, navigations):
    fake_api.auth.login_response = login_ok("t1")
    store.login({"email": "a@b.com", "password": "x"})

    store.expire()
    store.expire()

    assert store.user is None
    assert navigations == [LOGIN_PATH]


# ── Token and user stay consistent ─────────────────────

@pytest.mark.parametrize("me_ok", [True, False])
@pytest.mark.parametrize("login_succeeds", [True, False])
def test_authenticated_implies_token_across_lifecycle(store, fake_api, storage, me_ok, login_succeeds):
    storage.set(TOKEN_KEY, "t0")
    fake_api.auth.me_response = (
        {"success": True, "data": {"user": ADMIN_PAYLOAD}} if me_ok else ApiError("down")
    )
    assert_consistent(store)
    store.check_session()
    assert_consistent(store)

    fake_api.auth.login_response = login_ok("t1") if login_succeeds else {"success": False, "message": "no"}
    store.login({"email": "a@b.com", "password": "x"})
    assert_consistent(store)

    store.logout()
    assert_consistent(store)
    assert store.user is None and store.auth_token is None


# ── Profile helpers ───────────────────────────────────

def test_refresh_user_updates_profile(store, fake_api):
    fake_api.auth.login_response = login_ok("t1")
    store.login({"email": "a@b.com", "password": "x"})
    fake_api.auth.me_response = {"success": True, "data": {"user": {**ADMIN_PAYLOAD, "branch": "Huye"}}}

    result = store.refresh_user()

    assert result.success
    assert store.user.branch == "Huye"
    assert store.loading is True  # check_session never ran; refresh leaves it alone


def test_refresh_user_requires_session(store):
    assert not store.refresh_user().success


def test_change_password_reports_api_error(store, fake_api):
    fake_api.auth.change_password_response = ApiError("Current password is incorrect", status_code=400)
    result = store.change_password("old", "newpassword")
    assert not result.success
    assert result.message == "Current password is incorrect"


# ── Dashboard routes ──────────────────────────────────

@pytest.mark.parametrize("role, path", [
    ("admin", "/dashboard/admin"),
    ("supervisor", "/dashboard/supervisor"),
    ("loan-officer", "/dashboard/loan-officer"),
    ("loan_officer", "/dashboard/loan-officer"),
    (Role.CASHIER, "/dashboard/cashier"),
    ("auditor", DEFAULT_DASHBOARD),
    (None, DEFAULT_DASHBOARD),
])
def test_get_dashboard_route(role, path):
    assert get_dashboard_route(role) == path
