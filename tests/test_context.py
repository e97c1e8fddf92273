from conftest import login_ok
from isoko_ui.api_client import ApiClient
from isoko_ui.config import Settings
from isoko_ui.context import build_context
from isoko_ui.session import LOGIN_PATH
from isoko_ui.storage import MemoryStorage


def test_build_context_wires_token_provider(fake_api):
    api = ApiClient(base_url="http://api.test")
    api.auth = fake_api.auth
    ctx = build_context(storage=MemoryStorage(), api=api)

    assert api.token_provider() is None
    fake_api.auth.login_response = login_ok("t1")
    ctx.store.login({"email": "a@b.com", "password": "x"})

    assert api.token_provider() == "t1"
    assert ctx.user.email == "a@b.com"


def test_unauthorized_response_expires_session(fake_api):
    api = ApiClient(base_url="http://api.test")
    api.auth = fake_api.auth
    ctx = build_context(storage=MemoryStorage(), api=api)
    fake_api.auth.login_response = login_ok("t1")
    ctx.store.login({"email": "a@b.com", "password": "x"})

    api.on_unauthorized()

    assert ctx.user is None
    assert api.token_provider() is None
    assert ctx.ui["path"] == LOGIN_PATH


def test_navigate_sets_requested_path():
    ctx = build_context(storage=MemoryStorage(), api=ApiClient(base_url="http://api.test"))
    ctx.navigate("/dashboard/cashier")
    assert ctx.ui["path"] == "/dashboard/cashier"


def test_default_storage_lives_in_the_given_session_state(fake_api):
    settings = Settings()
    settings.SESSION_FILE = ""
    state = {}
    api = ApiClient(base_url="http://api.test")
    api.auth = fake_api.auth
    ctx = build_context(settings=settings, api=api, state=state)

    fake_api.auth.login_response = login_ok("t1")
    ctx.store.login({"email": "a@b.com", "password": "x"})

    assert state["isoko.token"] == "t1"
    assert state["isoko.user"]["email"] == "a@b.com"
