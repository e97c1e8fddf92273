import pytest
import requests

from isoko_ui.api_client import ApiClient, ApiError, AuthenticationError, clean_params


class FakeResponse:
    def __init__(self, status_code=200, body=None, text=None):
        self.status_code = status_code
        self._body = body
        self.text = text if text is not None else ""

    def json(self):
        if isinstance(self._body, Exception):
            raise self._body
        return self._body

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(response=self)


@pytest.fixture
def sent():
    return []


@pytest.fixture
def make_client(monkeypatch, sent):
    def factory(response, token=None, on_unauthorized=None):
        client = ApiClient(
            base_url="http://api.test/",
            timeout=3,
            token_provider=lambda: token,
            on_unauthorized=on_unauthorized,
        )

        def fake_request(method, url, **kwargs):
            sent.append((method, url, kwargs))
            if isinstance(response, Exception):
                raise response
            return response

        monkeypatch.setattr(client.http, "request", fake_request)
        return client

    return factory


def test_clean_params_drops_empty_values():
    assert clean_params({"a": 1, "b": "", "c": None, "d": 0, "e": False}) == {"a": 1, "d": 0, "e": False}
    assert clean_params(None) == {}


def test_request_builds_url_params_and_timeout(make_client, sent):
    client = make_client(FakeResponse(body={"success": True, "data": {"items": []}}))

    body = client.users.list({"search": "", "role": "admin", "page": 2})

    assert body["success"] is True
    method, url, kwargs = sent[0]
    assert (method, url) == ("GET", "http://api.test/users")
    assert kwargs["params"] == {"role": "admin", "page": 2}
    assert kwargs["timeout"] == 3


def test_bearer_header_only_with_token(make_client, sent):
    make_client(FakeResponse(body={"success": True}), token="t1").dashboard.stats()
    make_client(FakeResponse(body={"success": True}), token=None).dashboard.stats()

    assert sent[0][2]["headers"]["Authorization"] == "Bearer t1"
    assert "Authorization" not in sent[1][2]["headers"]


def test_explicit_token_overrides_provider(make_client, sent):
    client = make_client(FakeResponse(body={"success": True}), token=None)
    client.auth.logout(token="old")
    assert sent[0][0] == "POST"
    assert sent[0][1].endswith("/auth/logout")
    assert sent[0][2]["headers"]["Authorization"] == "Bearer old"


def test_transport_error_becomes_api_error(make_client):
    client = make_client(requests.exceptions.ConnectionError("refused"))
    with pytest.raises(ApiError) as exc:
        client.auth.me()
    assert exc.value.message.startswith("Cannot reach backend")


def test_401_raises_authentication_error_and_fires_hook(make_client):
    fired = []
    client = make_client(
        FakeResponse(401, {"success": False, "message": "Token has been revoked"}),
        token="t1",
        on_unauthorized=lambda: fired.append(True),
    )
    with pytest.raises(AuthenticationError) as exc:
        client.loans.list()
    assert exc.value.message == "Token has been revoked"
    assert fired == [True]


def test_401_without_token_does_not_fire_hook(make_client):
    fired = []
    client = make_client(
        FakeResponse(401, {"success": False, "message": "Invalid credentials"}),
        on_unauthorized=lambda: fired.append(True),
    )
    with pytest.raises(AuthenticationError):
        client.auth.login({"email": "a@b.com", "password": "x"})
    assert fired == []


@pytest.mark.parametrize("body, message", [
    ({"success": False, "message": "Loan not found"}, "Loan not found"),
    ({"detail": "Not Found"}, "Not Found"),
    (ValueError("no json"), "Unexpected error (404)"),
])
def test_http_errors_carry_server_message(make_client, body, message):
    client = make_client(FakeResponse(404, body))
    with pytest.raises(ApiError) as exc:
        client.loans.get("x")
    assert exc.value.message == message
    assert exc.value.status_code == 404


@pytest.mark.parametrize("body", [ValueError("html"), ["not", "a", "dict"]])
def test_malformed_success_body(make_client, body):
    client = make_client(FakeResponse(200, body))
    with pytest.raises(ApiError, match="Malformed"):
        client.dashboard.health()


def test_update_status_puts_status_and_notes(make_client, sent):
    client = make_client(FakeResponse(body={"success": True}))
    client.loans.update_status("L1", "approved", "ok")
    method, url, kwargs = sent[0]
    assert (method, url) == ("PUT", "http://api.test/loans/L1/status")
    assert kwargs["json"] == {"status": "approved", "notes": "ok"}


def test_upload_file_is_multipart(make_client, sent):
    client = make_client(FakeResponse(201, {"success": True}))
    client.clients.upload_file("C1", "photo", "me.png", b"\x89PNG", "image/png")
    _, url, kwargs = sent[0]
    assert url == "http://api.test/clients/C1/files"
    assert kwargs["data"] == {"file_type": "photo"}
    assert kwargs["files"] == {"file": ("me.png", b"\x89PNG", "image/png")}
    assert kwargs["json"] is None


def test_daily_report_passes_date(make_client, sent):
    client = make_client(FakeResponse(body={"success": True}))
    client.cashier.daily_report("2024-01-05")
    assert sent[0][2]["params"] == {"date": "2024-01-05"}


def test_get_text_returns_csv(monkeypatch):
    client = ApiClient(base_url="http://api.test", token_provider=lambda: "t1")
    calls = []

    def fake_get(url, **kwargs):
        calls.append((url, kwargs))
        return FakeResponse(200, text="loan_number\nLN-1\n")

    monkeypatch.setattr(client.http, "get", fake_get)
    assert client.due_loans.export_csv({"branch": ""}) == "loan_number\nLN-1\n"
    assert calls[0][0] == "http://api.test/due-loans/export"
    assert calls[0][1]["params"] == {}
    assert calls[0][1]["headers"]["Authorization"] == "Bearer t1"


def test_get_text_http_error(monkeypatch):
    client = ApiClient(base_url="http://api.test")
    monkeypatch.setattr(
        client.http, "get",
        lambda url, **kw: FakeResponse(403, {"success": False, "message": "Insufficient permissions"}),
    )
    with pytest.raises(ApiError) as exc:
        client.due_loans.export_csv()
    assert exc.value.message == "Insufficient permissions"
    assert exc.value.status_code == 403
