"""
HTTP client for the lending backend.
All frontend ↔ backend communication goes through this module.

Every backend response uses the envelope {success, data?, message?}.
Transport and HTTP failures surface as ApiError carrying a message that is
safe to show inline next to the form or panel that triggered the call.
"""

import logging
from typing import Any, Callable

import requests

from isoko_ui.config import settings

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """A failed API call, with a human-readable message."""

    def __init__(self, message: str, status_code: int | None = None, payload: Any = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.payload = payload


class AuthenticationError(ApiError):
    """The backend rejected the credentials or the bearer token (HTTP 401)."""


def clean_params(params: dict | None) -> dict:
    """Drop filter values that are None or empty strings."""
    if not params:
        return {}
    return {k: v for k, v in params.items() if v is not None and v != ""}


def _error_message(resp: requests.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return f"Unexpected error ({resp.status_code})"
    if isinstance(body, dict):
        message = body.get("message") or body.get("detail")
        if isinstance(message, str) and message:
            return message
    return f"Unexpected error ({resp.status_code})"


class ApiClient:
    """Thin wrapper over a requests.Session that attaches the bearer token."""

    def __init__(
        self,
        base_url: str | None = None,
        timeout: int | None = None,
        token_provider: Callable[[], str | None] | None = None,
        on_unauthorized: Callable[[], None] | None = None,
        session: requests.Session | None = None,
    ):
        self.base_url = (base_url or settings.BACKEND_URL).rstrip("/")
        self.timeout = timeout or settings.API_TIMEOUT
        self.token_provider = token_provider or (lambda: None)
        self.on_unauthorized = on_unauthorized
        self.http = session or requests.Session()

        self.auth = AuthAPI(self)
        self.users = UsersAPI(self)
        self.clients = ClientsAPI(self)
        self.loans = LoansAPI(self)
        self.loan_types = LoanTypesAPI(self)
        self.repayments = RepaymentsAPI(self)
        self.due_loans = DueLoansAPI(self)
        self.recovery = RecoveryAPI(self)
        self.cashier = CashierAPI(self)
        self.supervisor = SupervisorAPI(self)
        self.dashboard = DashboardAPI(self)

    # ── Core request ──────────────────────

    def request(self, method: str, path: str, *, params: dict | None = None,
                json: dict | None = None, data: dict | None = None,
                files: dict | None = None, token: str | None = None) -> dict:
        """Send a request and return the decoded envelope.

        `token` overrides the token provider for this one call.
        """
        headers = {"Accept": "application/json"}
        if token is None:
            token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self.base_url}{path}"
        try:
            resp = self.http.request(
                method,
                url,
                params=clean_params(params),
                json=json,
                data=data,
                files=files,
                headers=headers,
                timeout=self.timeout,
            )
        except requests.exceptions.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            raise ApiError(f"Cannot reach backend: {exc}") from exc

        if resp.status_code == 401:
            message = _error_message(resp)
            if token and self.on_unauthorized is not None:
                self.on_unauthorized()
            raise AuthenticationError(message, status_code=401)

        if resp.status_code >= 400:
            message = _error_message(resp)
            logger.info("%s %s -> %s: %s", method, path, resp.status_code, message)
            raise ApiError(message, status_code=resp.status_code)

        try:
            body = resp.json()
        except ValueError as exc:
            raise ApiError("Malformed response from backend.", status_code=resp.status_code) from exc
        if not isinstance(body, dict):
            raise ApiError("Malformed response from backend.", status_code=resp.status_code, payload=body)
        return body

    def get_text(self, path: str, params: dict | None = None) -> str:
        """GET a non-JSON body (CSV exports)."""
        headers = {}
        token = self.token_provider()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        try:
            resp = self.http.get(
                f"{self.base_url}{path}",
                params=clean_params(params),
                headers=headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
        except requests.exceptions.HTTPError as exc:
            raise ApiError(_error_message(exc.response), status_code=exc.response.status_code) from exc
        except requests.exceptions.RequestException as exc:
            raise ApiError(f"Cannot reach backend: {exc}") from exc
        return resp.text

    def _get(self, path: str, params: dict | None = None) -> dict:
        return self.request("GET", path, params=params)

    def _post(self, path: str, payload: dict | None = None, **kwargs) -> dict:
        return self.request("POST", path, json=payload, **kwargs)

    def _put(self, path: str, payload: dict | None = None) -> dict:
        return self.request("PUT", path, json=payload)

    def _patch(self, path: str, payload: dict | None = None) -> dict:
        return self.request("PATCH", path, json=payload)

    def _delete(self, path: str) -> dict:
        return self.request("DELETE", path)


class _Group:
    def __init__(self, client: ApiClient):
        self.client = client


# ── Auth ──────────────────────────────

class AuthAPI(_Group):
    def login(self, credentials: dict) -> dict:
        """POST /auth/login → {success, data: {token, user}}"""
        return self.client._post("/auth/login", credentials)

    def me(self) -> dict:
        """GET /auth/me → {success, data: {user}}"""
        return self.client._get("/auth/me")

    def logout(self, token: str | None = None) -> dict:
        """POST /auth/logout (the server may ignore it; callers tolerate failure)"""
        return self.client.request("POST", "/auth/logout", token=token)

    def change_password(self, current_password: str, new_password: str) -> dict:
        return self.client._put("/auth/change-password", {
            "current_password": current_password,
            "new_password": new_password,
        })

    def forgot_password(self, email: str) -> dict:
        return self.client._post("/auth/forgot-password", {"email": email})


# ── Users ─────────────────────────────

class UsersAPI(_Group):
    def list(self, params: dict | None = None) -> dict:
        return self.client._get("/users", params)

    def get(self, user_id: str) -> dict:
        return self.client._get(f"/users/{user_id}")

    def create(self, payload: dict) -> dict:
        return self.client._post("/users", payload)

    def update(self, user_id: str, payload: dict) -> dict:
        return self.client._put(f"/users/{user_id}", payload)

    def delete(self, user_id: str) -> dict:
        return self.client._delete(f"/users/{user_id}")


# ── Clients (borrowers) ───────────────

class ClientsAPI(_Group):
    def list(self, params: dict | None = None) -> dict:
        return self.client._get("/clients", params)

    def get(self, client_id: str) -> dict:
        return self.client._get(f"/clients/{client_id}")

    def create(self, payload: dict) -> dict:
        return self.client._post("/clients", payload)

    def update(self, client_id: str, payload: dict) -> dict:
        return self.client._put(f"/clients/{client_id}", payload)

    def delete(self, client_id: str) -> dict:
        return self.client._delete(f"/clients/{client_id}")

    def upload_file(self, client_id: str, file_type: str, filename: str,
                    content: bytes, content_type: str = "application/octet-stream") -> dict:
        """POST /clients/{id}/files (multipart) — photo or supporting document."""
        return self.client.request(
            "POST",
            f"/clients/{client_id}/files",
            data={"file_type": file_type},
            files={"file": (filename, content, content_type)},
        )

    def loans(self, client_id: str) -> dict:
        return self.client._get(f"/clients/{client_id}/loans")


# ── Loans ─────────────────────────────

class LoansAPI(_Group):
    def list(self, params: dict | None = None) -> dict:
        return self.client._get("/loans", params)

    def my_loans(self, params: dict | None = None) -> dict:
        return self.client._get("/loans/my-loans", params)

    def get(self, loan_id: str) -> dict:
        return self.client._get(f"/loans/{loan_id}")

    def create(self, payload: dict) -> dict:
        return self.client._post("/loans", payload)

    def update_status(self, loan_id: str, status: str, notes: str = "") -> dict:
        return self.client._put(f"/loans/{loan_id}/status", {"status": status, "notes": notes})

    def repayments(self, loan_id: str) -> dict:
        return self.client._get(f"/loans/{loan_id}/repayments")

    def details(self, loan_id: str) -> dict:
        """GET /loans/{id}/details → {loan, client, schedule, principal, repayments}"""
        return self.client._get(f"/loans/{loan_id}/details")

    def in_arrears(self, params: dict | None = None) -> dict:
        return self.client._get("/loans-in-arrears", params)

    def missed_repayments(self, params: dict | None = None) -> dict:
        return self.client._get("/missed-repayments", params)


# ── Loan types ────────────────────────

class LoanTypesAPI(_Group):
    def list(self, params: dict | None = None) -> dict:
        return self.client._get("/loan-types", params)

    def get(self, loan_type_id: str) -> dict:
        return self.client._get(f"/loan-types/{loan_type_id}")

    def create(self, payload: dict) -> dict:
        return self.client._post("/loan-types", payload)

    def update(self, loan_type_id: str, payload: dict) -> dict:
        return self.client._put(f"/loan-types/{loan_type_id}", payload)

    def delete(self, loan_type_id: str) -> dict:
        return self.client._delete(f"/loan-types/{loan_type_id}")


# ── Repayments ────────────────────────

class RepaymentsAPI(_Group):
    def list(self, params: dict | None = None) -> dict:
        return self.client._get("/repayments", params)

    def create(self, payload: dict) -> dict:
        return self.client._post("/repayments", payload)


# ── Due loans ─────────────────────────

class DueLoansAPI(_Group):
    def list(self, params: dict | None = None) -> dict:
        return self.client._get("/due-loans", params)

    def summary(self, params: dict | None = None) -> dict:
        return self.client._get("/due-loans/summary", params)

    def export_csv(self, params: dict | None = None) -> str:
        return self.client.get_text("/due-loans/export", params)


# ── Recovery reports ──────────────────

class RecoveryAPI(_Group):
    def no_repayment(self, params: dict | None = None) -> dict:
        return self.client._get("/no-repayment", params)

    def past_maturity(self, params: dict | None = None) -> dict:
        return self.client._get("/past-maturity", params)

    def principal_outstanding(self, params: dict | None = None) -> dict:
        return self.client._get("/principal-outstanding", params)


# ── Cashier ───────────────────────────

class CashierAPI(_Group):
    def today_summary(self) -> dict:
        return self.client._get("/cashier/summary/today")

    def recent_transactions(self, limit: int = 10) -> dict:
        return self.client._get("/cashier/transactions/recent", {"limit": limit})

    def due_today(self) -> dict:
        return self.client._get("/cashier/loans/due-today")

    def daily_report(self, day: str | None = None) -> dict:
        return self.client._get("/cashier/reports/daily", {"date": day})


# ── Supervisor ────────────────────────

class SupervisorAPI(_Group):
    def team_members(self) -> dict:
        return self.client._get("/supervisor/team/members")

    def team_stats(self) -> dict:
        return self.client._get("/supervisor/team/stats")

    def performance(self) -> dict:
        return self.client._get("/supervisor/metrics/team-performance")


# ── Dashboard ─────────────────────────

class DashboardAPI(_Group):
    def stats(self) -> dict:
        return self.client._get("/dashboard/stats")

    def health(self) -> dict:
        return self.client._get("/health")
