"""
Auth session store — the single source of truth for who is logged in.

Lifecycle:
  1. check_session() once per browser session; guards defer while loading
  2. login()  → token + user persisted, state updated
  3. logout() → local state cleared first, then best-effort server notice

The store never raises to its callers: failures come back as results and,
for login, as `last_error`.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable

from isoko_ui.api_client import ApiClient, ApiError
from isoko_ui.roles import Role
from isoko_ui.storage import TOKEN_KEY, USER_KEY

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
DEFAULT_DASHBOARD = "/dashboard"

_DASHBOARD_ROUTES = {
    Role.ADMIN: "/dashboard/admin",
    Role.SUPERVISOR: "/dashboard/supervisor",
    Role.LOAN_OFFICER: "/dashboard/loan-officer",
    Role.CASHIER: "/dashboard/cashier",
}


@dataclass(frozen=True)
class User:
    """Read-only projection of the server-side user."""
    id: str
    email: str
    role: Role | None
    first_name: str = ""
    last_name: str = ""
    branch: str = ""
    employee_id: str = ""
    phone: str = ""
    status: str = "active"
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def full_name(self) -> str:
        name = f"{self.first_name} {self.last_name}".strip()
        return name or self.email

    @classmethod
    def from_payload(cls, payload: Any) -> "User | None":
        """Parse an API user object; None when it is not a usable user."""
        if not isinstance(payload, dict):
            return None
        user_id = payload.get("id") or payload.get("_id")
        email = payload.get("email")
        if not user_id and not email:
            return None
        return cls(
            id=str(user_id or ""),
            email=str(email or ""),
            role=Role.parse(payload.get("role")),
            first_name=payload.get("first_name") or "",
            last_name=payload.get("last_name") or "",
            branch=payload.get("branch") or "",
            employee_id=payload.get("employee_id") or "",
            phone=payload.get("phone") or "",
            status=payload.get("status") or "active",
            raw=dict(payload),
        )


@dataclass
class Session:
    user: User | None = None
    auth_token: str | None = None
    loading: bool = True
    last_error: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


@dataclass(frozen=True)
class LoginResult:
    success: bool
    user: User | None = None
    message: str = ""


@dataclass(frozen=True)
class ApiResult:
    success: bool
    message: str = ""
    data: Any = None


def _extract_user(envelope: dict) -> Any:
    data = envelope.get("data")
    if isinstance(data, dict) and "user" in data:
        return data["user"]
    return data


def get_dashboard_route(role) -> str:
    """Default landing path for a role; unknown roles get the generic dashboard."""
    return _DASHBOARD_ROUTES.get(Role.parse(role), DEFAULT_DASHBOARD)


class SessionStore:
    """Holds the Session and performs the auth round trips."""

    def __init__(self, api: ApiClient, storage, navigate: Callable[[str], None] | None = None):
        self.api = api
        self.storage = storage
        self.navigate = navigate or (lambda path: None)
        self.session = Session()
        self._checked = False

    # ── Read access ─────────────────────

    @property
    def user(self) -> User | None:
        return self.session.user

    @property
    def auth_token(self) -> str | None:
        return self.session.auth_token

    @property
    def loading(self) -> bool:
        return self.session.loading

    @property
    def last_error(self) -> str | None:
        return self.session.last_error

    @property
    def is_authenticated(self) -> bool:
        return self.session.is_authenticated

    def token(self) -> str | None:
        """Token used for outgoing requests (the persisted one)."""
        return self.storage.get(TOKEN_KEY)

    # ── Mutations ───────────────────────

    def _set_authenticated(self, token: str, user: User) -> None:
        self.session.auth_token = token
        self.session.user = user

    def _clear(self) -> None:
        self.storage.remove(TOKEN_KEY)
        self.storage.remove(USER_KEY)
        self.session.user = None
        self.session.auth_token = None

    def check_session(self) -> None:
        """Validate a persisted token against GET /auth/me, then stop loading."""
        if self._checked:
            logger.debug("check_session called again; ignoring")
            return
        self._checked = True
        try:
            token = self.storage.get(TOKEN_KEY)
            if not token:
                return
            try:
                envelope = self.api.auth.me()
            except ApiError as exc:
                logger.info("Session check failed: %s", exc.message)
                self._clear()
                return

            user = User.from_payload(_extract_user(envelope)) if envelope.get("success") else None
            if user is None:
                logger.info("Session check returned no usable user; clearing session")
                self._clear()
                return

            self._set_authenticated(token, user)
            self.storage.set(USER_KEY, user.raw)
        finally:
            self.session.loading = False

    def login(self, credentials: dict) -> LoginResult:
        """Authenticate with {email, password}. Never raises."""
        try:
            envelope = self.api.auth.login(credentials)
        except ApiError as exc:
            message = exc.message or "Login failed"
            self.session.last_error = message
            return LoginResult(success=False, message=message)

        if not envelope.get("success"):
            return LoginResult(success=False, message=envelope.get("message") or "Login failed")

        data = envelope.get("data") or {}
        token = data.get("token") if isinstance(data, dict) else None
        user = User.from_payload(data.get("user")) if isinstance(data, dict) else None
        if not token or user is None:
            return LoginResult(success=False, message=envelope.get("message") or "Login failed")

        self.storage.set(TOKEN_KEY, token)
        self.storage.set(USER_KEY, user.raw)
        self._set_authenticated(token, user)
        self.session.last_error = None
        logger.info("User %s signed in as %s", user.email, user.role)
        return LoginResult(success=True, user=user)

    def logout(self) -> None:
        """Clear local state, notify the server (best effort), go to login."""
        token = self.session.auth_token or self.storage.get(TOKEN_KEY)
        self._clear()
        self.session.last_error = None

        if token:
            try:
                # storage is already empty, so pass the old token explicitly
                self.api.auth.logout(token=token)
            except ApiError as exc:
                logger.info("Logout notification failed: %s", exc.message)

        self.navigate(LOGIN_PATH)

    def expire(self) -> None:
        """The server rejected our token: drop the session and go to login."""
        if self.session.user is None and self.session.auth_token is None:
            return
        logger.info("Session token rejected by backend; signing out locally")
        self._clear()
        self.navigate(LOGIN_PATH)

    def refresh_user(self) -> ApiResult:
        """Re-read the profile from /auth/me without touching `loading`."""
        if not self.is_authenticated:
            return ApiResult(success=False, message="Not signed in.")
        try:
            envelope = self.api.auth.me()
        except ApiError as exc:
            return ApiResult(success=False, message=exc.message)
        user = User.from_payload(_extract_user(envelope))
        if user is None:
            return ApiResult(success=False, message=envelope.get("message") or "Could not load profile.")
        self.session.user = user
        self.storage.set(USER_KEY, user.raw)
        return ApiResult(success=True, data=user)

    def change_password(self, current_password: str, new_password: str) -> ApiResult:
        try:
            envelope = self.api.auth.change_password(current_password, new_password)
        except ApiError as exc:
            return ApiResult(success=False, message=exc.message)
        return ApiResult(
            success=bool(envelope.get("success")),
            message=envelope.get("message") or "",
        )

    def get_dashboard_route(self, role=None) -> str:
        if role is None and self.user is not None:
            role = self.user.role
        return get_dashboard_route(role)
