"""
Route guards.

A guard looks at the current Session (synchronously, it never triggers a
session check) and returns one of three decisions:

    Loading          session check still running; decide later
    Allowed          render the page
    RedirectTo(path) send the user elsewhere

`protected(...)` and `public_only` attach a guard to a page handler; the
router evaluates it the same way for every route.
"""

from dataclasses import dataclass
from functools import partial
from typing import Callable, Iterable, Union

from isoko_ui.roles import Role
from isoko_ui.session import LOGIN_PATH, Session, get_dashboard_route

UNAUTHORIZED_PATH = "/unauthorized"


@dataclass(frozen=True)
class Loading:
    pass


@dataclass(frozen=True)
class Allowed:
    pass


@dataclass(frozen=True)
class RedirectTo:
    path: str


Decision = Union[Loading, Allowed, RedirectTo]
Guard = Callable[[Session], Decision]


def _parse_roles(roles: Iterable) -> frozenset:
    parsed = set()
    for value in roles:
        role = Role.parse(value)
        if role is None:
            raise ValueError(f"Unknown role in allowed_roles: {value!r}")
        parsed.add(role)
    return frozenset(parsed)


def check_protected(session: Session, allowed_roles: Iterable = ()) -> Decision:
    """Authenticated-area guard. Empty `allowed_roles` means any signed-in role."""
    if session.loading:
        return Loading()
    if not session.is_authenticated:
        return RedirectTo(LOGIN_PATH)
    roles = _parse_roles(allowed_roles)
    if roles and session.user.role not in roles:
        return RedirectTo(UNAUTHORIZED_PATH)
    return Allowed()


def check_public(session: Session, landing: Callable = get_dashboard_route) -> Decision:
    """Public-only guard (login, forgot password)."""
    if session.loading:
        return Loading()
    if session.is_authenticated:
        return RedirectTo(landing(session.user.role))
    return Allowed()


@dataclass(frozen=True)
class GuardedPage:
    """A page handler paired with the guard that gates it."""
    handler: Callable
    guard: Guard
    allowed_roles: frozenset = frozenset()

    def check(self, session: Session) -> Decision:
        return self.guard(session)

    def __call__(self, *args, **kwargs):
        return self.handler(*args, **kwargs)


def protected(*allowed_roles):
    """Wrap a page handler so it only renders for `allowed_roles` (any role if none given)."""
    roles = _parse_roles(allowed_roles)

    def decorator(handler) -> GuardedPage:
        return GuardedPage(handler, partial(check_protected, allowed_roles=roles), roles)

    return decorator


def public_only(handler) -> GuardedPage:
    """Wrap a page handler that signed-in users should not see."""
    return GuardedPage(handler, check_public)


def unguarded(handler) -> GuardedPage:
    return GuardedPage(handler, lambda session: Allowed())
