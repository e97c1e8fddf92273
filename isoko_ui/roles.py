"""
Closed set of user roles.

Role strings arrive from the API as `loan-officer` but older payloads and
config tables use `loan_officer`. `Role.parse` is the one place where the
two spellings are reconciled; everything downstream compares enum members.
Case and whitespace are significant: `"ADMIN"` is not a role.
"""

from enum import Enum


class Role(str, Enum):
    ADMIN = "admin"
    SUPERVISOR = "supervisor"
    LOAN_OFFICER = "loan-officer"
    CASHIER = "cashier"

    @classmethod
    def parse(cls, value) -> "Role | None":
        """Return the matching Role, or None for unknown / empty input.

        The value is looked up verbatim first, then with `_` and `-` swapped.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str) or not value:
            return None
        for key in (value, value.replace("_", "-"), value.replace("-", "_")):
            role = _BY_VALUE.get(key)
            if role is not None:
                return role
        return None

    @property
    def label(self) -> str:
        return _LABELS[self]


_BY_VALUE = {role.value: role for role in Role}

_LABELS = {
    Role.ADMIN: "Administrator",
    Role.SUPERVISOR: "Supervisor",
    Role.LOAN_OFFICER: "Loan Officer",
    Role.CASHIER: "Cashier",
}


def role_label(value) -> str:
    """Human label for a role value; falls back to the raw string."""
    role = Role.parse(value)
    if role is None:
        return str(value or "Unknown")
    return role.label
