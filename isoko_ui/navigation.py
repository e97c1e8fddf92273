"""
Role → sidebar navigation table.

Each role gets an ordered tuple of entries; the `shared` entries are
appended to every role's list (and are all an unknown role sees).
"""

from dataclasses import dataclass

from isoko_ui.roles import Role


@dataclass(frozen=True)
class NavigationEntry:
    name: str
    path: str
    icon: str


NAVIGATION: dict[Role, tuple[NavigationEntry, ...]] = {
    Role.ADMIN: (
        NavigationEntry("Dashboard", "/dashboard/admin", "🏠"),
        NavigationEntry("User Management", "/dashboard/admin/users", "👥"),
        NavigationEntry("All Loans", "/dashboard/admin/loans", "📄"),
        NavigationEntry("Add Loan", "/dashboard/admin/loans/add", "➕"),
        NavigationEntry("Loan Types", "/dashboard/admin/loan-types", "🗂️"),
        NavigationEntry("Due Loans", "/dashboard/admin/due-loans", "⏰"),
        NavigationEntry("Missed Repayments", "/dashboard/admin/missed-repayments", "⚠️"),
        NavigationEntry("Loans in Arrears", "/dashboard/admin/loans-in-arrears", "❌"),
        NavigationEntry("No Repayment Loans", "/dashboard/admin/no-repayment", "🚫"),
        NavigationEntry("Past Maturity", "/dashboard/admin/past-maturity", "📆"),
        NavigationEntry("Principal Outstanding", "/dashboard/admin/principal-outstanding", "💰"),
        NavigationEntry("Reports", "/dashboard/admin/reports", "📊"),
        NavigationEntry("Settings", "/dashboard/admin/settings", "⚙️"),
    ),
    Role.SUPERVISOR: (
        NavigationEntry("Dashboard", "/dashboard/supervisor", "🏠"),
        NavigationEntry("Team Overview", "/dashboard/supervisor/team", "🧑‍🤝‍🧑"),
        NavigationEntry("Performance Metrics", "/dashboard/supervisor/performance", "📈"),
        NavigationEntry("Add Loan", "/dashboard/admin/loans/add", "➕"),
        NavigationEntry("Due Loans", "/dashboard/admin/due-loans", "⏰"),
        NavigationEntry("Missed Repayments", "/dashboard/admin/missed-repayments", "⚠️"),
        NavigationEntry("Loans in Arrears", "/dashboard/admin/loans-in-arrears", "❌"),
        NavigationEntry("No Repayment Loans", "/dashboard/admin/no-repayment", "🚫"),
        NavigationEntry("Past Maturity", "/dashboard/admin/past-maturity", "📆"),
        NavigationEntry("Principal Outstanding", "/dashboard/admin/principal-outstanding", "💰"),
    ),
    Role.LOAN_OFFICER: (
        NavigationEntry("Dashboard", "/dashboard/loan-officer", "🏠"),
        NavigationEntry("My Loans", "/dashboard/loan-officer/my-loans", "📋"),
        NavigationEntry("Client Management", "/dashboard/loan-officer/clients", "🧑‍🤝‍🧑"),
        NavigationEntry("Add Borrower", "/dashboard/loan-officer/borrowers/add", "🆕"),
        NavigationEntry("Add Loan", "/dashboard/admin/loans/add", "➕"),
    ),
    Role.CASHIER: (
        NavigationEntry("Dashboard", "/dashboard/cashier", "🏠"),
        NavigationEntry("Transactions", "/dashboard/cashier/transactions", "💵"),
        NavigationEntry("Payment Records", "/dashboard/cashier/payment-records", "🧾"),
        NavigationEntry("Daily Reports", "/dashboard/cashier/daily-reports", "📊"),
        NavigationEntry("Due Collections", "/dashboard/cashier/due-collections", "⏰"),
    ),
}

SHARED: tuple[NavigationEntry, ...] = (
    NavigationEntry("Profile", "/dashboard/profile", "👤"),
)

ROLE_ACCESS_SUMMARY: dict[Role, str] = {
    Role.ADMIN: "Full access to all features.",
    Role.SUPERVISOR: "Team oversight, loan origination and arrears follow-up.",
    Role.LOAN_OFFICER: "Borrowers and loans assigned to you.",
    Role.CASHIER: "Repayment collection and daily cash reports.",
}


def resolve_navigation(role) -> list[NavigationEntry]:
    """Entries for `role` followed by the shared entries.

    Accepts a Role, any spelling of a role string, or None. Unknown roles
    are not an error: they see the shared entries only.
    """
    specific = NAVIGATION.get(Role.parse(role), ())
    return [*specific, *SHARED]


def get_all_navigation_items() -> list[NavigationEntry]:
    """Every distinct entry across all roles, in table order."""
    seen: dict[str, NavigationEntry] = {}
    for entries in (*NAVIGATION.values(), SHARED):
        for entry in entries:
            seen.setdefault(entry.path, entry)
    return list(seen.values())
