"""
Path table and the routing composition layer.

Pages are imported lazily (only the matched page's module is loaded on a
rerun). Every route carries a GuardedPage; `navigate_to` evaluates the
guard and follows redirects until it reaches a page that can render or a
decision that must wait.
"""

from dataclasses import dataclass
from importlib import import_module

from isoko_ui.guards import (
    UNAUTHORIZED_PATH,
    Decision,
    GuardedPage,
    RedirectTo,
    protected,
    public_only,
    unguarded,
)
from isoko_ui.roles import Role
from isoko_ui.session import LOGIN_PATH, Session

FORGOT_PASSWORD_PATH = "/forgot-password"
NOT_FOUND_PATH = "/404"
MAX_REDIRECTS = 5

ADMIN = (Role.ADMIN,)
ADMIN_SUPERVISOR = (Role.ADMIN, Role.SUPERVISOR)
LOAN_DESK = (Role.LOAN_OFFICER, Role.SUPERVISOR, Role.ADMIN)
CASH_DESK = (Role.CASHIER, Role.SUPERVISOR, Role.ADMIN)


def page(target: str):
    """Lazy handler for 'module:function' inside isoko_ui."""
    module_name, func_name = target.split(":")

    def handler(ctx):
        module = import_module(f"isoko_ui.{module_name}")
        return getattr(module, func_name)(ctx)

    handler.__name__ = func_name
    handler.target = target
    return handler


@dataclass(frozen=True)
class Route:
    path: str
    title: str
    page: GuardedPage
    in_shell: bool = True


def _redirect(path: str) -> GuardedPage:
    return GuardedPage(lambda ctx: None, lambda session: RedirectTo(path))


_TABLE = [
    # Public
    Route(LOGIN_PATH, "Sign in", public_only(page("login:show_login")), in_shell=False),
    Route(FORGOT_PASSWORD_PATH, "Forgot password", public_only(page("login:show_forgot_password")), in_shell=False),
    Route("/", "Home", _redirect(LOGIN_PATH), in_shell=False),
    Route(UNAUTHORIZED_PATH, "Unauthorized", unguarded(page("shared_pages:show_unauthorized")), in_shell=False),
    Route(NOT_FOUND_PATH, "Not found", unguarded(page("shared_pages:show_not_found")), in_shell=False),

    # Any signed-in role
    Route("/dashboard", "Dashboard", protected()(page("shared_pages:show_home"))),
    Route("/dashboard/profile", "Profile", protected()(page("shared_pages:show_profile"))),

    # Admin
    Route("/dashboard/admin", "Admin Dashboard", protected(*ADMIN)(page("admin_dashboard:show_overview"))),
    Route("/dashboard/admin/users", "User Management", protected(*ADMIN)(page("admin_dashboard:show_users"))),
    Route("/dashboard/admin/loans", "All Loans", protected(*ADMIN)(page("admin_dashboard:show_loans"))),
    Route("/dashboard/admin/loan-types", "Loan Types", protected(*ADMIN)(page("admin_dashboard:show_loan_types"))),
    Route("/dashboard/admin/reports", "Reports", protected(*ADMIN)(page("admin_dashboard:show_reports"))),
    Route("/dashboard/admin/settings", "Settings", protected(*ADMIN)(page("admin_dashboard:show_settings"))),
    Route("/dashboard/admin/loans/add", "Add Loan", protected(*LOAN_DESK)(page("borrowers:show_add_loan"))),
    Route("/dashboard/admin/due-loans", "Due Loans", protected(*ADMIN_SUPERVISOR)(page("admin_dashboard:show_due_loans"))),
    Route("/dashboard/admin/missed-repayments", "Missed Repayments",
          protected(*ADMIN_SUPERVISOR)(page("admin_dashboard:show_missed_repayments"))),
    Route("/dashboard/admin/loans-in-arrears", "Loans in Arrears",
          protected(*ADMIN_SUPERVISOR)(page("admin_dashboard:show_arrears"))),
    Route("/dashboard/admin/no-repayment", "No Repayment Loans",
          protected(*ADMIN_SUPERVISOR)(page("recovery:show_no_repayment"))),
    Route("/dashboard/admin/past-maturity", "Past Maturity",
          protected(*ADMIN_SUPERVISOR)(page("recovery:show_past_maturity"))),
    Route("/dashboard/admin/principal-outstanding", "Principal Outstanding",
          protected(*ADMIN_SUPERVISOR)(page("recovery:show_principal_outstanding"))),
    Route("/dashboard/admin/loans/details", "Loan Details",
          protected(*ADMIN_SUPERVISOR)(page("recovery:show_loan_details"))),

    # Supervisor
    Route("/dashboard/supervisor", "Supervisor Dashboard",
          protected(Role.SUPERVISOR, Role.ADMIN)(page("supervisor_dashboard:show_overview"))),
    Route("/dashboard/supervisor/team", "Team Overview",
          protected(Role.SUPERVISOR, Role.ADMIN)(page("supervisor_dashboard:show_team"))),
    Route("/dashboard/supervisor/performance", "Performance Metrics",
          protected(Role.SUPERVISOR, Role.ADMIN)(page("supervisor_dashboard:show_performance"))),

    # Loan officer
    Route("/dashboard/loan-officer", "Loan Officer Dashboard",
          protected(*LOAN_DESK)(page("loan_officer_dashboard:show_overview"))),
    Route("/dashboard/loan-officer/my-loans", "My Loans",
          protected(*LOAN_DESK)(page("loan_officer_dashboard:show_my_loans"))),
    Route("/dashboard/loan-officer/clients", "Client Management",
          protected(*LOAN_DESK)(page("borrowers:show_clients"))),
    Route("/dashboard/loan-officer/borrowers/add", "Add Borrower",
          protected(*LOAN_DESK)(page("borrowers:show_add_borrower"))),

    # Cashier
    Route("/dashboard/cashier", "Cashier Dashboard", protected(*CASH_DESK)(page("cashier_dashboard:show_overview"))),
    Route("/dashboard/cashier/transactions", "Transactions",
          protected(*CASH_DESK)(page("cashier_dashboard:show_record_payment"))),
    Route("/dashboard/cashier/payment-records", "Payment Records",
          protected(*CASH_DESK)(page("cashier_dashboard:show_payment_records"))),
    Route("/dashboard/cashier/daily-reports", "Daily Reports",
          protected(*CASH_DESK)(page("cashier_dashboard:show_daily_reports"))),
    Route("/dashboard/cashier/due-collections", "Due Collections",
          protected(*CASH_DESK)(page("cashier_dashboard:show_due_collections"))),
]

ROUTES: dict[str, Route] = {r.path: r for r in _TABLE}


def normalize_path(path: str | None) -> str:
    if not path:
        return "/"
    path = "/" + path.strip().strip("/")
    return path


def match(path: str | None) -> Route:
    """Route for `path`; unknown paths get the not-found page."""
    return ROUTES.get(normalize_path(path), ROUTES[NOT_FOUND_PATH])


def dispatch(path: str | None, session: Session) -> tuple[Route, Decision]:
    route = match(path)
    return route, route.page.check(session)


def navigate_to(path: str | None, session: Session) -> tuple[Route, Decision]:
    """Follow guard redirects; returns the route to show and its final decision.

    The decision is either Allowed or Loading. Raises RuntimeError when the
    table redirects more than MAX_REDIRECTS times in a row.
    """
    current = path
    for _ in range(MAX_REDIRECTS + 1):
        route, decision = dispatch(current, session)
        if isinstance(decision, RedirectTo):
            current = decision.path
            continue
        return route, decision
    raise RuntimeError(f"Too many redirects starting from {path!r}")
