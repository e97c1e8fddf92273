"""
Admin Dashboard — portfolio overview, user management, loans, loan types,
arrears follow-up and report exports.

Read/write over the lending API. Entry points are the show_* functions
registered in isoko_ui.routes.
"""

from datetime import date, timedelta

import pandas as pd
import streamlit as st

from isoko_ui.api_client import ApiError
from isoko_ui.formatters import (
    format_currency,
    format_days_overdue,
    format_number,
    format_percentage,
    format_risk_level,
)
from isoko_ui.panels import fetch_panels
from isoko_ui.recovery import details_picker, recovery_fetchers, show_recovery_panels
from isoko_ui.roles import Role, role_label
from isoko_ui.widgets import (
    api_call,
    api_submit,
    current_page,
    items_of,
    page_banner,
    pagination_controls,
    panel_error,
    records_frame,
    show_table,
)

LOAN_STATUSES = ["pending", "approved", "disbursed", "active", "completed", "defaulted", "rejected", "cancelled"]
PAGE_SIZE = 20


# ═══════════════════════════════════════════════════════
# PAGE: OVERVIEW
# ═══════════════════════════════════════════════════════

def show_overview(ctx):
    page_banner("Admin Dashboard", "Portfolio health across all branches")

    results = fetch_panels({
        "stats": ctx.api.dashboard.stats,
        "due": lambda: ctx.api.due_loans.summary({}),
        "recent": lambda: ctx.api.loans.list({"limit": 10}),
        **recovery_fetchers(ctx.api),
    })
    if results.all_failed:
        st.error("Dashboard data is unavailable right now. Please try again later.")
        return

    # ── 1. Headline metrics ──
    st.subheader("Portfolio")
    if not panel_error(results, "stats"):
        stats = results.data["stats"] or {}
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("Borrowers", format_number(stats.get("total_clients")))
        c2.metric("Active Loans", format_number(stats.get("active_loans")))
        c3.metric("Disbursed", format_currency(stats.get("total_disbursed")))
        c4.metric("Outstanding", format_currency(stats.get("total_outstanding")))

        c5, c6, c7, c8 = st.columns(4)
        c5.metric("Collected", format_currency(stats.get("total_collected")))
        c6.metric("Loans in Arrears", format_number(stats.get("loans_in_arrears")))
        c7.metric("Arrears Amount", format_currency(stats.get("arrears_amount")))
        c8.metric("Pending Applications", format_number(stats.get("pending_applications")))

        dist = stats.get("status_distribution") or []
        if dist:
            df = pd.DataFrame(dist).set_index("status")
            st.bar_chart(df["count"])
    st.divider()

    # ── 2. Due this week ──
    st.subheader("Due in the next 7 days")
    if not panel_error(results, "due"):
        due = results.data["due"] or {}
        d1, d2, d3 = st.columns(3)
        d1.metric("Loans Due", format_number(due.get("count")))
        d2.metric("Amount Due", format_currency(due.get("amount_due")))
        d3.metric("Overdue", format_number(due.get("overdue_count")))
    st.divider()

    # ── 3. Recovery ──
    show_recovery_panels(results)
    st.divider()

    # ── 4. Recent loans ──
    st.subheader("Recent Loans")
    if not panel_error(results, "recent"):
        df = records_frame(
            items_of(results.data["recent"]),
            ["loan_number", "client_name", "loan_type_name", "applied_amount", "status", "created_at"],
            numeric=("applied_amount",),
        )
        show_table(df, status_column="status", empty="No loans yet.")


# ═══════════════════════════════════════════════════════
# PAGE: USER MANAGEMENT
# ═══════════════════════════════════════════════════════

ROLE_CHOICES = [r.value for r in Role]


def show_users(ctx):
    page_banner("User Management", "Staff accounts and roles")

    f1, f2, f3 = st.columns(3)
    search = f1.text_input("Search", placeholder="Name or email")
    role = f2.selectbox("Role", ["", *ROLE_CHOICES], format_func=lambda r: role_label(r) if r else "All roles")
    status = f3.selectbox("Status", ["", "active", "inactive", "suspended"],
                          format_func=lambda s: s.title() if s else "All statuses")

    data = api_call(ctx.api.users.list, {
        "search": search,
        "role": role,
        "status": status,
        "page": current_page("users"),
        "limit": PAGE_SIZE,
    })
    if data is not None:
        df = records_frame(
            items_of(data),
            ["id", "first_name", "last_name", "email", "role", "branch", "employee_id", "status"],
        )
        show_table(df, status_column="status", empty="No users match these filters.")
        pagination_controls("users", data.get("pagination") if isinstance(data, dict) else None)
    st.divider()

    tab_add, tab_edit = st.tabs(["Add user", "Edit user"])

    with tab_add:
        with st.form("add_user", clear_on_submit=True):
            c1, c2 = st.columns(2)
            first_name = c1.text_input("First name")
            last_name = c2.text_input("Last name")
            email = c1.text_input("Email")
            phone = c2.text_input("Phone")
            new_role = c1.selectbox("Role", ROLE_CHOICES, format_func=role_label)
            branch = c2.text_input("Branch")
            employee_id = c1.text_input("Employee ID")
            password = c2.text_input("Temporary password", type="password")
            submitted = st.form_submit_button("Create user")
        if submitted:
            if not (first_name and last_name and email and password):
                st.error("First name, last name, email and password are required.")
            elif len(password) < 8:
                st.error("Password must be at least 8 characters long.")
            else:
                api_submit(ctx.api.users.create, {
                    "first_name": first_name.strip(),
                    "last_name": last_name.strip(),
                    "email": email.strip(),
                    "phone": phone.strip(),
                    "role": new_role,
                    "branch": branch.strip(),
                    "employee_id": employee_id.strip(),
                    "password": password,
                }, success="User created.")

    with tab_edit:
        user_id = st.text_input("User ID", key="edit_user_id")
        if user_id:
            user = api_call(ctx.api.users.get, user_id.strip())
            if user:
                with st.form("edit_user"):
                    c1, c2 = st.columns(2)
                    first_name = c1.text_input("First name", value=user.get("first_name", ""))
                    last_name = c2.text_input("Last name", value=user.get("last_name", ""))
                    phone = c1.text_input("Phone", value=user.get("phone", "") or "")
                    branch = c2.text_input("Branch", value=user.get("branch", "") or "")
                    current_role = user.get("role") if user.get("role") in ROLE_CHOICES else ROLE_CHOICES[0]
                    edit_role = c1.selectbox("Role", ROLE_CHOICES, index=ROLE_CHOICES.index(current_role),
                                             format_func=role_label)
                    statuses = ["active", "inactive", "suspended"]
                    current_status = user.get("status") if user.get("status") in statuses else "active"
                    edit_status = c2.selectbox("Status", statuses, index=statuses.index(current_status))
                    save = st.form_submit_button("Save changes")
                if save:
                    api_submit(ctx.api.users.update, user["id"], {
                        "first_name": first_name.strip(),
                        "last_name": last_name.strip(),
                        "phone": phone.strip(),
                        "branch": branch.strip(),
                        "role": edit_role,
                        "status": edit_status,
                    }, success="User updated.")
                if st.button("Deactivate user", key="deactivate_user"):
                    api_submit(ctx.api.users.delete, user["id"], success="User deactivated.")


# ═══════════════════════════════════════════════════════
# PAGE: ALL LOANS
# ═══════════════════════════════════════════════════════

def show_loans(ctx):
    page_banner("All Loans", "Applications, disbursements and repayments")

    f1, f2 = st.columns(2)
    status = f1.selectbox("Status", ["", *LOAN_STATUSES], format_func=lambda s: s.title() if s else "All statuses")
    search = f2.text_input("Search", placeholder="Loan number or borrower")

    data = api_call(ctx.api.loans.list, {
        "status": status,
        "search": search,
        "page": current_page("loans"),
        "limit": PAGE_SIZE,
    })
    if data is not None:
        df = records_frame(
            items_of(data),
            ["id", "loan_number", "client_name", "loan_type_name", "applied_amount",
             "approved_amount", "balance", "status", "loan_officer_name"],
            numeric=("applied_amount", "approved_amount", "balance"),
        )
        show_table(df, status_column="status", empty="No loans match these filters.")
        pagination_controls("loans", data.get("pagination") if isinstance(data, dict) else None)
        details_picker(ctx, items_of(data), "loans")
    st.divider()

    st.subheader("Update loan status")
    with st.form("loan_status"):
        c1, c2 = st.columns(2)
        loan_id = c1.text_input("Loan ID")
        new_status = c2.selectbox("New status", LOAN_STATUSES)
        notes = st.text_area("Notes")
        submitted = st.form_submit_button("Update status")
    if submitted:
        if not loan_id:
            st.error("Enter a loan ID.")
        else:
            api_submit(ctx.api.loans.update_status, loan_id.strip(), new_status, notes, success="Status updated.")


# ═══════════════════════════════════════════════════════
# PAGE: LOAN TYPES
# ═══════════════════════════════════════════════════════

def loan_type_payload(values: dict) -> dict:
    """Form values → API payload. Rates are sent exactly as entered (percent)."""
    payload = {
        "name": values["name"].strip(),
        "code": values["code"].strip().upper(),
        "description": values.get("description", "").strip(),
        "category": values.get("category", "loan"),
        "interest_rate": float(values["interest_rate"]),
        "interest_method": values.get("interest_method", "flat"),
        "interest_period": values.get("interest_period", "monthly"),
        "application_fee": float(values.get("application_fee") or 0),
        "processing_fee_rate": float(values.get("processing_fee_rate") or 0),
        "penalty_rate": float(values.get("penalty_rate") or 0),
        "min_amount": float(values.get("min_amount") or 0),
        "max_amount": float(values.get("max_amount") or 0),
        "min_term_months": int(values.get("min_term_months") or 1),
        "max_term_months": int(values.get("max_term_months") or 1),
        "repayment_frequency": values.get("repayment_frequency", "monthly"),
        "is_active": bool(values.get("is_active", True)),
    }
    return payload


def validate_loan_type(payload: dict) -> list[str]:
    errors = []
    if not payload["name"]:
        errors.append("Name is required.")
    if not payload["code"]:
        errors.append("Code is required.")
    if payload["interest_rate"] < 0 or payload["interest_rate"] > 100:
        errors.append("Interest rate must be between 0 and 100 percent.")
    if payload["max_amount"] and payload["min_amount"] > payload["max_amount"]:
        errors.append("Minimum amount cannot exceed maximum amount.")
    if payload["min_term_months"] > payload["max_term_months"]:
        errors.append("Minimum term cannot exceed maximum term.")
    return errors


CATEGORIES = ["loan", "guarantee", "finance"]
FREQUENCIES = ["daily", "weekly", "bi_weekly", "monthly", "quarterly", "lump_sum"]


def _option_index(options: list, value, default: int = 0) -> int:
    return options.index(value) if value in options else default


def _loan_type_form(key: str, initial: dict | None = None) -> dict | None:
    initial = initial or {}
    with st.form(key):
        c1, c2, c3 = st.columns(3)
        values = {
            "name": c1.text_input("Name", value=initial.get("name", "")),
            "code": c2.text_input("Code", value=initial.get("code", "")),
            "category": c3.selectbox("Category", CATEGORIES,
                                     index=_option_index(CATEGORIES, initial.get("category"))),
            "description": st.text_area("Description", value=initial.get("description", "")),
            "interest_rate": c1.number_input("Interest rate (%)", min_value=0.0, max_value=100.0,
                                             value=float(initial.get("interest_rate", 0.0))),
            "interest_method": c2.selectbox("Interest method", ["flat", "reducing_balance"],
                                            index=0 if initial.get("interest_method", "flat") == "flat" else 1),
            "interest_period": c3.selectbox("Rate period", ["monthly", "annual"],
                                            index=0 if initial.get("interest_period", "monthly") == "monthly" else 1),
            "application_fee": c1.number_input("Application fee", min_value=0.0,
                                               value=float(initial.get("application_fee", 0.0))),
            "processing_fee_rate": c2.number_input("Processing fee (%)", min_value=0.0, max_value=100.0,
                                                   value=float(initial.get("processing_fee_rate", 0.0))),
            "penalty_rate": c3.number_input("Late penalty (%)", min_value=0.0, max_value=100.0,
                                            value=float(initial.get("penalty_rate", 0.0))),
            "min_amount": c1.number_input("Minimum amount", min_value=0.0,
                                          value=float(initial.get("min_amount", 0.0))),
            "max_amount": c2.number_input("Maximum amount", min_value=0.0,
                                          value=float(initial.get("max_amount", 0.0))),
            "repayment_frequency": c3.selectbox(
                "Repayment frequency", FREQUENCIES,
                index=_option_index(FREQUENCIES, initial.get("repayment_frequency"), default=3)),
            "min_term_months": c1.number_input("Minimum term (months)", min_value=1,
                                               value=int(initial.get("min_term_months", 1))),
            "max_term_months": c2.number_input("Maximum term (months)", min_value=1,
                                               value=int(initial.get("max_term_months", 12))),
            "is_active": c3.checkbox("Active", value=bool(initial.get("is_active", True))),
        }
        submitted = st.form_submit_button("Save loan type")
    return values if submitted else None


def show_loan_types(ctx):
    page_banner("Loan Types", "Products, rates, fees and penalties")

    data = api_call(ctx.api.loan_types.list, {"limit": 100})
    types = items_of(data) if data is not None else []
    if data is not None:
        df = records_frame(
            types,
            ["id", "code", "name", "category", "interest_rate", "interest_period", "interest_method",
             "min_amount", "max_amount", "is_active"],
            numeric=("interest_rate", "min_amount", "max_amount"),
        )
        show_table(df, empty="No loan types configured.")
    st.divider()

    tab_add, tab_edit = st.tabs(["Add loan type", "Edit / delete"])
    with tab_add:
        values = _loan_type_form("add_loan_type")
        if values is not None:
            payload = loan_type_payload(values)
            errors = validate_loan_type(payload)
            for err in errors:
                st.error(err)
            if not errors:
                api_submit(ctx.api.loan_types.create, payload, success="Loan type created.")

    with tab_edit:
        if not types:
            st.info("Nothing to edit yet.")
            return
        by_label = {f"{t.get('code')} — {t.get('name')}": t for t in types}
        choice = st.selectbox("Loan type", list(by_label))
        selected = by_label[choice]
        values = _loan_type_form(f"edit_loan_type_{selected['id']}", selected)
        if values is not None:
            payload = loan_type_payload(values)
            errors = validate_loan_type(payload)
            for err in errors:
                st.error(err)
            if not errors:
                api_submit(ctx.api.loan_types.update, selected["id"], payload, success="Loan type updated.")
        if st.button("Delete this loan type", key=f"delete_lt_{selected['id']}"):
            api_submit(ctx.api.loan_types.delete, selected["id"], success="Loan type deleted.")


# ═══════════════════════════════════════════════════════
# PAGE: DUE LOANS
# ═══════════════════════════════════════════════════════

def show_due_loans(ctx):
    page_banner("Due Loans", "Installments falling due")

    c1, c2, c3 = st.columns(3)
    start = c1.date_input("From", value=date.today())
    end = c2.date_input("To", value=date.today() + timedelta(days=7))
    branch = c3.text_input("Branch")
    params = {"start_date": start.isoformat(), "end_date": end.isoformat(), "branch": branch}

    results = fetch_panels({
        "summary": lambda: ctx.api.due_loans.summary(params),
        "loans": lambda: ctx.api.due_loans.list(params),
    })
    if results.all_failed:
        st.error("Due loans are unavailable right now.")
        return

    if not panel_error(results, "summary"):
        s = results.data["summary"] or {}
        m1, m2, m3 = st.columns(3)
        m1.metric("Loans Due", format_number(s.get("count")))
        m2.metric("Amount Due", format_currency(s.get("amount_due")))
        m3.metric("Already Overdue", format_number(s.get("overdue_count")))

    if not panel_error(results, "loans"):
        df = records_frame(
            items_of(results.data["loans"]),
            ["loan_number", "client_name", "client_phone", "next_due_date", "installment_amount",
             "balance", "loan_officer_name", "status"],
            numeric=("installment_amount", "balance"),
        )
        show_table(df, status_column="status", empty="Nothing due in this window.")

    try:
        csv = ctx.api.due_loans.export_csv(params)
    except ApiError as exc:
        st.caption(f"Export unavailable: {exc.message}")
    else:
        st.download_button("Download CSV", csv, f"due_loans_{start}_{end}.csv", "text/csv")


# ═══════════════════════════════════════════════════════
# PAGE: MISSED REPAYMENTS
# ═══════════════════════════════════════════════════════

def show_missed_repayments(ctx):
    page_banner("Missed Repayments", "Installments past their due date")

    data = api_call(ctx.api.loans.missed_repayments, {"limit": 100})
    if data is None:
        return
    items = items_of(data)
    rows = []
    for item in items:
        badge = format_days_overdue(item.get("days_overdue"))
        rows.append({**item, "overdue": badge.text})
    df = records_frame(
        rows,
        ["loan_number", "client_name", "client_phone", "next_due_date", "installment_amount",
         "overdue", "loan_officer_name"],
        numeric=("installment_amount",),
    )
    show_table(df, empty="No missed repayments. 🎉")


# ═══════════════════════════════════════════════════════
# PAGE: LOANS IN ARREARS
# ═══════════════════════════════════════════════════════

def show_arrears(ctx):
    page_banner("Loans in Arrears", "Overdue balances by severity")

    data = api_call(ctx.api.loans.in_arrears, {"limit": 200})
    if data is None:
        return
    items = items_of(data)
    summary = data.get("summary", {}) if isinstance(data, dict) else {}

    c1, c2, c3 = st.columns(3)
    c1.metric("Loans in Arrears", format_number(summary.get("count", len(items))))
    c2.metric("Arrears Amount", format_currency(summary.get("arrears_amount")))
    c3.metric("Portfolio at Risk", format_percentage(summary.get("portfolio_at_risk")))

    if items:
        st.subheader("By risk level")
        levels = pd.Series([format_risk_level(i.get("days_in_arrears")).text for i in items])
        st.bar_chart(levels.value_counts())

    df = records_frame(
        items,
        ["loan_number", "client_name", "days_in_arrears", "arrears_amount", "balance",
         "performance_class", "loan_officer_name"],
        numeric=("days_in_arrears", "arrears_amount", "balance"),
    )
    show_table(df, status_column="performance_class", empty="No loans in arrears.")


# ═══════════════════════════════════════════════════════
# PAGE: REPORTS
# ═══════════════════════════════════════════════════════

def show_reports(ctx):
    page_banner("Reports", "Download portfolio data as CSV")

    results = fetch_panels({
        "loans": lambda: ctx.api.loans.list({"limit": 1000}),
        "repayments": lambda: ctx.api.repayments.list({"limit": 1000}),
        "clients": lambda: ctx.api.clients.list({"limit": 1000}),
    })
    if results.all_failed:
        st.error("Reports are unavailable right now.")
        return

    col_a, col_b, col_c = st.columns(3)
    for col, name, label in (
        (col_a, "loans", "Loan Portfolio"),
        (col_b, "repayments", "Repayments"),
        (col_c, "clients", "Borrowers"),
    ):
        with col:
            if panel_error(results, name):
                continue
            df = pd.DataFrame(items_of(results.data[name]))
            st.metric(label, f"{len(df)} rows")
            if df.empty:
                st.info("No data.")
            else:
                st.download_button(
                    "Download CSV",
                    df.to_csv(index=False),
                    f"{name}_{date.today().isoformat()}.csv",
                    "text/csv",
                    key=f"exp_{name}",
                )


# ═══════════════════════════════════════════════════════
# PAGE: SETTINGS
# ═══════════════════════════════════════════════════════

def show_settings(ctx):
    page_banner("Settings", "System status and configuration")

    health = api_call(ctx.api.dashboard.health)
    if health:
        c1, c2 = st.columns(2)
        c1.markdown(f"**API:** {'🟢' if health.get('api') == 'UP' else '🔴'}")
        c2.markdown(f"**MongoDB:** {'🟢' if health.get('mongodb') == 'UP' else '🔴'}")

    st.subheader("Front-end configuration")
    st.markdown(f"**Backend URL:** `{ctx.settings.BACKEND_URL}`")
    st.markdown(f"**Request timeout:** {ctx.settings.API_TIMEOUT}s")
    st.markdown(f"**Currency:** {ctx.settings.CURRENCY}")
