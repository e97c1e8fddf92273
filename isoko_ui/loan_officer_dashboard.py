"""
Loan Officer Dashboard — the officer's own portfolio.

Overview metrics come from /dashboard/stats (scoped server-side to the
signed-in officer) and the officer's loan book from /loans/my-loans.
"""

import streamlit as st

from isoko_ui.formatters import format_currency, format_days_overdue, format_number
from isoko_ui.panels import fetch_panels
from isoko_ui.widgets import (
    api_call,
    current_page,
    items_of,
    page_banner,
    pagination_controls,
    panel_error,
    records_frame,
    show_table,
)

MY_LOAN_STATUSES = ["", "pending", "approved", "disbursed", "active", "completed", "defaulted", "rejected"]


# ═══════════════════════════════════════════════════════
# PAGE: OVERVIEW
# ═══════════════════════════════════════════════════════

def show_overview(ctx):
    page_banner("My Dashboard", "Your borrowers and collections")

    results = fetch_panels({
        "stats": ctx.api.dashboard.stats,
        "loans": lambda: ctx.api.loans.my_loans({"limit": 10}),
        "arrears": lambda: ctx.api.loans.in_arrears({"limit": 10}),
    })
    if results.all_failed:
        st.error("Dashboard data is unavailable right now. Please try again later.")
        return

    if not panel_error(results, "stats"):
        stats = results.data["stats"] or {}
        c1, c2, c3, c4 = st.columns(4)
        c1.metric("My Borrowers", format_number(stats.get("total_clients")))
        c2.metric("Active Loans", format_number(stats.get("active_loans")))
        c3.metric("Outstanding", format_currency(stats.get("total_outstanding")))
        c4.metric("Pending Applications", format_number(stats.get("pending_applications")))
    st.divider()

    # ── Latest applications ──
    st.subheader("My latest loans")
    if not panel_error(results, "loans"):
        df = records_frame(
            items_of(results.data["loans"]),
            ["loan_number", "client_name", "loan_type_name", "applied_amount", "balance", "status"],
            numeric=("applied_amount", "balance"),
        )
        show_table(df, status_column="status", empty="You have no loans yet.")
    st.divider()

    # ── Follow-up ──
    st.subheader("Needs follow-up")
    if not panel_error(results, "arrears"):
        items = items_of(results.data["arrears"])
        for item in items:
            item["overdue"] = format_days_overdue(item.get("days_in_arrears")).text
        df = records_frame(
            items,
            ["loan_number", "client_name", "client_phone", "arrears_amount", "overdue"],
            numeric=("arrears_amount",),
        )
        show_table(df, empty="None of your loans are in arrears. 🎉")


# ═══════════════════════════════════════════════════════
# PAGE: MY LOANS
# ═══════════════════════════════════════════════════════

def show_my_loans(ctx):
    page_banner("My Loans", "Applications and loans you manage")

    f1, f2 = st.columns([2, 1])
    search = f1.text_input("Search", placeholder="Loan number or borrower")
    status = f2.selectbox("Status", MY_LOAN_STATUSES, format_func=lambda s: s.title() if s else "All statuses")

    data = api_call(ctx.api.loans.my_loans, {
        "search": search,
        "status": status,
        "page": current_page("my_loans"),
        "limit": 20,
    })
    if data is None:
        return
    df = records_frame(
        items_of(data),
        ["id", "loan_number", "client_name", "loan_type_name", "applied_amount",
         "amount_paid", "balance", "next_due_date", "status"],
        numeric=("applied_amount", "amount_paid", "balance"),
    )
    show_table(df, status_column="status", empty="No loans match these filters.")
    pagination_controls("my_loans", data.get("pagination") if isinstance(data, dict) else None)

    st.divider()
    st.subheader("Repayment history")
    loan_id = st.text_input("Loan ID", key="officer_loan_id")
    if loan_id:
        history = api_call(ctx.api.loans.repayments, loan_id.strip())
        if history is not None:
            df = records_frame(
                items_of(history),
                ["receipt_number", "amount", "payment_method", "payment_date", "received_by_name"],
                numeric=("amount",),
            )
            show_table(df, empty="No repayments recorded for this loan.")
