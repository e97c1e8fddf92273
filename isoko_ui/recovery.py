"""
Recovery pages — loans with no repayment, loans past maturity, principal
outstanding, and the single-loan details view they link to.

Shared by admins (all branches) and supervisors (their own branch; the API
applies the scope).
"""

import pandas as pd
import streamlit as st

from isoko_ui.formatters import format_currency, format_date, format_number, format_percentage
from isoko_ui.widgets import (
    api_call,
    current_page,
    items_of,
    page_banner,
    pagination_controls,
    panel_error,
    records_frame,
    show_table,
    status_badge,
)

LOAN_DETAILS_PATH = "/dashboard/admin/loans/details"
SELECTED_LOAN_KEY = "loan_id"
PAGE_SIZE = 20

RISK_LEVELS = ["low", "medium", "high", "critical"]
URGENCY_LEVELS = ["medium", "high", "urgent", "immediate"]
STANDINGS = ["on_track", "behind"]


def _label(value: str) -> str:
    return value.replace("_", " ").title() if value else "All"


def _summary(data) -> dict:
    return data.get("summary", {}) if isinstance(data, dict) else {}


def open_loan(ctx, loan_id: str) -> None:
    """Remember the loan and move to the details page."""
    ctx.ui[SELECTED_LOAN_KEY] = loan_id
    ctx.navigate(LOAN_DETAILS_PATH)


def details_picker(ctx, items: list[dict], key: str) -> None:
    """Select one of the listed loans and open its details page."""
    choices = {i["id"]: f"{i.get('loan_number') or i['id']} · {i.get('client_name') or ''}"
               for i in items if i.get("id")}
    if not choices:
        return
    c1, c2 = st.columns([3, 1])
    loan_id = c1.selectbox("Loan", list(choices), format_func=choices.get, key=f"{key}_pick",
                           label_visibility="collapsed")
    if c2.button("View details", key=f"{key}_open"):
        open_loan(ctx, loan_id)
        st.rerun()


# ═══════════════════════════════════════════════════════
# OVERVIEW PANELS
# ═══════════════════════════════════════════════════════

def recovery_fetchers(api) -> dict:
    """Panel fetchers for the recovery summaries (one row each is enough)."""
    return {
        "no_repayment": lambda: api.recovery.no_repayment({"limit": 1}),
        "past_maturity": lambda: api.recovery.past_maturity({"limit": 1}),
        "principal": lambda: api.recovery.principal_outstanding({"limit": 1}),
    }


def show_recovery_panels(results) -> None:
    """Three recovery metrics; each column reports its own failure."""
    st.subheader("Recovery")
    c1, c2, c3 = st.columns(3)
    with c1:
        if not panel_error(results, "no_repayment"):
            summary = _summary(results.data["no_repayment"])
            st.metric("No Repayment Loans", format_number(summary.get("count")),
                      help=f"{format_currency(summary.get('amount_at_risk'))} at risk")
    with c2:
        if not panel_error(results, "past_maturity"):
            summary = _summary(results.data["past_maturity"])
            st.metric("Past Maturity", format_number(summary.get("count")),
                      help=f"{format_currency(summary.get('outstanding_amount'))} outstanding")
    with c3:
        if not panel_error(results, "principal"):
            summary = _summary(results.data["principal"])
            st.metric("Principal Outstanding", format_currency(summary.get("principal_balance")),
                      help=f"{format_number(summary.get('behind_count'))} loans behind schedule")


# ═══════════════════════════════════════════════════════
# PAGE: NO REPAYMENT LOANS
# ═══════════════════════════════════════════════════════

def show_no_repayment(ctx):
    page_banner("No Repayment Loans", "Disbursed loans that have not received a single payment")

    f1, f2 = st.columns(2)
    risk = f1.selectbox("Risk", ["", *RISK_LEVELS], format_func=_label)
    search = f2.text_input("Search", placeholder="Loan number, borrower or phone")

    data = api_call(ctx.api.recovery.no_repayment, {
        "risk": risk,
        "search": search,
        "page": current_page("no_repayment"),
        "limit": PAGE_SIZE,
    })
    if data is None:
        return
    summary = _summary(data)

    c1, c2 = st.columns(2)
    c1.metric("Loans Without Payment", format_number(summary.get("count")))
    c2.metric("Amount at Risk", format_currency(summary.get("amount_at_risk")))

    by_risk = summary.get("by_risk") or []
    if any(r.get("count") for r in by_risk):
        st.subheader("By days since disbursement")
        st.bar_chart(pd.DataFrame(by_risk).set_index("risk_category")["count"])

    items = items_of(data)
    df = records_frame(
        items,
        ["loan_number", "client_name", "client_phone", "approved_amount", "disbursed_at",
         "days_since_disbursement", "risk_category", "loan_officer_name", "branch"],
        numeric=("approved_amount", "days_since_disbursement"),
    )
    show_table(df, status_column="risk_category", empty="Every disbursed loan has received a payment.")
    pagination_controls("no_repayment", data.get("pagination"))
    details_picker(ctx, items, "no_repayment")


# ═══════════════════════════════════════════════════════
# PAGE: PAST MATURITY
# ═══════════════════════════════════════════════════════

def show_past_maturity(ctx):
    page_banner("Past Maturity", "Loans still owing after their final installment date")

    f1, f2, f3 = st.columns(3)
    min_days = f1.number_input("At least days past maturity", min_value=1, value=1, step=1)
    urgency = f2.selectbox("Urgency", ["", *URGENCY_LEVELS], format_func=_label)
    search = f3.text_input("Search", placeholder="Loan number, borrower or phone")

    data = api_call(ctx.api.recovery.past_maturity, {
        "min_days": int(min_days),
        "urgency": urgency,
        "search": search,
        "page": current_page("past_maturity"),
        "limit": PAGE_SIZE,
    })
    if data is None:
        return
    summary = _summary(data)

    c1, c2, c3 = st.columns(3)
    c1.metric("Past Maturity", format_number(summary.get("count")))
    c2.metric("Outstanding", format_currency(summary.get("outstanding_amount")))
    c3.metric("Over 90 Days", format_number(summary.get("critical_cases")))

    buckets = summary.get("by_bucket") or []
    if any(b.get("count") for b in buckets):
        st.subheader("Days past maturity")
        st.bar_chart(pd.DataFrame(buckets).set_index("bucket")["count"])

    items = items_of(data)
    df = records_frame(
        items,
        ["loan_number", "client_name", "client_phone", "maturity_date", "days_past_maturity",
         "balance", "urgency", "loan_officer_name", "branch"],
        numeric=("days_past_maturity", "balance"),
    )
    show_table(df, status_column="urgency", empty="No loans are past maturity.")
    pagination_controls("past_maturity", data.get("pagination"))
    details_picker(ctx, items, "past_maturity")


# ═══════════════════════════════════════════════════════
# PAGE: PRINCIPAL OUTSTANDING
# ═══════════════════════════════════════════════════════

def show_principal_outstanding(ctx):
    page_banner("Principal Outstanding", "Principal due to date against principal collected")

    f1, f2 = st.columns(2)
    standing = f1.selectbox("Standing", ["", *STANDINGS], format_func=_label)
    search = f2.text_input("Search", placeholder="Loan number, borrower or phone")

    data = api_call(ctx.api.recovery.principal_outstanding, {
        "standing": standing,
        "search": search,
        "page": current_page("principal"),
        "limit": PAGE_SIZE,
    })
    if data is None:
        return
    summary = _summary(data)

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Principal Disbursed", format_currency(summary.get("principal_amount")))
    c2.metric("Principal Collected", format_currency(summary.get("principal_paid")))
    c3.metric("Principal Outstanding", format_currency(summary.get("principal_balance")))
    c4.metric("Behind Schedule", format_number(summary.get("behind_count")),
              delta=format_currency(summary.get("principal_variance")), delta_color="inverse")

    top = summary.get("top_loans") or []
    if top:
        st.subheader("Largest balances")
        show_table(records_frame(top, ["loan_number", "client_name", "principal_balance", "branch"],
                                 numeric=("principal_balance",)))

    st.subheader("Loans")
    items = items_of(data)
    df = records_frame(
        items,
        ["loan_number", "client_name", "principal_amount", "principal_due_to_date", "principal_paid",
         "principal_balance", "principal_variance", "payment_compliance", "principal_standing"],
        numeric=("principal_amount", "principal_due_to_date", "principal_paid", "principal_balance",
                 "principal_variance", "payment_compliance"),
    )
    show_table(df, status_column="principal_standing", empty="No outstanding loans.")
    pagination_controls("principal", data.get("pagination"))
    details_picker(ctx, items, "principal")


# ═══════════════════════════════════════════════════════
# PAGE: LOAN DETAILS
# ═══════════════════════════════════════════════════════

def show_loan_details(ctx):
    page_banner("Loan Details", "Schedule, principal position and repayment history")

    typed = st.text_input("Loan ID", value=ctx.ui.get(SELECTED_LOAN_KEY) or "")
    loan_id = typed.strip()
    if not loan_id:
        st.info("Pick a loan from one of the loan lists, or enter its ID.")
        return
    ctx.ui[SELECTED_LOAN_KEY] = loan_id

    details = api_call(ctx.api.loans.details, loan_id)
    if not details:
        return
    loan = details.get("loan") or {}
    client = details.get("client") or {}
    principal = details.get("principal") or {}

    st.markdown(f"### {loan.get('loan_number', loan_id)} &nbsp; {status_badge(loan.get('status'))}",
                unsafe_allow_html=True)
    left, right = st.columns(2)
    with left:
        st.markdown(f"**Borrower:** {loan.get('client_name') or client.get('first_name', '-')}")
        st.markdown(f"**Phone:** {client.get('phone') or loan.get('client_phone') or '-'}")
        st.markdown(f"**Loan officer:** {loan.get('loan_officer_name') or '-'}")
        st.markdown(f"**Branch:** {loan.get('branch') or '-'}")
    with right:
        st.markdown(f"**Loan type:** {loan.get('loan_type_name') or '-'}")
        st.markdown(f"**Term:** {loan.get('term_months', '-')} months")
        st.markdown(f"**Disbursed:** {format_date(loan.get('disbursed_at'))}")
        st.markdown(f"**Next due:** {format_date(loan.get('next_due_date'))}")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Approved", format_currency(principal.get("principal_amount")))
    c2.metric("Paid", format_currency(principal.get("principal_paid")))
    c3.metric("Balance", format_currency(principal.get("principal_balance")))
    c4.metric("Compliance", format_percentage(principal.get("payment_compliance")))
    if loan.get("days_in_arrears"):
        st.warning(
            f"{loan['days_in_arrears']} days in arrears · "
            f"{format_currency(loan.get('arrears_amount'))} overdue ({loan.get('performance_class')})"
        )
    st.divider()

    tab_schedule, tab_repayments = st.tabs(["Repayment Schedule", "Repayments"])
    with tab_schedule:
        df = records_frame(details.get("schedule") or [],
                           ["installment", "due_date", "amount", "paid", "remaining", "status"],
                           numeric=("amount", "paid", "remaining"))
        show_table(df, status_column="status", empty="The schedule starts once the loan is disbursed.")
    with tab_repayments:
        df = records_frame(details.get("repayments") or [],
                           ["receipt_number", "payment_date", "amount", "payment_method", "received_by_name"],
                           numeric=("amount",))
        show_table(df, empty="No repayments recorded.")
