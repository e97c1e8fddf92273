"""
Cashier Dashboard — the cash desk.

Today's collections, repayment capture (POST /repayments), payment
records, the daily cash report and the due-collections list.
"""

from datetime import date, timedelta

import streamlit as st

from isoko_ui.formatters import format_currency, format_datetime, format_number
from isoko_ui.panels import fetch_panels
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

PAYMENT_METHODS = ["cash", "mobile_money", "bank_transfer", "cheque"]


def validate_repayment(values: dict) -> list[str]:
    errors = []
    if not values.get("loan_id"):
        errors.append("Choose a loan.")
    if (values.get("amount") or 0) <= 0:
        errors.append("Amount must be greater than zero.")
    if values.get("payment_method") not in PAYMENT_METHODS:
        errors.append("Choose a payment method.")
    if values.get("payment_method") in ("mobile_money", "bank_transfer", "cheque") and not values.get("reference"):
        errors.append("A reference is required for non-cash payments.")
    return errors


# ═══════════════════════════════════════════════════════
# PAGE: OVERVIEW
# ═══════════════════════════════════════════════════════

def show_overview(ctx):
    page_banner("Cashier Dashboard", "Today's cash desk")

    results = fetch_panels({
        "today": ctx.api.cashier.today_summary,
        "recent": lambda: ctx.api.cashier.recent_transactions(10),
        "due": ctx.api.cashier.due_today,
    })
    if results.all_failed:
        st.error("Dashboard data is unavailable right now. Please try again later.")
        return

    if not panel_error(results, "today"):
        today = results.data["today"] or {}
        c1, c2, c3 = st.columns(3)
        c1.metric("Collected Today", format_currency(today.get("total_collected")))
        c2.metric("Transactions", format_number(today.get("transactions")))
        c3.metric("Loans Due Today", format_number(today.get("due_count")))
    st.divider()

    st.subheader("Recent transactions")
    if not panel_error(results, "recent"):
        items = items_of(results.data["recent"])
        for item in items:
            item["payment_date"] = format_datetime(item.get("payment_date"))
        df = records_frame(
            items,
            ["receipt_number", "loan_number", "client_name", "amount", "payment_method", "payment_date"],
            numeric=("amount",),
        )
        show_table(df, empty="No payments recorded yet today.")
    st.divider()

    st.subheader("Due today")
    if not panel_error(results, "due"):
        df = records_frame(
            items_of(results.data["due"]),
            ["loan_number", "client_name", "client_phone", "installment_amount", "balance"],
            numeric=("installment_amount", "balance"),
        )
        show_table(df, empty="Nothing due today.")


# ═══════════════════════════════════════════════════════
# PAGE: RECORD PAYMENT
# ═══════════════════════════════════════════════════════

def show_record_payment(ctx):
    page_banner("Record Payment", "Capture a loan repayment")

    search = st.text_input("Find loan", placeholder="Loan number or borrower name")
    loans = items_of(api_call(ctx.api.loans.list, {"search": search, "status": "active", "limit": 25})) if search else []
    choices = {
        f"{l.get('loan_number')} · {l.get('client_name', '')} · balance {format_currency(l.get('balance'))}": l
        for l in loans
    }

    with st.form("record_payment", clear_on_submit=True):
        choice = st.selectbox("Loan", list(choices) or ["—"])
        loan = choices.get(choice)
        c1, c2 = st.columns(2)
        amount = c1.number_input(
            "Amount",
            min_value=0.0,
            value=float(loan.get("installment_amount") or 0) if loan else 0.0,
            step=500.0,
        )
        method = c2.selectbox("Method", PAYMENT_METHODS, format_func=lambda m: m.replace("_", " ").title())
        reference = c1.text_input("Reference")
        payment_date = c2.date_input("Payment date", value=date.today(), max_value=date.today())
        notes = st.text_input("Notes")
        submitted = st.form_submit_button("Record payment", type="primary")

    if not submitted:
        return

    values = {
        "loan_id": loan.get("id") if loan else None,
        "amount": amount,
        "payment_method": method,
        "reference": reference.strip(),
        "payment_date": payment_date.isoformat(),
        "notes": notes.strip(),
    }
    errors = validate_repayment(values)
    if errors:
        for err in errors:
            st.error(err)
        return
    api_submit(ctx.api.repayments.create, values, success="Payment recorded.")


# ═══════════════════════════════════════════════════════
# PAGE: PAYMENT RECORDS
# ═══════════════════════════════════════════════════════

def show_payment_records(ctx):
    page_banner("Payment Records", "All recorded repayments")

    f1, f2, f3 = st.columns(3)
    search = f1.text_input("Search", placeholder="Receipt, loan or borrower")
    start = f2.date_input("From", value=None)
    end = f3.date_input("To", value=None)

    data = api_call(ctx.api.repayments.list, {
        "search": search,
        "start_date": start.isoformat() if start else None,
        "end_date": end.isoformat() if end else None,
        "page": current_page("payments"),
        "limit": 20,
    })
    if data is None:
        return
    df = records_frame(
        items_of(data),
        ["receipt_number", "loan_number", "client_name", "amount", "payment_method",
         "reference", "payment_date", "received_by_name"],
        numeric=("amount",),
    )
    show_table(df, empty="No payments match these filters.")
    pagination_controls("payments", data.get("pagination") if isinstance(data, dict) else None)


# ═══════════════════════════════════════════════════════
# PAGE: DAILY REPORTS
# ═══════════════════════════════════════════════════════

def show_daily_reports(ctx):
    page_banner("Daily Reports", "Cash book by day")

    day = st.date_input("Report date", value=date.today(), max_value=date.today())
    report = api_call(ctx.api.cashier.daily_report, day.isoformat())
    if report is None:
        return

    c1, c2 = st.columns(2)
    c1.metric("Total Collected", format_currency(report.get("total_collected")))
    c2.metric("Transactions", format_number(report.get("transactions")))

    by_method = report.get("by_method") or []
    if by_method:
        st.subheader("By payment method")
        df = records_frame(by_method, ["payment_method", "count", "amount"], numeric=("count", "amount"))
        show_table(df)

    st.subheader("Transactions")
    df = records_frame(
        report.get("items") or [],
        ["receipt_number", "loan_number", "client_name", "amount", "payment_method", "received_by_name"],
        numeric=("amount",),
    )
    show_table(df, empty="No transactions on this day.")
    if not df.empty:
        st.download_button(
            "Download CSV",
            df.to_csv(index=False),
            file_name=f"daily_report_{day.isoformat()}.csv",
            mime="text/csv",
        )


# ═══════════════════════════════════════════════════════
# PAGE: DUE COLLECTIONS
# ═══════════════════════════════════════════════════════

def show_due_collections(ctx):
    page_banner("Due Collections", "Installments expected at the desk")

    days = st.slider("Look ahead (days)", min_value=0, max_value=30, value=7)
    today = date.today()
    data = api_call(ctx.api.due_loans.list, {
        "start_date": today.isoformat(),
        "end_date": (today + timedelta(days=days)).isoformat(),
        "page": current_page("due_collections"),
        "limit": 20,
    })
    if data is None:
        return
    df = records_frame(
        items_of(data),
        ["loan_number", "client_name", "client_phone", "installment_amount", "next_due_date", "balance"],
        numeric=("installment_amount", "balance"),
    )
    show_table(df, empty="Nothing due in this window.")
    pagination_controls("due_collections", data.get("pagination") if isinstance(data, dict) else None)
