"""
Borrower (client) screens and the loan application form.

Shared by loan officers, supervisors and admins.
"""

from datetime import date

import streamlit as st

from isoko_ui.formatters import format_currency, format_phone_number
from isoko_ui.roles import Role
from isoko_ui.widgets import (
    api_call,
    api_submit,
    current_page,
    items_of,
    page_banner,
    pagination_controls,
    records_frame,
    show_table,
)

GENDERS = ["female", "male", "other"]
EMPLOYMENT = ["employed", "self_employed", "unemployed", "student", "retired"]
MAX_UPLOAD_BYTES = 5 * 1024 * 1024


def validate_borrower(values: dict) -> list[str]:
    """Client-side checks before POST /clients."""
    errors = []
    for field, label in (("first_name", "First name"), ("last_name", "Last name"),
                         ("phone", "Phone"), ("national_id", "National ID")):
        if not (values.get(field) or "").strip():
            errors.append(f"{label} is required.")
    phone = "".join(ch for ch in values.get("phone") or "" if ch.isdigit())
    if phone and len(phone) not in (10, 12):
        errors.append("Phone must have 10 digits (07…) or 12 digits (250…).")
    national_id = (values.get("national_id") or "").strip()
    if national_id and (not national_id.isdigit() or len(national_id) != 16):
        errors.append("National ID must be 16 digits.")
    income = values.get("monthly_income")
    if income is not None and income < 0:
        errors.append("Monthly income cannot be negative.")
    return errors


# ═══════════════════════════════════════════════════════
# PAGE: CLIENT MANAGEMENT
# ═══════════════════════════════════════════════════════

def show_clients(ctx):
    page_banner("Client Management", "Borrowers and their loans")

    c1, c2 = st.columns([3, 1])
    search = c1.text_input("Search", placeholder="Name, phone or national ID")
    mine_only = ctx.user.role == Role.LOAN_OFFICER or c2.checkbox("Only my borrowers")

    data = api_call(ctx.api.clients.list, {
        "search": search,
        "assigned_to_me": "true" if mine_only else "",
        "page": current_page("clients"),
        "limit": 20,
    })
    if data is None:
        return
    items = items_of(data)
    for item in items:
        item["phone"] = format_phone_number(item.get("phone"))
    df = records_frame(
        items,
        ["id", "client_number", "first_name", "last_name", "phone", "national_id", "branch", "status"],
    )
    show_table(df, status_column="status", empty="No borrowers found.")
    pagination_controls("clients", data.get("pagination") if isinstance(data, dict) else None)
    st.divider()

    st.subheader("Borrower loans")
    client_id = st.text_input("Client ID", key="client_loans_id")
    if client_id:
        loans = api_call(ctx.api.clients.loans, client_id.strip())
        if loans is not None:
            df = records_frame(
                items_of(loans),
                ["loan_number", "loan_type_name", "applied_amount", "balance", "status", "next_due_date"],
                numeric=("applied_amount", "balance"),
            )
            show_table(df, status_column="status", empty="This borrower has no loans.")


# ═══════════════════════════════════════════════════════
# PAGE: ADD BORROWER
# ═══════════════════════════════════════════════════════

def show_add_borrower(ctx):
    page_banner("Add Borrower", "Register a new client")

    with st.form("add_borrower", clear_on_submit=False):
        c1, c2, c3 = st.columns(3)
        values = {
            "first_name": c1.text_input("First name"),
            "last_name": c2.text_input("Last name"),
            "gender": c3.selectbox("Gender", GENDERS),
            "date_of_birth": c1.date_input("Date of birth", value=None, max_value=date.today()),
            "national_id": c2.text_input("National ID"),
            "phone": c3.text_input("Phone"),
            "email": c1.text_input("Email"),
            "address": c2.text_input("Address"),
            "branch": c3.text_input("Branch", value=ctx.user.branch),
            "occupation": c1.text_input("Occupation"),
            "employment_status": c2.selectbox("Employment", EMPLOYMENT),
            "monthly_income": c3.number_input("Monthly income", min_value=0.0, value=0.0),
        }
        photo = st.file_uploader("Photo", type=["jpg", "jpeg", "png"])
        document = st.file_uploader("ID / supporting document", type=["pdf", "jpg", "jpeg", "png"])
        submitted = st.form_submit_button("Save borrower")

    if not submitted:
        return

    errors = validate_borrower(values)
    for upload in (photo, document):
        if upload is not None and upload.size > MAX_UPLOAD_BYTES:
            errors.append(f"{upload.name} is larger than 5 MB.")
    if errors:
        for err in errors:
            st.error(err)
        return

    payload = {k: (v.strip() if isinstance(v, str) else v) for k, v in values.items()}
    if payload["date_of_birth"]:
        payload["date_of_birth"] = payload["date_of_birth"].isoformat()
    created = api_call(ctx.api.clients.create, payload)
    if created is None:
        return
    st.success(f"Borrower {created.get('client_number', '')} created.")

    for file_type, upload in (("photo", photo), ("document", document)):
        if upload is None:
            continue
        api_submit(
            ctx.api.clients.upload_file,
            created["id"],
            file_type,
            upload.name,
            upload.getvalue(),
            upload.type or "application/octet-stream",
            success=f"{file_type.title()} uploaded.",
        )


# ═══════════════════════════════════════════════════════
# PAGE: ADD LOAN
# ═══════════════════════════════════════════════════════

def validate_loan(values: dict, loan_type: dict | None) -> list[str]:
    errors = []
    if not values.get("client_id"):
        errors.append("Choose a borrower.")
    if loan_type is None:
        errors.append("Choose a loan type.")
        return errors
    amount = values.get("applied_amount") or 0
    if amount <= 0:
        errors.append("Amount must be greater than zero.")
    lo, hi = float(loan_type.get("min_amount") or 0), float(loan_type.get("max_amount") or 0)
    if amount and lo and amount < lo:
        errors.append(f"Amount is below this product's minimum ({format_currency(lo)}).")
    if amount and hi and amount > hi:
        errors.append(f"Amount is above this product's maximum ({format_currency(hi)}).")
    term = values.get("term_months") or 0
    t_lo, t_hi = int(loan_type.get("min_term_months") or 1), int(loan_type.get("max_term_months") or 0)
    if term < t_lo or (t_hi and term > t_hi):
        errors.append(f"Term must be between {t_lo} and {t_hi or '∞'} months.")
    return errors


def show_add_loan(ctx):
    page_banner("New Loan Application", "Capture an application for review")

    types = items_of(api_call(ctx.api.loan_types.list, {"is_active": "true", "limit": 100}))
    if not types:
        st.info("No active loan types. An administrator must configure one first.")
        return

    search = st.text_input("Find borrower", placeholder="Name, phone or national ID")
    clients = items_of(api_call(ctx.api.clients.list, {"search": search, "limit": 50})) if search else []
    client_labels = {f"{c.get('first_name', '')} {c.get('last_name', '')} · {c.get('client_number', '')}": c["id"]
                     for c in clients}
    type_labels = {f"{t.get('code')} — {t.get('name')}": t for t in types}

    with st.form("add_loan"):
        c1, c2 = st.columns(2)
        client_choice = c1.selectbox("Borrower", list(client_labels) or ["—"])
        type_choice = c2.selectbox("Loan type", list(type_labels))
        applied_amount = c1.number_input("Amount requested", min_value=0.0, value=0.0, step=1000.0)
        term_months = c2.number_input("Term (months)", min_value=1, value=6)
        purpose = st.text_area("Purpose")
        submitted = st.form_submit_button("Submit application")

    if not submitted:
        return

    loan_type = type_labels.get(type_choice)
    values = {
        "client_id": client_labels.get(client_choice),
        "loan_type_id": loan_type["id"] if loan_type else None,
        "applied_amount": applied_amount,
        "term_months": int(term_months),
        "purpose": purpose.strip(),
    }
    errors = validate_loan(values, loan_type)
    if errors:
        for err in errors:
            st.error(err)
        return
    api_submit(ctx.api.loans.create, values, success="Loan application submitted.")
