"""
Repayment routes.

GET  /repayments   → paginated list (search, date range, loan)
POST /repayments   → record a payment and post it to the loan
"""

import logging
from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException

from isoko_api.database import get_db
from isoko_api.dependencies import get_current_user, loan_scope, require_roles
from isoko_api.helpers import (
    DEFAULT_LIMIT,
    clean,
    find_page,
    object_id,
    ok,
    parse_day,
    search_filter,
    start_of,
    to_float,
    utcnow,
)
from isoko_api.lending import OUTSTANDING_STATUSES, posting_fields, reference_number
from isoko_api.models import RepaymentCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/repayments", tags=["Repayments"])

cash_desk = require_roles("cashier", "supervisor", "admin")


def date_range_filter(start_date: str | None, end_date: str | None, field: str = "payment_date") -> dict:
    start, end = parse_day(start_date), parse_day(end_date)
    bounds = {}
    if start:
        bounds["$gte"] = start_of(start)
    if end:
        bounds["$lt"] = start_of(end + timedelta(days=1))
    return {field: bounds} if bounds else {}


@router.get("")
async def list_repayments(
    search: str | None = None,
    start_date: str | None = None,
    end_date: str | None = None,
    loan_id: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    query = {
        **search_filter(search, ["receipt_number", "loan_number", "client_name", "reference"]),
        **date_range_filter(start_date, end_date),
    }
    scope = loan_scope(user)
    if "loan_officer_id" in scope:
        query["loan_officer_id"] = scope["loan_officer_id"]
    elif "branch" in scope:
        query["branch"] = scope["branch"]
    if loan_id:
        query["loan_id"] = loan_id
    return ok(await find_page(db.repayments, query, page, limit, sort=("payment_date", -1)))


@router.post("", status_code=201)
async def record_repayment(req: RepaymentCreate, user: dict = Depends(cash_desk), db=Depends(get_db)):
    loan = await db.loans.find_one({"_id": object_id(req.loan_id, "Loan"), **loan_scope(user)})
    if loan is None:
        raise HTTPException(status_code=404, detail="Loan not found")
    if loan.get("status") not in OUTSTANDING_STATUSES:
        raise HTTPException(status_code=400, detail=f"Cannot record a payment on a {loan.get('status')} loan")
    balance = to_float(loan.get("balance"))
    if req.amount > balance + 0.005:
        raise HTTPException(status_code=400, detail="Amount exceeds the outstanding balance")

    now = utcnow()
    paid_on = parse_day(req.payment_date)
    receipt = {
        "receipt_number": reference_number("RCP", now),
        "loan_id": str(loan["_id"]),
        "loan_number": loan.get("loan_number"),
        "client_id": loan.get("client_id"),
        "client_name": loan.get("client_name"),
        "loan_officer_id": loan.get("loan_officer_id"),
        "branch": loan.get("branch", ""),
        "amount": req.amount,
        "payment_method": req.payment_method,
        "reference": req.reference,
        "notes": req.notes,
        "payment_date": start_of(paid_on) if paid_on else now,
        "received_by": str(user["_id"]),
        "received_by_name": f"{user.get('first_name', '')} {user.get('last_name', '')}".strip(),
        "created_at": now,
    }
    result = await db.repayments.insert_one(receipt)
    receipt["_id"] = result.inserted_id

    changes = posting_fields(loan, req.amount)
    changes["updated_at"] = now
    await db.loans.update_one({"_id": loan["_id"]}, {"$set": changes})
    logger.info("Receipt %s: %.2f on loan %s", receipt["receipt_number"], req.amount, loan.get("loan_number"))
    return ok(clean(receipt), "Payment recorded")
