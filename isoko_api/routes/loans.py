"""
Loan routes.

GET  /loans                   → paginated list, scoped to the caller
GET  /loans/my-loans          → loans managed by the calling officer
GET  /loans/{id}              → one loan
POST /loans                   → new application (pending)
PUT  /loans/{id}/status       → approve / reject / disburse / close …
GET  /loans/{id}/repayments   → repayment history
GET  /loans/{id}/details      → loan, borrower, schedule, principal position, repayments
"""

import logging
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from isoko_api.database import get_db
from isoko_api.dependencies import client_scope, get_current_user, loan_scope, require_roles
from isoko_api.helpers import (
    DEFAULT_LIMIT,
    clean,
    find_page,
    object_id,
    ok,
    search_filter,
    to_float,
    utcnow,
)
from isoko_api.lending import (
    arrears_view,
    can_transition,
    disbursement_fields,
    principal_position,
    reference_number,
    repayment_schedule,
)
from isoko_api.models import LoanCreate, LoanStatusUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/loans", tags=["Loans"])

loan_desk = require_roles("loan-officer", "supervisor", "admin")

LOAN_SEARCH_FIELDS = ["loan_number", "client_name", "client_phone"]
# statuses a loan officer may set on their own loans
OFFICER_STATUSES = {"cancelled"}


def with_arrears(item: dict, today: date | None = None) -> dict:
    return {**item, **arrears_view(item, today or date.today())}


async def get_loan_for(db, loan_id: str, user: dict) -> dict:
    loan = await db.loans.find_one({"_id": object_id(loan_id, "Loan"), **loan_scope(user)})
    if loan is None:
        raise HTTPException(status_code=404, detail="Loan not found")
    return loan


async def _loan_page(db, query: dict, search, status, page, limit) -> dict:
    query = {**query, **search_filter(search, LOAN_SEARCH_FIELDS)}
    if status:
        query["status"] = status
    data = await find_page(db.loans, query, page, limit)
    today = date.today()
    data["items"] = [with_arrears(i, today) for i in data["items"]]
    return data


@router.get("")
async def list_loans(
    search: str | None = None,
    status: str | None = None,
    branch: str | None = None,
    client_id: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    query = loan_scope(user)
    if branch:
        query["branch"] = branch
    if client_id:
        query["client_id"] = client_id
    return ok(await _loan_page(db, query, search, status, page, limit))


@router.get("/my-loans")
async def my_loans(
    search: str | None = None,
    status: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(loan_desk),
    db=Depends(get_db),
):
    query = {"loan_officer_id": str(user["_id"])}
    return ok(await _loan_page(db, query, search, status, page, limit))


@router.get("/{loan_id}")
async def get_loan(loan_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    return ok(with_arrears(clean(await get_loan_for(db, loan_id, user))))


@router.post("", status_code=201)
async def create_loan(req: LoanCreate, user: dict = Depends(loan_desk), db=Depends(get_db)):
    client = await db.clients.find_one({"_id": object_id(req.client_id, "Client"), **client_scope(user)})
    if client is None:
        raise HTTPException(status_code=404, detail="Client not found")
    loan_type = await db.loan_types.find_one({"_id": object_id(req.loan_type_id, "Loan type")})
    if loan_type is None or not loan_type.get("is_active", True):
        raise HTTPException(status_code=404, detail="Loan type not found or inactive")

    lo, hi = to_float(loan_type.get("min_amount")), to_float(loan_type.get("max_amount"))
    if (lo and req.applied_amount < lo) or (hi and req.applied_amount > hi):
        raise HTTPException(status_code=422, detail="Amount is outside this loan type's limits")
    t_lo, t_hi = int(loan_type.get("min_term_months") or 1), int(loan_type.get("max_term_months") or 0)
    if req.term_months < t_lo or (t_hi and req.term_months > t_hi):
        raise HTTPException(status_code=422, detail="Term is outside this loan type's limits")

    officer_id = str(user["_id"]) if user["role"] == "loan-officer" else client.get("assigned_officer_id")
    officer = None
    if officer_id:
        officer = await db.users.find_one({"_id": object_id(officer_id, "Loan officer")})

    now = utcnow()
    doc = {
        **req.model_dump(),
        "loan_number": reference_number("LN", now),
        "client_name": f"{client.get('first_name', '')} {client.get('last_name', '')}".strip(),
        "client_phone": client.get("phone", ""),
        "loan_type_name": loan_type.get("name", ""),
        "interest_rate": loan_type.get("interest_rate"),
        "interest_period": loan_type.get("interest_period"),
        "loan_officer_id": officer_id,
        "loan_officer_name": f"{officer.get('first_name', '')} {officer.get('last_name', '')}".strip() if officer else "",
        "branch": client.get("branch", ""),
        "status": "pending",
        "approved_amount": None,
        "amount_paid": 0.0,
        "balance": 0.0,
        "installment_amount": 0.0,
        "next_due_date": None,
        "status_history": [{"status": "pending", "at": now, "by": str(user["_id"]), "notes": ""}],
        "created_at": now,
        "created_by": str(user["_id"]),
    }
    result = await db.loans.insert_one(doc)
    doc["_id"] = result.inserted_id
    logger.info("Loan %s applied for client %s", doc["loan_number"], doc["client_id"])
    return ok(clean(doc), "Loan application submitted")


@router.put("/{loan_id}/status")
async def update_loan_status(
    loan_id: str,
    req: LoanStatusUpdate,
    user: dict = Depends(loan_desk),
    db=Depends(get_db),
):
    loan = await get_loan_for(db, loan_id, user)
    if user["role"] == "loan-officer" and req.status not in OFFICER_STATUSES:
        raise HTTPException(status_code=403, detail="Insufficient permissions")
    current = loan.get("status", "pending")
    if not can_transition(current, req.status):
        raise HTTPException(status_code=400, detail=f"Cannot change status from {current} to {req.status}")

    now = utcnow()
    changes = {"status": req.status, "updated_at": now}
    if req.status == "approved":
        changes["approved_amount"] = req.approved_amount or to_float(loan.get("applied_amount"))
        changes["approved_by"] = str(user["_id"])
    elif req.status == "disbursed":
        changes.update(disbursement_fields(loan, now, req.approved_amount))

    entry = {"status": req.status, "at": now, "by": str(user["_id"]), "notes": req.notes}
    await db.loans.update_one({"_id": loan["_id"]}, {"$set": changes, "$push": {"status_history": entry}})
    loan.update(changes)
    logger.info("Loan %s: %s -> %s by %s", loan.get("loan_number"), current, req.status, user.get("email"))
    return ok(with_arrears(clean(loan)), "Status updated")


@router.get("/{loan_id}/repayments")
async def loan_repayments(loan_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    loan = await get_loan_for(db, loan_id, user)
    docs = await db.repayments.find({"loan_id": str(loan["_id"])}).sort("payment_date", -1).to_list(length=500)
    return ok({"items": [clean(d) for d in docs]})


@router.get("/{loan_id}/details")
async def loan_details(loan_id: str, user: dict = Depends(get_current_user), db=Depends(get_db)):
    loan = await get_loan_for(db, loan_id, user)
    today = date.today()
    client = None
    if loan.get("client_id"):
        client = await db.clients.find_one({"_id": object_id(loan["client_id"], "Client")})
    docs = await db.repayments.find({"loan_id": str(loan["_id"])}).sort("payment_date", -1).to_list(length=500)
    return ok({
        "loan": with_arrears(clean(loan), today),
        "client": clean(client),
        "schedule": repayment_schedule(loan, today),
        "principal": principal_position(loan, today),
        "repayments": [clean(d) for d in docs],
    })
