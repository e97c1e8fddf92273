"""
Dashboard statistics — portfolio headline figures, scoped to the caller
(an officer sees their own book, a supervisor their branch, admins all).

GET /dashboard/stats
"""

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends

from isoko_api.database import get_db
from isoko_api.dependencies import client_scope, get_current_user, loan_scope
from isoko_api.helpers import ok, to_float
from isoko_api.lending import OUTSTANDING_STATUSES, arrears_view

router = APIRouter(prefix="/dashboard", tags=["Dashboard"])


@router.get("/stats")
async def dashboard_stats(user: dict = Depends(get_current_user), db=Depends(get_db)):
    today = date.today()
    total_clients = await db.clients.count_documents(client_scope(user))
    loans = await db.loans.find(loan_scope(user)).to_list(length=None)

    outstanding = [l for l in loans if l.get("status") in OUTSTANDING_STATUSES]
    arrears = [arrears_view(l, today) for l in outstanding]
    in_arrears = [a for a in arrears if a["days_in_arrears"]]
    statuses = Counter(l.get("status", "pending") for l in loans)

    return ok({
        "total_clients": total_clients,
        "total_loans": len(loans),
        "active_loans": len(outstanding),
        "pending_applications": statuses.get("pending", 0),
        "total_disbursed": round(sum(to_float(l.get("approved_amount")) for l in loans if l.get("disbursed_at")), 2),
        "total_outstanding": round(sum(to_float(l.get("balance")) for l in outstanding), 2),
        "total_collected": round(sum(to_float(l.get("amount_paid")) for l in loans), 2),
        "loans_in_arrears": len(in_arrears),
        "arrears_amount": round(sum(a["arrears_amount"] for a in in_arrears), 2),
        "status_distribution": [{"status": s, "count": c} for s, c in sorted(statuses.items())],
    })
