"""
Supervisor API — team oversight for a branch (all branches for admins).

Endpoints:
    GET /supervisor/team/members              → loan officers and cashiers
    GET /supervisor/team/stats                → team size and portfolio totals
    GET /supervisor/metrics/team-performance  → per-officer portfolio figures
"""

from collections import defaultdict
from datetime import date

from fastapi import APIRouter, Depends

from isoko_api.database import get_db
from isoko_api.dependencies import loan_scope, require_roles
from isoko_api.helpers import clean, ok, to_float
from isoko_api.lending import OUTSTANDING_STATUSES, arrears_view, portfolio_at_risk
from isoko_api.routes.auth import public_user

router = APIRouter(prefix="/supervisor", tags=["Supervisor"])

supervisors = require_roles("supervisor", "admin")

TEAM_ROLES = ["loan-officer", "loan_officer", "cashier"]


def _team_query(user: dict) -> dict:
    query = {"role": {"$in": TEAM_ROLES}}
    if user["role"] == "supervisor" and user.get("branch"):
        query["branch"] = user["branch"]
    return query


@router.get("/team/members")
async def team_members(user: dict = Depends(supervisors), db=Depends(get_db)):
    docs = await db.users.find(_team_query(user)).sort("last_name", 1).to_list(length=500)
    return ok({"items": [public_user(d) for d in docs]})


@router.get("/team/stats")
async def team_stats(user: dict = Depends(supervisors), db=Depends(get_db)):
    team_size = await db.users.count_documents({**_team_query(user), "status": "active"})
    loans = await db.loans.find(loan_scope(user)).to_list(length=None)
    outstanding = [l for l in loans if l.get("status") in OUTSTANDING_STATUSES]
    return ok({
        "team_size": team_size,
        "active_loans": len(outstanding),
        "pending_applications": sum(1 for l in loans if l.get("status") == "pending"),
        "total_outstanding": round(sum(to_float(l.get("balance")) for l in outstanding), 2),
        "portfolio_at_risk": portfolio_at_risk(loans, date.today()),
    })


@router.get("/metrics/team-performance")
async def team_performance(user: dict = Depends(supervisors), db=Depends(get_db)):
    today = date.today()
    loans = await db.loans.find(loan_scope(user)).to_list(length=None)

    rows: dict[str, dict] = defaultdict(lambda: {
        "officer_name": "",
        "loans_count": 0,
        "total_disbursed": 0.0,
        "total_collected": 0.0,
        "arrears_amount": 0.0,
    })
    for loan in loans:
        officer_id = loan.get("loan_officer_id") or "unassigned"
        row = rows[officer_id]
        row["officer_id"] = officer_id
        row["officer_name"] = loan.get("loan_officer_name") or "Unassigned"
        row["loans_count"] += 1
        if loan.get("disbursed_at"):
            row["total_disbursed"] += to_float(loan.get("approved_amount"))
        row["total_collected"] += to_float(loan.get("amount_paid"))
        row["arrears_amount"] += arrears_view(loan, today)["arrears_amount"]

    items = []
    for row in rows.values():
        disbursed = row["total_disbursed"]
        row["collection_rate"] = round(row["total_collected"] / disbursed * 100, 2) if disbursed else 0.0
        items.append(clean({k: round(v, 2) if isinstance(v, float) else v for k, v in row.items()}))
    items.sort(key=lambda r: r["collection_rate"], reverse=True)
    return ok({"items": items})
