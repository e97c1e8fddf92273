"""
Recovery reports — portfolio views for admins and branch supervisors.

Endpoints:
    GET /no-repayment            → disbursed loans with nothing paid yet
    GET /past-maturity           → loans still owing after their maturity date
    GET /principal-outstanding   → principal due to date vs. principal paid

Supervisors only see their own branch (loan_scope).
"""

from collections import Counter
from datetime import date

from fastapi import APIRouter, Depends, HTTPException

from isoko_api.database import get_db
from isoko_api.dependencies import require_roles
from isoko_api.helpers import DEFAULT_LIMIT, as_utc, clean, ok, slice_page, to_float
from isoko_api.lending import (
    MATURITY_BUCKETS,
    no_repayment_risk,
    past_maturity_view,
    principal_position,
)
from isoko_api.routes.due_loans import outstanding_loans

router = APIRouter(tags=["Recovery"])

oversight = require_roles("admin", "supervisor")

NO_REPAYMENT_RISKS = ("low", "medium", "high", "critical")
URGENCY_LEVELS = ("medium", "high", "urgent", "immediate")
PRINCIPAL_STANDINGS = ("on_track", "behind")
TOP_LOANS = 5


def _matches(row: dict, search: str | None) -> bool:
    if not search:
        return True
    needle = search.strip().lower()
    return any(needle in str(row.get(f) or "").lower() for f in ("loan_number", "client_name", "client_phone"))


def _check_choice(value: str | None, choices: tuple, label: str):
    if value and value not in choices:
        raise HTTPException(status_code=422, detail=f"Unknown {label}: {value}")


# ════════════════════════════════════════════
# No repayment
# ════════════════════════════════════════════

@router.get("/no-repayment")
async def loans_with_no_repayment(
    branch: str | None = None,
    risk: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(oversight),
    db=Depends(get_db),
):
    _check_choice(risk, NO_REPAYMENT_RISKS, "risk category")
    today = date.today()

    rows = []
    for loan in await outstanding_loans(db, user, branch):
        if to_float(loan.get("amount_paid")) > 0:
            continue
        disbursed_at = as_utc(loan.get("disbursed_at"))
        days = max((today - disbursed_at.date()).days, 0) if disbursed_at else None
        rows.append({**clean(loan), "days_since_disbursement": days, "risk_category": no_repayment_risk(days)})

    rows.sort(key=lambda r: r["days_since_disbursement"] or 0, reverse=True)
    counts = Counter(r["risk_category"] for r in rows)
    amounts = Counter()
    for r in rows:
        amounts[r["risk_category"]] += to_float(r.get("approved_amount"))
    summary = {
        "count": len(rows),
        "amount_at_risk": round(sum(amounts.values()), 2),
        "by_risk": [
            {"risk_category": level, "count": counts.get(level, 0), "amount": round(amounts.get(level, 0.0), 2)}
            for level in NO_REPAYMENT_RISKS
        ],
    }

    rows = [r for r in rows if (not risk or r["risk_category"] == risk) and _matches(r, search)]
    data = slice_page(rows, page, limit)
    data["summary"] = summary
    return ok(data)


# ════════════════════════════════════════════
# Past maturity
# ════════════════════════════════════════════

@router.get("/past-maturity")
async def loans_past_maturity(
    branch: str | None = None,
    min_days: int = 1,
    urgency: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(oversight),
    db=Depends(get_db),
):
    _check_choice(urgency, URGENCY_LEVELS, "urgency")
    today = date.today()

    rows = []
    for loan in await outstanding_loans(db, user, branch):
        view = past_maturity_view(loan, today)
        if view["days_past_maturity"] and to_float(loan.get("balance")) > 0:
            rows.append({**clean(loan), **view})
    rows.sort(key=lambda r: r["days_past_maturity"], reverse=True)

    buckets = Counter(r["maturity_bucket"] for r in rows)
    summary = {
        "count": len(rows),
        "outstanding_amount": round(sum(to_float(r.get("balance")) for r in rows), 2),
        "critical_cases": sum(1 for r in rows if r["days_past_maturity"] > 90),
        "by_bucket": [{"bucket": b, "count": buckets.get(b, 0)} for b in MATURITY_BUCKETS],
    }

    rows = [
        r for r in rows
        if r["days_past_maturity"] >= min_days and (not urgency or r["urgency"] == urgency) and _matches(r, search)
    ]
    data = slice_page(rows, page, limit)
    data["summary"] = summary
    return ok(data)


# ════════════════════════════════════════════
# Principal outstanding
# ════════════════════════════════════════════

@router.get("/principal-outstanding")
async def principal_outstanding(
    branch: str | None = None,
    standing: str | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(oversight),
    db=Depends(get_db),
):
    _check_choice(standing, PRINCIPAL_STANDINGS, "standing")
    today = date.today()

    rows = [
        {**clean(loan), **principal_position(loan, today)}
        for loan in await outstanding_loans(db, user, branch)
    ]
    rows.sort(key=lambda r: r["principal_balance"], reverse=True)

    def total(field: str) -> float:
        return round(sum(r[field] for r in rows), 2)

    summary = {
        "count": len(rows),
        "principal_amount": total("principal_amount"),
        "principal_paid": total("principal_paid"),
        "principal_balance": total("principal_balance"),
        "principal_due_to_date": total("principal_due_to_date"),
        "principal_variance": total("principal_variance"),
        "behind_count": sum(1 for r in rows if r["principal_standing"] == "behind"),
        "top_loans": [
            {k: r.get(k) for k in ("id", "loan_number", "client_name", "principal_balance", "branch")}
            for r in rows[:TOP_LOANS]
        ],
    }

    rows = [r for r in rows if (not standing or r["principal_standing"] == standing) and _matches(r, search)]
    data = slice_page(rows, page, limit)
    data["summary"] = summary
    return ok(data)
