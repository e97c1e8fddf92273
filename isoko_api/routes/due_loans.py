"""
Collections follow-up — read-only views over outstanding loans.

Endpoints:
    GET /due-loans            → installments due in a date window
    GET /due-loans/summary    → count / amount due / already overdue
    GET /due-loans/export     → the due list as CSV
    GET /loans-in-arrears     → overdue loans with arrears amount and class
    GET /missed-repayments    → overdue installments, most overdue first
"""

from datetime import date, timedelta

import pandas as pd
from fastapi import APIRouter, Depends
from fastapi.responses import Response

from isoko_api.database import get_db
from isoko_api.dependencies import get_current_user, loan_scope
from isoko_api.helpers import DEFAULT_LIMIT, MAX_LIMIT, as_utc, clean, ok, parse_day, slice_page, to_float
from isoko_api.lending import OUTSTANDING_STATUSES, arrears_view, portfolio_at_risk

router = APIRouter(tags=["Collections"])

DUE_WINDOW_DAYS = 7
EXPORT_COLUMNS = [
    "loan_number", "client_name", "client_phone", "next_due_date",
    "installment_amount", "balance", "loan_officer_name", "branch",
]


# ────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────

async def outstanding_loans(db, user: dict, branch: str | None = None) -> list[dict]:
    query = {**loan_scope(user), "status": {"$in": list(OUTSTANDING_STATUSES)}}
    if branch:
        query["branch"] = branch
    return await db.loans.find(query).to_list(length=None)


def _due_day(loan: dict) -> date | None:
    due = as_utc(loan.get("next_due_date"))
    return due.date() if due else None


def _window(start_date: str | None, end_date: str | None) -> tuple[date, date]:
    start = parse_day(start_date) or date.today()
    end = parse_day(end_date) or start + timedelta(days=DUE_WINDOW_DAYS)
    return start, end


def due_in_window(loans: list[dict], start: date, end: date) -> list[dict]:
    due = [l for l in loans if _due_day(l) and start <= _due_day(l) <= end]
    due.sort(key=_due_day)
    return [clean(l) for l in due]


def overdue(loans: list[dict], today: date) -> list[dict]:
    """Cleaned overdue loans with their arrears view, most overdue first."""
    rows = []
    for loan in loans:
        view = arrears_view(loan, today)
        if view["days_in_arrears"]:
            rows.append({**clean(loan), **view})
    rows.sort(key=lambda r: r["days_in_arrears"], reverse=True)
    return rows


def _amount_due(loan: dict) -> float:
    return min(to_float(loan.get("installment_amount")), to_float(loan.get("balance")))


# ════════════════════════════════════════════
# Due loans
# ════════════════════════════════════════════

@router.get("/due-loans", tags=["Due Loans"])
async def list_due_loans(
    start_date: str | None = None,
    end_date: str | None = None,
    branch: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    start, end = _window(start_date, end_date)
    loans = await outstanding_loans(db, user, branch)
    return ok(slice_page(due_in_window(loans, start, end), page, limit))


@router.get("/due-loans/summary", tags=["Due Loans"])
async def due_loans_summary(
    start_date: str | None = None,
    end_date: str | None = None,
    branch: str | None = None,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    start, end = _window(start_date, end_date)
    loans = await outstanding_loans(db, user, branch)
    due = due_in_window(loans, start, end)
    return ok({
        "count": len(due),
        "amount_due": round(sum(_amount_due(l) for l in due), 2),
        "overdue_count": len(overdue(loans, date.today())),
    })


@router.get("/due-loans/export", tags=["Due Loans"])
async def export_due_loans(
    start_date: str | None = None,
    end_date: str | None = None,
    branch: str | None = None,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    start, end = _window(start_date, end_date)
    loans = await outstanding_loans(db, user, branch)
    df = pd.DataFrame(due_in_window(loans, start, end), columns=EXPORT_COLUMNS)
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="due_loans_{start}_{end}.csv"'},
    )


# ════════════════════════════════════════════
# Arrears
# ════════════════════════════════════════════

@router.get("/loans-in-arrears", tags=["Arrears"])
async def loans_in_arrears(
    branch: str | None = None,
    min_days: int = 1,
    page: int = 1,
    limit: int = DEFAULT_LIMIT,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    today = date.today()
    loans = await outstanding_loans(db, user, branch)
    rows = [r for r in overdue(loans, today) if r["days_in_arrears"] >= min_days]
    data = slice_page(rows, page, limit)
    data["summary"] = {
        "count": len(rows),
        "arrears_amount": round(sum(r["arrears_amount"] for r in rows), 2),
        "portfolio_at_risk": portfolio_at_risk(loans, today),
    }
    return ok(data)


@router.get("/missed-repayments", tags=["Arrears"])
async def missed_repayments(
    branch: str | None = None,
    page: int = 1,
    limit: int = MAX_LIMIT,
    user: dict = Depends(get_current_user),
    db=Depends(get_db),
):
    loans = await outstanding_loans(db, user, branch)
    rows = [{**r, "days_overdue": r["days_in_arrears"]} for r in overdue(loans, date.today())]
    return ok(slice_page(rows, page, limit))
