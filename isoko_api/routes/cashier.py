"""
Cashier desk API — today's collections and the daily cash book.

Endpoints:
    GET /cashier/summary/today          → collected today, transactions, loans due today
    GET /cashier/transactions/recent    → latest receipts
    GET /cashier/loans/due-today        → installments due today
    GET /cashier/reports/daily?date=    → one day's receipts grouped by method
"""

from datetime import date, timedelta

from fastapi import APIRouter, Depends, Query

from isoko_api.database import get_db
from isoko_api.dependencies import require_roles
from isoko_api.helpers import clean, ok, parse_day, start_of, to_float
from isoko_api.routes.due_loans import due_in_window, outstanding_loans

router = APIRouter(prefix="/cashier", tags=["Cashier"])

cash_desk = require_roles("cashier", "supervisor", "admin")


async def _receipts_on(db, day: date) -> list[dict]:
    query = {"payment_date": {"$gte": start_of(day), "$lt": start_of(day + timedelta(days=1))}}
    return await db.repayments.find(query).sort("payment_date", -1).to_list(length=None)


def _by_method(receipts: list[dict]) -> list[dict]:
    groups: dict[str, dict] = {}
    for r in receipts:
        method = r.get("payment_method") or "cash"
        group = groups.setdefault(method, {"payment_method": method, "count": 0, "amount": 0.0})
        group["count"] += 1
        group["amount"] = round(group["amount"] + to_float(r.get("amount")), 2)
    return sorted(groups.values(), key=lambda g: g["amount"], reverse=True)


@router.get("/summary/today")
async def today_summary(user: dict = Depends(cash_desk), db=Depends(get_db)):
    today = date.today()
    receipts = await _receipts_on(db, today)
    due = due_in_window(await outstanding_loans(db, user), today, today)
    return ok({
        "date": today.isoformat(),
        "total_collected": round(sum(to_float(r.get("amount")) for r in receipts), 2),
        "transactions": len(receipts),
        "due_count": len(due),
    })


@router.get("/transactions/recent")
async def recent_transactions(
    limit: int = Query(10, ge=1, le=100),
    _: dict = Depends(cash_desk),
    db=Depends(get_db),
):
    docs = await db.repayments.find({}).sort("payment_date", -1).limit(limit).to_list(length=limit)
    return ok({"items": [clean(d) for d in docs]})


@router.get("/loans/due-today")
async def due_today(user: dict = Depends(cash_desk), db=Depends(get_db)):
    today = date.today()
    return ok({"items": due_in_window(await outstanding_loans(db, user), today, today)})


@router.get("/reports/daily")
async def daily_report(
    report_date: str | None = Query(None, alias="date"),
    _: dict = Depends(cash_desk),
    db=Depends(get_db),
):
    day = parse_day(report_date) or date.today()
    receipts = await _receipts_on(db, day)
    return ok({
        "date": day.isoformat(),
        "total_collected": round(sum(to_float(r.get("amount")) for r in receipts), 2),
        "transactions": len(receipts),
        "by_method": _by_method(receipts),
        "items": [clean(r) for r in receipts],
    })
