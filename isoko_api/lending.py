"""
Loan bookkeeping — status transitions, disbursement, repayment posting
and arrears classification, plus the read-only views behind the recovery
reports (schedule, principal position, no-repayment risk, past maturity).

Amounts are tracked as principal only: the installment is the approved
amount spread evenly over the term, one installment every
INSTALLMENT_DAYS. Interest schedules are not computed here.
"""

import uuid
from datetime import date, datetime, timedelta

from isoko_api.helpers import as_utc, to_float

INSTALLMENT_DAYS = 30
OUTSTANDING_STATUSES = ("disbursed", "active")

ALLOWED_TRANSITIONS = {
    "pending": {"approved", "rejected", "cancelled"},
    "approved": {"disbursed", "cancelled"},
    "disbursed": {"active", "defaulted"},
    "active": {"completed", "defaulted"},
    "defaulted": {"active"},
    "completed": set(),
    "rejected": set(),
    "cancelled": set(),
}

# (upper bound in days, class); anything beyond the last bound is "loss"
_PERFORMANCE_BANDS = ((0, "performing"), (30, "watch"), (90, "substandard"), (180, "doubtful"))
# days since disbursement without any payment
_NO_REPAYMENT_BANDS = ((30, "low"), (90, "medium"), (180, "high"))
# days past maturity: (upper bound, bucket label, urgency)
_MATURITY_BANDS = (
    (7, "1-7", "medium"),
    (30, "8-30", "high"),
    (90, "31-90", "urgent"),
    (180, "91-180", "immediate"),
    (365, "181-365", "immediate"),
)
MATURITY_BUCKETS = tuple(label for _, label, _ in _MATURITY_BANDS) + ("365+",)


def reference_number(prefix: str, now: datetime) -> str:
    """e.g. LN-20240105-3F9A1C"""
    return f"{prefix}-{now:%Y%m%d}-{uuid.uuid4().hex[:6].upper()}"


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, set())


def performance_class(days_in_arrears: int) -> str:
    for bound, label in _PERFORMANCE_BANDS:
        if days_in_arrears <= bound:
            return label
    return "loss"


def disbursement_fields(loan: dict, now: datetime, approved_amount: float | None = None) -> dict:
    amount = approved_amount or to_float(loan.get("approved_amount")) or to_float(loan.get("applied_amount"))
    term = max(int(loan.get("term_months") or 1), 1)
    return {
        "approved_amount": amount,
        "balance": amount,
        "amount_paid": 0.0,
        "installment_amount": round(amount / term, 2),
        "disbursed_at": now,
        "next_due_date": now + timedelta(days=INSTALLMENT_DAYS),
        "maturity_date": now + timedelta(days=INSTALLMENT_DAYS * term),
    }


def posting_fields(loan: dict, amount: float) -> dict:
    """Loan fields after a repayment of `amount` is posted."""
    paid = round(to_float(loan.get("amount_paid")) + amount, 2)
    balance = round(max(to_float(loan.get("approved_amount")) - paid, 0.0), 2)
    installment = to_float(loan.get("installment_amount"))
    fields = {"amount_paid": paid, "balance": balance}

    if balance <= 0:
        fields.update(status="completed", next_due_date=None)
        return fields

    fields["status"] = "active"
    disbursed_at = as_utc(loan.get("disbursed_at"))
    if disbursed_at and installment > 0:
        covered = int(paid // installment)
        fields["next_due_date"] = disbursed_at + timedelta(days=INSTALLMENT_DAYS * (covered + 1))
    return fields


def arrears_view(loan: dict, today: date) -> dict:
    """Days late, amount late and performance class of an outstanding loan."""
    due = as_utc(loan.get("next_due_date"))
    days = 0
    if loan.get("status") in OUTSTANDING_STATUSES and due is not None:
        days = max((today - due.date()).days, 0)

    arrears_amount = 0.0
    if days:
        missed = days // INSTALLMENT_DAYS + 1
        arrears_amount = round(min(missed * to_float(loan.get("installment_amount")),
                                   to_float(loan.get("balance"))), 2)
    return {
        "days_in_arrears": days,
        "arrears_amount": arrears_amount,
        "performance_class": performance_class(days),
    }


def portfolio_at_risk(loans: list[dict], today: date) -> float:
    """Percent of outstanding balance held by loans with any arrears."""
    outstanding = [l for l in loans if l.get("status") in OUTSTANDING_STATUSES]
    total = sum(to_float(l.get("balance")) for l in outstanding)
    if not total:
        return 0.0
    at_risk = sum(to_float(l.get("balance")) for l in outstanding if arrears_view(l, today)["days_in_arrears"])
    return round(at_risk / total * 100, 2)


def _term(loan: dict) -> int:
    return max(int(loan.get("term_months") or 1), 1)


def maturity_date(loan: dict) -> datetime | None:
    """Last installment date; loans disbursed before it was stored get it derived."""
    stored = as_utc(loan.get("maturity_date"))
    if stored is not None:
        return stored
    disbursed_at = as_utc(loan.get("disbursed_at"))
    if disbursed_at is None:
        return None
    return disbursed_at + timedelta(days=INSTALLMENT_DAYS * _term(loan))


def repayment_schedule(loan: dict, today: date) -> list[dict]:
    """Principal installments with what has been paid against each, oldest first.

    The last installment absorbs the rounding so the schedule sums to the
    approved amount. Undisbursed loans have no schedule.
    """
    disbursed_at = as_utc(loan.get("disbursed_at"))
    if disbursed_at is None:
        return []
    approved = to_float(loan.get("approved_amount"))
    term = _term(loan)
    installment = to_float(loan.get("installment_amount")) or round(approved / term, 2)
    unallocated = to_float(loan.get("amount_paid"))

    rows = []
    for number in range(1, term + 1):
        amount = installment if number < term else round(approved - installment * (term - 1), 2)
        paid = round(min(unallocated, amount), 2)
        unallocated = round(unallocated - paid, 2)
        due = disbursed_at + timedelta(days=INSTALLMENT_DAYS * number)
        if paid >= amount:
            status = "paid"
        elif due.date() < today:
            status = "overdue"
        elif paid:
            status = "partial"
        else:
            status = "upcoming"
        rows.append({
            "installment": number,
            "due_date": due.isoformat(),
            "amount": amount,
            "paid": paid,
            "remaining": round(amount - paid, 2),
            "status": status,
        })
    return rows


def principal_position(loan: dict, today: date) -> dict:
    """Principal expected by `today` against principal actually paid.

    A positive variance means the borrower is behind schedule.
    """
    approved = to_float(loan.get("approved_amount"))
    paid = to_float(loan.get("amount_paid"))
    disbursed_at = as_utc(loan.get("disbursed_at"))

    term = _term(loan)
    installment = to_float(loan.get("installment_amount")) or round(approved / term, 2)

    due_to_date = 0.0
    if disbursed_at is not None:
        installments_due = min(max((today - disbursed_at.date()).days, 0) // INSTALLMENT_DAYS, term)
        due_to_date = approved if installments_due == term else round(installments_due * installment, 2)

    variance = round(due_to_date - paid, 2)
    balance = round(max(approved - paid, 0.0), 2)
    compliance = round(min(paid / due_to_date, 1.0) * 100, 2) if due_to_date else 100.0
    if balance <= 0:
        standing = "completed"
    elif variance > 0:
        standing = "behind"
    else:
        standing = "on_track"
    return {
        "principal_amount": approved,
        "principal_paid": round(paid, 2),
        "principal_balance": balance,
        "principal_due_to_date": due_to_date,
        "principal_variance": variance,
        "payment_compliance": compliance,
        "principal_standing": standing,
    }


def no_repayment_risk(days_since_disbursement: int | None) -> str:
    if days_since_disbursement is None:
        return "not_disbursed"
    for bound, label in _NO_REPAYMENT_BANDS:
        if days_since_disbursement <= bound:
            return label
    return "critical"


def past_maturity_view(loan: dict, today: date) -> dict:
    """Days past maturity with its day bucket and follow-up urgency."""
    matures = maturity_date(loan)
    days = max((today - matures.date()).days, 0) if matures else 0
    bucket, urgency = None, None
    if days:
        bucket, urgency = "365+", "immediate"
        for bound, label, level in _MATURITY_BANDS:
            if days <= bound:
                bucket, urgency = label, level
                break
    return {
        "maturity_date": matures.isoformat() if matures else None,
        "days_past_maturity": days,
        "maturity_bucket": bucket,
        "urgency": urgency,
    }
