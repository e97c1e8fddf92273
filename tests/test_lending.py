from datetime import date, datetime, timezone

import pytest

from isoko_api.lending import (
    arrears_view,
    can_transition,
    disbursement_fields,
    maturity_date,
    no_repayment_risk,
    past_maturity_view,
    performance_class,
    portfolio_at_risk,
    posting_fields,
    principal_position,
    reference_number,
    repayment_schedule,
)

DISBURSED = datetime(2024, 1, 1, tzinfo=timezone.utc)


def active_loan(**extra):
    loan = {
        "status": "active",
        "approved_amount": 120000.0,
        "installment_amount": 10000.0,
        "amount_paid": 0.0,
        "balance": 120000.0,
        "disbursed_at": DISBURSED,
        "next_due_date": datetime(2024, 1, 31, tzinfo=timezone.utc),
    }
    loan.update(extra)
    return loan


@pytest.mark.parametrize("days, label", [
    (0, "performing"),
    (1, "watch"),
    (30, "watch"),
    (31, "substandard"),
    (90, "substandard"),
    (180, "doubtful"),
    (181, "loss"),
])
def test_performance_class(days, label):
    assert performance_class(days) == label


def test_transitions():
    assert can_transition("pending", "approved")
    assert can_transition("approved", "disbursed")
    assert can_transition("defaulted", "active")
    assert not can_transition("pending", "disbursed")
    assert not can_transition("completed", "active")
    assert not can_transition("unknown", "approved")


def test_reference_number_format():
    ref = reference_number("LN", datetime(2024, 1, 5))
    assert ref.startswith("LN-20240105-")
    assert len(ref.split("-")[-1]) == 6


def test_disbursement_fields():
    loan = {"applied_amount": "100000", "term_months": 4}
    fields = disbursement_fields(loan, DISBURSED, approved_amount=90000.0)
    assert fields["approved_amount"] == 90000.0
    assert fields["balance"] == 90000.0
    assert fields["installment_amount"] == 22500.0
    assert fields["next_due_date"] == datetime(2024, 1, 31, tzinfo=timezone.utc)
    assert fields["maturity_date"] == datetime(2024, 4, 30, tzinfo=timezone.utc)

    fallback = disbursement_fields(loan, DISBURSED)
    assert fallback["approved_amount"] == 100000.0


def test_posting_advances_due_date():
    fields = posting_fields(active_loan(), 25000.0)
    assert fields["amount_paid"] == 25000.0
    assert fields["balance"] == 95000.0
    assert fields["status"] == "active"
    # two full installments covered, so the third falls due
    assert fields["next_due_date"] == datetime(2024, 3, 31, tzinfo=timezone.utc)


def test_posting_last_payment_completes_loan():
    loan = active_loan(amount_paid=110000.0, balance=10000.0)
    fields = posting_fields(loan, 10000.0)
    assert fields["balance"] == 0.0
    assert fields["status"] == "completed"
    assert fields["next_due_date"] is None


def test_arrears_view_current_loan():
    view = arrears_view(active_loan(), date(2024, 1, 20))
    assert view == {"days_in_arrears": 0, "arrears_amount": 0.0, "performance_class": "performing"}


def test_arrears_view_late_loan():
    view = arrears_view(active_loan(), date(2024, 3, 11))
    assert view["days_in_arrears"] == 40
    assert view["arrears_amount"] == 20000.0
    assert view["performance_class"] == "substandard"


def test_arrears_capped_at_balance():
    view = arrears_view(active_loan(balance=5000.0), date(2024, 6, 1))
    assert view["arrears_amount"] == 5000.0


def test_closed_loans_are_never_in_arrears():
    view = arrears_view(active_loan(status="completed"), date(2025, 1, 1))
    assert view["days_in_arrears"] == 0


def test_portfolio_at_risk():
    today = date(2024, 2, 15)
    loans = [
        active_loan(balance=30000.0),
        active_loan(balance=90000.0, next_due_date=datetime(2024, 3, 1, tzinfo=timezone.utc)),
        active_loan(status="completed", balance=0.0),
    ]
    assert portfolio_at_risk(loans, today) == 25.0
    assert portfolio_at_risk([], today) == 0.0


# ── Schedule and recovery views ───────────────────────

def test_maturity_date_is_stored_or_derived():
    assert maturity_date(active_loan(term_months=12)) == datetime(2024, 12, 26, tzinfo=timezone.utc)
    stored = datetime(2025, 6, 1, tzinfo=timezone.utc)
    assert maturity_date(active_loan(term_months=12, maturity_date=stored)) == stored
    assert maturity_date({"status": "approved"}) is None


def test_schedule_allocates_payments_oldest_first():
    loan = {
        "approved_amount": 100000.0,
        "installment_amount": 33333.33,
        "amount_paid": 40000.0,
        "term_months": 3,
        "disbursed_at": DISBURSED,
    }
    rows = repayment_schedule(loan, date(2024, 3, 15))

    assert [r["status"] for r in rows] == ["paid", "overdue", "upcoming"]
    assert [r["amount"] for r in rows] == [33333.33, 33333.33, 33333.34]
    assert sum(r["amount"] for r in rows) == pytest.approx(100000.0)
    assert rows[1]["paid"] == 6666.67
    assert rows[1]["remaining"] == 26666.66
    assert rows[0]["due_date"].startswith("2024-01-31")


def test_schedule_partial_payment_before_due_date():
    rows = repayment_schedule(active_loan(term_months=12, amount_paid=4000.0), date(2024, 1, 10))
    assert rows[0]["status"] == "partial"
    assert rows[1]["status"] == "upcoming"
    assert len(rows) == 12


def test_undisbursed_loan_has_no_schedule():
    assert repayment_schedule({"approved_amount": 1000, "term_months": 2}, date(2024, 1, 1)) == []


def test_principal_position_behind_schedule():
    view = principal_position(active_loan(term_months=12, amount_paid=20000.0), date(2024, 4, 15))
    assert view["principal_due_to_date"] == 30000.0
    assert view["principal_paid"] == 20000.0
    assert view["principal_balance"] == 100000.0
    assert view["principal_variance"] == 10000.0
    assert view["payment_compliance"] == 66.67
    assert view["principal_standing"] == "behind"


def test_principal_position_before_first_installment():
    view = principal_position(active_loan(term_months=12), date(2024, 1, 15))
    assert view["principal_due_to_date"] == 0.0
    assert view["payment_compliance"] == 100.0
    assert view["principal_standing"] == "on_track"


def test_principal_due_never_exceeds_approved_amount():
    view = principal_position(active_loan(term_months=12), date(2027, 1, 1))
    assert view["principal_due_to_date"] == 120000.0


@pytest.mark.parametrize("days, risk", [
    (None, "not_disbursed"),
    (0, "low"),
    (30, "low"),
    (31, "medium"),
    (90, "medium"),
    (91, "high"),
    (180, "high"),
    (181, "critical"),
])
def test_no_repayment_risk(days, risk):
    assert no_repayment_risk(days) == risk


@pytest.mark.parametrize("today, days, bucket, urgency", [
    (date(2024, 12, 26), 0, None, None),
    (date(2025, 1, 2), 7, "1-7", "medium"),
    (date(2025, 1, 5), 10, "8-30", "high"),
    (date(2025, 3, 1), 65, "31-90", "urgent"),
    (date(2025, 5, 1), 126, "91-180", "immediate"),
    (date(2026, 1, 1), 371, "365+", "immediate"),
])
def test_past_maturity_buckets(today, days, bucket, urgency):
    view = past_maturity_view(active_loan(term_months=12), today)
    assert view["days_past_maturity"] == days
    assert view["maturity_bucket"] == bucket
    assert view["urgency"] == urgency
    assert view["maturity_date"].startswith("2024-12-26")
