import pytest

from isoko_ui.admin_dashboard import loan_type_payload, validate_loan_type
from isoko_ui.borrowers import validate_borrower, validate_loan
from isoko_ui.cashier_dashboard import validate_repayment

BORROWER = {
    "first_name": "Jean",
    "last_name": "Mugisha",
    "phone": "0788123456",
    "national_id": "1199080012345678",
    "monthly_income": 150000.0,
}

LOAN_TYPE = {"min_amount": 50000, "max_amount": 2000000, "min_term_months": 3, "max_term_months": 24}


def test_valid_borrower():
    assert validate_borrower(BORROWER) == []
    assert validate_borrower({**BORROWER, "phone": "+250 788 123 456"}) == []


@pytest.mark.parametrize("change, fragment", [
    ({"first_name": "  "}, "First name is required"),
    ({"phone": "07881"}, "Phone must have"),
    ({"national_id": "12345"}, "National ID must be 16 digits"),
    ({"national_id": "11990800123456AB"}, "National ID must be 16 digits"),
    ({"monthly_income": -1.0}, "cannot be negative"),
])
def test_invalid_borrower(change, fragment):
    errors = validate_borrower({**BORROWER, **change})
    assert any(fragment in e for e in errors)


def test_valid_loan():
    values = {"client_id": "c1", "applied_amount": 500000.0, "term_months": 12}
    assert validate_loan(values, LOAN_TYPE) == []


def test_loan_requires_type_and_borrower():
    errors = validate_loan({"applied_amount": 1.0}, None)
    assert errors == ["Choose a borrower.", "Choose a loan type."]


@pytest.mark.parametrize("change, fragment", [
    ({"applied_amount": 0}, "greater than zero"),
    ({"applied_amount": 10000.0}, "below this product's minimum"),
    ({"applied_amount": 5000000.0}, "above this product's maximum"),
    ({"term_months": 36}, "Term must be between 3 and 24"),
    ({"term_months": 1}, "Term must be between 3 and 24"),
])
def test_loan_outside_product_limits(change, fragment):
    values = {"client_id": "c1", "applied_amount": 500000.0, "term_months": 12, **change}
    assert any(fragment in e for e in validate_loan(values, LOAN_TYPE))


def test_repayment_rules():
    cash = {"loan_id": "l1", "amount": 1000.0, "payment_method": "cash"}
    assert validate_repayment(cash) == []
    assert validate_repayment({**cash, "payment_method": "mobile_money"}) == [
        "A reference is required for non-cash payments."
    ]
    assert validate_repayment({**cash, "payment_method": "mobile_money", "reference": "MP123"}) == []
    assert "Choose a payment method." in validate_repayment({**cash, "payment_method": "barter"})
    assert "Amount must be greater than zero." in validate_repayment({**cash, "amount": 0})


def test_loan_type_rates_are_sent_as_entered():
    payload = loan_type_payload({
        "name": " Business Working Capital ",
        "code": "bwc",
        "interest_rate": "2.5",
        "penalty_rate": 1,
        "processing_fee_rate": 0.5,
        "min_amount": 50000,
        "max_amount": 2000000,
        "min_term_months": 3,
        "max_term_months": 24,
    })

    assert payload["name"] == "Business Working Capital"
    assert payload["code"] == "BWC"
    assert payload["interest_rate"] == 2.5
    assert payload["penalty_rate"] == 1.0
    assert payload["processing_fee_rate"] == 0.5
    assert payload["is_active"] is True
    assert validate_loan_type(payload) == []


def test_loan_type_validation():
    payload = loan_type_payload({
        "name": "", "code": "", "interest_rate": 120,
        "min_amount": 10, "max_amount": 5, "min_term_months": 6, "max_term_months": 3,
    })
    assert validate_loan_type(payload) == [
        "Name is required.",
        "Code is required.",
        "Interest rate must be between 0 and 100 percent.",
        "Minimum amount cannot exceed maximum amount.",
        "Minimum term cannot exceed maximum term.",
    ]
