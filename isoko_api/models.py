"""
Pydantic request models and the role vocabulary.
No business logic — only shapes for API requests.
"""

from typing import Literal

from pydantic import BaseModel, Field

ROLES = ("admin", "supervisor", "loan-officer", "cashier")
USER_STATUSES = ("active", "inactive", "suspended")
LOAN_STATUSES = ("pending", "approved", "disbursed", "active", "completed", "defaulted", "rejected", "cancelled")
PAYMENT_METHODS = ("cash", "mobile_money", "bank_transfer", "cheque")


def normalize_role(value) -> str | None:
    """'loan_officer' → 'loan-officer'; unknown roles (any other casing included) → None."""
    if not isinstance(value, str):
        return None
    role = value.replace("_", "-")
    return role if role in ROLES else None


# ── Auth ──────────────────────────────
class LoginRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=1)


class ChangePasswordRequest(BaseModel):
    current_password: str = Field(..., min_length=1)
    new_password: str = Field(..., min_length=8)


class ForgotPasswordRequest(BaseModel):
    email: str = Field(..., min_length=3, max_length=254)


# ── Users ─────────────────────────────
class UserCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)
    password: str = Field(..., min_length=8)
    role: str
    phone: str = ""
    branch: str = ""
    employee_id: str = ""


class UserUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = None
    branch: str | None = None
    employee_id: str | None = None
    role: str | None = None
    status: Literal["active", "inactive", "suspended"] | None = None


# ── Clients ───────────────────────────
class ClientCreate(BaseModel):
    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    phone: str = Field(..., min_length=10, max_length=20)
    national_id: str = Field(..., min_length=16, max_length=16)
    gender: str = ""
    date_of_birth: str | None = None
    email: str = ""
    address: str = ""
    branch: str = ""
    occupation: str = ""
    employment_status: str = ""
    monthly_income: float = Field(0, ge=0)
    assigned_officer_id: str | None = None


class ClientUpdate(BaseModel):
    first_name: str | None = Field(None, min_length=1, max_length=100)
    last_name: str | None = Field(None, min_length=1, max_length=100)
    phone: str | None = None
    email: str | None = None
    address: str | None = None
    branch: str | None = None
    occupation: str | None = None
    employment_status: str | None = None
    monthly_income: float | None = Field(None, ge=0)
    assigned_officer_id: str | None = None
    status: Literal["active", "inactive", "blacklisted"] | None = None


# ── Loan types ────────────────────────
class LoanTypeIn(BaseModel):
    """Rates are stored as entered, in percent."""
    name: str = Field(..., min_length=1, max_length=120)
    code: str = Field(..., min_length=1, max_length=20)
    description: str = ""
    category: Literal["loan", "guarantee", "finance"] = "loan"
    interest_rate: float = Field(..., ge=0, le=100)
    interest_method: Literal["flat", "reducing_balance"] = "flat"
    interest_period: Literal["monthly", "annual"] = "monthly"
    application_fee: float = Field(0, ge=0)
    processing_fee_rate: float = Field(0, ge=0, le=100)
    penalty_rate: float = Field(0, ge=0, le=100)
    min_amount: float = Field(0, ge=0)
    max_amount: float = Field(0, ge=0)
    min_term_months: int = Field(1, ge=1)
    max_term_months: int = Field(12, ge=1)
    repayment_frequency: Literal["daily", "weekly", "bi_weekly", "monthly", "quarterly", "lump_sum"] = "monthly"
    is_active: bool = True


# ── Loans ─────────────────────────────
class LoanCreate(BaseModel):
    client_id: str
    loan_type_id: str
    applied_amount: float = Field(..., gt=0)
    term_months: int = Field(..., ge=1)
    purpose: str = ""


class LoanStatusUpdate(BaseModel):
    status: Literal["pending", "approved", "disbursed", "active", "completed", "defaulted", "rejected", "cancelled"]
    notes: str = ""
    approved_amount: float | None = Field(None, gt=0)


# ── Repayments ────────────────────────
class RepaymentCreate(BaseModel):
    loan_id: str
    amount: float = Field(..., gt=0)
    payment_method: Literal["cash", "mobile_money", "bank_transfer", "cheque"] = "cash"
    reference: str = ""
    payment_date: str | None = None
    notes: str = ""
