"""
Display formatters — pure functions, no Streamlit calls, no I/O.

Bad or missing input never raises: numbers fall back to zero-ish strings,
dates to "-".
"""

import math
import re
from datetime import datetime, timezone
from typing import NamedTuple

import pandas as pd

from isoko_ui.config import settings


class Badge(NamedTuple):
    text: str
    color: str


# ────────────────────────────────────────────
# Helpers
# ────────────────────────────────────────────

def _to_number(val) -> float | None:
    """Cast API values (often strings from DECIMAL columns) to float; None if not numeric."""
    if val is None or isinstance(val, bool):
        return None
    try:
        num = float(val)
    except (TypeError, ValueError):
        return None
    if math.isnan(num):
        return None
    return num


def _trim(text: str) -> str:
    """'1,500.50' → '1,500.5', '1,500.00' → '1,500'."""
    if "." in text:
        text = text.rstrip("0").rstrip(".")
    return text


def _to_datetime(value) -> datetime | None:
    if value is None or value == "":
        return None
    ts = pd.to_datetime(value, errors="coerce")
    if ts is None or pd.isna(ts):
        return None
    return ts.to_pydatetime()


# ────────────────────────────────────────────
# Numbers
# ────────────────────────────────────────────

def format_currency(amount, currency: str | None = None) -> str:
    currency = currency or settings.CURRENCY
    num = _to_number(amount)
    if num is None:
        return f"{currency} 0"
    return f"{currency} {_trim(f'{num:,.2f}')}"


def format_number(number) -> str:
    num = _to_number(number)
    if num is None:
        return "0"
    if num.is_integer():
        return f"{int(num):,}"
    return _trim(f"{num:,.3f}")


def format_percentage(value, decimals: int = 1) -> str:
    num = _to_number(value)
    if num is None:
        return "0%"
    return f"{num:.{decimals}f}%"


def format_compact_number(number) -> str:
    num = _to_number(number)
    if num is None:
        return "0"
    if num >= 1_000_000_000:
        return f"{num / 1_000_000_000:.1f}B"
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1_000:
        return f"{num / 1_000:.1f}K"
    return format_number(num)


def format_interest_rate(rate, period: str = "annual") -> str:
    num = _to_number(rate)
    if num is None:
        return "0%"
    suffix = {
        "daily": "/day",
        "weekly": "/week",
        "monthly": "/month",
        "annual": "/year",
        "yearly": "/year",
    }.get(period, "")
    return f"{num:.2f}%{suffix}"


def format_file_size(size) -> str:
    num = _to_number(size)
    if not num:
        return "0 B"
    units = ["B", "KB", "MB", "GB"]
    i = 0
    while num >= 1024 and i < len(units) - 1:
        num /= 1024
        i += 1
    return f"{_trim(f'{num:.1f}')} {units[i]}"


def format_loan_term(term, term_type: str = "months") -> str:
    if not term:
        return "-"
    singular = {"days": "day", "weeks": "week", "months": "month", "years": "year"}
    unit = singular.get(term_type, term_type) if term == 1 else term_type
    return f"{term} {unit}"


# ────────────────────────────────────────────
# Dates
# ────────────────────────────────────────────

def format_date(value) -> str:
    """'2024-01-05' → 'Jan 5, 2024'"""
    dt = _to_datetime(value)
    if dt is None:
        return "-"
    return f"{dt:%b} {dt.day}, {dt.year}"


def format_datetime(value) -> str:
    """'2024-01-05T15:07:00' → 'Jan 5, 2024, 03:07 PM'"""
    dt = _to_datetime(value)
    if dt is None:
        return "-"
    return f"{dt:%b} {dt.day}, {dt.year}, {dt:%I:%M %p}"


def format_relative_time(value, now: datetime | None = None) -> str:
    dt = _to_datetime(value)
    if dt is None:
        return "-"
    if now is None:
        now = datetime.now(timezone.utc) if dt.tzinfo else datetime.now()
    elif (now.tzinfo is None) != (dt.tzinfo is None):
        dt = dt.replace(tzinfo=now.tzinfo)

    seconds = int((now - dt).total_seconds())
    if seconds < 60:
        return "Just now"
    if seconds < 3600:
        n = seconds // 60
        return f"{n} minute{'s' if n > 1 else ''} ago"
    if seconds < 86400:
        n = seconds // 3600
        return f"{n} hour{'s' if n > 1 else ''} ago"
    if seconds < 2592000:
        n = seconds // 86400
        return f"{n} day{'s' if n > 1 else ''} ago"
    return format_date(dt)


# ────────────────────────────────────────────
# Text
# ────────────────────────────────────────────

def format_phone_number(phone) -> str:
    """Rwandan numbers: '+250 788 123 456' or '078 812 3456'."""
    if not phone:
        return "-"
    digits = re.sub(r"\D", "", str(phone))
    if digits.startswith("250") and len(digits) == 12:
        return f"+{digits[:3]} {digits[3:6]} {digits[6:9]} {digits[9:]}"
    if len(digits) == 10 and re.match(r"^0[789]", digits):
        return f"{digits[:3]} {digits[3:6]} {digits[6:]}"
    return str(phone)


# ────────────────────────────────────────────
# Status → colour badges
# ────────────────────────────────────────────

STATUS_BADGES = {
    # Loans
    "pending": Badge("Pending", "yellow"),
    "approved": Badge("Approved", "blue"),
    "disbursed": Badge("Disbursed", "green"),
    "active": Badge("Active", "green"),
    "completed": Badge("Completed", "blue"),
    "defaulted": Badge("Defaulted", "red"),
    "rejected": Badge("Rejected", "red"),
    "cancelled": Badge("Cancelled", "gray"),
    # Payments
    "paid": Badge("Paid", "green"),
    "partial": Badge("Partial", "yellow"),
    "overdue": Badge("Overdue", "red"),
    "confirmed": Badge("Confirmed", "green"),
    "upcoming": Badge("Upcoming", "gray"),
    # Principal standing
    "on_track": Badge("On track", "green"),
    "behind": Badge("Behind", "orange"),
    # Performance classes
    "performing": Badge("Performing", "green"),
    "watch": Badge("Watch", "yellow"),
    "substandard": Badge("Substandard", "orange"),
    "doubtful": Badge("Doubtful", "red"),
    "loss": Badge("Loss", "red"),
    # Users
    "active_user": Badge("Active", "green"),
    "inactive_user": Badge("Inactive", "gray"),
    "inactive": Badge("Inactive", "gray"),
    "suspended": Badge("Suspended", "red"),
}

PRIORITY_BADGES = {
    "low": Badge("Low", "green"),
    "medium": Badge("Medium", "yellow"),
    "high": Badge("High", "orange"),
    "urgent": Badge("Urgent", "red"),
    "critical": Badge("Critical", "red"),
    "immediate": Badge("Immediate", "red"),
    "not_disbursed": Badge("Not disbursed", "gray"),
}


def format_status(status) -> Badge:
    if not status:
        return Badge("-", "gray")
    return STATUS_BADGES.get(str(status).lower(), Badge(str(status), "gray"))


def format_priority(priority) -> Badge:
    if not priority:
        return Badge("-", "gray")
    return PRIORITY_BADGES.get(str(priority).lower(), Badge(str(priority), "gray"))


def format_risk_level(days_overdue) -> Badge:
    days = _to_number(days_overdue) or 0
    if days <= 0:
        return Badge("No Risk", "green")
    if days <= 30:
        return Badge("Low Risk", "yellow")
    if days <= 90:
        return Badge("Medium Risk", "orange")
    if days <= 180:
        return Badge("High Risk", "red")
    return Badge("Critical Risk", "red")


def format_days_overdue(days) -> Badge:
    n = _to_number(days)
    if not n or n <= 0:
        return Badge("Current", "green")
    n = int(n)
    if n > 90:
        color = "red"
    elif n > 30:
        color = "orange"
    elif n > 7:
        color = "yellow"
    else:
        color = "green"
    return Badge(f"{n} day{'s' if n > 1 else ''} overdue", color)


# Streamlit's coloured-text markdown has no yellow
_ST_COLORS = {"yellow": "orange"}


def badge_markdown(badge: Badge) -> str:
    """Badge as Streamlit coloured text, e.g. ':green[Active]'."""
    return f":{_ST_COLORS.get(badge.color, badge.color)}[{badge.text}]"
