from datetime import datetime

import pytest

from isoko_ui.formatters import (
    Badge,
    badge_markdown,
    format_compact_number,
    format_currency,
    format_date,
    format_datetime,
    format_days_overdue,
    format_file_size,
    format_interest_rate,
    format_loan_term,
    format_number,
    format_percentage,
    format_phone_number,
    format_relative_time,
    format_risk_level,
    format_status,
)


@pytest.mark.parametrize("amount, expected", [
    (1500.5, "RWF 1,500.5"),
    ("2500.00", "RWF 2,500"),
    (0, "RWF 0"),
    (None, "RWF 0"),
    ("abc", "RWF 0"),
    (float("nan"), "RWF 0"),
])
def test_format_currency(amount, expected):
    assert format_currency(amount, "RWF") == expected


def test_numbers():
    assert format_number(1234567) == "1,234,567"
    assert format_number("12.5") == "12.5"
    assert format_number(None) == "0"
    assert format_percentage(12.345) == "12.3%"
    assert format_percentage(None) == "0%"
    assert format_compact_number(2_500_000) == "2.5M"
    assert format_compact_number(1_200) == "1.2K"
    assert format_compact_number(999) == "999"
    assert format_interest_rate(2, "monthly") == "2.00%/month"


def test_dates():
    assert format_date("2024-01-05") == "Jan 5, 2024"
    assert format_datetime("2024-01-05T15:07:00") == "Jan 5, 2024, 03:07 PM"
    assert format_date(None) == "-"
    assert format_date("not a date") == "-"


@pytest.mark.parametrize("value, expected", [
    ("2024-01-05T11:59:30", "Just now"),
    ("2024-01-05T11:55:00", "5 minutes ago"),
    ("2024-01-05T11:00:00", "1 hour ago"),
    ("2024-01-03T12:00:00", "2 days ago"),
    ("2023-10-01T12:00:00", "Oct 1, 2023"),
])
def test_format_relative_time(value, expected):
    assert format_relative_time(value, now=datetime(2024, 1, 5, 12, 0)) == expected


@pytest.mark.parametrize("phone, expected", [
    ("250788123456", "+250 788 123 456"),
    ("+250 788-123-456", "+250 788 123 456"),
    ("0788123456", "078 812 3456"),
    ("12345", "12345"),
    (None, "-"),
])
def test_format_phone_number(phone, expected):
    assert format_phone_number(phone) == expected


def test_format_file_size():
    assert format_file_size(0) == "0 B"
    assert format_file_size(512) == "512 B"
    assert format_file_size(1536) == "1.5 KB"
    assert format_file_size(5 * 1024 * 1024) == "5 MB"


def test_format_loan_term():
    assert format_loan_term(1) == "1 month"
    assert format_loan_term(12) == "12 months"
    assert format_loan_term(None) == "-"


@pytest.mark.parametrize("days, text, color", [
    (0, "Current", "green"),
    (None, "Current", "green"),
    (1, "1 day overdue", "green"),
    (10, "10 days overdue", "yellow"),
    (45, "45 days overdue", "orange"),
    (120, "120 days overdue", "red"),
])
def test_format_days_overdue(days, text, color):
    assert format_days_overdue(days) == Badge(text, color)


@pytest.mark.parametrize("days, text", [
    (0, "No Risk"),
    (15, "Low Risk"),
    (60, "Medium Risk"),
    (150, "High Risk"),
    (400, "Critical Risk"),
])
def test_format_risk_level(days, text):
    assert format_risk_level(days).text == text


def test_status_badges():
    assert format_status("PENDING") == Badge("Pending", "yellow")
    assert format_status("weird") == Badge("weird", "gray")
    assert format_status(None) == Badge("-", "gray")


def test_badge_markdown_maps_yellow():
    assert badge_markdown(Badge("Pending", "yellow")) == ":orange[Pending]"
    assert badge_markdown(Badge("Active", "green")) == ":green[Active]"
