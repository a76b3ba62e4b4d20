"""
Pro-rata stub interest for partial periods.

Day-counted stubs use a fixed 30-day month regardless of the calendar month's
real length; the platform's statements are built on that convention.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal

DAYS_PER_MONTH = Decimal(30)


def stub_day_count(start_exclusive: date, end_inclusive: date) -> int:
    """
    Days strictly after ``start_exclusive`` up to and including ``end_inclusive``.

    The deposit day never accrues: a deposit on the 13th with a cutoff on the
    20th counts the 14th through the 20th, i.e. 7 days. Never negative.
    """
    return max(0, (end_inclusive - start_exclusive).days)


def daily_rate(monthly_rate: Decimal) -> Decimal:
    return monthly_rate / DAYS_PER_MONTH


def compute_stub_interest(
    principal: Decimal,
    monthly_rate: Decimal,
    start_exclusive: date,
    end_inclusive: date,
) -> Decimal:
    """Simple day-counted interest between two dates (unrounded)."""
    days = stub_day_count(start_exclusive, end_inclusive)
    if days == 0 or monthly_rate <= 0:
        return Decimal("0")
    return principal * daily_rate(monthly_rate) * days


def compute_month_fraction_interest(principal: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
    """Simple interest for a whole number of trailing months (the final stub)."""
    if months <= 0 or monthly_rate <= 0:
        return Decimal("0")
    return principal * monthly_rate * months
