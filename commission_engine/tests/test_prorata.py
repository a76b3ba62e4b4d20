from __future__ import annotations

from datetime import date
from decimal import Decimal

from commission_engine.core.money import to_money
from commission_engine.core.prorata import (
    compute_month_fraction_interest,
    compute_stub_interest,
    stub_day_count,
)


def test_deposit_day_does_not_accrue():
    assert stub_day_count(date(2024, 1, 13), date(2024, 1, 20)) == 7

    interest = compute_stub_interest(Decimal("100000"), Decimal("0.03"), date(2024, 1, 13), date(2024, 1, 20))
    assert to_money(interest) == Decimal("700.00")


def test_deposit_on_cutoff_day_has_empty_stub():
    deposit = date(2024, 1, 20)

    assert stub_day_count(deposit, deposit) == 0
    assert compute_stub_interest(Decimal("100000"), Decimal("0.02"), deposit, deposit) == 0


def test_reversed_dates_never_go_negative():
    assert stub_day_count(date(2024, 2, 1), date(2024, 1, 20)) == 0
    assert compute_stub_interest(Decimal("5000"), Decimal("0.02"), date(2024, 2, 1), date(2024, 1, 20)) == 0


def test_thirty_days_is_one_month_whatever_the_calendar():
    # February 2024 has 29 days, the convention still divides by 30
    feb = compute_stub_interest(Decimal("100000"), Decimal("0.02"), date(2024, 2, 1), date(2024, 3, 2))
    jan = compute_stub_interest(Decimal("100000"), Decimal("0.02"), date(2024, 1, 1), date(2024, 1, 31))

    assert to_money(feb) == Decimal("2000.00")
    assert to_money(jan) == Decimal("2000.00")


def test_month_fraction_is_simple_interest():
    assert compute_month_fraction_interest(Decimal("100000"), Decimal("0.02"), 2) == Decimal("4000.00")
    assert compute_month_fraction_interest(Decimal("100000"), Decimal("0.02"), 0) == 0
    assert compute_month_fraction_interest(Decimal("100000"), Decimal("0"), 3) == 0
