from __future__ import annotations

from decimal import Decimal

from commission_engine.core.cycles import (
    accrual_breakdown,
    compound_cycle_interest,
    compute_cycle_schedule,
    cycle_months,
    maturity_return,
    split_commitment,
)
from commission_engine.core.money import to_money
from commission_engine.models import LiquidityCycle

PRINCIPAL = Decimal("100000")
RATE = Decimal("0.02")


def test_cycle_lengths():
    assert [cycle_months(cycle) for cycle in LiquidityCycle] == [1, 6, 12, 24, 36]


def test_split_commitment():
    assert split_commitment(32, 6) == (5, 2)
    assert split_commitment(30, 6) == (5, 0)
    assert split_commitment(3, 12) == (0, 3)


def test_monthly_pays_simple_interest_on_original_principal():
    schedule = compute_cycle_schedule(PRINCIPAL, RATE, 12, 1)

    assert len(schedule) == 12
    assert all(amount == Decimal("2000") for amount in schedule)
    assert sum(schedule) == PRINCIPAL * RATE * 12


def test_annual_cycles_restart_from_principal():
    first, second = compute_cycle_schedule(PRINCIPAL, RATE, 24, 12)

    assert first == second
    assert to_money(first) == Decimal("26824.18")


def test_compounding_beats_simple_interest_within_a_cycle():
    compounded = compound_cycle_interest(PRINCIPAL, RATE, 6)

    assert to_money(compounded) == Decimal("12616.24")
    assert compounded > PRINCIPAL * RATE * 6


def test_trailing_partial_cycle_compounds_its_remaining_months():
    schedule = compute_cycle_schedule(PRINCIPAL, RATE, 32, 6)

    assert len(schedule) == 6
    assert to_money(schedule[-1]) == Decimal("4040.00")


def test_maturity_return_sums_the_schedule():
    assert maturity_return(PRINCIPAL, RATE, 12, 1) == Decimal("24000.00")
    assert maturity_return(PRINCIPAL, RATE, 0, 12) == 0


def test_accrual_breakdown_adds_up_to_the_rounded_cycle():
    principal = Decimal("12345.67")
    breakdown = accrual_breakdown(principal, Decimal("0.0175"), 6)

    assert [accrual.month_index for accrual in breakdown] == [1, 2, 3, 4, 5, 6]
    assert sum(accrual.interest for accrual in breakdown) == to_money(
        compound_cycle_interest(principal, Decimal("0.0175"), 6)
    )
    assert breakdown[-1].balance == to_money(principal + compound_cycle_interest(principal, Decimal("0.0175"), 6))
    assert accrual_breakdown(PRINCIPAL, RATE, 0) == []
