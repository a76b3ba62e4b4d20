from __future__ import annotations

import asyncio
from datetime import date, timedelta
from decimal import Decimal

import pytest

import commission_engine.domain.batch as batch_module
from commission_engine.core.rates import RateCache, StaticRateTable
from commission_engine.domain.batch import compute_commissions_batched, resolve_items, run_batched
from commission_engine.models import InvestmentInput, LiquidityCycle, RoleRates


def make_item(index: int, deposit: date, liquidity=LiquidityCycle.MONTHLY):
    investment = InvestmentInput(
        investment_id=f"inv-{index}",
        principal=Decimal("10000"),
        deposit_date=deposit,
        commitment_period_months=12,
        liquidity_cycle=liquidity,
    )
    return investment, RoleRates(investor_rate=Decimal("0.02"))


def test_batch_computes_every_item_sorted_by_due_date():
    start = date(2024, 6, 1)
    items = [make_item(index, start - timedelta(days=31 * index)) for index in range(20)]

    result = run_batched(items, batch_size=6)

    assert len(result.calculations) == 20
    assert result.failures == []
    first_dues = [calc.entries[0].due_date for calc in result.calculations]
    assert first_dues == sorted(first_dues)
    assert result.calculations[0].investment_id == "inv-19"


def test_batches_are_awaited_in_chunks(monkeypatch):
    in_flight = []
    original = batch_module.build_schedule

    def tracking_build(investment, rates, default_rate, eligibility_days):
        in_flight.append(investment.investment_id)
        return original(investment, rates, default_rate, eligibility_days)

    monkeypatch.setattr(batch_module, "build_schedule", tracking_build)
    items = [make_item(index, date(2024, 1, 6)) for index in range(7)]

    result = asyncio.run(compute_commissions_batched(items, batch_size=3))

    assert len(result.calculations) == 7
    assert sorted(in_flight[:3]) == ["inv-0", "inv-1", "inv-2"]
    assert sorted(in_flight[3:6]) == ["inv-3", "inv-4", "inv-5"]


def test_failures_are_reported_without_stopping_the_batch(monkeypatch, log_messages):
    original = batch_module.build_schedule

    def flaky_build(investment, rates, default_rate, eligibility_days):
        if investment.investment_id == "inv-1":
            raise ValueError("rate service unavailable")
        return original(investment, rates, default_rate, eligibility_days)

    monkeypatch.setattr(batch_module, "build_schedule", flaky_build)
    items = [make_item(index, date(2024, 1, 6)) for index in range(3)]

    result = run_batched(items, batch_size=2)

    assert [calc.investment_id for calc in result.calculations] == ["inv-0", "inv-2"]
    assert len(result.failures) == 1
    assert result.failures[0].index == 1
    assert result.failures[0].investment_id == "inv-1"
    assert "rate service unavailable" in result.failures[0].error
    assert any("inv-1" in message for message in log_messages)


def test_default_batch_size_comes_from_settings(monkeypatch):
    monkeypatch.setenv("COMMISSIONS_BATCH_SIZE", "2")
    items = [make_item(index, date(2024, 1, 6)) for index in range(5)]

    result = run_batched(items)

    assert len(result.calculations) == 5


def test_resolve_items_fills_from_table():
    investment, _ = make_item(0, date(2024, 1, 6), LiquidityCycle.ANNUAL)
    items = [(investment, RoleRates())]

    with RateCache(StaticRateTable()) as cache:
        resolved = resolve_items(items, cache)

    assert resolved[0][1].investor_rate == Decimal("0.025")
    assert resolve_items(items, None) == items


def test_empty_batch():
    result = run_batched([])

    assert result.calculations == []
    assert result.failures == []


@pytest.mark.parametrize("batch_size", [1, 15, 100])
def test_batch_size_does_not_change_results(batch_size):
    items = [make_item(index, date(2024, 1, 1) + timedelta(days=index)) for index in range(10)]

    result = run_batched(items, batch_size=batch_size)

    assert [calc.investment_id for calc in result.calculations] == [f"inv-{index}" for index in range(10)]


def test_eligibility_window_reaches_every_item(monkeypatch):
    monkeypatch.setenv("COMMISSIONS_ELIGIBILITY_DAYS", "30")
    items = [make_item(index, date(2024, 1, 6)) for index in range(3)]

    from_settings = run_batched(items)
    explicit = run_batched(items, eligibility_days=60)

    assert {calc.cutoff_period.first_eligible_cutoff for calc in from_settings.calculations} == {date(2024, 2, 20)}
    assert {calc.cutoff_period.first_eligible_cutoff for calc in explicit.calculations} == {date(2024, 3, 20)}
