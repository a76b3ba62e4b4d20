"""Parallel per-role amounts over the same investment boundaries."""

from __future__ import annotations

from decimal import Decimal
from typing import Callable

from commission_engine.core.money import ZERO, to_money
from commission_engine.models import Role, RoleAmounts, RoleRates

Accrual = Callable[[Decimal], Decimal]


def effective_rate(rates: RoleRates, role: Role, default_rate: Decimal = ZERO) -> Decimal:
    rate = rates.for_role(role)
    return default_rate if rate is None else rate


def split_amount(
    accrue: Accrual,
    rates: RoleRates,
    default_rate: Decimal = ZERO,
) -> RoleAmounts:
    """
    Compute every role's amount for one schedule entry.

    Roles are not shares of a pooled amount: ``accrue`` is re-run with each
    role's own monthly rate over the same principal and dates. A role with a
    zero (or missing, with a zero default) rate gets 0.
    """
    amounts = {}
    for role in Role:
        rate = effective_rate(rates, role, default_rate)
        if rate <= 0:
            raw = ZERO
        else:
            raw = accrue(rate)
        amounts[role.value] = to_money(raw)
    return RoleAmounts(**amounts)
