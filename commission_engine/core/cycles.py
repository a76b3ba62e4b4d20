from __future__ import annotations

from decimal import Decimal
from typing import Dict, List, Tuple

from commission_engine.core.money import ZERO, to_money
from commission_engine.models import LiquidityCycle, MonthlyAccrual

CYCLE_MONTHS: Dict[LiquidityCycle, int] = {
    LiquidityCycle.MONTHLY: 1,
    LiquidityCycle.SEMIANNUAL: 6,
    LiquidityCycle.ANNUAL: 12,
    LiquidityCycle.BIENNIAL: 24,
    LiquidityCycle.TRIENNIAL: 36,
}


def cycle_months(liquidity: LiquidityCycle) -> int:
    return CYCLE_MONTHS.get(liquidity, 1)


def split_commitment(commitment_months: int, months_per_cycle: int) -> Tuple[int, int]:
    """Return (full_cycles, remaining_months) for a commitment."""
    if months_per_cycle <= 0:
        months_per_cycle = 1
    return divmod(max(commitment_months, 0), months_per_cycle)


def monthly_accruals(principal: Decimal, monthly_rate: Decimal, months: int) -> List[Decimal]:
    """
    Month-by-month interest inside one compounding window.

    The balance starts at ``principal``; each month's interest is added back
    to the balance before the next month accrues.
    """
    balance = principal
    accrued: List[Decimal] = []
    for _ in range(months):
        interest = balance * monthly_rate
        balance += interest
        accrued.append(interest)
    return accrued


def compound_cycle_interest(principal: Decimal, monthly_rate: Decimal, months: int) -> Decimal:
    """Interest paid at the end of one cycle: balance_end - principal."""
    return sum(monthly_accruals(principal, monthly_rate, months), Decimal("0"))


def accrual_breakdown(principal: Decimal, monthly_rate: Decimal, months: int) -> List[MonthlyAccrual]:
    """
    Month-by-month view of one cycle, in cents.

    Each month shows the rounded growth of the running interest total, so the
    months always add up to the rounded cycle amount.
    """
    breakdown: List[MonthlyAccrual] = []
    accrued = ZERO
    paid = ZERO
    for index, interest in enumerate(monthly_accruals(principal, monthly_rate, months), start=1):
        accrued += interest
        rounded = to_money(accrued)
        breakdown.append(
            MonthlyAccrual(
                month_index=index,
                interest=rounded - paid,
                balance=to_money(principal + accrued),
            )
        )
        paid = rounded
    return breakdown


def compute_cycle_schedule(
    principal: Decimal,
    monthly_rate: Decimal,
    commitment_months: int,
    months_per_cycle: int,
) -> List[Decimal]:
    """
    Per-cycle payable amounts over the whole commitment (unrounded).

    Monthly liquidity pays simple interest on the ORIGINAL principal every
    month; payouts neither compound nor reduce the base.

    Longer cycles compound monthly inside each cycle and restart from the
    original principal at every cycle boundary, so two full cycles always pay
    the same. A trailing partial cycle compounds only over its remaining
    months.
    """
    if commitment_months <= 0:
        return []

    if months_per_cycle <= 1:
        return [principal * monthly_rate for _ in range(commitment_months)]

    full_cycles, remaining = split_commitment(commitment_months, months_per_cycle)
    schedule = [
        compound_cycle_interest(principal, monthly_rate, months_per_cycle)
        for _ in range(full_cycles)
    ]
    if remaining:
        schedule.append(compound_cycle_interest(principal, monthly_rate, remaining))
    return schedule


def maturity_return(
    principal: Decimal,
    monthly_rate: Decimal,
    commitment_months: int,
    months_per_cycle: int,
) -> Decimal:
    """Total return over the commitment under the cycle's interest policy."""
    return sum(
        compute_cycle_schedule(principal, monthly_rate, commitment_months, months_per_cycle),
        Decimal("0"),
    )
