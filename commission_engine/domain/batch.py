"""
Bulk evaluation for dashboards and exports.

Investments are processed in batches: every batch is computed with bounded
parallelism and awaited before the next one starts, which keeps the rate
lookups and the calling thread from being flooded by hundreds of requests at
once.
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from decimal import Decimal
from typing import List, Optional, Sequence, Tuple

from loguru import logger

from commission_engine.config import get_settings
from commission_engine.core.money import ZERO
from commission_engine.core.rates import RateCache
from commission_engine.domain.schedule import build_schedule
from commission_engine.models import CommissionCalculation, InvestmentInput, RoleRates

BatchItem = Tuple[InvestmentInput, RoleRates]


@dataclass
class BatchFailure:
    index: int
    investment_id: Optional[str]
    error: str


@dataclass
class BatchResult:
    calculations: List[CommissionCalculation] = field(default_factory=list)
    failures: List[BatchFailure] = field(default_factory=list)


def resolve_items(
    items: Sequence[BatchItem],
    cache: Optional[RateCache],
) -> List[BatchItem]:
    """Fill missing rates from the cache's table; explicit rates are kept."""
    if cache is None:
        return list(items)
    return [
        (
            investment,
            cache.resolve(rates, investment.commitment_period_months, investment.liquidity_cycle),
        )
        for investment, rates in items
    ]


def sort_by_due_date(calculations: List[CommissionCalculation]) -> List[CommissionCalculation]:
    """Order results by their first due date, then investment id."""
    return sorted(
        calculations,
        key=lambda calc: (
            calc.entries[0].due_date if calc.entries else calc.commission_period.start_date,
            calc.investment_id or "",
        ),
    )


async def compute_commissions_batched(
    items: Sequence[BatchItem],
    batch_size: Optional[int] = None,
    default_rate: Decimal = ZERO,
    eligibility_days: Optional[int] = None,
) -> BatchResult:
    """
    Build schedules for many investments.

    Args:
        items: (investment, rates) pairs, rates already resolved by the caller
        batch_size: investments per batch (settings.batch_size when omitted)
        default_rate: monthly rate used for roles whose rate is missing
        eligibility_days: D+N window for investments without their own
            (settings.eligibility_days when omitted)

    Returns:
        BatchResult with calculations sorted by due date and per-item failures
    """
    settings = get_settings()
    size = batch_size or settings.batch_size
    if eligibility_days is None:
        eligibility_days = settings.eligibility_days
    result = BatchResult()

    for start in range(0, len(items), size):
        batch = items[start : start + size]
        tasks = [
            asyncio.to_thread(build_schedule, investment, rates, default_rate, eligibility_days)
            for investment, rates in batch
        ]
        outcomes = await asyncio.gather(*tasks, return_exceptions=True)

        for offset, outcome in enumerate(outcomes):
            investment = batch[offset][0]
            if isinstance(outcome, Exception):
                logger.error(
                    f"Commission calculation failed for investment {investment.investment_id}: {outcome}"
                )
                result.failures.append(
                    BatchFailure(
                        index=start + offset,
                        investment_id=investment.investment_id,
                        error=str(outcome),
                    )
                )
            else:
                result.calculations.append(outcome)

    result.calculations = sort_by_due_date(result.calculations)
    logger.info(
        f"Commission batch completed: {len(result.calculations)} calculated, "
        f"{len(result.failures)} failed out of {len(items)} total"
    )
    return result


def run_batched(
    items: Sequence[BatchItem],
    batch_size: Optional[int] = None,
    default_rate: Decimal = ZERO,
    eligibility_days: Optional[int] = None,
) -> BatchResult:
    """Synchronous entry point for WSGI handlers and scripts."""
    return asyncio.run(compute_commissions_batched(items, batch_size, default_rate, eligibility_days))
