"""Day-20 cutoff calendar and D+60 payout eligibility."""

from __future__ import annotations

from datetime import date, timedelta

from dateutil.relativedelta import relativedelta

from commission_engine.models import CommissionPeriod, CutoffPeriod

CUTOFF_DAY = 20
ELIGIBILITY_DAYS = 60
PAYOUT_BUSINESS_DAY = 5


def add_months(value: date, months: int) -> date:
    """Calendar month arithmetic; Jan 31 + 1 month lands on the last day of February."""
    return value + relativedelta(months=months)


def cutoff_date(year: int, month: int) -> date:
    return date(year, month, CUTOFF_DAY)


def current_cutoff(deposit_date: date) -> date:
    """
    The cutoff a deposit first belongs to.

    A deposit made up to and including the 20th belongs to that month's cutoff;
    anything later rolls to the 20th of the following month.
    """
    anchor = cutoff_date(deposit_date.year, deposit_date.month)
    if deposit_date.day > CUTOFF_DAY:
        return add_months(anchor, 1)
    return anchor


def cutoff_after(cutoff: date, months: int) -> date:
    """The cutoff ``months`` cutoffs after ``cutoff`` (always a day-20 date)."""
    return add_months(cutoff, months)


def first_eligible_cutoff(deposit_date: date, eligibility_days: int = ELIGIBILITY_DAYS) -> date:
    """Earliest cutoff at least ``eligibility_days`` after the deposit.

    Walks forward one cutoff at a time from the deposit's own cutoff.
    """
    cutoff = current_cutoff(deposit_date)
    while (cutoff - deposit_date).days < eligibility_days:
        cutoff = cutoff_after(cutoff, 1)
    return cutoff


def compute_cutoff_period(deposit_date: date, eligibility_days: int = ELIGIBILITY_DAYS) -> CutoffPeriod:
    return CutoffPeriod(
        cutoff_date=current_cutoff(deposit_date),
        first_eligible_cutoff=first_eligible_cutoff(deposit_date, eligibility_days),
    )


def commitment_end_date(deposit_date: date, commitment_months: int) -> date:
    """Last calendar day covered by the commitment."""
    return add_months(deposit_date, commitment_months) - timedelta(days=1)


def compute_commission_period(deposit_date: date, commitment_months: int) -> CommissionPeriod:
    return CommissionPeriod(
        start_date=deposit_date,
        end_date=commitment_end_date(deposit_date, commitment_months),
    )


def is_business_day(value: date) -> bool:
    # holidays are not modelled, only weekends
    return value.weekday() < 5


def fifth_business_day(year: int, month: int) -> date:
    current = date(year, month, 1)
    seen = 0
    while True:
        if is_business_day(current):
            seen += 1
            if seen == PAYOUT_BUSINESS_DAY:
                return current
        current += timedelta(days=1)


def payout_date_for(cutoff: date) -> date:
    """Money for a cutoff is paid on the fifth business day of the following month."""
    following = add_months(cutoff.replace(day=1), 1)
    return fifth_business_day(following.year, following.month)
