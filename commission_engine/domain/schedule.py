from __future__ import annotations

from datetime import date
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Dict, List, Optional, Union

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from commission_engine.config import get_settings
from commission_engine.core.cutoff import (
    ELIGIBILITY_DAYS,
    compute_commission_period,
    compute_cutoff_period,
    cutoff_after,
    payout_date_for,
)
from commission_engine.core.cycles import (
    accrual_breakdown,
    compute_cycle_schedule,
    cycle_months,
    split_commitment,
)
from commission_engine.core.money import ZERO, to_decimal
from commission_engine.core.prorata import (
    compute_month_fraction_interest,
    compute_stub_interest,
    stub_day_count,
)
from commission_engine.core.splitter import effective_rate, split_amount
from commission_engine.models import (
    CommissionCalculation,
    CutoffPeriod,
    EntryKind,
    InvestmentInput,
    LiquidityCycle,
    MonthlyAccrual,
    Role,
    RoleAmounts,
    RoleRates,
    ScheduleEntry,
)

Number = Union[Decimal, int, float, str]


class InvalidInput(ValueError):
    def __init__(self, errors: List[str]):
        super().__init__("; ".join(errors))
        self.errors = errors

    @classmethod
    def from_validation_error(cls, exc: ValidationError) -> "InvalidInput":
        return cls(
            [
                f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}"
                for error in exc.errors()
            ]
        )


class EngineDefaults(BaseModel):
    """Fallbacks applied to every investment of a call."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    default_rate: Decimal = Field(default=ZERO, ge=0, lt=1)


class BuildState(str, Enum):
    NOT_STARTED = "not_started"
    STUB_PERIOD_COMPUTED = "stub_period_computed"
    CYCLES_COMPUTED = "cycles_computed"
    ASSEMBLED = "assembled"


class PaymentScheduleBuilder:
    """
    Turns one investment and its role rates into a payment schedule.

    Entries, in due-date order:
      1) first stub: day-counted interest from the deposit to the first
         eligible cutoff, due on that cutoff;
      2) one entry per full cycle (per month for monthly liquidity), due
         ``k * cycle_months`` cutoffs after the first eligible cutoff;
      3) a final stub when the commitment is not a multiple of the cycle,
         simple interest over the remaining months.

    Every role gets its own amount on every entry, computed with its own rate.
    Cycle entries also carry each role's month-by-month accruals.
    A builder is single use.
    """

    def __init__(
        self,
        investment: InvestmentInput,
        rates: RoleRates,
        default_rate: Decimal = ZERO,
        eligibility_days: int = ELIGIBILITY_DAYS,
    ):
        self.investment = investment
        self.rates = rates
        self.default_rate = default_rate
        if investment.eligibility_days is not None:
            eligibility_days = investment.eligibility_days
        self.eligibility_days = eligibility_days
        self.state = BuildState.NOT_STARTED

        self.cycle_months = cycle_months(investment.liquidity_cycle)
        self.full_cycles, self.remaining_months = split_commitment(
            investment.commitment_period_months, self.cycle_months
        )

        self._entries: List[ScheduleEntry] = []
        self._cycle_amounts: Dict[Decimal, List[Decimal]] = {}
        self._cutoff_period: Optional[CutoffPeriod] = None

    def build(self) -> CommissionCalculation:
        if self.state is not BuildState.NOT_STARTED:
            raise RuntimeError("PaymentScheduleBuilder instances are single use")

        self._cutoff_period = compute_cutoff_period(self.investment.deposit_date, self.eligibility_days)
        self._add_first_stub()
        self.state = BuildState.STUB_PERIOD_COMPUTED

        self._add_cycles()
        self._add_final_stub()
        self.state = BuildState.CYCLES_COMPUTED

        calculation = self._assemble()
        self.state = BuildState.ASSEMBLED
        return calculation

    # ------------------------------------------------------------------

    def _add_first_stub(self) -> None:
        deposit = self.investment.deposit_date
        due = self._cutoff_period.first_eligible_cutoff
        principal = self.investment.principal

        amounts = split_amount(
            lambda rate: compute_stub_interest(principal, rate, deposit, due),
            self.rates,
            self.default_rate,
        )
        self._append(
            EntryKind.FIRST_STUB,
            due,
            amounts,
            accrual_days=stub_day_count(deposit, due),
        )

    def _add_cycles(self) -> None:
        if not self.full_cycles:
            return

        first_cutoff = self._cutoff_period.first_eligible_cutoff
        # cycles restart from the principal, so every cycle shows the same months
        accruals = {role: self._cycle_accruals_for(role) for role in Role}
        for index in range(self.full_cycles):
            due = cutoff_after(first_cutoff, (index + 1) * self.cycle_months)
            amounts = split_amount(
                lambda rate, index=index: self._cycle_amounts_for(rate)[index],
                self.rates,
                self.default_rate,
            )
            self._append(
                EntryKind.CYCLE,
                due,
                amounts,
                accrual_months=self.cycle_months,
                accruals=accruals,
            )

    def _add_final_stub(self) -> None:
        if not self.remaining_months:
            return

        months_elapsed = self.full_cycles * self.cycle_months + self.remaining_months
        due = cutoff_after(self._cutoff_period.first_eligible_cutoff, months_elapsed)
        principal = self.investment.principal
        remaining = self.remaining_months

        amounts = split_amount(
            lambda rate: compute_month_fraction_interest(principal, rate, remaining),
            self.rates,
            self.default_rate,
        )
        self._append(EntryKind.FINAL_STUB, due, amounts, accrual_months=remaining)

    def _cycle_amounts_for(self, rate: Decimal) -> List[Decimal]:
        if rate not in self._cycle_amounts:
            self._cycle_amounts[rate] = compute_cycle_schedule(
                self.investment.principal,
                rate,
                self.investment.commitment_period_months,
                self.cycle_months,
            )
        return self._cycle_amounts[rate]

    def _cycle_accruals_for(self, role: Role) -> List[MonthlyAccrual]:
        rate = effective_rate(self.rates, role, self.default_rate)
        if rate <= 0:
            return []
        return accrual_breakdown(self.investment.principal, rate, self.cycle_months)

    def _append(
        self,
        kind: EntryKind,
        due: date,
        amounts: RoleAmounts,
        accrual_days: int = 0,
        accrual_months: int = 0,
        accruals: Optional[Dict[Role, List[MonthlyAccrual]]] = None,
    ) -> None:
        accruals = accruals or {}
        self._entries.append(
            ScheduleEntry(
                sequence=len(self._entries),
                kind=kind,
                month=due.month,
                year=due.year,
                due_date=due,
                payout_date=payout_date_for(due),
                accrual_days=accrual_days,
                accrual_months=accrual_months,
                investor_amount=amounts.investor,
                advisor_amount=amounts.advisor,
                office_amount=amounts.office,
                investor_accruals=accruals.get(Role.INVESTOR, []),
                advisor_accruals=accruals.get(Role.ADVISOR, []),
                office_accruals=accruals.get(Role.OFFICE, []),
            )
        )

    def _assemble(self) -> CommissionCalculation:
        totals = RoleAmounts(
            **{
                role.value: sum((entry.amount_for(role) for entry in self._entries), ZERO)
                for role in Role
            }
        )
        first = self._entries[0]
        return CommissionCalculation(
            investment_id=self.investment.investment_id,
            liquidity_cycle=self.investment.liquidity_cycle,
            cycle_months=self.cycle_months,
            entries=list(self._entries),
            cutoff_period=self._cutoff_period,
            commission_period=compute_commission_period(
                self.investment.deposit_date, self.investment.commitment_period_months
            ),
            first_investor_amount=first.investor_amount,
            first_advisor_amount=first.advisor_amount,
            first_office_amount=first.office_amount,
            totals=totals,
        )


def build_schedule(
    investment: InvestmentInput,
    rates: RoleRates,
    default_rate: Decimal = ZERO,
    eligibility_days: Optional[int] = None,
) -> CommissionCalculation:
    """
    Build one investment's schedule.

    ``eligibility_days`` is the D+N window used when the investment carries
    none of its own (the configured default when omitted). Amounts too large
    to hold in cents raise InvalidInput.
    """
    if eligibility_days is None:
        eligibility_days = get_settings().eligibility_days

    missing = rates.missing_roles()
    if missing:
        logger.debug(
            f"Investment {investment.investment_id}: no rate for "
            f"{', '.join(role.value for role in missing)}, using {default_rate}"
        )

    try:
        return PaymentScheduleBuilder(investment, rates, default_rate, eligibility_days).build()
    except InvalidOperation as exc:
        raise InvalidInput(
            [f"principal: {investment.principal} is too large to schedule in cents"]
        ) from exc


def compute_commission(
    investment_id: Optional[str],
    principal: Number,
    deposit_date: Union[date, str],
    commitment_period_months: int,
    liquidity_cycle: Union[LiquidityCycle, str, None],
    investor_rate: Optional[Number] = None,
    advisor_rate: Optional[Number] = None,
    office_rate: Optional[Number] = None,
    *,
    default_rate: Optional[Number] = None,
    eligibility_days: Optional[int] = None,
) -> CommissionCalculation:
    """
    Validate raw inputs and build the schedule.

    Raises InvalidInput for a non-positive principal, an unparseable deposit
    date, a non-positive commitment, a negative eligibility window or a rate
    (default included) outside [0, 1). An unknown liquidity cycle degrades to
    monthly; missing rates use ``default_rate`` and a missing window uses
    ``eligibility_days`` (the configured defaults when omitted).
    """
    settings = get_settings()
    if default_rate is None:
        default_rate = settings.default_role_rate

    try:
        investment = InvestmentInput(
            investment_id=investment_id,
            principal=_optional_decimal(principal),
            deposit_date=deposit_date,
            commitment_period_months=commitment_period_months,
            liquidity_cycle=liquidity_cycle,
            eligibility_days=eligibility_days,
        )
        rates = RoleRates(
            investor_rate=_optional_decimal(investor_rate),
            advisor_rate=_optional_decimal(advisor_rate),
            office_rate=_optional_decimal(office_rate),
        )
        defaults = EngineDefaults(default_rate=_optional_decimal(default_rate))
    except ValidationError as exc:
        raise InvalidInput.from_validation_error(exc) from exc

    return build_schedule(investment, rates, defaults.default_rate, settings.eligibility_days)


def _optional_decimal(value: Optional[Number]) -> Optional[Decimal]:
    if value is None or isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        return to_decimal(value)
    return value
