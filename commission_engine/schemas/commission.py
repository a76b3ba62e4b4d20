"""Data contracts for the commission endpoints."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from commission_engine.models import (
    CommissionCalculation,
    InvestmentInput,
    MonthlyAccrual,
    Role,
    RoleRates,
    ScheduleEntry,
)


class PingResponse(BaseModel):
    message: str
    version: str


class CommissionRequest(BaseModel):
    """One investment as the dashboards and simulators send it."""

    model_config = ConfigDict(extra="forbid")

    investmentId: Optional[str] = None
    principal: Decimal = Field(..., description="Deposited amount; must be positive.")
    depositDate: str = Field(..., description="Calendar date the deposit settled (YYYY-MM-DD).")
    commitmentPeriodMonths: int = Field(..., description="Months the principal is locked in.")
    liquidityCycle: Optional[str] = Field(
        None,
        description="Payout cadence: monthly, semiannual, annual, biennial or triennial.",
    )

    investorRate: Optional[Decimal] = None
    advisorRate: Optional[Decimal] = None
    officeRate: Optional[Decimal] = None
    useRateTable: Optional[bool] = Field(
        None,
        description="Fill missing rates from the rate table (settings default when omitted).",
    )
    eligibilityDays: Optional[int] = Field(
        None,
        description="D+N days before the first payable cutoff (settings default when omitted).",
    )

    ownerId: Optional[str] = None
    advisorId: Optional[str] = None
    officeId: Optional[str] = None

    def to_investment(self) -> InvestmentInput:
        return InvestmentInput(
            investment_id=self.investmentId,
            principal=self.principal,
            deposit_date=self.depositDate,
            commitment_period_months=self.commitmentPeriodMonths,
            liquidity_cycle=self.liquidityCycle,
            eligibility_days=self.eligibilityDays,
            owner_id=self.ownerId,
            advisor_id=self.advisorId,
            office_id=self.officeId,
        )

    def to_rates(self) -> RoleRates:
        return RoleRates(
            investor_rate=self.investorRate,
            advisor_rate=self.advisorRate,
            office_rate=self.officeRate,
        )


class BatchCommissionRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    investments: List[CommissionRequest] = Field(..., min_length=1)
    batchSize: Optional[int] = Field(None, ge=1)


class MonthlyAccrualView(BaseModel):
    monthIndex: int
    interest: Decimal
    balance: Decimal

    @classmethod
    def from_accrual(cls, accrual: MonthlyAccrual) -> "MonthlyAccrualView":
        return cls(monthIndex=accrual.month_index, interest=accrual.interest, balance=accrual.balance)


class ScheduleEntryView(BaseModel):
    sequence: int
    kind: str
    month: int
    year: int
    dueDate: date
    payoutDate: date
    accrualDays: int
    accrualMonths: int
    investorAmount: Decimal
    advisorAmount: Decimal
    officeAmount: Decimal
    investorAccruals: List[MonthlyAccrualView]
    advisorAccruals: List[MonthlyAccrualView]
    officeAccruals: List[MonthlyAccrualView]

    @classmethod
    def from_entry(cls, entry: ScheduleEntry) -> "ScheduleEntryView":
        return cls(
            sequence=entry.sequence,
            kind=entry.kind.value,
            month=entry.month,
            year=entry.year,
            dueDate=entry.due_date,
            payoutDate=entry.payout_date,
            accrualDays=entry.accrual_days,
            accrualMonths=entry.accrual_months,
            investorAmount=entry.investor_amount,
            advisorAmount=entry.advisor_amount,
            officeAmount=entry.office_amount,
            investorAccruals=_accrual_views(entry, Role.INVESTOR),
            advisorAccruals=_accrual_views(entry, Role.ADVISOR),
            officeAccruals=_accrual_views(entry, Role.OFFICE),
        )


def _accrual_views(entry: ScheduleEntry, role: Role) -> List[MonthlyAccrualView]:
    return [MonthlyAccrualView.from_accrual(accrual) for accrual in entry.accruals_for(role)]


class CutoffPeriodView(BaseModel):
    year: int
    month: int
    cutoffDate: date
    firstEligibleCutoff: date


class CommissionPeriodView(BaseModel):
    startDate: date
    endDate: date


class RoleAmountsView(BaseModel):
    investor: Decimal
    advisor: Decimal
    office: Decimal


class CommissionResponse(BaseModel):
    """Schedule plus the convenience fields the dashboards read."""

    investmentId: Optional[str]
    liquidityCycle: str
    cycleMonths: int
    paymentDueDates: List[date]
    monthlyBreakdown: List[ScheduleEntryView]
    cutoffPeriod: CutoffPeriodView
    commissionPeriod: CommissionPeriodView
    firstPeriod: RoleAmountsView
    totals: RoleAmountsView

    @classmethod
    def from_calculation(cls, calc: CommissionCalculation) -> "CommissionResponse":
        return cls(
            investmentId=calc.investment_id,
            liquidityCycle=calc.liquidity_cycle.value,
            cycleMonths=calc.cycle_months,
            paymentDueDates=calc.payment_due_dates,
            monthlyBreakdown=[ScheduleEntryView.from_entry(entry) for entry in calc.entries],
            cutoffPeriod=CutoffPeriodView(
                year=calc.cutoff_period.year,
                month=calc.cutoff_period.month,
                cutoffDate=calc.cutoff_period.cutoff_date,
                firstEligibleCutoff=calc.cutoff_period.first_eligible_cutoff,
            ),
            commissionPeriod=CommissionPeriodView(
                startDate=calc.commission_period.start_date,
                endDate=calc.commission_period.end_date,
            ),
            firstPeriod=RoleAmountsView(
                investor=calc.first_investor_amount,
                advisor=calc.first_advisor_amount,
                office=calc.first_office_amount,
            ),
            totals=RoleAmountsView(**calc.totals.model_dump()),
        )


class BatchFailureView(BaseModel):
    index: int
    investmentId: Optional[str]
    error: str


class BatchCommissionResponse(BaseModel):
    results: List[CommissionResponse]
    failures: List[BatchFailureView] = Field(default_factory=list)


class RateLookupResponse(BaseModel):
    periodMonths: int
    liquidityCycle: str
    investorRate: Optional[Decimal]
    advisorRate: Optional[Decimal]
    officeRate: Optional[Decimal]
    availableLiquidity: List[str]
