from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, field_validator


class LiquidityCycle(str, Enum):
    MONTHLY = "monthly"
    SEMIANNUAL = "semiannual"
    ANNUAL = "annual"
    BIENNIAL = "biennial"
    TRIENNIAL = "triennial"

    @classmethod
    def parse(cls, value: object) -> Optional["LiquidityCycle"]:
        """Resolve platform labels ("Mensal", "Annual", "anual", ...) to a cycle.

        Returns None when the label is not recognised.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        return _LIQUIDITY_ALIASES.get(value.strip().lower())


_LIQUIDITY_ALIASES = {
    "monthly": LiquidityCycle.MONTHLY,
    "mensal": LiquidityCycle.MONTHLY,
    "semiannual": LiquidityCycle.SEMIANNUAL,
    "semestral": LiquidityCycle.SEMIANNUAL,
    "annual": LiquidityCycle.ANNUAL,
    "anual": LiquidityCycle.ANNUAL,
    "biennial": LiquidityCycle.BIENNIAL,
    "bienal": LiquidityCycle.BIENNIAL,
    "triennial": LiquidityCycle.TRIENNIAL,
    "trienal": LiquidityCycle.TRIENNIAL,
}


class Role(str, Enum):
    INVESTOR = "investor"
    ADVISOR = "advisor"
    OFFICE = "office"


class EntryKind(str, Enum):
    FIRST_STUB = "first_stub"
    CYCLE = "cycle"
    FINAL_STUB = "final_stub"


def normalize_calendar_date(value: object) -> object:
    """Reduce datetimes and timestamps ("2024-01-06T10:00", "2024-01-06 10:00+00") to their calendar date.

    Only the YYYY-MM-DD part is kept so no timezone shift can move a deposit
    to a neighbouring day.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, str):
        value = value.strip()
        for separator in ("T", " "):
            if separator in value:
                return value.split(separator, 1)[0]
    return value


class InvestmentInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    investment_id: Optional[str] = None
    principal: Decimal = Field(gt=0)
    deposit_date: date
    commitment_period_months: int = Field(ge=1)
    liquidity_cycle: LiquidityCycle = LiquidityCycle.MONTHLY
    # D+N window before the first payable cutoff; None uses the configured default
    eligibility_days: Optional[int] = Field(default=None, ge=0)

    owner_id: Optional[str] = None
    advisor_id: Optional[str] = None
    office_id: Optional[str] = None

    @field_validator("deposit_date", mode="before")
    @classmethod
    def _calendar_date(cls, value: object) -> object:
        return normalize_calendar_date(value)

    @field_validator("liquidity_cycle", mode="before")
    @classmethod
    def _degrade_unknown_liquidity(cls, value: object) -> LiquidityCycle:
        if value is None:
            return LiquidityCycle.MONTHLY
        cycle = LiquidityCycle.parse(value)
        if cycle is None:
            logger.warning(f"Unknown liquidity cycle {value!r}, falling back to monthly")
            return LiquidityCycle.MONTHLY
        return cycle


class RoleRates(BaseModel):
    """Monthly rates per role. None means the rate is missing."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    investor_rate: Optional[Decimal] = Field(default=None, ge=0, lt=1)
    advisor_rate: Optional[Decimal] = Field(default=None, ge=0, lt=1)
    office_rate: Optional[Decimal] = Field(default=None, ge=0, lt=1)

    def for_role(self, role: Role) -> Optional[Decimal]:
        return getattr(self, f"{role.value}_rate")

    def missing_roles(self) -> List[Role]:
        return [role for role in Role if self.for_role(role) is None]

    def merged_with(self, fallback: "RoleRates") -> "RoleRates":
        """Fill the missing rates from ``fallback``; explicit rates win."""
        return RoleRates(
            **{
                f"{role.value}_rate": (
                    self.for_role(role) if self.for_role(role) is not None else fallback.for_role(role)
                )
                for role in Role
            }
        )


class RoleAmounts(BaseModel):
    model_config = ConfigDict(extra="forbid")

    investor: Decimal = Field(default=Decimal("0"), ge=0)
    advisor: Decimal = Field(default=Decimal("0"), ge=0)
    office: Decimal = Field(default=Decimal("0"), ge=0)

    def for_role(self, role: Role) -> Decimal:
        return getattr(self, role.value)


class CutoffPeriod(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    cutoff_date: date
    first_eligible_cutoff: date

    @property
    def year(self) -> int:
        return self.cutoff_date.year

    @property
    def month(self) -> int:
        return self.cutoff_date.month


class CommissionPeriod(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start_date: date
    end_date: date


class MonthlyAccrual(BaseModel):
    """One month inside a cycle: interest earned and the balance after it, in cents."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    month_index: int = Field(ge=1)
    interest: Decimal = Field(ge=0)
    balance: Decimal


class ScheduleEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    sequence: int = Field(ge=0)
    kind: EntryKind
    month: int = Field(ge=1, le=12)
    year: int
    due_date: date
    payout_date: date
    accrual_days: int = Field(default=0, ge=0)
    accrual_months: int = Field(default=0, ge=0)

    investor_amount: Decimal = Field(ge=0)
    advisor_amount: Decimal = Field(ge=0)
    office_amount: Decimal = Field(ge=0)

    # month-by-month detail of cycle entries, empty for stubs and zero rates
    investor_accruals: List[MonthlyAccrual] = Field(default_factory=list)
    advisor_accruals: List[MonthlyAccrual] = Field(default_factory=list)
    office_accruals: List[MonthlyAccrual] = Field(default_factory=list)

    def amount_for(self, role: Role) -> Decimal:
        return getattr(self, f"{role.value}_amount")

    def accruals_for(self, role: Role) -> List[MonthlyAccrual]:
        return getattr(self, f"{role.value}_accruals")


class CommissionCalculation(BaseModel):
    model_config = ConfigDict(extra="forbid")

    investment_id: Optional[str] = None
    liquidity_cycle: LiquidityCycle
    cycle_months: int
    entries: List[ScheduleEntry]
    cutoff_period: CutoffPeriod
    commission_period: CommissionPeriod

    first_investor_amount: Decimal
    first_advisor_amount: Decimal
    first_office_amount: Decimal
    totals: RoleAmounts

    @property
    def payment_due_dates(self) -> List[date]:
        return [entry.due_date for entry in self.entries]

    def next_entry(self, as_of: date) -> Optional[ScheduleEntry]:
        """First entry due on or after ``as_of`` (the dashboard's "next payment")."""
        for entry in self.entries:
            if entry.due_date >= as_of:
                return entry
        return None
