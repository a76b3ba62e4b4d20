"""
Rate tables consumed by the engine's callers.

The engine never looks rates up itself: callers resolve a ``RoleRates`` from
a ``RateTable`` before invoking it, optionally through a ``RateCache`` whose
lifetime they own (one request, one export job).
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Dict, List, Mapping, Optional, Tuple

from loguru import logger

from commission_engine.models import LiquidityCycle, Role, RoleRates

RateKey = Tuple[Role, int, LiquidityCycle]

# Investor monthly rates offered per (commitment months, liquidity).
DEFAULT_INVESTOR_RATES: Dict[int, Dict[LiquidityCycle, Decimal]] = {
    3: {LiquidityCycle.MONTHLY: Decimal("0.018")},
    6: {
        LiquidityCycle.MONTHLY: Decimal("0.019"),
        LiquidityCycle.SEMIANNUAL: Decimal("0.02"),
    },
    12: {
        LiquidityCycle.MONTHLY: Decimal("0.021"),
        LiquidityCycle.SEMIANNUAL: Decimal("0.022"),
        LiquidityCycle.ANNUAL: Decimal("0.025"),
    },
    24: {
        LiquidityCycle.MONTHLY: Decimal("0.023"),
        LiquidityCycle.SEMIANNUAL: Decimal("0.025"),
        LiquidityCycle.ANNUAL: Decimal("0.027"),
        LiquidityCycle.BIENNIAL: Decimal("0.03"),
    },
    36: {
        LiquidityCycle.MONTHLY: Decimal("0.024"),
        LiquidityCycle.SEMIANNUAL: Decimal("0.026"),
        LiquidityCycle.BIENNIAL: Decimal("0.032"),
        LiquidityCycle.TRIENNIAL: Decimal("0.035"),
    },
}

DEFAULT_FLAT_RATES: Dict[Role, Decimal] = {
    Role.ADVISOR: Decimal("0.03"),
    Role.OFFICE: Decimal("0.01"),
}


class RateTable(ABC):
    """Lookup of a monthly rate by (role, commitment months, liquidity)."""

    @abstractmethod
    def lookup(self, role: Role, period_months: int, liquidity: LiquidityCycle) -> Optional[Decimal]:
        """Return the monthly rate, or None when the table has no entry."""

    def rates_for(self, period_months: int, liquidity: LiquidityCycle) -> RoleRates:
        return RoleRates(
            **{
                f"{role.value}_rate": self.lookup(role, period_months, liquidity)
                for role in Role
            }
        )

    def available_liquidity_options(self, period_months: int) -> List[LiquidityCycle]:
        return []


class StaticRateTable(RateTable):
    """
    In-memory table: investor rates vary by period and liquidity, advisor and
    office rates are flat.

    A missing investor (period, liquidity) pair falls back to the monthly rate
    offered for the same period.
    """

    def __init__(
        self,
        investor_rates: Optional[Mapping[int, Mapping[LiquidityCycle, Decimal]]] = None,
        flat_rates: Optional[Mapping[Role, Decimal]] = None,
    ):
        self.investor_rates = {
            period: dict(by_liquidity)
            for period, by_liquidity in (investor_rates or DEFAULT_INVESTOR_RATES).items()
        }
        self.flat_rates = dict(DEFAULT_FLAT_RATES if flat_rates is None else flat_rates)

    def lookup(self, role: Role, period_months: int, liquidity: LiquidityCycle) -> Optional[Decimal]:
        if role is not Role.INVESTOR:
            return self.flat_rates.get(role)

        by_liquidity = self.investor_rates.get(period_months)
        if not by_liquidity:
            logger.warning(f"No investor rates configured for a {period_months}-month commitment")
            return None

        rate = by_liquidity.get(liquidity)
        if rate is not None:
            return rate

        fallback = by_liquidity.get(LiquidityCycle.MONTHLY)
        if fallback is not None:
            logger.warning(
                f"No {liquidity.value} rate for {period_months} months, using the monthly rate"
            )
        return fallback

    def available_liquidity_options(self, period_months: int) -> List[LiquidityCycle]:
        return list(self.investor_rates.get(period_months, {}).keys())


class RateCache:
    """
    Caller-owned memo in front of a RateTable.

    Use it as a context manager to tie its lifetime to a request or job; the
    entries are dropped on exit.
    """

    def __init__(self, table: RateTable):
        self.table = table
        self._entries: Dict[RateKey, Optional[Decimal]] = {}

    def __enter__(self) -> "RateCache":
        return self

    def __exit__(self, *exc_info) -> None:
        self.invalidate()

    def __len__(self) -> int:
        return len(self._entries)

    def lookup(self, role: Role, period_months: int, liquidity: LiquidityCycle) -> Optional[Decimal]:
        key = (role, period_months, liquidity)
        if key not in self._entries:
            self._entries[key] = self.table.lookup(role, period_months, liquidity)
        return self._entries[key]

    def rates_for(self, period_months: int, liquidity: LiquidityCycle) -> RoleRates:
        return RoleRates(
            **{
                f"{role.value}_rate": self.lookup(role, period_months, liquidity)
                for role in Role
            }
        )

    def resolve(self, explicit: RoleRates, period_months: int, liquidity: LiquidityCycle) -> RoleRates:
        """Fill the rates missing from ``explicit`` from the table."""
        if not explicit.missing_roles():
            return explicit
        return explicit.merged_with(self.rates_for(period_months, liquidity))

    def invalidate(self) -> None:
        self._entries.clear()
