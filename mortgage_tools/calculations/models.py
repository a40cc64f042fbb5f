"""
Value records for the amortization engine.

Every record is immutable; the only mutable state in a simulation is the
running balance local to one pass of the schedule generator.
"""

import enum
import math
from dataclasses import dataclass, field
from typing import Tuple

from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.config import get_settings


def _require_finite(name: str, value: float) -> None:
    if not isinstance(value, (int, float)) or isinstance(value, bool):
        raise InvalidInputError(f"{name} must be a number")
    if not math.isfinite(value):
        raise InvalidInputError(f"{name} must be finite")


class ScheduleStatus(str, enum.Enum):
    """Schedule generator states."""

    accruing = "accruing"
    paid_off = "paid_off"
    term_exhausted = "term_exhausted"


@dataclass(frozen=True)
class LoanTerms:
    """
    Principal, annual rate and term of a fully amortizing loan.

    Args:
        principal: Amount financed
        annual_rate_percent: Nominal annual rate in percent (6.5 for 6.5%)
        term_years: Whole years, between 1 and ``max_term_years``
    """

    principal: float
    annual_rate_percent: float
    term_years: int

    def __post_init__(self):
        _require_finite("principal", self.principal)
        _require_finite("annual_rate_percent", self.annual_rate_percent)
        if self.principal <= 0:
            raise InvalidInputError("principal must be positive")
        if self.annual_rate_percent < 0:
            raise InvalidInputError("annual_rate_percent cannot be negative")
        if not isinstance(self.term_years, int) or isinstance(self.term_years, bool):
            raise InvalidInputError("term_years must be a whole number of years")
        if self.term_years < 1:
            raise InvalidInputError("term_years must be at least 1")
        max_years = get_settings().max_term_years
        if self.term_years > max_years:
            raise InvalidInputError(f"term_years cannot exceed {max_years}")

    @property
    def term_months(self) -> int:
        return self.term_years * 12

    @property
    def monthly_rate(self) -> float:
        return self.annual_rate_percent / 100 / 12


@dataclass(frozen=True)
class ExtraPaymentPolicy:
    """Recurring extra principal plus an optional one-time lump sum."""

    extra_monthly: float = 0.0
    lump_sum: float = 0.0
    lump_sum_at_month: int = 1

    def __post_init__(self):
        _require_finite("extra_monthly", self.extra_monthly)
        _require_finite("lump_sum", self.lump_sum)
        if self.extra_monthly < 0:
            raise InvalidInputError("extra_monthly cannot be negative")
        if self.lump_sum < 0:
            raise InvalidInputError("lump_sum cannot be negative")
        if not isinstance(self.lump_sum_at_month, int) or self.lump_sum_at_month < 1:
            raise InvalidInputError("lump_sum_at_month must be a month number >= 1")

    @property
    def is_empty(self) -> bool:
        return self.extra_monthly == 0 and self.lump_sum == 0

    def extra_for_month(self, month: int) -> float:
        """Extra principal scheduled for a 1-based month."""
        extra = self.extra_monthly
        if self.lump_sum > 0 and month == self.lump_sum_at_month:
            extra += self.lump_sum
        return extra


@dataclass(frozen=True)
class StepResult:
    """Outcome of advancing the loan by one month."""

    interest: float
    principal_applied: float
    new_balance: float
    negative_amortization: bool = False


@dataclass(frozen=True)
class PeriodResult:
    """One simulated month."""

    month_index: int
    interest_accrued: float
    principal_applied: float
    ending_balance: float
    extra_applied: float = 0.0
    negative_amortization: bool = False

    @property
    def payment(self) -> float:
        """Cash paid this month (interest plus principal, extras included)."""
        return self.interest_accrued + self.principal_applied


@dataclass(frozen=True)
class YearlyRollup:
    """Monthly results summed per loan year."""

    year: int
    payment_total: float
    principal_total: float
    interest_total: float
    ending_balance: float


@dataclass(frozen=True)
class ScheduleSummary:
    """Result of running a schedule to completion."""

    monthly_payment: float
    total_interest: float
    payoff_month: int
    yearly_rollups: Tuple[YearlyRollup, ...]
    status: ScheduleStatus
    negative_amortization: bool = False
    total_paid: float = 0.0
    periods: Tuple[PeriodResult, ...] = field(default=())

    @property
    def paid_off(self) -> bool:
        return self.status == ScheduleStatus.paid_off
