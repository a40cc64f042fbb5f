"""
Schedule Aggregation

Yearly rollups and comparison metrics derived from period series: cumulative
totals, breakeven between two cost streams, crossover between two series and
threshold detection. Periods are 1-based throughout.
"""

import math
from typing import Iterable, List, Optional, Sequence

import numpy as np

from mortgage_tools.calculations.models import PeriodResult, YearlyRollup

# Returned when a breakeven or crossover does not happen within the horizon
NO_BREAKEVEN = None


def rollup_by_year(periods: Iterable[PeriodResult]) -> List[YearlyRollup]:
    """
    Sum monthly results into loan years.

    Year ``n`` covers months ``12(n-1)+1 .. 12n``; a partial final year is
    kept. ``payment_total`` is the cash actually paid, extras included.
    """
    rollups: List[YearlyRollup] = []
    current_year = None
    payment_total = principal_total = interest_total = 0.0
    ending_balance = 0.0

    for period in periods:
        year = math.ceil(period.month_index / 12)

        if current_year is not None and year != current_year:
            rollups.append(
                YearlyRollup(
                    year=current_year,
                    payment_total=payment_total,
                    principal_total=principal_total,
                    interest_total=interest_total,
                    ending_balance=ending_balance,
                )
            )
            payment_total = principal_total = interest_total = 0.0

        current_year = year
        payment_total += period.payment
        principal_total += period.principal_applied
        interest_total += period.interest_accrued
        ending_balance = period.ending_balance

    if current_year is not None:
        rollups.append(
            YearlyRollup(
                year=current_year,
                payment_total=payment_total,
                principal_total=principal_total,
                interest_total=interest_total,
                ending_balance=ending_balance,
            )
        )

    return rollups


def cumulative(series: Sequence[float]) -> List[float]:
    """Running totals of a series."""
    return np.cumsum(np.asarray(series, dtype=float)).tolist()


def _first_true(mask: np.ndarray) -> Optional[int]:
    if mask.size == 0 or not mask.any():
        return NO_BREAKEVEN
    return int(np.argmax(mask)) + 1


def find_crossover(series_a: Sequence[float], series_b: Sequence[float]) -> Optional[int]:
    """
    First period at which ``series_a >= series_b``.

    Only the overlapping horizon is examined; nothing is extrapolated.
    """
    horizon = min(len(series_a), len(series_b))
    a = np.asarray(series_a[:horizon], dtype=float)
    b = np.asarray(series_b[:horizon], dtype=float)
    return _first_true(a >= b)


def find_breakeven(series_a: Sequence[float], series_b: Sequence[float]) -> Optional[int]:
    """
    First period at which cumulative ``series_a`` reaches cumulative ``series_b``.

    Args:
        series_a: Per-period amounts of the first cost stream
        series_b: Per-period amounts of the second cost stream

    Returns:
        1-based period, or ``NO_BREAKEVEN`` if it never happens in the horizon
    """
    horizon = min(len(series_a), len(series_b))
    return find_crossover(
        cumulative(series_a[:horizon]), cumulative(series_b[:horizon])
    )


def first_period_at_or_below(series: Sequence[float], threshold: float) -> Optional[int]:
    """First period whose value is at or below ``threshold``."""
    values = np.asarray(series, dtype=float)
    return _first_true(values <= threshold)


def breakeven_months(upfront_cost: float, monthly_savings: float) -> Optional[int]:
    """Months of savings needed to recover an upfront cost."""
    if monthly_savings <= 0:
        return NO_BREAKEVEN
    if upfront_cost <= 0:
        return 0
    return math.ceil(upfront_cost / monthly_savings)


def interest_through_period(periods: Iterable[PeriodResult], months: int) -> float:
    """Interest paid over the first ``months`` periods."""
    return sum(p.interest_accrued for p in periods if p.month_index <= months)


def escalating_series(first_value: float, growth_rate: float, periods: int) -> List[float]:
    """``first_value`` compounded by ``growth_rate`` each period."""
    return (first_value * (1 + growth_rate) ** np.arange(periods)).tolist()
