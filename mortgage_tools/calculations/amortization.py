"""
Loan Amortization Engine

Level-payment formula, the single-month amortization step and the schedule
generator shared by every calculator. Inputs are plain numbers; outputs are
immutable records. Nothing here formats or rounds for display.
"""

import logging
import math
from dataclasses import dataclass
from typing import Iterator, List, Optional

from mortgage_tools.calculations.aggregation import rollup_by_year
from mortgage_tools.calculations.errors import InvalidInputError, NumericOverflowError
from mortgage_tools.calculations.models import (
    ExtraPaymentPolicy,
    LoanTerms,
    PeriodResult,
    ScheduleStatus,
    ScheduleSummary,
    StepResult,
)
from mortgage_tools.config import get_settings

logger = logging.getLogger(__name__)


def payment_for_months(principal: float, annual_rate_percent: float, months: int) -> float:
    """
    Level monthly payment that fully amortizes ``principal`` over ``months``.

    Uses ``log1p``/``expm1`` so that ``(1 + r)^n - 1`` keeps its precision
    when ``r`` is tiny.

    Args:
        principal: Amount financed (> 0)
        annual_rate_percent: Nominal annual rate in percent (>= 0)
        months: Number of monthly payments (>= 1)

    Returns:
        Monthly payment

    Raises:
        InvalidInputError: Out-of-range inputs
        NumericOverflowError: Formula produced a non-finite value
    """
    if not math.isfinite(principal) or principal <= 0:
        raise InvalidInputError("principal must be a positive finite number")
    if not math.isfinite(annual_rate_percent) or annual_rate_percent < 0:
        raise InvalidInputError("annual rate must be a non-negative finite number")
    if months < 1:
        raise InvalidInputError("at least one payment is required")

    monthly_rate = annual_rate_percent / 100 / 12

    if monthly_rate == 0:
        return principal / months

    try:
        growth = months * math.log1p(monthly_rate)
        factor = math.exp(growth)
        payment = principal * monthly_rate * factor / math.expm1(growth)
    except (OverflowError, ZeroDivisionError) as exc:
        raise NumericOverflowError("payment calculation overflowed") from exc

    if not math.isfinite(payment):
        raise NumericOverflowError("payment calculation produced a non-finite value")

    return payment


def monthly_payment(principal: float, annual_rate_percent: float, term_years: int) -> float:
    """Level monthly payment for validated loan terms."""
    terms = LoanTerms(principal, annual_rate_percent, term_years)
    return payment_for_months(terms.principal, terms.annual_rate_percent, terms.term_months)


def remaining_balance(terms: LoanTerms, payments_made: int) -> float:
    """Closed-form balance after N level payments."""
    if payments_made <= 0:
        return terms.principal
    if payments_made >= terms.term_months:
        return 0.0

    rate = terms.monthly_rate
    payment = payment_for_months(terms.principal, terms.annual_rate_percent, terms.term_months)

    if rate == 0:
        return max(0.0, terms.principal - payment * payments_made)

    growth = (1 + rate) ** payments_made
    balance = terms.principal * growth - payment * (growth - 1) / rate
    return max(0.0, balance)


def amortize_step(
    balance: float,
    monthly_rate: float,
    scheduled_payment: float,
    extra: float = 0.0,
) -> StepResult:
    """
    Advance a loan by one month.

    Principal applied never exceeds the remaining balance. When the scheduled
    payment does not cover the month's interest the unpaid interest is
    capitalized and the result is flagged as negative amortization.
    """
    if not math.isfinite(balance) or balance < 0:
        raise InvalidInputError("balance must be a non-negative finite number")
    if not math.isfinite(monthly_rate) or monthly_rate < 0:
        raise InvalidInputError("monthly rate must be a non-negative finite number")
    if not math.isfinite(scheduled_payment) or not math.isfinite(extra):
        raise InvalidInputError("payments must be finite")

    interest = balance * monthly_rate
    shortfall = scheduled_payment - interest <= 0
    principal_applied = min(scheduled_payment - interest + extra, balance)
    new_balance = balance - principal_applied
    if not math.isfinite(interest) or not math.isfinite(new_balance):
        raise NumericOverflowError("balance or interest overflowed")

    # Sub-cent residue from float arithmetic counts as paid off
    tolerance = max(get_settings().payoff_tolerance, abs(scheduled_payment) * 1e-9)
    if new_balance <= tolerance and not shortfall:
        principal_applied = balance
        new_balance = 0.0

    return StepResult(
        interest=interest,
        principal_applied=principal_applied,
        new_balance=max(new_balance, 0.0),
        negative_amortization=shortfall and balance > 0,
    )


def _resolve_payment(terms: LoanTerms, scheduled_payment: Optional[float]) -> float:
    if scheduled_payment is None:
        return payment_for_months(terms.principal, terms.annual_rate_percent, terms.term_months)
    if not math.isfinite(scheduled_payment) or scheduled_payment < 0:
        raise InvalidInputError("scheduled payment must be a non-negative finite number")
    return scheduled_payment


def _run_schedule(
    terms: LoanTerms,
    policy: Optional[ExtraPaymentPolicy],
    payment: float,
) -> Iterator[PeriodResult]:
    balance = terms.principal
    rate = terms.monthly_rate
    warned = False

    for month in range(1, terms.term_months + 1):
        extra = policy.extra_for_month(month) if policy is not None else 0.0
        step = amortize_step(balance, rate, payment, extra)

        if step.negative_amortization and not warned:
            logger.warning(
                "Payment %.2f does not cover interest %.2f in month %d",
                payment,
                step.interest,
                month,
            )
            warned = True

        yield PeriodResult(
            month_index=month,
            interest_accrued=step.interest,
            principal_applied=step.principal_applied,
            ending_balance=step.new_balance,
            extra_applied=min(extra, max(step.principal_applied, 0.0)),
            negative_amortization=step.negative_amortization,
        )

        balance = step.new_balance
        if balance == 0:
            return


def generate_schedule(
    terms: LoanTerms,
    policy: Optional[ExtraPaymentPolicy] = None,
    scheduled_payment: Optional[float] = None,
) -> Iterator[PeriodResult]:
    """
    Generate the month-by-month schedule.

    Inputs are validated before the first month is produced. Iteration stops
    at the payoff month, or after ``terms.term_months`` when the balance is
    never cleared (only possible with an explicit ``scheduled_payment``).

    Args:
        terms: Loan terms
        policy: Optional extra-payment policy
        scheduled_payment: Override for the level payment

    Returns:
        One-shot iterator of ``PeriodResult``
    """
    payment = _resolve_payment(terms, scheduled_payment)
    return _run_schedule(terms, policy, payment)


def amortize(
    terms: LoanTerms,
    policy: Optional[ExtraPaymentPolicy] = None,
    scheduled_payment: Optional[float] = None,
    include_periods: bool = False,
) -> ScheduleSummary:
    """Run a schedule to completion and summarize it."""
    payment = _resolve_payment(terms, scheduled_payment)
    periods: List[PeriodResult] = list(_run_schedule(terms, policy, payment))

    last = periods[-1]
    paid_off = last.ending_balance == 0
    status = ScheduleStatus.paid_off if paid_off else ScheduleStatus.term_exhausted
    total_interest = sum(p.interest_accrued for p in periods)
    total_paid = sum(p.payment for p in periods)
    rollups = rollup_by_year(periods)
    totals = [total_interest, total_paid] + [r.payment_total for r in rollups]
    if not all(math.isfinite(value) for value in totals):
        raise NumericOverflowError("schedule totals overflowed")

    logger.debug(
        "Amortized %.2f at %.3f%% over %d months: %s in month %d",
        terms.principal,
        terms.annual_rate_percent,
        terms.term_months,
        status.value,
        last.month_index,
    )

    return ScheduleSummary(
        monthly_payment=payment,
        total_interest=total_interest,
        payoff_month=last.month_index if paid_off else terms.term_months,
        yearly_rollups=tuple(rollups),
        status=status,
        negative_amortization=any(p.negative_amortization for p in periods),
        total_paid=total_paid,
        periods=tuple(periods) if include_periods else (),
    )


@dataclass(frozen=True)
class BaselineComparison:
    """Accelerated schedule measured against standard amortization."""

    baseline: ScheduleSummary
    accelerated: ScheduleSummary
    interest_saved: float
    months_saved: int


def compare_to_baseline(
    terms: LoanTerms,
    policy: Optional[ExtraPaymentPolicy],
    include_periods: bool = False,
) -> BaselineComparison:
    """Compare a schedule with extra payments to the zero-extra baseline."""
    baseline = amortize(terms, include_periods=include_periods)
    if policy is None or policy.is_empty:
        accelerated = baseline
    else:
        accelerated = amortize(terms, policy, include_periods=include_periods)

    return BaselineComparison(
        baseline=baseline,
        accelerated=accelerated,
        interest_saved=baseline.total_interest - accelerated.total_interest,
        months_saved=baseline.payoff_month - accelerated.payoff_month,
    )
