"""
Amortization API endpoints.

These endpoints accept loan inputs and return schedules and summaries.
"""

from fastapi import APIRouter
from pydantic import BaseModel
from typing import List, Optional

from mortgage_tools.calculations.amortization import amortize, compare_to_baseline, payment_for_months
from mortgage_tools.calculations.apr import calculate_apr
from mortgage_tools.calculations.models import ExtraPaymentPolicy, LoanTerms
from mortgage_tools.presentation.series import (
    balance_chart,
    principal_interest_chart,
    schedule_rows,
    yearly_rows,
)

router = APIRouter()


class LoanInput(BaseModel):
    """Loan terms."""

    principal: float
    annual_rate_percent: float
    term_years: int


class ExtraPaymentInput(BaseModel):
    """Optional extra payments."""

    extra_monthly: float = 0.0
    lump_sum: float = 0.0
    lump_sum_at_month: int = 1


class AmortizationInput(LoanInput):
    """Input for schedule generation."""

    extra: Optional[ExtraPaymentInput] = None
    scheduled_payment: Optional[float] = None
    include_monthly: bool = False


class PaymentResponse(BaseModel):
    """Level monthly payment."""

    monthly_payment: float
    total_payments: int


class ScheduleResponse(BaseModel):
    """Schedule summary with display rows."""

    monthly_payment: float
    total_interest: float
    total_paid: float
    payoff_month: int
    status: str
    negative_amortization: bool
    yearly: List[dict]
    monthly: List[dict] = []
    chart: dict


def _terms(inputs: LoanInput) -> LoanTerms:
    return LoanTerms(inputs.principal, inputs.annual_rate_percent, inputs.term_years)


def _policy(extra: Optional[ExtraPaymentInput]) -> Optional[ExtraPaymentPolicy]:
    if extra is None:
        return None
    return ExtraPaymentPolicy(extra.extra_monthly, extra.lump_sum, extra.lump_sum_at_month)


@router.post("/payment", response_model=PaymentResponse)
async def calculate_payment_endpoint(inputs: LoanInput):
    """Calculate the level monthly payment."""
    terms = _terms(inputs)
    return PaymentResponse(
        monthly_payment=payment_for_months(terms.principal, terms.annual_rate_percent, terms.term_months),
        total_payments=terms.term_months,
    )


@router.post("/amortization", response_model=ScheduleResponse)
async def calculate_amortization(inputs: AmortizationInput):
    """Generate a loan amortization schedule."""
    summary = amortize(
        _terms(inputs),
        _policy(inputs.extra),
        scheduled_payment=inputs.scheduled_payment,
        include_periods=inputs.include_monthly,
    )

    return ScheduleResponse(
        monthly_payment=summary.monthly_payment,
        total_interest=summary.total_interest,
        total_paid=summary.total_paid,
        payoff_month=summary.payoff_month,
        status=summary.status.value,
        negative_amortization=summary.negative_amortization,
        yearly=yearly_rows(summary),
        monthly=schedule_rows(summary),
        chart=principal_interest_chart(summary),
    )


class CompareInput(LoanInput):
    """Input for extra-payment comparison."""

    extra: ExtraPaymentInput


@router.post("/compare")
async def compare_extra_payments(inputs: CompareInput):
    """Compare a schedule with extra payments against the standard one."""
    comparison = compare_to_baseline(_terms(inputs), _policy(inputs.extra))

    return {
        "monthly_payment": comparison.baseline.monthly_payment,
        "baseline_total_interest": comparison.baseline.total_interest,
        "baseline_payoff_month": comparison.baseline.payoff_month,
        "total_interest": comparison.accelerated.total_interest,
        "payoff_month": comparison.accelerated.payoff_month,
        "interest_saved": comparison.interest_saved,
        "months_saved": comparison.months_saved,
        "chart": balance_chart(
            comparison.baseline,
            comparison.accelerated,
            labels=["Standard", "With extra payments"],
        ),
    }


class APRInput(LoanInput):
    """Input for APR calculation."""

    finance_charges: float = 0.0


class APRResponse(BaseModel):
    """APR result."""

    apr: float
    note_rate: float
    monthly_payment: float
    amount_financed: float


@router.post("/apr", response_model=APRResponse)
async def calculate_apr_endpoint(inputs: APRInput):
    """Calculate APR including prepaid finance charges."""
    terms = _terms(inputs)
    payment = payment_for_months(terms.principal, terms.annual_rate_percent, terms.term_months)
    apr = calculate_apr(terms.principal, payment, terms.term_months, inputs.finance_charges)

    return APRResponse(
        apr=apr,
        note_rate=terms.annual_rate_percent,
        monthly_payment=payment,
        amount_financed=terms.principal - inputs.finance_charges,
    )
