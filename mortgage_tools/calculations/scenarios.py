"""
Scenario Calculations

What-if simulator, life events (windfalls and raises applied to the loan)
and payment stress testing.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Sequence, Tuple

from mortgage_tools.calculations.amortization import amortize, compare_to_baseline
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.calculations.models import ExtraPaymentPolicy, LoanTerms

logger = logging.getLogger(__name__)

PMI_FREE_DOWN_PAYMENT = 20.0


def what_if(
    home_price: float,
    annual_rate_percent: float,
    down_payment_percent: float,
    extra_monthly: float = 0.0,
    term_years: int = 30,
) -> Dict:
    """
    Payment, interest and payoff time for a purchase scenario.

    Interest saved is measured against the same loan without extra payments.
    """
    if home_price <= 0:
        raise InvalidInputError("home price must be positive")
    if not 0 <= down_payment_percent < 100:
        raise InvalidInputError("down payment must be at least 0% and below 100%")

    down_payment = home_price * down_payment_percent / 100
    terms = LoanTerms(home_price - down_payment, annual_rate_percent, term_years)
    policy = ExtraPaymentPolicy(extra_monthly=extra_monthly) if extra_monthly > 0 else None
    comparison = compare_to_baseline(terms, policy)
    result = comparison.accelerated

    return {
        "loan_amount": terms.principal,
        "down_payment": down_payment,
        "monthly_payment": result.monthly_payment,
        "total_interest": result.total_interest,
        "payoff_months": result.payoff_month,
        "payoff_years": result.payoff_month // 12,
        "payoff_remaining_months": result.payoff_month % 12,
        "interest_saved": comparison.interest_saved,
        "months_saved": comparison.months_saved,
        "pmi_warning": down_payment_percent < PMI_FREE_DOWN_PAYMENT,
        "yearly_principal": [r.principal_total for r in result.yearly_rollups],
        "yearly_interest": [r.interest_total for r in result.yearly_rollups],
    }


LIFE_EVENT_KINDS = ("lump_sum", "extra_monthly")


@dataclass(frozen=True)
class LifeEvent:
    """
    Something that changes what goes toward the loan from a given month.

    ``lump_sum`` pays ``amount`` once in ``month``; ``extra_monthly`` sets the
    recurring extra payment to ``amount`` from ``month`` onward (0 stops it).
    """

    month: int
    kind: str
    amount: float
    label: str = ""

    def __post_init__(self):
        if self.kind not in LIFE_EVENT_KINDS:
            raise InvalidInputError(f"Unknown life event kind: {self.kind}")
        if not isinstance(self.month, int) or self.month < 1:
            raise InvalidInputError("life event month must be >= 1")
        if self.amount < 0:
            raise InvalidInputError("life event amount cannot be negative")


@dataclass(frozen=True)
class LifeEventPlan:
    """Extra payments driven by a sequence of life events."""

    events: Tuple[LifeEvent, ...]

    @property
    def is_empty(self) -> bool:
        return all(event.amount == 0 for event in self.events)

    def extra_for_month(self, month: int) -> float:
        extra = 0.0
        recurring = 0.0
        recurring_from = 0
        for event in self.events:
            if event.kind == "lump_sum" and event.month == month:
                extra += event.amount
            elif event.kind == "extra_monthly" and recurring_from <= event.month <= month:
                recurring = event.amount
                recurring_from = event.month
        return extra + recurring


def life_events(
    principal: float,
    annual_rate_percent: float,
    term_years: int,
    events: Sequence[LifeEvent],
) -> Dict:
    """
    Apply life events to a loan and compare with the unchanged schedule.

    Events scheduled after the loan is paid off are reported as not applied.
    """
    terms = LoanTerms(principal, annual_rate_percent, term_years)
    plan = LifeEventPlan(tuple(events))
    comparison = compare_to_baseline(terms, plan)
    baseline = comparison.baseline
    with_events = comparison.accelerated

    return {
        "monthly_payment": baseline.monthly_payment,
        "baseline_total_interest": baseline.total_interest,
        "baseline_payoff_month": baseline.payoff_month,
        "total_interest": with_events.total_interest,
        "payoff_month": with_events.payoff_month,
        "interest_saved": comparison.interest_saved,
        "months_saved": comparison.months_saved,
        "events": [
            {
                "month": event.month,
                "kind": event.kind,
                "amount": event.amount,
                "label": event.label,
                "applied": event.month <= with_events.payoff_month,
            }
            for event in sorted(events, key=lambda e: e.month)
        ],
        "baseline_balance_by_year": [r.ending_balance for r in baseline.yearly_rollups],
        "balance_by_year": [r.ending_balance for r in with_events.yearly_rollups],
    }


def stress_test(
    loan_amount: float,
    annual_rate_percent: float,
    term_years: int,
    monthly_income: float,
    other_debts: float = 0.0,
    monthly_escrow: float = 0.0,
    max_dti: float = 43.0,
    rate_shocks: Sequence[float] = (1.0, 2.0, 3.0),
    income_shocks: Sequence[float] = (10.0, 20.0),
) -> Dict:
    """
    Payment and DTI under rate increases and income drops.

    Each rate shock is re-amortized over the full term. It is also run with
    the base payment held fixed (a payment-capped reset) to show whether
    the balance would grow instead.

    Args:
        monthly_escrow: Taxes, insurance and HOA per month
        rate_shocks: Rate increases in percentage points
        income_shocks: Income reductions in percent
    """
    if monthly_income <= 0:
        raise InvalidInputError("monthly income must be positive")
    if any(shock < 0 for shock in rate_shocks):
        raise InvalidInputError("rate shocks must be increases")
    if any(not 0 <= shock < 100 for shock in income_shocks):
        raise InvalidInputError("income shocks must be between 0% and 100%")

    base_terms = LoanTerms(loan_amount, annual_rate_percent, term_years)
    base = amortize(base_terms)

    def row(name: str, rate: float, income: float, payment: float) -> Dict:
        housing = payment + monthly_escrow
        dti = (housing + other_debts) / income * 100
        return {
            "scenario": name,
            "rate": rate,
            "monthly_income": income,
            "payment": payment,
            "payment_increase": payment - base.monthly_payment,
            "back_end_dti": dti,
            "passes": dti <= max_dti,
        }

    scenarios: List[Dict] = [row("base", annual_rate_percent, monthly_income, base.monthly_payment)]

    for shock in rate_shocks:
        shocked_terms = LoanTerms(loan_amount, annual_rate_percent + shock, term_years)
        shocked = amortize(shocked_terms)
        held = amortize(shocked_terms, scheduled_payment=base.monthly_payment)
        entry = row(f"rate +{shock:g}", shocked_terms.annual_rate_percent, monthly_income, shocked.monthly_payment)
        entry["negative_amortization_if_payment_held"] = held.negative_amortization
        entry["balance_at_term_if_payment_held"] = held.yearly_rollups[-1].ending_balance
        scenarios.append(entry)

    for shock in income_shocks:
        income = monthly_income * (1 - shock / 100)
        scenarios.append(row(f"income -{shock:g}%", annual_rate_percent, income, base.monthly_payment))

    if rate_shocks and income_shocks:
        worst_rate = annual_rate_percent + max(rate_shocks)
        worst = amortize(LoanTerms(loan_amount, worst_rate, term_years))
        income = monthly_income * (1 - max(income_shocks) / 100)
        scenarios.append(row("combined worst case", worst_rate, income, worst.monthly_payment))

    failing = [s["scenario"] for s in scenarios if not s["passes"]]
    if failing:
        logger.info("Stress test failing scenarios: %s", ", ".join(failing))

    return {
        "base_payment": base.monthly_payment,
        "max_dti": max_dti,
        "scenarios": scenarios,
        "all_pass": not failing,
        "failing_scenarios": failing,
    }
