"""
Ownership Calculations

Total cost of ownership, PMI removal timeline and temporary rate buydowns.
"""

from datetime import date
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta

from mortgage_tools.calculations.aggregation import first_period_at_or_below
from mortgage_tools.calculations.amortization import amortize, payment_for_months
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.calculations.models import ExtraPaymentPolicy, LoanTerms

# LTV at which PMI can be cancelled on request, and where it ends automatically
PMI_REQUEST_LTV = 80.0
PMI_AUTOMATIC_LTV = 78.0

BUYDOWN_STRUCTURES = {
    "3-2-1": [3, 2, 1],
    "2-1": [2, 1],
    "1-1": [1, 1],
    "1-0": [1],
}


def total_cost_of_ownership(
    home_price: float,
    annual_rate_percent: float,
    term_years: int = 30,
    down_payment_percent: float = 20.0,
    property_tax_percent: float = 1.2,
    annual_insurance: float = 0.0,
    maintenance_percent: float = 1.0,
    monthly_hoa: float = 0.0,
    closing_costs: float = 0.0,
    appreciation_percent: float = 3.0,
) -> Dict:
    """
    Year-by-year cost of owning a home over the loan term.

    Taxes and maintenance are charged on the start-of-year home value;
    appreciation is applied at year end. Net cost is total paid minus equity.
    """
    if home_price <= 0:
        raise InvalidInputError("home price must be positive")
    if not 0 <= down_payment_percent < 100:
        raise InvalidInputError("down payment must be at least 0% and below 100%")

    down_payment = home_price * down_payment_percent / 100
    loan_amount = home_price - down_payment
    summary = amortize(LoanTerms(loan_amount, annual_rate_percent, term_years))

    total_paid = down_payment + closing_costs
    home_value = home_price
    yearly: List[Dict] = []

    for rollup in summary.yearly_rollups:
        taxes = home_value * property_tax_percent / 100
        maintenance = home_value * maintenance_percent / 100
        hoa = monthly_hoa * 12
        total_paid += rollup.payment_total + taxes + annual_insurance + maintenance + hoa
        home_value *= 1 + appreciation_percent / 100
        equity = home_value - rollup.ending_balance

        yearly.append(
            {
                "year": rollup.year,
                "total_paid": total_paid,
                "home_value": home_value,
                "equity": equity,
                "net_cost": total_paid - equity,
                "breakdown": {
                    "down_payment": down_payment if rollup.year == 1 else 0.0,
                    "closing_costs": closing_costs if rollup.year == 1 else 0.0,
                    "mortgage": rollup.payment_total,
                    "principal": rollup.principal_total,
                    "interest": rollup.interest_total,
                    "taxes": taxes,
                    "insurance": annual_insurance,
                    "maintenance": maintenance,
                    "hoa": hoa,
                },
            }
        )

    return {
        "down_payment": down_payment,
        "loan_amount": loan_amount,
        "monthly_payment": summary.monthly_payment,
        "total_interest": summary.total_interest,
        "yearly": yearly,
    }


def pmi_removal(
    home_price: float,
    loan_amount: float,
    annual_rate_percent: float,
    term_years: int,
    monthly_pmi: float,
    appreciation_percent: float = 3.0,
    extra_monthly: float = 0.0,
    start_date: Optional[date] = None,
) -> Dict:
    """
    When LTV reaches 80% (cancel on request) and 78% (automatic removal).

    The home appreciates monthly; extra payments accelerate the balance.
    PMI cost is what is paid until each milestone month.
    """
    if home_price <= 0:
        raise InvalidInputError("home price must be positive")
    if start_date is None:
        start_date = date.today().replace(day=1)

    terms = LoanTerms(loan_amount, annual_rate_percent, term_years)
    initial_ltv = loan_amount / home_price * 100
    if initial_ltv <= PMI_REQUEST_LTV:
        return {
            "required": False,
            "initial_ltv": initial_ltv,
            "month_80": None,
            "month_78": None,
            "date_80": None,
            "date_78": None,
            "pmi_cost_to_80": 0.0,
            "pmi_cost_to_78": 0.0,
            "early_removal_savings": 0.0,
            "ltv_by_month": [],
        }

    policy = ExtraPaymentPolicy(extra_monthly=extra_monthly) if extra_monthly else None
    summary = amortize(terms, policy, include_periods=True)
    monthly_growth = (1 + appreciation_percent / 100) ** (1 / 12)

    ltv_by_month = [
        period.ending_balance / (home_price * monthly_growth ** period.month_index) * 100
        for period in summary.periods
    ]
    month_80 = first_period_at_or_below(ltv_by_month, PMI_REQUEST_LTV)
    month_78 = first_period_at_or_below(ltv_by_month, PMI_AUTOMATIC_LTV)

    def milestone(month):
        if month is None:
            return None, monthly_pmi * terms.term_months
        return (start_date + relativedelta(months=month)).isoformat(), monthly_pmi * month

    date_80, cost_80 = milestone(month_80)
    date_78, cost_78 = milestone(month_78)

    return {
        "required": True,
        "initial_ltv": initial_ltv,
        "month_80": month_80,
        "month_78": month_78,
        "date_80": date_80,
        "date_78": date_78,
        "pmi_cost_to_80": cost_80,
        "pmi_cost_to_78": cost_78,
        "early_removal_savings": cost_78 - cost_80,
        "ltv_by_month": ltv_by_month,
    }


def buydown(
    loan_amount: float,
    note_rate: float,
    term_years: int = 30,
    buydown_type: str = "2-1",
) -> Dict:
    """
    Temporary buydown schedule and the subsidy needed to fund it.

    The subsidy is the sum of payment reductions over the buydown years.
    Reduced rates never go below zero.
    """
    if buydown_type not in BUYDOWN_STRUCTURES:
        raise InvalidInputError(f"Unknown buydown type: {buydown_type}")

    terms = LoanTerms(loan_amount, note_rate, term_years)
    full_payment = payment_for_months(terms.principal, terms.annual_rate_percent, terms.term_months)
    reductions = BUYDOWN_STRUCTURES[buydown_type]
    if term_years <= len(reductions):
        raise InvalidInputError("term must be longer than the buydown period")

    schedule: List[Dict] = []
    total_cost = 0.0
    for index, reduction in enumerate(reductions):
        reduced_rate = max(0.0, note_rate - reduction)
        reduced_payment = payment_for_months(terms.principal, reduced_rate, terms.term_months)
        yearly_savings = (full_payment - reduced_payment) * 12
        total_cost += yearly_savings
        schedule.append(
            {
                "year": index + 1,
                "rate": reduced_rate,
                "payment": reduced_payment,
                "yearly_savings": yearly_savings,
            }
        )

    schedule.append(
        {
            "year": f"{len(reductions) + 1}-{term_years}",
            "rate": note_rate,
            "payment": full_payment,
            "yearly_savings": 0.0,
        }
    )

    return {
        "full_payment": full_payment,
        "total_buydown_cost": total_cost,
        "first_year_payment": schedule[0]["payment"],
        "schedule": schedule,
    }
