"""
Refinance Calculations

HELOC vs cash-out refinance, discount points breakeven and rate/term
refinance breakeven.
"""

from datetime import date
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta

from mortgage_tools.calculations.aggregation import breakeven_months, interest_through_period
from mortgage_tools.calculations.amortization import amortize
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.calculations.models import LoanTerms

SAVINGS_CHECKPOINT_YEARS = [1, 3, 5, 7, 10, 15, 30]


def heloc_vs_refi(
    home_value: float,
    current_balance: float,
    current_rate: float,
    remaining_years: int,
    cash_needed: float,
    heloc_rate: float = 8.5,
    heloc_draw_years: int = 10,
    heloc_repay_years: int = 20,
    heloc_closing: float = 500.0,
    refi_rate: float = 6.75,
    refi_term_years: int = 30,
    refi_closing: float = 8000.0,
) -> Dict:
    """
    Compare keeping the first mortgage plus a HELOC with a cash-out refinance.

    The HELOC is interest-only through the draw period, then amortizes over
    the repayment period. Refinance closing costs are rolled into the new
    loan.
    """
    if cash_needed <= 0:
        raise InvalidInputError("cash needed must be positive")
    if heloc_draw_years < 0:
        raise InvalidInputError("draw period cannot be negative")

    current = amortize(LoanTerms(current_balance, current_rate, remaining_years))

    heloc_io_payment = cash_needed * heloc_rate / 100 / 12
    heloc_draw_interest = heloc_io_payment * heloc_draw_years * 12
    heloc_repay = amortize(LoanTerms(cash_needed, heloc_rate, heloc_repay_years))
    heloc_total_interest = heloc_draw_interest + heloc_repay.total_interest

    new_loan_amount = current_balance + cash_needed + refi_closing
    refi = amortize(LoanTerms(new_loan_amount, refi_rate, refi_term_years))

    heloc_total_cost = heloc_total_interest + current.total_interest + heloc_closing
    refi_total_cost = refi.total_interest + refi_closing

    return {
        "combined_ltv": (current_balance + cash_needed) / home_value * 100 if home_value > 0 else None,
        "heloc": {
            "current_payment": current.monthly_payment,
            "interest_only_payment": heloc_io_payment,
            "combined_payment": current.monthly_payment + heloc_io_payment,
            "repayment_payment": heloc_repay.monthly_payment,
            "heloc_interest": heloc_total_interest,
            "current_mortgage_interest": current.total_interest,
            "total_interest": heloc_total_interest + current.total_interest,
            "total_cost": heloc_total_cost,
        },
        "refi": {
            "new_loan_amount": new_loan_amount,
            "payment": refi.monthly_payment,
            "payment_change": refi.monthly_payment - current.monthly_payment,
            "total_interest": refi.total_interest,
            "total_cost": refi_total_cost,
        },
        "better_option": "heloc" if heloc_total_cost < refi_total_cost else "refi",
        "difference": abs(refi_total_cost - heloc_total_cost),
    }


def points_breakeven(
    loan_amount: float,
    term_years: int,
    rate_without_points: float,
    rate_with_points: float,
    points: float,
    horizon_years: int = 7,
) -> Dict:
    """
    Months until discount points pay for themselves.

    Args:
        points: Points purchased, in percent of the loan (1.0 = 1 point)
        horizon_years: Expected years in the loan

    Returns:
        Dict with payments, ``breakeven_months`` (``None`` if the points never
        pay back) and savings at the horizon and checkpoint years
    """
    if points < 0:
        raise InvalidInputError("points cannot be negative")

    without = amortize(LoanTerms(loan_amount, rate_without_points, term_years), include_periods=True)
    with_points = amortize(LoanTerms(loan_amount, rate_with_points, term_years), include_periods=True)

    points_cost = loan_amount * points / 100
    monthly_savings = without.monthly_payment - with_points.monthly_payment
    breakeven = breakeven_months(points_cost, monthly_savings)
    horizon_months = min(horizon_years * 12, without.payoff_month)

    checkpoints: List[Dict] = []
    for year in SAVINGS_CHECKPOINT_YEARS:
        if year > term_years:
            break
        checkpoints.append({"year": year, "net_savings": monthly_savings * year * 12 - points_cost})

    return {
        "points_cost": points_cost,
        "payment_without_points": without.monthly_payment,
        "payment_with_points": with_points.monthly_payment,
        "monthly_savings": monthly_savings,
        "breakeven_months": breakeven,
        "net_savings_at_horizon": monthly_savings * horizon_months - points_cost,
        "interest_saved_at_horizon": (
            interest_through_period(without.periods, horizon_months)
            - interest_through_period(with_points.periods, horizon_months)
        ),
        "worth_it": breakeven is not None and breakeven <= horizon_years * 12,
        "checkpoints": checkpoints,
    }


def refinance_breakeven(
    current_balance: float,
    current_rate: float,
    current_remaining_years: int,
    new_rate: float,
    new_term_years: int,
    closing_costs: float,
    roll_costs: bool = False,
    start_date: Optional[date] = None,
) -> Dict:
    """
    Months until a rate/term refinance recovers its closing costs.

    When costs are rolled into the new loan there is nothing to recover up
    front; the cost shows up in the lifetime interest instead.
    """
    if closing_costs < 0:
        raise InvalidInputError("closing costs cannot be negative")
    if start_date is None:
        start_date = date.today()

    current = amortize(LoanTerms(current_balance, current_rate, current_remaining_years))
    new_amount = current_balance + closing_costs if roll_costs else current_balance
    new = amortize(LoanTerms(new_amount, new_rate, new_term_years))

    monthly_savings = current.monthly_payment - new.monthly_payment
    upfront_costs = 0.0 if roll_costs else closing_costs
    breakeven = breakeven_months(upfront_costs, monthly_savings)

    cumulative_savings = [
        {"year": year, "net_savings": monthly_savings * 12 * year - upfront_costs}
        for year in range(1, new_term_years + 1)
    ]

    return {
        "current_payment": current.monthly_payment,
        "new_loan_amount": new_amount,
        "new_payment": new.monthly_payment,
        "monthly_savings": monthly_savings,
        "upfront_costs": upfront_costs,
        "breakeven_months": breakeven,
        "breakeven_date": (
            (start_date + relativedelta(months=breakeven)).isoformat()
            if breakeven is not None
            else None
        ),
        "current_remaining_interest": current.total_interest,
        "new_total_interest": new.total_interest,
        "lifetime_interest_change": new.total_interest - current.total_interest,
        "cumulative_savings": cumulative_savings,
    }
