"""
Loan Cost Calculations

Program fees (FHA MIP, VA funding fee, USDA guarantee fee), the monthly
housing payment, cash to close and APR for a single loan offer, and a
side-by-side comparison of several offers over fixed hold periods.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from mortgage_tools.calculations.affordability import estimate_pmi
from mortgage_tools.calculations.aggregation import interest_through_period
from mortgage_tools.calculations.amortization import amortize, remaining_balance
from mortgage_tools.calculations.apr import calculate_apr
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.calculations.models import LoanTerms, ScheduleSummary

logger = logging.getLogger(__name__)

LOAN_TYPES = ("conventional", "fha", "va", "usda")
TRANSACTIONS = ("purchase", "refinance")
SERVICE_TYPES = ("regular", "reserves")

DEFAULT_HOLD_YEARS = (1, 3, 5, 7, 10)

# VA funding fee, percent of loan amount
VA_IRRRL_FEE = 0.5
VA_FIRST_USE_FEE = 2.15
VA_SUBSEQUENT_USE_FEE = 3.3
VA_FIVE_PERCENT_DOWN_FEE = 1.5
VA_TEN_PERCENT_DOWN_FEE = 1.25
VA_RESERVES_FIRST_USE_FEE = 2.4


def fha_fees(
    loan_amount: float,
    upfront_mip_percent: float = 1.75,
    annual_mip_percent: float = 0.55,
) -> Dict:
    """FHA upfront and annual mortgage insurance premiums."""
    if loan_amount <= 0:
        raise InvalidInputError("loan amount must be positive")

    annual = loan_amount * annual_mip_percent / 100
    return {
        "upfront": loan_amount * upfront_mip_percent / 100,
        "annual": annual,
        "monthly": annual / 12,
    }


def usda_fees(
    loan_amount: float,
    upfront_percent: float = 1.0,
    annual_percent: float = 0.35,
) -> Dict:
    """USDA upfront guarantee fee and annual fee."""
    if loan_amount <= 0:
        raise InvalidInputError("loan amount must be positive")

    annual = loan_amount * annual_percent / 100
    return {
        "upfront": loan_amount * upfront_percent / 100,
        "annual": annual,
        "monthly": annual / 12,
    }


def va_funding_fee(
    loan_amount: float,
    down_payment_percent: float = 0.0,
    first_time: bool = True,
    transaction: str = "purchase",
    cash_out: float = 0.0,
    service_type: str = "regular",
    exempt: bool = False,
    rate_override: Optional[float] = None,
) -> float:
    """
    VA funding fee in dollars.

    Veterans with a service-connected disability are exempt. A refinance
    without cash out is an interest rate reduction refinance (IRRRL) at a
    flat 0.5%. Purchase fees step down at 5% and 10% down payment.
    """
    if loan_amount <= 0:
        raise InvalidInputError("loan amount must be positive")
    if transaction not in TRANSACTIONS:
        raise InvalidInputError(f"transaction must be one of {', '.join(TRANSACTIONS)}")
    if service_type not in SERVICE_TYPES:
        raise InvalidInputError(f"service type must be one of {', '.join(SERVICE_TYPES)}")

    if exempt:
        return 0.0
    if rate_override:
        return loan_amount * rate_override / 100

    if transaction == "refinance":
        if cash_out > 0:
            fee_percent = VA_FIRST_USE_FEE if first_time else VA_SUBSEQUENT_USE_FEE
        else:
            fee_percent = VA_IRRRL_FEE
    elif down_payment_percent < 5:
        fee_percent = VA_FIRST_USE_FEE if first_time else VA_SUBSEQUENT_USE_FEE
    elif down_payment_percent < 10:
        fee_percent = VA_FIVE_PERCENT_DOWN_FEE
    else:
        fee_percent = VA_TEN_PERCENT_DOWN_FEE

    if service_type == "reserves" and first_time and down_payment_percent < 5:
        fee_percent = VA_RESERVES_FIRST_USE_FEE

    return loan_amount * fee_percent / 100


def _program_charges(
    loan_type: str,
    home_price: float,
    loan_amount: float,
    transaction: str,
    cash_out: float,
    credit_score: int,
    program: Optional[str],
    pmi_rate_override: Optional[float],
    fha_upfront_mip_percent: float,
    fha_annual_mip_percent: float,
    usda_upfront_percent: float,
    usda_annual_percent: float,
    va_first_time: bool,
    va_service_type: str,
    va_exempt: bool,
    va_rate_override: Optional[float],
) -> Tuple[float, float]:
    """Upfront fee and monthly mortgage insurance for the loan type."""
    if loan_type == "fha":
        fees = fha_fees(loan_amount, fha_upfront_mip_percent, fha_annual_mip_percent)
        return fees["upfront"], fees["monthly"]

    if loan_type == "usda":
        fees = usda_fees(loan_amount, usda_upfront_percent, usda_annual_percent)
        return fees["upfront"], fees["monthly"]

    if loan_type == "va":
        down_payment_percent = (home_price - loan_amount) / home_price * 100
        fee = va_funding_fee(
            loan_amount,
            down_payment_percent=down_payment_percent,
            first_time=va_first_time,
            transaction=transaction,
            cash_out=cash_out,
            service_type=va_service_type,
            exempt=va_exempt,
            rate_override=va_rate_override,
        )
        return fee, 0.0

    pmi = estimate_pmi(loan_amount, home_price, credit_score, program=program, rate_override=pmi_rate_override)
    return 0.0, pmi["monthly_pmi"]


def _loan_cost(
    home_price: float,
    loan_amount: float,
    annual_rate_percent: float,
    term_years: int = 30,
    loan_type: str = "conventional",
    transaction: str = "purchase",
    cash_out: float = 0.0,
    credit_score: int = 740,
    program: Optional[str] = None,
    pmi_rate_override: Optional[float] = None,
    discount_points: float = 0.0,
    lender_fees: float = 0.0,
    other_closing_costs: float = 0.0,
    credits: float = 0.0,
    annual_taxes: float = 0.0,
    annual_insurance: float = 0.0,
    monthly_hoa: float = 0.0,
    tax_months: int = 0,
    insurance_months: int = 0,
    prepaid_interest_days: int = 15,
    fha_upfront_mip_percent: float = 1.75,
    fha_annual_mip_percent: float = 0.55,
    usda_upfront_percent: float = 1.0,
    usda_annual_percent: float = 0.35,
    va_first_time: bool = True,
    va_service_type: str = "regular",
    va_exempt: bool = False,
    va_rate_override: Optional[float] = None,
) -> Tuple[Dict, LoanTerms, ScheduleSummary]:
    if home_price <= 0:
        raise InvalidInputError("home price must be positive")
    if loan_type not in LOAN_TYPES:
        raise InvalidInputError(f"loan type must be one of {', '.join(LOAN_TYPES)}")
    if transaction not in TRANSACTIONS:
        raise InvalidInputError(f"transaction must be one of {', '.join(TRANSACTIONS)}")
    if transaction == "purchase" and loan_amount > home_price:
        raise InvalidInputError("purchase loan cannot exceed the home price")
    if min(discount_points, lender_fees, other_closing_costs, credits, cash_out) < 0:
        raise InvalidInputError("fees, credits and cash out cannot be negative")

    terms = LoanTerms(loan_amount, annual_rate_percent, term_years)
    summary = amortize(terms, include_periods=True)

    upfront_fee, monthly_mi = _program_charges(
        loan_type,
        home_price,
        loan_amount,
        transaction,
        cash_out,
        credit_score,
        program,
        pmi_rate_override,
        fha_upfront_mip_percent,
        fha_annual_mip_percent,
        usda_upfront_percent,
        usda_annual_percent,
        va_first_time,
        va_service_type,
        va_exempt,
        va_rate_override,
    )

    monthly_taxes = annual_taxes / 12
    monthly_insurance = annual_insurance / 12
    points_cost = loan_amount * discount_points / 100
    prepaid_interest = loan_amount * annual_rate_percent / 100 / 365 * prepaid_interest_days
    prepaids = {
        "taxes": monthly_taxes * tax_months,
        "insurance": monthly_insurance * insurance_months,
        "interest": prepaid_interest,
    }
    total_prepaids = sum(prepaids.values())
    closing_costs = lender_fees + other_closing_costs
    total_fees = closing_costs + points_cost + upfront_fee + total_prepaids - credits

    down_payment = home_price - loan_amount if transaction == "purchase" else 0.0
    if transaction == "purchase":
        cash_to_close = down_payment + total_fees
    else:
        cash_to_close = total_fees - cash_out

    total_monthly = summary.monthly_payment + monthly_taxes + monthly_insurance + monthly_mi + monthly_hoa

    # Escrowed taxes, insurance and third-party fees are not finance charges
    finance_charges = points_cost + upfront_fee + prepaid_interest + lender_fees
    apr = calculate_apr(loan_amount, summary.monthly_payment, terms.term_months, finance_charges)

    result = {
        "loan_type": loan_type,
        "transaction": transaction,
        "loan_amount": loan_amount,
        "down_payment": down_payment,
        "ltv": loan_amount / home_price * 100,
        "monthly_principal_interest": summary.monthly_payment,
        "monthly_taxes": monthly_taxes,
        "monthly_insurance": monthly_insurance,
        "monthly_mortgage_insurance": monthly_mi,
        "monthly_hoa": monthly_hoa,
        "total_monthly": total_monthly,
        "upfront_program_fee": upfront_fee,
        "points_cost": points_cost,
        "closing_costs": closing_costs,
        "prepaids": prepaids,
        "total_prepaids": total_prepaids,
        "credits": credits,
        "total_fees": total_fees,
        "cash_to_close": cash_to_close,
        "finance_charges": finance_charges,
        "apr": apr,
        "total_interest": summary.total_interest,
    }
    return result, terms, summary


def loan_cost(**kwargs) -> Dict:
    """
    Monthly payment, fees, cash to close and APR for one loan offer.

    The monthly total is principal and interest plus taxes, insurance,
    mortgage insurance and HOA dues. Conventional loans carry PMI from
    ``estimate_pmi``; FHA and USDA carry their annual premiums; VA carries
    an upfront funding fee only.

    Finance charges for APR are points, the upfront program fee, prepaid
    interest and ``lender_fees``. Cash to close is the down payment plus
    net fees on a purchase, or net fees minus cash out on a refinance.
    """
    result, _, _ = _loan_cost(**kwargs)
    return result


def _best_index(values: Sequence[float]) -> int:
    return min(range(len(values)), key=lambda i: values[i])


def compare_loans(
    loans: Sequence[Dict],
    hold_years: Sequence[int] = DEFAULT_HOLD_YEARS,
) -> Dict:
    """
    Compare loan offers over fixed hold periods.

    Each entry of ``loans`` holds ``loan_cost`` arguments and an optional
    ``name``. For every hold period the cost of a loan is its cash to close
    plus its total monthly payment for the months held, capped at the term.
    Interest paid and the balance left at the end of the period are reported
    beside the cost.

    Returns:
        Per-loan results and, per hold period, each loan's cost with the
        index of the cheapest. Ties go to the earlier loan.
    """
    if len(loans) < 2:
        raise InvalidInputError("at least two loans are required for a comparison")
    if not hold_years or any(years < 1 for years in hold_years):
        raise InvalidInputError("hold periods must be at least one year")

    results: List[Dict] = []
    schedules: List[Tuple[LoanTerms, ScheduleSummary]] = []

    for i, loan in enumerate(loans, start=1):
        options = dict(loan)
        name = options.pop("name", None) or f"Loan {i}"
        result, terms, summary = _loan_cost(**options)
        result["name"] = name
        results.append(result)
        schedules.append((terms, summary))

    horizons: List[Dict] = []
    for years in sorted(set(hold_years)):
        months = years * 12
        costs: List[Dict] = []

        for result, (terms, summary) in zip(results, schedules):
            months_paid = min(months, terms.term_months)
            costs.append(
                {
                    "name": result["name"],
                    "total_cost": result["cash_to_close"] + result["total_monthly"] * months_paid,
                    "monthly_payments": result["total_monthly"] * months_paid,
                    "interest_paid": interest_through_period(summary.periods, months),
                    "balance_remaining": remaining_balance(terms, months),
                }
            )

        horizons.append(
            {
                "years": years,
                "loans": costs,
                "best_total_cost": _best_index([c["total_cost"] for c in costs]),
            }
        )

    logger.debug("Compared %d loans over %d hold periods", len(results), len(horizons))

    return {
        "loans": results,
        "best_cash_to_close": _best_index([r["cash_to_close"] for r in results]),
        "best_monthly": _best_index([r["total_monthly"] for r in results]),
        "horizons": horizons,
    }
