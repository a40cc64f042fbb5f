"""
Reverse Mortgage (HECM) Calculations

Principal limit, closing costs, net principal limit and draw options for a
home equity conversion mortgage, with balance, line of credit and equity
projections. Proprietary reverse mortgages are priced the same way without
FHA mortgage insurance or the FHA claim limit.
"""

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from mortgage_tools.calculations.amortization import payment_for_months
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.config import get_settings

logger = logging.getLogger(__name__)

MIN_BORROWER_AGE = 62

# upfront MIP and annual MIP, percent of max claim and of balance
PROGRAMS = {
    "hecm-standard": (2.0, 0.5),
    "hecm-purchase": (2.0, 0.5),
    "hecm-refi": (2.0, 0.5),
    "proprietary": (0.0, 0.0),
}

RATE_TYPES = ("fixed", "adjustable")
PAYMENT_TYPES = ("lump-sum", "line-of-credit", "tenure", "term", "modified-tenure", "modified-term")

# Tenure payments are priced as a 20-year annuity, halved
TENURE_MONTHS = 240
TENURE_FACTOR = 0.5

ORIGINATION_MINIMUM = 2500
ORIGINATION_MAXIMUM = 6000
ORIGINATION_TIER = 200000

DEFAULT_PROJECTION_YEARS = (5, 10, 15, 20)

# Principal limit factors by youngest borrower age and expected rate
PLF_AGES = np.array([62, 65, 70, 75, 80, 85, 90, 95, 99])
PLF_RATES = np.array([5.0, 5.5, 6.0, 6.5, 7.0, 7.5, 8.0])
PLF_TABLE = np.array([
    [0.524, 0.490, 0.458, 0.428, 0.400, 0.374, 0.350],
    [0.549, 0.515, 0.483, 0.453, 0.425, 0.399, 0.374],
    [0.589, 0.555, 0.523, 0.493, 0.465, 0.438, 0.413],
    [0.629, 0.595, 0.563, 0.533, 0.504, 0.477, 0.451],
    [0.670, 0.637, 0.605, 0.574, 0.545, 0.518, 0.491],
    [0.712, 0.680, 0.648, 0.618, 0.589, 0.561, 0.534],
    [0.750, 0.721, 0.692, 0.663, 0.635, 0.608, 0.581],
    [0.780, 0.752, 0.724, 0.697, 0.670, 0.644, 0.618],
    [0.800, 0.774, 0.748, 0.722, 0.696, 0.671, 0.646],
])


def plf_lookup(age: float, expected_rate: float) -> float:
    """
    Principal limit factor in percent.

    Interpolates the table by rate within each age row, then by age. Ages
    are rounded to whole years; both inputs are clamped to the table.
    """
    by_rate = [np.interp(expected_rate, PLF_RATES, row) for row in PLF_TABLE]
    return float(np.interp(round(age), PLF_AGES, by_rate)) * 100


def origination_fee(max_claim: float) -> float:
    """2% of the first $200,000 and 1% above it, at least $2,500 and at most $6,000."""
    if max_claim <= ORIGINATION_TIER:
        fee = max(ORIGINATION_MINIMUM, max_claim * 0.02)
    else:
        fee = ORIGINATION_TIER * 0.02 + (max_claim - ORIGINATION_TIER) * 0.01
    return min(fee, ORIGINATION_MAXIMUM)


def grow(amount: float, annual_rate_percent: float, annual_mip_percent: float, years: float) -> float:
    """Compound ``amount`` yearly at the note rate plus annual MIP."""
    return amount * (1 + (annual_rate_percent + annual_mip_percent) / 100) ** years


def tenure_payment(net_principal_limit: float, expected_rate: float) -> float:
    if net_principal_limit <= 0:
        return 0.0
    return payment_for_months(net_principal_limit, expected_rate, TENURE_MONTHS) * TENURE_FACTOR


def term_payment(net_principal_limit: float, expected_rate: float, term_months: int) -> float:
    if net_principal_limit <= 0:
        return 0.0
    return payment_for_months(net_principal_limit, expected_rate, term_months)


def _draws(
    payment_type: str,
    net_principal_limit: float,
    interest_rate: float,
    term_months: int,
    desired_cash_draw: float,
    desired_loc_amount: float,
    use_max_available: bool,
):
    """Cash at closing, line of credit and monthly payment."""
    available = max(net_principal_limit, 0.0)

    def monthly(amount):
        if "tenure" in payment_type:
            return tenure_payment(amount, interest_rate)
        return term_payment(amount, interest_rate, term_months)

    if not use_max_available and (desired_cash_draw > 0 or desired_loc_amount > 0):
        requested = desired_cash_draw + desired_loc_amount
        scale = min(1.0, available / requested)
        cash = desired_cash_draw * scale
        loc = desired_loc_amount * scale
        remaining = available - cash - loc
        payment = 0.0
        if remaining > 0 and payment_type not in ("lump-sum", "line-of-credit"):
            payment = monthly(remaining)
        return cash, loc, payment

    if payment_type == "lump-sum":
        return available, 0.0, 0.0
    if payment_type == "line-of-credit":
        return 0.0, available, 0.0
    if payment_type.startswith("modified-"):
        half = available * 0.5
        return 0.0, half, monthly(half)
    return 0.0, 0.0, monthly(available)


def hecm(
    home_value: float,
    borrower_age: float,
    loan_program: str = "hecm-standard",
    rate_type: str = "fixed",
    interest_rate: float = 6.5,
    initial_rate: float = 5.5,
    payment_type: str = "lump-sum",
    term_months: int = 120,
    existing_mortgage: float = 0.0,
    plf: Optional[float] = None,
    fha_limit: Optional[float] = None,
    lender_credit: float = 0.0,
    third_party_costs: float = 3500.0,
    counseling_fee: float = 125.0,
    set_asides: float = 0.0,
    annual_property_charges: float = 0.0,
    desired_cash_draw: float = 0.0,
    desired_loc_amount: float = 0.0,
    use_max_available: bool = True,
    appreciation_percent: float = 3.0,
    projection_years: Sequence[int] = DEFAULT_PROJECTION_YEARS,
) -> Dict:
    """
    Size a reverse mortgage and project it forward.

    The max claim is the home value capped at the FHA limit (uncapped for
    proprietary loans). The principal limit is the max claim times the
    principal limit factor, looked up from age and rate when ``plf`` is not
    given. Closing costs, the existing mortgage payoff and set-asides come
    out of the principal limit; what is left is the net principal limit.

    With ``use_max_available`` the net principal limit goes entirely to the
    chosen payment type; modified plans split it evenly between a line of
    credit and monthly payments. Otherwise the requested cash and line of
    credit are scaled down to fit, and any remainder funds monthly payments.

    The balance starts at closing costs plus the mortgage payoff and the cash
    drawn at closing, and grows at the note rate plus annual MIP, as does an
    unused line of credit. Adjustable loans project at the initial rate.
    """
    if loan_program not in PROGRAMS:
        raise InvalidInputError(f"loan program must be one of {', '.join(PROGRAMS)}")
    if rate_type not in RATE_TYPES:
        raise InvalidInputError(f"rate type must be one of {', '.join(RATE_TYPES)}")
    if payment_type not in PAYMENT_TYPES:
        raise InvalidInputError(f"payment type must be one of {', '.join(PAYMENT_TYPES)}")
    if home_value <= 0:
        raise InvalidInputError("home value must be positive")
    proprietary = loan_program == "proprietary"
    if not proprietary and borrower_age < MIN_BORROWER_AGE:
        raise InvalidInputError(f"borrower must be at least {MIN_BORROWER_AGE} for a HECM")
    if term_months < 1:
        raise InvalidInputError("term must be at least one month")
    if min(existing_mortgage, set_asides, desired_cash_draw, desired_loc_amount) < 0:
        raise InvalidInputError("amounts cannot be negative")

    upfront_mip_percent, annual_mip_percent = PROGRAMS[loan_program]
    if fha_limit is None:
        fha_limit = get_settings().hecm_fha_limit
    if plf is None:
        plf = plf_lookup(borrower_age, interest_rate)

    max_claim = home_value if proprietary else min(home_value, fha_limit)
    principal_limit = max_claim * plf / 100
    initial_mip = max_claim * upfront_mip_percent / 100
    origination = max(0.0, origination_fee(max_claim) - lender_credit)
    closing_costs = initial_mip + origination + third_party_costs + counseling_fee
    net_principal_limit = principal_limit - closing_costs - existing_mortgage - set_asides

    if net_principal_limit <= 0:
        logger.info("No net principal limit: %.2f against a principal limit of %.2f", net_principal_limit, principal_limit)

    cash, loc, monthly_payment = _draws(
        payment_type,
        net_principal_limit,
        interest_rate,
        term_months,
        desired_cash_draw,
        desired_loc_amount,
        use_max_available,
    )

    effective_rate = initial_rate if rate_type == "adjustable" else interest_rate
    initial_balance = closing_costs + existing_mortgage + cash
    annual_mip = initial_balance * annual_mip_percent / 100

    projections: List[Dict] = []
    for years in projection_years:
        balance = grow(initial_balance, effective_rate, annual_mip_percent, years)
        home = home_value * (1 + appreciation_percent / 100) ** years
        projections.append(
            {
                "year": years,
                "balance": balance,
                "line_of_credit": grow(loc, effective_rate, annual_mip_percent, years),
                "home_value": home,
                "equity": max(0.0, home - balance),
                "interest_and_mip": balance - initial_balance,
            }
        )

    return {
        "loan_program": loan_program,
        "max_claim": max_claim,
        "plf": plf,
        "principal_limit": principal_limit,
        "initial_mip": initial_mip,
        "origination_fee": origination,
        "closing_costs": closing_costs,
        "net_principal_limit": max(0.0, net_principal_limit),
        "cash_at_closing": cash,
        "line_of_credit": loc,
        "monthly_payment": monthly_payment,
        "initial_balance": initial_balance,
        "annual_mip": annual_mip,
        "annual_obligations": annual_property_charges + annual_mip,
        "projections": projections,
    }
