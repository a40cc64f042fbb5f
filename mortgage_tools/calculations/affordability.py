"""
Affordability Calculations

Debt-to-income ratios, loan program eligibility screens and PMI estimates.
Ratios are returned in percent.
"""

from dataclasses import dataclass
from typing import Dict, List, Optional

from mortgage_tools.calculations.errors import InvalidInputError

ELIGIBLE = "eligible"
MARGINAL = "marginal"
INELIGIBLE = "ineligible"

# Over the limit by no more than this factor is reported as marginal
MARGINAL_TOLERANCE = 1.15

MIN_CREDIT_SCORE = 300
MAX_CREDIT_SCORE = 850


def _check_credit_score(credit_score: int) -> None:
    if not MIN_CREDIT_SCORE <= credit_score <= MAX_CREDIT_SCORE:
        raise InvalidInputError(
            f"credit score must be between {MIN_CREDIT_SCORE} and {MAX_CREDIT_SCORE}"
        )


@dataclass(frozen=True)
class DTILimits:
    """Front-end and back-end DTI limits for a loan program."""

    name: str
    front_max: float
    back_max: float


DTI_PROGRAMS = [
    DTILimits("Conventional", 28, 36),
    DTILimits("FHA", 31, 43),
    DTILimits("VA", 41, 41),
    DTILimits("USDA", 29, 41),
]


def _dti_status(front_end: float, back_end: float, limits: DTILimits) -> str:
    if front_end <= limits.front_max and back_end <= limits.back_max:
        return ELIGIBLE
    if (
        front_end > limits.front_max * MARGINAL_TOLERANCE
        or back_end > limits.back_max * MARGINAL_TOLERANCE
    ):
        return INELIGIBLE
    return MARGINAL


def debt_to_income(
    monthly_income: float,
    housing_payment: float,
    other_debts: float = 0.0,
    co_borrower_income: float = 0.0,
    property_taxes: float = 0.0,
    insurance: float = 0.0,
    hoa: float = 0.0,
    pmi: float = 0.0,
) -> Dict:
    """
    Calculate front-end and back-end DTI.

    Args:
        monthly_income: Gross monthly income of the primary borrower
        housing_payment: Monthly principal and interest
        other_debts: Monthly non-housing debt payments (car, student, cards)
        co_borrower_income: Gross monthly income of a co-borrower
        property_taxes: Monthly property tax
        insurance: Monthly homeowners insurance
        hoa: Monthly HOA dues
        pmi: Monthly mortgage insurance

    Returns:
        Dict with ratios, totals and per-program status
    """
    total_income = monthly_income + co_borrower_income
    if total_income <= 0:
        raise InvalidInputError("total monthly income must be positive")

    housing_total = housing_payment + property_taxes + insurance + hoa + pmi
    total_debts = housing_total + other_debts

    front_end = housing_total / total_income * 100
    back_end = total_debts / total_income * 100

    return {
        "total_income": total_income,
        "housing_total": housing_total,
        "total_debts": total_debts,
        "front_end_dti": front_end,
        "back_end_dti": back_end,
        "programs": [
            {
                "name": limits.name,
                "front_max": limits.front_max,
                "back_max": limits.back_max,
                "status": _dti_status(front_end, back_end, limits),
            }
            for limits in DTI_PROGRAMS
        ],
    }


def check_program_eligibility(
    credit_score: int,
    down_payment_percent: float,
    dti_percent: float,
    military_service: bool = False,
    rural_location: bool = False,
    income_above_limit: bool = False,
    age: Optional[int] = None,
) -> List[Dict]:
    """
    Screen a borrower against common loan programs.

    These are rule-of-thumb screens, not underwriting decisions.
    """
    _check_credit_score(credit_score)

    def conventional() -> str:
        if credit_score >= 620 and down_payment_percent >= 3 and dti_percent <= 45:
            return ELIGIBLE
        if credit_score >= 580 and down_payment_percent >= 5 and dti_percent <= 50:
            return MARGINAL
        return INELIGIBLE

    def fha() -> str:
        if credit_score >= 580 and down_payment_percent >= 3.5 and dti_percent <= 43:
            return ELIGIBLE
        if credit_score >= 500 and down_payment_percent >= 10 and dti_percent <= 50:
            return MARGINAL
        return INELIGIBLE

    def va() -> str:
        if not military_service:
            return INELIGIBLE
        if dti_percent <= 41:
            return ELIGIBLE
        if dti_percent <= 50:
            return MARGINAL
        return INELIGIBLE

    def usda() -> str:
        if not rural_location or income_above_limit:
            return INELIGIBLE
        if credit_score >= 640 and dti_percent <= 41:
            return ELIGIBLE
        if credit_score >= 580 and dti_percent <= 44:
            return MARGINAL
        return INELIGIBLE

    def hecm() -> str:
        if age is None or age < 62:
            return INELIGIBLE
        return ELIGIBLE

    def jumbo() -> str:
        if credit_score >= 700 and down_payment_percent >= 20 and dti_percent <= 43:
            return ELIGIBLE
        if credit_score >= 680 and down_payment_percent >= 10 and dti_percent <= 45:
            return MARGINAL
        return INELIGIBLE

    programs = [
        ("Conventional", conventional, ["Credit 620+", "Down payment 3%+", "DTI <= 45%"]),
        ("FHA", fha, ["Credit 580+ with 3.5% down, or 500+ with 10% down", "DTI <= 43%"]),
        ("VA", va, ["Military service required", "0% down", "DTI <= 41% preferred"]),
        ("USDA", usda, ["Rural area", "Income <= 115% of area median", "Credit 640+"]),
        ("HECM (Reverse)", hecm, ["Age 62+", "Primary residence", "Sufficient equity"]),
        ("Jumbo", jumbo, ["Credit 700+ preferred", "Down payment 20%+ preferred", "DTI <= 43%"]),
    ]

    return [
        {"name": name, "status": check(), "requirements": requirements}
        for name, check, requirements in programs
    ]


# Annual PMI rate (% of loan) by minimum credit score, for LTV bands
# (>95, >90, >85, <=85)
PMI_RATE_TABLE = [
    (760, (0.58, 0.41, 0.28, 0.19)),
    (740, (0.73, 0.53, 0.37, 0.25)),
    (720, (0.90, 0.65, 0.46, 0.32)),
    (700, (1.15, 0.83, 0.59, 0.40)),
    (680, (1.40, 1.05, 0.75, 0.52)),
    (0, (1.85, 1.40, 1.00, 0.70)),
]

PMI_PROGRAM_DISCOUNTS = {
    "homeready": 0.75,
    "homepossible": 0.75,
    "affordable": 0.80,
}


def estimate_pmi(
    loan_amount: float,
    home_price: float,
    credit_score: int,
    program: Optional[str] = None,
    rate_override: Optional[float] = None,
) -> Dict:
    """
    Estimate private mortgage insurance.

    PMI applies only above 80% LTV. ``rate_override`` (annual % of loan)
    replaces the table lookup.
    """
    if home_price <= 0 or loan_amount <= 0:
        raise InvalidInputError("loan amount and home price must be positive")
    _check_credit_score(credit_score)

    ltv = loan_amount / home_price * 100
    if ltv <= 80:
        return {"required": False, "ltv": ltv, "pmi_rate": 0.0, "annual_pmi": 0.0, "monthly_pmi": 0.0}

    if rate_override:
        pmi_rate = rate_override
    else:
        rates = next(r for minimum, r in PMI_RATE_TABLE if credit_score >= minimum)
        if ltv > 95:
            pmi_rate = rates[0]
        elif ltv > 90:
            pmi_rate = rates[1]
        elif ltv > 85:
            pmi_rate = rates[2]
        else:
            pmi_rate = rates[3]
        pmi_rate *= PMI_PROGRAM_DISCOUNTS.get((program or "").lower(), 1.0)

    annual_pmi = loan_amount * pmi_rate / 100
    return {
        "required": True,
        "ltv": ltv,
        "pmi_rate": pmi_rate,
        "annual_pmi": annual_pmi,
        "monthly_pmi": annual_pmi / 12,
    }
