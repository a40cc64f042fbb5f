"""
Calculator tool API endpoints.

One POST endpoint per calculator. Request bodies mirror the calculator
arguments; rates and percentages are in percent.
"""

from datetime import date
from fastapi import APIRouter
from pydantic import BaseModel
from typing import List, Optional

from mortgage_tools.calculations import (
    affordability,
    comparisons,
    hecm,
    loan_costs,
    ownership,
    refinance,
    scenarios,
)
from mortgage_tools.calculations.errors import InvalidInputError

router = APIRouter()


class DTIInput(BaseModel):
    """Input for debt-to-income calculation."""

    monthly_income: float
    housing_payment: float
    other_debts: float = 0.0
    co_borrower_income: float = 0.0
    property_taxes: float = 0.0
    insurance: float = 0.0
    hoa: float = 0.0
    pmi: float = 0.0


@router.post("/dti")
async def calculate_dti(inputs: DTIInput):
    """Front-end and back-end DTI with program status."""
    return affordability.debt_to_income(**inputs.model_dump())


class EligibilityInput(BaseModel):
    """Input for loan program screening."""

    credit_score: int
    down_payment_percent: float
    dti_percent: float
    military_service: bool = False
    rural_location: bool = False
    income_above_limit: bool = False
    age: Optional[int] = None


@router.post("/eligibility")
async def check_eligibility(inputs: EligibilityInput):
    """Screen against common loan programs."""
    return {"programs": affordability.check_program_eligibility(**inputs.model_dump())}


class PMIEstimateInput(BaseModel):
    """Input for PMI estimate."""

    loan_amount: float
    home_price: float
    credit_score: int
    program: Optional[str] = None
    rate_override: Optional[float] = None


@router.post("/pmi-estimate")
async def estimate_pmi(inputs: PMIEstimateInput):
    """Estimate monthly PMI."""
    return affordability.estimate_pmi(**inputs.model_dump())


class RentVsBuyInput(BaseModel):
    """Input for rent vs buy."""

    monthly_rent: float
    home_price: float
    years: int = 10
    rent_increase_percent: float = 3.0
    renters_insurance: float = 0.0
    security_deposit: float = 0.0
    down_payment_percent: float = 20.0
    annual_rate_percent: float = 6.5
    term_years: int = 30
    property_tax_percent: float = 1.2
    appreciation_percent: float = 3.0
    closing_cost_percent: float = 3.0
    insurance_percent: float = 0.5
    maintenance_percent: float = 1.0


@router.post("/rent-vs-buy")
async def calculate_rent_vs_buy(inputs: RentVsBuyInput):
    """Compare renting with buying."""
    return comparisons.rent_vs_buy(**inputs.model_dump())


class ARMInput(BaseModel):
    """Input for ARM vs fixed."""

    loan_amount: float
    term_years: int = 30
    fixed_rate: float
    arm_initial_rate: float
    arm_type: str = "5/1"
    periodic_cap: float = 2.0
    lifetime_cap: float = 5.0
    scenario: str = "stable"


@router.post("/arm-vs-fixed")
async def calculate_arm_vs_fixed(inputs: ARMInput):
    """Compare an ARM with a fixed-rate loan."""
    return comparisons.arm_vs_fixed(**inputs.model_dump())


class HELOCInput(BaseModel):
    """Input for HELOC vs cash-out refinance."""

    home_value: float
    current_balance: float
    current_rate: float
    remaining_years: int = 25
    cash_needed: float
    heloc_rate: float = 8.5
    heloc_draw_years: int = 10
    heloc_repay_years: int = 20
    heloc_closing: float = 500.0
    refi_rate: float = 6.75
    refi_term_years: int = 30
    refi_closing: float = 8000.0


@router.post("/heloc-vs-refi")
async def calculate_heloc_vs_refi(inputs: HELOCInput):
    """Compare a HELOC with a cash-out refinance."""
    return refinance.heloc_vs_refi(**inputs.model_dump())


class PMIRemovalInput(BaseModel):
    """Input for PMI removal timeline."""

    home_price: float
    loan_amount: float
    annual_rate_percent: float
    term_years: int = 30
    monthly_pmi: float
    appreciation_percent: float = 3.0
    extra_monthly: float = 0.0
    start_date: Optional[date] = None


@router.post("/pmi-removal")
async def calculate_pmi_removal(inputs: PMIRemovalInput):
    """When PMI can be removed."""
    return ownership.pmi_removal(**inputs.model_dump())


class PointsInput(BaseModel):
    """Input for points breakeven."""

    loan_amount: float
    term_years: int = 30
    rate_without_points: float
    rate_with_points: float
    points: float
    horizon_years: int = 7


@router.post("/points-breakeven")
async def calculate_points_breakeven(inputs: PointsInput):
    """Months until discount points pay back."""
    return refinance.points_breakeven(**inputs.model_dump())


class RefiBreakevenInput(BaseModel):
    """Input for refinance breakeven."""

    current_balance: float
    current_rate: float
    current_remaining_years: int = 28
    new_rate: float
    new_term_years: int = 30
    closing_costs: float
    roll_costs: bool = False
    start_date: Optional[date] = None


@router.post("/refi-breakeven")
async def calculate_refi_breakeven(inputs: RefiBreakevenInput):
    """Months until a refinance recovers its costs."""
    return refinance.refinance_breakeven(**inputs.model_dump())


class TCOInput(BaseModel):
    """Input for total cost of ownership."""

    home_price: float
    annual_rate_percent: float
    term_years: int = 30
    down_payment_percent: float = 20.0
    property_tax_percent: float = 1.2
    annual_insurance: float = 0.0
    maintenance_percent: float = 1.0
    monthly_hoa: float = 0.0
    closing_costs: float = 0.0
    appreciation_percent: float = 3.0


@router.post("/tco")
async def calculate_tco(inputs: TCOInput):
    """Total cost of ownership by year."""
    return ownership.total_cost_of_ownership(**inputs.model_dump())


class BuydownInput(BaseModel):
    """Input for temporary buydown."""

    loan_amount: float
    note_rate: float
    term_years: int = 30
    buydown_type: str = "2-1"


@router.post("/buydown")
async def calculate_buydown(inputs: BuydownInput):
    """Buydown schedule and subsidy cost."""
    return ownership.buydown(**inputs.model_dump())


class WhatIfInput(BaseModel):
    """Input for the what-if simulator."""

    home_price: float = 450000.0
    annual_rate_percent: float = 6.5
    down_payment_percent: float = 20.0
    extra_monthly: float = 0.0
    term_years: int = 30


@router.post("/what-if")
async def calculate_what_if(inputs: WhatIfInput):
    """Purchase scenario with optional extra payments."""
    return scenarios.what_if(**inputs.model_dump())


class LifeEventInput(BaseModel):
    """A single life event."""

    month: int
    kind: str
    amount: float
    label: str = ""


class LifeEventsInput(BaseModel):
    """Input for life events."""

    principal: float
    annual_rate_percent: float
    term_years: int = 30
    events: List[LifeEventInput] = []


@router.post("/life-events")
async def calculate_life_events(inputs: LifeEventsInput):
    """Apply life events to a loan."""
    events = [scenarios.LifeEvent(**event.model_dump()) for event in inputs.events]
    return scenarios.life_events(
        principal=inputs.principal,
        annual_rate_percent=inputs.annual_rate_percent,
        term_years=inputs.term_years,
        events=events,
    )


class StressTestInput(BaseModel):
    """Input for payment stress test."""

    loan_amount: float
    annual_rate_percent: float
    term_years: int = 30
    monthly_income: float
    other_debts: float = 0.0
    monthly_escrow: float = 0.0
    max_dti: float = 43.0
    rate_shocks: List[float] = [1.0, 2.0, 3.0]
    income_shocks: List[float] = [10.0, 20.0]


@router.post("/stress-test")
async def calculate_stress_test(inputs: StressTestInput):
    """Payment and DTI under rate and income shocks."""
    return scenarios.stress_test(**inputs.model_dump())


class SellVsKeepInput(BaseModel):
    """Input for sell vs keep-and-rent."""

    home_value: float
    mortgage_balance: float
    mortgage_rate: float
    remaining_term_years: int = 25
    purchase_price: float
    monthly_rent: float
    current_payment: Optional[float] = None
    selling_costs_percent: float = 8.0
    cap_gains_rate: float = 15.0
    primary_residence: bool = True
    married: bool = False
    annual_property_tax: float = 0.0
    annual_insurance: float = 0.0
    monthly_hoa: float = 0.0
    maintenance_percent: float = 1.0
    management_fee_percent: float = 0.0
    vacancy_percent: float = 5.0
    rent_increase_percent: float = 3.0
    expense_growth_percent: float = 1.5
    appreciation_percent: float = 3.0
    alternative_return_percent: float = 7.0
    analysis_years: int = 10


@router.post("/sell-vs-keep")
async def calculate_sell_vs_keep(inputs: SellVsKeepInput):
    """Sell and invest, or keep and rent out."""
    return comparisons.sell_vs_keep(**inputs.model_dump())


class RentSimulatorInput(BaseModel):
    """Input for the rental cash flow simulator."""

    monthly_rent: float
    years: int = 10
    operating_expenses: float = 0.0
    vacancy_percent: float = 5.0
    rent_increase_percent: float = 3.0
    expense_growth_percent: float = 1.5
    monthly_debt_service: float = 0.0
    initial_investment: float = 0.0


@router.post("/rent-simulator")
async def calculate_rent_simulator(inputs: RentSimulatorInput):
    """Project rental cash flow by year."""
    return comparisons.rent_simulator(**inputs.model_dump())


class ProgramFeesInput(BaseModel):
    """Input for FHA, VA or USDA program fees."""

    loan_type: str
    loan_amount: float
    down_payment_percent: float = 0.0
    transaction: str = "purchase"
    cash_out: float = 0.0
    va_first_time: bool = True
    va_service_type: str = "regular"
    va_exempt: bool = False


@router.post("/program-fees")
async def calculate_program_fees(inputs: ProgramFeesInput):
    """Upfront and monthly government program fees."""
    if inputs.loan_type == "fha":
        return loan_costs.fha_fees(inputs.loan_amount)
    if inputs.loan_type == "usda":
        return loan_costs.usda_fees(inputs.loan_amount)
    if inputs.loan_type == "va":
        fee = loan_costs.va_funding_fee(
            inputs.loan_amount,
            down_payment_percent=inputs.down_payment_percent,
            first_time=inputs.va_first_time,
            transaction=inputs.transaction,
            cash_out=inputs.cash_out,
            service_type=inputs.va_service_type,
            exempt=inputs.va_exempt,
        )
        return {"upfront": fee, "annual": 0.0, "monthly": 0.0}
    raise InvalidInputError("loan type must be one of fha, va, usda")


class LoanCostInput(BaseModel):
    """Input for a single loan offer."""

    name: Optional[str] = None
    home_price: float
    loan_amount: float
    annual_rate_percent: float
    term_years: int = 30
    loan_type: str = "conventional"
    transaction: str = "purchase"
    cash_out: float = 0.0
    credit_score: int = 740
    program: Optional[str] = None
    pmi_rate_override: Optional[float] = None
    discount_points: float = 0.0
    lender_fees: float = 0.0
    other_closing_costs: float = 0.0
    credits: float = 0.0
    annual_taxes: float = 0.0
    annual_insurance: float = 0.0
    monthly_hoa: float = 0.0
    tax_months: int = 0
    insurance_months: int = 0
    prepaid_interest_days: int = 15
    fha_upfront_mip_percent: float = 1.75
    fha_annual_mip_percent: float = 0.55
    usda_upfront_percent: float = 1.0
    usda_annual_percent: float = 0.35
    va_first_time: bool = True
    va_service_type: str = "regular"
    va_exempt: bool = False
    va_rate_override: Optional[float] = None


@router.post("/loan-cost")
async def calculate_loan_cost(inputs: LoanCostInput):
    """Monthly payment, cash to close and APR for one offer."""
    return loan_costs.loan_cost(**inputs.model_dump(exclude={"name"}))


class CompareLoansInput(BaseModel):
    """Input for comparing loan offers."""

    loans: List[LoanCostInput]
    hold_years: List[int] = list(loan_costs.DEFAULT_HOLD_YEARS)


@router.post("/compare-loans")
async def calculate_compare_loans(inputs: CompareLoansInput):
    """Compare loan offers over hold periods."""
    loans = [loan.model_dump() for loan in inputs.loans]
    return loan_costs.compare_loans(loans, hold_years=inputs.hold_years)


class HECMInput(BaseModel):
    """Input for a reverse mortgage."""

    home_value: float
    borrower_age: float
    loan_program: str = "hecm-standard"
    rate_type: str = "fixed"
    interest_rate: float = 6.5
    initial_rate: float = 5.5
    payment_type: str = "lump-sum"
    term_months: int = 120
    existing_mortgage: float = 0.0
    plf: Optional[float] = None
    fha_limit: Optional[float] = None
    lender_credit: float = 0.0
    third_party_costs: float = 3500.0
    counseling_fee: float = 125.0
    set_asides: float = 0.0
    annual_property_charges: float = 0.0
    desired_cash_draw: float = 0.0
    desired_loc_amount: float = 0.0
    use_max_available: bool = True
    appreciation_percent: float = 3.0
    projection_years: List[int] = list(hecm.DEFAULT_PROJECTION_YEARS)


@router.post("/hecm")
async def calculate_hecm(inputs: HECMInput):
    """Reverse mortgage proceeds and projections."""
    return hecm.hecm(**inputs.model_dump())
