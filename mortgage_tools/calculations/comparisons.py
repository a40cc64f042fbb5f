"""
Comparison Calculators

Rent vs buy, ARM vs fixed, sell vs keep-and-rent and the rental cash flow
simulator. Rates and percentages are taken in percent (6.5 for 6.5%).
"""

import logging
from typing import Dict, List, Optional, Sequence

from mortgage_tools.calculations.aggregation import find_crossover, cumulative
from mortgage_tools.calculations.amortization import amortize, amortize_step, payment_for_months
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.calculations.models import LoanTerms
from mortgage_tools.config import get_settings

logger = logging.getLogger(__name__)


def _check_horizon(years: int) -> None:
    max_years = get_settings().max_horizon_years
    if years < 1 or years > max_years:
        raise InvalidInputError(f"analysis period must be between 1 and {max_years} years")


def _yearly_loan_figures(terms: Optional[LoanTerms], years: int, scheduled_payment: Optional[float] = None):
    """Payment totals and ending balances per year, zero once paid off."""
    payments = [0.0] * years
    balances = [0.0] * years
    if terms is None:
        return payments, balances, None

    summary = amortize(terms, scheduled_payment=scheduled_payment)
    # Past the end of the schedule the balance is either paid off or left over
    last_balance = summary.yearly_rollups[-1].ending_balance
    for year in range(1, years + 1):
        if year <= len(summary.yearly_rollups):
            rollup = summary.yearly_rollups[year - 1]
            payments[year - 1] = rollup.payment_total
            balances[year - 1] = rollup.ending_balance
        else:
            balances[year - 1] = last_balance
    return payments, balances, summary


def rent_vs_buy(
    monthly_rent: float,
    home_price: float,
    years: int,
    rent_increase_percent: float = 3.0,
    renters_insurance: float = 0.0,
    security_deposit: float = 0.0,
    down_payment_percent: float = 20.0,
    annual_rate_percent: float = 6.5,
    term_years: int = 30,
    property_tax_percent: float = 1.2,
    appreciation_percent: float = 3.0,
    closing_cost_percent: float = 3.0,
    insurance_percent: float = 0.5,
    maintenance_percent: float = 1.0,
) -> Dict:
    """
    Compare cumulative renting cost with the net cost of buying.

    Net cost of buying is everything paid (down payment, closing costs,
    mortgage, taxes, insurance, maintenance) minus the equity held at the end
    of each year. Mortgage payments stop once the loan is paid off.

    Returns:
        Dict with yearly rows and ``breakeven_year``, the first year buying
        is no more expensive than renting (``None`` if never)
    """
    _check_horizon(years)
    if home_price <= 0:
        raise InvalidInputError("home price must be positive")
    if not 0 <= down_payment_percent <= 100:
        raise InvalidInputError("down payment must be between 0% and 100%")

    down_payment = home_price * down_payment_percent / 100
    loan_amount = home_price - down_payment
    terms = LoanTerms(loan_amount, annual_rate_percent, term_years) if loan_amount > 0 else None
    mortgage_by_year, balance_by_year, summary = _yearly_loan_figures(terms, years)

    rent_by_year = [
        monthly_rent * 12 * (1 + rent_increase_percent / 100) ** (year - 1) + renters_insurance * 12
        for year in range(1, years + 1)
    ]
    rent_cumulative = [security_deposit + total for total in cumulative(rent_by_year)]

    closing_costs = home_price * closing_cost_percent / 100
    total_buy_cost = down_payment + closing_costs
    home_value = home_price
    rows: List[Dict] = []
    buy_net_cost: List[float] = []

    for year in range(1, years + 1):
        carrying = home_value * (
            property_tax_percent + insurance_percent + maintenance_percent
        ) / 100
        total_buy_cost += mortgage_by_year[year - 1] + carrying
        home_value *= 1 + appreciation_percent / 100

        equity = home_value - balance_by_year[year - 1]
        net_cost = total_buy_cost - equity
        buy_net_cost.append(net_cost)

        rows.append(
            {
                "year": year,
                "rent_cumulative": rent_cumulative[year - 1],
                "buy_total_cost": total_buy_cost,
                "home_value": home_value,
                "loan_balance": balance_by_year[year - 1],
                "equity": equity,
                "buy_net_cost": net_cost,
            }
        )

    return {
        "down_payment": down_payment,
        "loan_amount": loan_amount,
        "monthly_mortgage": summary.monthly_payment if summary else 0.0,
        "closing_costs": closing_costs,
        "rent_total": rent_cumulative[-1],
        "buy_net_cost": buy_net_cost[-1],
        "equity": rows[-1]["equity"],
        "buying_is_cheaper": buy_net_cost[-1] < rent_cumulative[-1],
        "breakeven_year": find_crossover(rent_cumulative, buy_net_cost),
        "yearly": rows,
    }


ARM_RATE_SCENARIOS = {
    "down": [-0.5, -0.25, 0, 0, 0],
    "stable": [0.25, 0.25, 0, 0, 0],
    "up": [1, 1, 0.5, 0.5, 0],
}
ARM_FLOOR_BELOW_START = 2.0


def _parse_arm_type(arm_type: str) -> int:
    try:
        fixed_years = int(arm_type.split("/")[0])
    except (AttributeError, ValueError) as exc:
        raise InvalidInputError(f"Invalid ARM type: {arm_type}") from exc
    if fixed_years < 1:
        raise InvalidInputError(f"Invalid ARM type: {arm_type}")
    return fixed_years


def arm_vs_fixed(
    loan_amount: float,
    term_years: int,
    fixed_rate: float,
    arm_initial_rate: float,
    arm_type: str = "5/1",
    periodic_cap: float = 2.0,
    lifetime_cap: float = 5.0,
    scenario: str = "stable",
) -> Dict:
    """
    Compare a fixed-rate loan with an ARM under a rate scenario.

    After the fixed period the ARM rate moves once a year by the scenario's
    change (bounded by the periodic cap), never above the initial rate plus
    the lifetime cap nor below the initial rate minus two points, and the
    payment is re-amortized over the remaining term.

    Args:
        scenario: ``down``, ``stable``, ``up`` or ``worst`` (cap every year)
    """
    fixed_years = _parse_arm_type(arm_type)
    if scenario == "worst":
        rate_changes = [periodic_cap] * 5
    elif scenario in ARM_RATE_SCENARIOS:
        rate_changes = ARM_RATE_SCENARIOS[scenario]
    else:
        raise InvalidInputError(f"Unknown rate scenario: {scenario}")

    fixed_terms = LoanTerms(loan_amount, fixed_rate, term_years)
    arm_terms = LoanTerms(loan_amount, arm_initial_rate, term_years)
    fixed = amortize(fixed_terms)

    ceiling = arm_initial_rate + lifetime_cap
    floor = max(0.0, arm_initial_rate - ARM_FLOOR_BELOW_START)

    balance = arm_terms.principal
    rate = arm_initial_rate
    arm_total_interest = 0.0
    yearly: List[Dict] = []

    for year in range(1, term_years + 1):
        if balance <= 0:
            break
        if year > fixed_years:
            change = rate_changes[min(year - fixed_years - 1, len(rate_changes) - 1)]
            change = max(-periodic_cap, min(periodic_cap, change))
            rate = min(ceiling, max(floor, rate + change))

        remaining_months = (term_years - year + 1) * 12
        payment = payment_for_months(balance, rate, remaining_months)
        monthly_rate = rate / 100 / 12
        year_interest = 0.0

        for _ in range(12):
            step = amortize_step(balance, monthly_rate, payment)
            year_interest += step.interest
            balance = step.new_balance
            if balance == 0:
                break

        arm_total_interest += year_interest
        yearly.append(
            {
                "year": year,
                "arm_rate": rate,
                "arm_payment": payment,
                "fixed_payment": fixed.monthly_payment,
                "arm_interest": year_interest,
                "arm_ending_balance": balance,
            }
        )

    horizon = min(5, len(yearly))
    fixed_5yr_cost = fixed.monthly_payment * 12 * horizon
    arm_5yr_cost = sum(row["arm_payment"] * 12 for row in yearly[:horizon])

    return {
        "fixed_payment": fixed.monthly_payment,
        "fixed_total_interest": fixed.total_interest,
        "fixed_5yr_cost": fixed_5yr_cost,
        "arm_initial_payment": yearly[0]["arm_payment"],
        "arm_max_payment": max(row["arm_payment"] for row in yearly),
        "arm_max_rate": max(row["arm_rate"] for row in yearly),
        "arm_total_interest": arm_total_interest,
        "arm_5yr_cost": arm_5yr_cost,
        "five_year_savings_with_arm": fixed_5yr_cost - arm_5yr_cost,
        "lifetime_savings_with_arm": fixed.total_interest - arm_total_interest,
        "lower_total_cost": "arm" if arm_total_interest < fixed.total_interest else "fixed",
        "yearly": yearly,
    }


def rent_simulator(
    monthly_rent: float,
    years: int,
    operating_expenses: float = 0.0,
    vacancy_percent: float = 5.0,
    rent_increase_percent: float = 3.0,
    expense_growth_percent: float = 1.5,
    monthly_debt_service: float = 0.0,
    annual_debt_service: Optional[Sequence[float]] = None,
    initial_investment: float = 0.0,
) -> Dict:
    """
    Project yearly cash flow of a rental.

    Rent and operating expenses grow annually; debt service does not. When
    ``annual_debt_service`` is given it replaces ``monthly_debt_service`` year
    by year (zero past its end, i.e. after payoff).

    Returns:
        Dict with yearly rows, total cash flow and ``payback_year``, the first
        year cumulative cash flow covers ``initial_investment``
    """
    _check_horizon(years)
    if not 0 <= vacancy_percent <= 100:
        raise InvalidInputError("vacancy must be between 0% and 100%")

    gross_rent = monthly_rent * 12
    expenses = operating_expenses * 12
    rows: List[Dict] = []

    for year in range(1, years + 1):
        if annual_debt_service is not None:
            debt_service = annual_debt_service[year - 1] if year <= len(annual_debt_service) else 0.0
        else:
            debt_service = monthly_debt_service * 12

        effective_rent = gross_rent * (1 - vacancy_percent / 100)
        cash_flow = effective_rent - expenses - debt_service
        rows.append(
            {
                "year": year,
                "gross_rent": gross_rent,
                "effective_rent": effective_rent,
                "operating_expenses": expenses,
                "debt_service": debt_service,
                "cash_flow": cash_flow,
            }
        )
        gross_rent *= 1 + rent_increase_percent / 100
        expenses *= 1 + expense_growth_percent / 100

    running = cumulative([row["cash_flow"] for row in rows])
    for row, total in zip(rows, running):
        row["cumulative_cash_flow"] = total

    return {
        "total_cash_flow": running[-1],
        "first_year_cash_flow": rows[0]["cash_flow"],
        "payback_year": find_crossover(running, [initial_investment] * years),
        "yearly": rows,
    }


def sell_vs_keep(
    home_value: float,
    mortgage_balance: float,
    mortgage_rate: float,
    remaining_term_years: int,
    purchase_price: float,
    monthly_rent: float,
    current_payment: Optional[float] = None,
    selling_costs_percent: float = 8.0,
    cap_gains_rate: float = 15.0,
    primary_residence: bool = True,
    married: bool = False,
    annual_property_tax: float = 0.0,
    annual_insurance: float = 0.0,
    monthly_hoa: float = 0.0,
    maintenance_percent: float = 1.0,
    management_fee_percent: float = 0.0,
    vacancy_percent: float = 5.0,
    rent_increase_percent: float = 3.0,
    expense_growth_percent: float = 1.5,
    appreciation_percent: float = 3.0,
    alternative_return_percent: float = 7.0,
    analysis_years: int = 10,
) -> Dict:
    """
    Sell now and invest the proceeds, or keep the home as a rental.

    Sale proceeds are reduced by selling costs, the mortgage payoff and
    capital gains tax after the primary-residence exclusion ($250k single,
    $500k married). Keeping builds equity from appreciation and amortization
    plus the rental cash flow. ``current_payment`` defaults to the level
    payment for the remaining term; a payment too small to cover interest is
    reported through ``negative_amortization``.
    """
    _check_horizon(analysis_years)
    if home_value <= 0:
        raise InvalidInputError("home value must be positive")

    # Sell
    selling_costs = home_value * selling_costs_percent / 100
    gross_proceeds = home_value - selling_costs - mortgage_balance
    total_gain = home_value - purchase_price
    exclusion = (500000 if married else 250000) if primary_residence else 0
    taxable_gain = max(0.0, total_gain - exclusion)
    capital_gains_tax = taxable_gain * cap_gains_rate / 100
    net_sale_proceeds = gross_proceeds - capital_gains_tax
    invested_value = net_sale_proceeds * (1 + alternative_return_percent / 100) ** analysis_years

    # Keep
    terms = LoanTerms(mortgage_balance, mortgage_rate, remaining_term_years) if mortgage_balance > 0 else None
    debt_service, balances, summary = _yearly_loan_figures(terms, analysis_years, current_payment)
    payment = summary.monthly_payment if summary else 0.0

    operating_monthly = (
        annual_property_tax / 12
        + annual_insurance / 12
        + home_value * maintenance_percent / 100 / 12
        + monthly_rent * management_fee_percent / 100
        + monthly_hoa
    )
    rental = rent_simulator(
        monthly_rent=monthly_rent,
        years=analysis_years,
        operating_expenses=operating_monthly,
        vacancy_percent=vacancy_percent,
        rent_increase_percent=rent_increase_percent,
        expense_growth_percent=expense_growth_percent,
        annual_debt_service=debt_service,
    )

    future_home_value = home_value * (1 + appreciation_percent / 100) ** analysis_years
    future_balance = balances[-1]
    future_equity = future_home_value - future_balance
    keep_wealth = future_equity + rental["total_cash_flow"]

    # Rental metrics
    annual_gross_rent = monthly_rent * 12
    noi = (
        annual_gross_rent * (1 - vacancy_percent / 100)
        - annual_property_tax
        - annual_insurance
        - home_value * maintenance_percent / 100
        - annual_gross_rent * management_fee_percent / 100
        - monthly_hoa * 12
    )
    current_equity = home_value - mortgage_balance
    monthly_cash_flow = rental["first_year_cash_flow"] / 12
    annual_cash_flow = monthly_cash_flow * 12
    total_annual_return = annual_cash_flow + home_value * appreciation_percent / 100

    if summary is not None and summary.negative_amortization:
        logger.info("Keep scenario payment %.2f does not cover interest", payment)

    return {
        "sell": {
            "selling_costs": selling_costs,
            "gross_proceeds": gross_proceeds,
            "capital_gain": total_gain,
            "capital_gains_tax": capital_gains_tax,
            "net_proceeds": net_sale_proceeds,
            "invested_value": invested_value,
        },
        "keep": {
            "monthly_payment": payment,
            "monthly_cash_flow": monthly_cash_flow,
            "total_cash_flow": rental["total_cash_flow"],
            "future_home_value": future_home_value,
            "future_mortgage_balance": future_balance,
            "future_equity": future_equity,
            "total_wealth": keep_wealth,
            "negative_amortization": bool(summary and summary.negative_amortization),
            "yearly": rental["yearly"],
        },
        "metrics": {
            "net_operating_income": noi,
            "cap_rate": noi / home_value * 100,
            "cash_on_cash": annual_cash_flow / current_equity * 100 if current_equity > 0 else 0.0,
            "gross_rent_yield": annual_gross_rent / home_value * 100,
            "total_roi": total_annual_return / current_equity * 100 if current_equity > 0 else 0.0,
        },
        "better_option": "keep" if keep_wealth > invested_value else "sell",
        "difference": abs(keep_wealth - invested_value),
    }
