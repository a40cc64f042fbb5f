"""
Tests for the calculators built on the amortization engine.
"""

import math
from datetime import date

import pytest
from dateutil.relativedelta import relativedelta

from mortgage_tools.calculations import (
    affordability,
    comparisons,
    hecm,
    loan_costs,
    ownership,
    refinance,
    scenarios,
)
from mortgage_tools.calculations.amortization import amortize, monthly_payment
from mortgage_tools.calculations.errors import InvalidInputError
from mortgage_tools.calculations.models import LoanTerms


def _statuses(result):
    return {p["name"]: p["status"] for p in result}


class TestDebtToIncome:
    """Front-end and back-end DTI."""

    def test_ratios(self):
        result = affordability.debt_to_income(monthly_income=8000, housing_payment=2000, other_debts=500)
        assert result["front_end_dti"] == pytest.approx(25)
        assert result["back_end_dti"] == pytest.approx(31.25)
        assert all(p["status"] == affordability.ELIGIBLE for p in result["programs"])

    def test_co_borrower_and_escrow(self):
        result = affordability.debt_to_income(
            monthly_income=6000,
            housing_payment=1500,
            co_borrower_income=4000,
            property_taxes=300,
            insurance=100,
            hoa=100,
        )
        assert result["total_income"] == 10000
        assert result["housing_total"] == 2000
        assert result["front_end_dti"] == pytest.approx(20)

    def test_marginal(self):
        result = affordability.debt_to_income(monthly_income=10000, housing_payment=3000, other_debts=800)
        statuses = _statuses(result["programs"])
        assert statuses["Conventional"] == affordability.MARGINAL
        assert statuses["FHA"] == affordability.ELIGIBLE

    def test_ineligible(self):
        result = affordability.debt_to_income(monthly_income=10000, housing_payment=5000)
        assert all(p["status"] == affordability.INELIGIBLE for p in result["programs"])

    def test_zero_income_rejected(self):
        with pytest.raises(InvalidInputError):
            affordability.debt_to_income(monthly_income=0, housing_payment=2000)


class TestProgramEligibility:
    """Loan program screens."""

    def test_strong_borrower(self):
        statuses = _statuses(affordability.check_program_eligibility(700, 20, 35))
        assert statuses["Conventional"] == affordability.ELIGIBLE
        assert statuses["FHA"] == affordability.ELIGIBLE
        assert statuses["Jumbo"] == affordability.ELIGIBLE
        assert statuses["VA"] == affordability.INELIGIBLE
        assert statuses["USDA"] == affordability.INELIGIBLE
        assert statuses["HECM (Reverse)"] == affordability.INELIGIBLE

    def test_military_rural_senior(self):
        statuses = _statuses(
            affordability.check_program_eligibility(
                650, 0, 38, military_service=True, rural_location=True, age=65
            )
        )
        assert statuses["VA"] == affordability.ELIGIBLE
        assert statuses["USDA"] == affordability.ELIGIBLE
        assert statuses["HECM (Reverse)"] == affordability.ELIGIBLE
        assert statuses["Conventional"] == affordability.INELIGIBLE

    def test_fha_with_low_credit(self):
        statuses = _statuses(affordability.check_program_eligibility(540, 10, 40))
        assert statuses["FHA"] == affordability.MARGINAL
        assert statuses["Conventional"] == affordability.INELIGIBLE

    @pytest.mark.parametrize("credit_score", [-1, 299, 900])
    def test_credit_score_out_of_range(self, credit_score):
        with pytest.raises(InvalidInputError):
            affordability.check_program_eligibility(credit_score, 20, 35)

    def test_income_limit_excludes_usda(self):
        statuses = _statuses(
            affordability.check_program_eligibility(700, 5, 30, rural_location=True, income_above_limit=True)
        )
        assert statuses["USDA"] == affordability.INELIGIBLE


class TestPMIEstimate:
    """PMI table lookup."""

    def test_not_required_at_80_ltv(self):
        result = affordability.estimate_pmi(240000, 300000, 700)
        assert not result["required"]
        assert result["monthly_pmi"] == 0

    def test_table_lookup(self):
        result = affordability.estimate_pmi(285000, 300000, 760)
        assert result["ltv"] == pytest.approx(95)
        assert result["pmi_rate"] == pytest.approx(0.41)
        assert result["monthly_pmi"] == pytest.approx(285000 * 0.0041 / 12)

    def test_lower_credit_costs_more(self):
        good = affordability.estimate_pmi(285000, 300000, 760)
        poor = affordability.estimate_pmi(285000, 300000, 640)
        assert poor["monthly_pmi"] > good["monthly_pmi"]

    def test_program_discount(self):
        result = affordability.estimate_pmi(285000, 300000, 760, program="HomeReady")
        assert result["pmi_rate"] == pytest.approx(0.41 * 0.75)

    def test_rate_override(self):
        result = affordability.estimate_pmi(285000, 300000, 760, rate_override=0.5)
        assert result["annual_pmi"] == pytest.approx(1425)

    @pytest.mark.parametrize("credit_score", [-1, 0, 299, 851])
    def test_credit_score_out_of_range(self, credit_score):
        with pytest.raises(InvalidInputError):
            affordability.estimate_pmi(300000, 310000, credit_score)


class TestRentVsBuy:
    """Rent vs buy."""

    def test_high_rent_breaks_even_in_first_year(self):
        result = comparisons.rent_vs_buy(monthly_rent=5000, home_price=300000, years=5)
        assert result["breakeven_year"] == 1
        assert result["buying_is_cheaper"]

    def test_low_rent_never_breaks_even(self):
        result = comparisons.rent_vs_buy(monthly_rent=1000, home_price=500000, years=5)
        assert result["breakeven_year"] is None
        assert not result["buying_is_cheaper"]

    def test_yearly_rows(self):
        result = comparisons.rent_vs_buy(monthly_rent=2500, home_price=400000, years=10)
        rows = result["yearly"]
        assert len(rows) == 10
        assert rows[0]["rent_cumulative"] == pytest.approx(30000)
        assert rows[1]["rent_cumulative"] == pytest.approx(30000 + 30900)
        assert result["monthly_mortgage"] == pytest.approx(monthly_payment(320000, 6.5, 30))
        assert all(b["loan_balance"] < a["loan_balance"] for a, b in zip(rows, rows[1:]))

    def test_horizon_past_payoff(self):
        """Mortgage payments stop once a short loan is paid off."""
        result = comparisons.rent_vs_buy(monthly_rent=2000, home_price=300000, years=15, term_years=10)
        rows = result["yearly"]
        assert rows[9]["loan_balance"] == 0
        assert rows[14]["loan_balance"] == 0

    def test_all_cash_purchase(self):
        result = comparisons.rent_vs_buy(monthly_rent=2000, home_price=300000, years=5, down_payment_percent=100)
        assert result["loan_amount"] == 0
        assert result["monthly_mortgage"] == 0

    @pytest.mark.parametrize("years", [0, 51])
    def test_horizon_bounds(self, years):
        with pytest.raises(InvalidInputError):
            comparisons.rent_vs_buy(monthly_rent=2000, home_price=300000, years=years)


class TestARMvsFixed:
    """ARM vs fixed under rate scenarios."""

    def test_stable_scenario(self):
        result = comparisons.arm_vs_fixed(300000, 30, fixed_rate=7.0, arm_initial_rate=6.0)
        rows = result["yearly"]
        assert all(row["arm_rate"] == 6.0 for row in rows[:5])
        assert rows[5]["arm_rate"] == pytest.approx(6.25)
        assert rows[6]["arm_rate"] == pytest.approx(6.5)
        assert result["arm_max_rate"] == pytest.approx(6.5)
        assert result["arm_initial_payment"] == pytest.approx(monthly_payment(300000, 6.0, 30))
        assert result["five_year_savings_with_arm"] > 0

    def test_worst_case_respects_caps(self):
        result = comparisons.arm_vs_fixed(
            300000, 30, fixed_rate=7.0, arm_initial_rate=6.0, periodic_cap=2.0, lifetime_cap=5.0, scenario="worst"
        )
        rates = [row["arm_rate"] for row in result["yearly"]]
        assert rates[5] == pytest.approx(8.0)
        assert rates[6] == pytest.approx(10.0)
        assert max(rates) == pytest.approx(11.0)
        assert all(abs(b - a) <= 2.0 + 1e-9 for a, b in zip(rates, rates[1:]))
        assert result["lower_total_cost"] == "fixed"

    def test_down_scenario(self):
        result = comparisons.arm_vs_fixed(300000, 30, fixed_rate=7.0, arm_initial_rate=6.0, arm_type="3/1", scenario="down")
        rows = result["yearly"]
        assert rows[3]["arm_rate"] == pytest.approx(5.5)
        assert rows[4]["arm_rate"] == pytest.approx(5.25)
        assert result["lower_total_cost"] == "arm"

    def test_arm_pays_off(self):
        result = comparisons.arm_vs_fixed(300000, 30, fixed_rate=7.0, arm_initial_rate=6.0, scenario="up")
        assert result["yearly"][-1]["arm_ending_balance"] == 0

    @pytest.mark.parametrize("kwargs", [{"arm_type": "x/1"}, {"arm_type": "0/1"}, {"scenario": "sideways"}])
    def test_invalid_inputs(self, kwargs):
        with pytest.raises(InvalidInputError):
            comparisons.arm_vs_fixed(300000, 30, fixed_rate=7.0, arm_initial_rate=6.0, **kwargs)


class TestRentSimulator:
    """Rental cash flow projection."""

    def test_flat_cash_flow(self):
        result = comparisons.rent_simulator(
            monthly_rent=2000,
            years=3,
            operating_expenses=500,
            vacancy_percent=0,
            rent_increase_percent=0,
            expense_growth_percent=0,
            initial_investment=30000,
        )
        assert result["first_year_cash_flow"] == pytest.approx(18000)
        assert result["total_cash_flow"] == pytest.approx(54000)
        assert result["payback_year"] == 2

    def test_debt_service_ends_after_payoff(self):
        result = comparisons.rent_simulator(
            monthly_rent=2000, years=3, vacancy_percent=0, rent_increase_percent=0, annual_debt_service=[6000]
        )
        assert [row["debt_service"] for row in result["yearly"]] == [6000, 0.0, 0.0]

    def test_growth(self):
        result = comparisons.rent_simulator(monthly_rent=1000, years=2, vacancy_percent=10, rent_increase_percent=5)
        rows = result["yearly"]
        assert rows[0]["effective_rent"] == pytest.approx(10800)
        assert rows[1]["gross_rent"] == pytest.approx(12600)

    def test_never_paid_back(self):
        result = comparisons.rent_simulator(monthly_rent=1000, years=2, initial_investment=1e6)
        assert result["payback_year"] is None


class TestSellVsKeep:
    """Sell and invest, or keep and rent."""

    BASE = dict(
        home_value=500000,
        mortgage_balance=200000,
        mortgage_rate=4.0,
        remaining_term_years=25,
        purchase_price=300000,
        monthly_rent=2500,
    )

    def test_primary_residence_exclusion(self):
        result = comparisons.sell_vs_keep(**self.BASE)
        assert result["sell"]["capital_gain"] == 200000
        assert result["sell"]["capital_gains_tax"] == 0
        assert result["sell"]["net_proceeds"] == pytest.approx(500000 - 40000 - 200000)
        assert result["better_option"] in ("sell", "keep")

    def test_investment_property_taxed(self):
        result = comparisons.sell_vs_keep(**self.BASE, primary_residence=False)
        assert result["sell"]["capital_gains_tax"] == pytest.approx(30000)

    def test_keep_balance_amortizes(self):
        result = comparisons.sell_vs_keep(**self.BASE)
        assert result["keep"]["future_mortgage_balance"] < 200000
        assert not result["keep"]["negative_amortization"]
        assert len(result["keep"]["yearly"]) == 10

    def test_payment_below_interest_flagged(self):
        result = comparisons.sell_vs_keep(**self.BASE, current_payment=500)
        assert result["keep"]["negative_amortization"]
        assert result["keep"]["future_mortgage_balance"] > 200000

    def test_metrics(self):
        result = comparisons.sell_vs_keep(**self.BASE, maintenance_percent=0, vacancy_percent=0)
        assert result["metrics"]["net_operating_income"] == pytest.approx(30000)
        assert result["metrics"]["cap_rate"] == pytest.approx(6.0)
        assert result["metrics"]["gross_rent_yield"] == pytest.approx(6.0)


class TestHelocVsRefi:
    """HELOC against cash-out refinance."""

    def test_structure(self):
        result = refinance.heloc_vs_refi(
            home_value=500000, current_balance=200000, current_rate=3.5, remaining_years=25, cash_needed=50000
        )
        assert result["combined_ltv"] == pytest.approx(50)
        assert result["refi"]["new_loan_amount"] == 258000
        assert result["heloc"]["interest_only_payment"] == pytest.approx(50000 * 0.085 / 12)
        assert result["better_option"] in ("heloc", "refi")
        assert result["difference"] >= 0

    def test_low_first_mortgage_rate_favors_heloc(self):
        """Refinancing a 3.5% first mortgage into 6.75% costs more than a HELOC."""
        result = refinance.heloc_vs_refi(
            home_value=500000, current_balance=250000, current_rate=3.5, remaining_years=25, cash_needed=20000
        )
        assert result["better_option"] == "heloc"

    def test_cash_needed_required(self):
        with pytest.raises(InvalidInputError):
            refinance.heloc_vs_refi(500000, 200000, 3.5, 25, cash_needed=0)


class TestPointsBreakeven:
    """Discount points breakeven."""

    def test_one_point(self):
        result = refinance.points_breakeven(300000, 30, 7.0, 6.75, points=1)
        assert result["points_cost"] == 3000
        assert result["monthly_savings"] == pytest.approx(50.12, abs=0.05)
        assert result["breakeven_months"] == 60
        assert result["worth_it"]
        assert len(result["checkpoints"]) == 7
        assert result["interest_saved_at_horizon"] > 0

    def test_short_horizon_not_worth_it(self):
        result = refinance.points_breakeven(300000, 30, 7.0, 6.75, points=1, horizon_years=4)
        assert not result["worth_it"]
        assert result["net_savings_at_horizon"] < 0

    def test_no_savings(self):
        result = refinance.points_breakeven(300000, 30, 7.0, 7.0, points=1)
        assert result["breakeven_months"] is None
        assert not result["worth_it"]

    def test_negative_points_rejected(self):
        with pytest.raises(InvalidInputError):
            refinance.points_breakeven(300000, 30, 7.0, 6.75, points=-1)


class TestRefinanceBreakeven:
    """Rate/term refinance breakeven."""

    def test_breakeven_and_date(self):
        start = date(2024, 1, 15)
        result = refinance.refinance_breakeven(250000, 7.0, 28, 6.0, 30, closing_costs=4000, start_date=start)
        assert result["monthly_savings"] > 0
        assert result["breakeven_months"] == math.ceil(4000 / result["monthly_savings"])
        expected = (start + relativedelta(months=result["breakeven_months"])).isoformat()
        assert result["breakeven_date"] == expected
        assert len(result["cumulative_savings"]) == 30

    def test_rolled_costs(self):
        result = refinance.refinance_breakeven(250000, 7.0, 28, 6.0, 30, closing_costs=4000, roll_costs=True)
        assert result["new_loan_amount"] == 254000
        assert result["upfront_costs"] == 0
        assert result["breakeven_months"] == 0

    def test_higher_rate_never_breaks_even(self):
        result = refinance.refinance_breakeven(250000, 6.0, 30, 7.0, 30, closing_costs=4000)
        assert result["breakeven_months"] is None
        assert result["breakeven_date"] is None


class TestTotalCostOfOwnership:
    """Total cost of ownership."""

    def test_yearly(self):
        result = ownership.total_cost_of_ownership(400000, 6.5, annual_insurance=1200)
        yearly = result["yearly"]
        assert result["loan_amount"] == 320000
        assert len(yearly) == 30
        assert yearly[0]["breakdown"]["down_payment"] == 80000
        assert yearly[1]["breakdown"]["down_payment"] == 0
        assert yearly[0]["breakdown"]["taxes"] == pytest.approx(4800)
        assert yearly[-1]["equity"] == pytest.approx(yearly[-1]["home_value"])
        assert all(row["net_cost"] == pytest.approx(row["total_paid"] - row["equity"]) for row in yearly)

    def test_invalid_down_payment(self):
        with pytest.raises(InvalidInputError):
            ownership.total_cost_of_ownership(400000, 6.5, down_payment_percent=100)


class TestPMIRemoval:
    """PMI removal timeline."""

    def test_milestones(self):
        start = date(2024, 1, 1)
        result = ownership.pmi_removal(300000, 285000, 6.5, 30, monthly_pmi=120, appreciation_percent=0, start_date=start)
        assert result["required"]
        assert result["month_80"] < result["month_78"]
        assert result["date_80"] == (start + relativedelta(months=result["month_80"])).isoformat()
        assert result["pmi_cost_to_80"] == pytest.approx(120 * result["month_80"])
        assert result["early_removal_savings"] > 0

    def test_extra_payments_remove_pmi_sooner(self):
        base = ownership.pmi_removal(300000, 285000, 6.5, 30, monthly_pmi=120, appreciation_percent=0)
        extra = ownership.pmi_removal(300000, 285000, 6.5, 30, monthly_pmi=120, appreciation_percent=0, extra_monthly=300)
        assert extra["month_80"] < base["month_80"]

    def test_appreciation_removes_pmi_sooner(self):
        flat = ownership.pmi_removal(300000, 285000, 6.5, 30, monthly_pmi=120, appreciation_percent=0)
        rising = ownership.pmi_removal(300000, 285000, 6.5, 30, monthly_pmi=120, appreciation_percent=5)
        assert rising["month_80"] < flat["month_80"]

    def test_not_required(self):
        result = ownership.pmi_removal(300000, 240000, 6.5, 30, monthly_pmi=120)
        assert not result["required"]
        assert result["month_80"] is None


class TestBuydown:
    """Temporary rate buydowns."""

    def test_two_one(self):
        result = ownership.buydown(300000, 7.0, buydown_type="2-1")
        schedule = result["schedule"]
        assert [row["rate"] for row in schedule] == [5.0, 6.0, 7.0]
        assert result["first_year_payment"] == pytest.approx(monthly_payment(300000, 5.0, 30))
        assert result["total_buydown_cost"] == pytest.approx(sum(row["yearly_savings"] for row in schedule))
        assert schedule[-1]["year"] == "3-30"

    def test_rate_floor(self):
        result = ownership.buydown(300000, 1.5, buydown_type="3-2-1")
        assert [row["rate"] for row in result["schedule"][:3]] == [0.0, 0.0, 0.5]

    def test_term_must_outlast_buydown(self):
        with pytest.raises(InvalidInputError):
            ownership.buydown(300000, 7.0, term_years=2, buydown_type="2-1")

    def test_unknown_type(self):
        with pytest.raises(InvalidInputError):
            ownership.buydown(300000, 7.0, buydown_type="4-3-2-1")


class TestWhatIf:
    """What-if simulator."""

    def test_no_extra(self):
        result = scenarios.what_if(450000, 6.5, 20)
        assert result["loan_amount"] == 360000
        assert result["interest_saved"] == 0
        assert result["months_saved"] == 0
        assert result["payoff_months"] == 360
        assert not result["pmi_warning"]

    def test_extra_payment(self):
        result = scenarios.what_if(450000, 6.5, 10, extra_monthly=200)
        assert result["pmi_warning"]
        assert result["months_saved"] > 0
        assert result["interest_saved"] > 0
        assert result["payoff_years"] * 12 + result["payoff_remaining_months"] == result["payoff_months"]


class TestLifeEvents:
    """Life events applied to a loan."""

    EVENTS = [
        scenarios.LifeEvent(month=24, kind="lump_sum", amount=10000, label="Bonus"),
        scenarios.LifeEvent(month=120, kind="extra_monthly", amount=0, label="Child care"),
        scenarios.LifeEvent(month=12, kind="extra_monthly", amount=200, label="Raise"),
    ]

    def test_plan_latest_recurring_wins(self):
        plan = scenarios.LifeEventPlan(tuple(self.EVENTS))
        assert plan.extra_for_month(6) == 0
        assert plan.extra_for_month(24) == pytest.approx(10200)
        assert plan.extra_for_month(50) == 200
        assert plan.extra_for_month(130) == 0

    def test_events_shorten_loan(self):
        result = scenarios.life_events(300000, 6.5, 30, self.EVENTS)
        assert result["months_saved"] > 0
        assert result["interest_saved"] > 0
        assert [e["month"] for e in result["events"]] == [12, 24, 120]
        assert all(e["applied"] for e in result["events"])

    def test_event_after_payoff_not_applied(self):
        events = [scenarios.LifeEvent(month=500, kind="lump_sum", amount=1000)]
        result = scenarios.life_events(300000, 6.5, 30, events)
        assert not result["events"][0]["applied"]
        assert result["months_saved"] == 0

    @pytest.mark.parametrize("kwargs", [
        {"month": 12, "kind": "windfall", "amount": 100},
        {"month": 0, "kind": "lump_sum", "amount": 100},
        {"month": 12, "kind": "lump_sum", "amount": -100},
    ])
    def test_invalid_event(self, kwargs):
        with pytest.raises(InvalidInputError):
            scenarios.LifeEvent(**kwargs)


class TestStressTest:
    """Payment stress test."""

    def test_scenarios(self):
        result = scenarios.stress_test(
            300000, 6.5, 30, monthly_income=10000, other_debts=500, monthly_escrow=500
        )
        names = [s["scenario"] for s in result["scenarios"]]
        assert names == [
            "base",
            "rate +1",
            "rate +2",
            "rate +3",
            "income -10%",
            "income -20%",
            "combined worst case",
        ]
        assert result["failing_scenarios"] == ["combined worst case"]
        assert not result["all_pass"]

    def test_held_payment(self):
        result = scenarios.stress_test(300000, 6.5, 30, monthly_income=10000)
        by_name = {s["scenario"]: s for s in result["scenarios"]}
        assert not by_name["rate +1"]["negative_amortization_if_payment_held"]
        assert by_name["rate +1"]["balance_at_term_if_payment_held"] > 0
        assert by_name["rate +3"]["negative_amortization_if_payment_held"]

    def test_zero_income_rejected(self):
        with pytest.raises(InvalidInputError):
            scenarios.stress_test(300000, 6.5, 30, monthly_income=0)


class TestProgramFees:
    """FHA, USDA and VA upfront and annual fees."""

    def test_fha(self):
        fees = loan_costs.fha_fees(300000)
        assert fees["upfront"] == pytest.approx(5250)
        assert fees["annual"] == pytest.approx(1650)
        assert fees["monthly"] == pytest.approx(137.5)

    def test_usda(self):
        fees = loan_costs.usda_fees(300000)
        assert fees["upfront"] == pytest.approx(3000)
        assert fees["monthly"] == pytest.approx(87.5)

    @pytest.mark.parametrize("options,percent", [
        ({}, 2.15),
        ({"first_time": False}, 3.3),
        ({"down_payment_percent": 5}, 1.5),
        ({"down_payment_percent": 10}, 1.25),
        ({"transaction": "refinance"}, 0.5),
        ({"transaction": "refinance", "cash_out": 10000, "first_time": False}, 3.3),
        ({"service_type": "reserves"}, 2.4),
        ({"exempt": True}, 0.0),
        ({"rate_override": 1.0}, 1.0),
    ])
    def test_va_funding_fee(self, options, percent):
        assert loan_costs.va_funding_fee(300000, **options) == pytest.approx(300000 * percent / 100)

    def test_va_unknown_transaction(self):
        with pytest.raises(InvalidInputError):
            loan_costs.va_funding_fee(300000, transaction="assumption")


class TestLoanCost:
    """Monthly total, cash to close and APR for one offer."""

    def test_conventional_with_pmi(self):
        result = loan_costs.loan_cost(
            home_price=400000,
            loan_amount=350000,
            annual_rate_percent=6.5,
            credit_score=760,
            annual_taxes=4800,
            annual_insurance=1200,
            monthly_hoa=50,
            lender_fees=1500,
            other_closing_costs=2000,
            credits=500,
            prepaid_interest_days=0,
        )
        principal_interest = monthly_payment(350000, 6.5, 30)

        assert result["monthly_mortgage_insurance"] == pytest.approx(350000 * 0.0028 / 12)
        assert result["total_monthly"] == pytest.approx(principal_interest + 400 + 100 + 50 + 350000 * 0.0028 / 12)
        assert result["total_fees"] == pytest.approx(3000)
        assert result["cash_to_close"] == pytest.approx(53000)
        assert 6.5 < result["apr"] < 6.7

    def test_fha_upfront_and_monthly_premium(self):
        result = loan_costs.loan_cost(
            home_price=300000,
            loan_amount=289500,
            annual_rate_percent=6.5,
            loan_type="fha",
            prepaid_interest_days=0,
        )
        assert result["upfront_program_fee"] == pytest.approx(289500 * 0.0175)
        assert result["monthly_mortgage_insurance"] == pytest.approx(289500 * 0.0055 / 12)
        assert result["cash_to_close"] == pytest.approx(10500 + 289500 * 0.0175)

    def test_refinance_cash_out(self):
        result = loan_costs.loan_cost(
            home_price=500000,
            loan_amount=300000,
            annual_rate_percent=6.5,
            transaction="refinance",
            cash_out=20000,
            lender_fees=3000,
            prepaid_interest_days=0,
        )
        assert result["down_payment"] == 0
        assert result["monthly_mortgage_insurance"] == 0
        assert result["cash_to_close"] == pytest.approx(-17000)

    def test_prepaids(self):
        result = loan_costs.loan_cost(
            home_price=500000,
            loan_amount=360000,
            annual_rate_percent=6.5,
            annual_taxes=6000,
            annual_insurance=1200,
            tax_months=3,
            insurance_months=12,
        )
        assert result["prepaids"]["taxes"] == pytest.approx(1500)
        assert result["prepaids"]["insurance"] == pytest.approx(1200)
        assert result["prepaids"]["interest"] == pytest.approx(360000 * 0.065 / 365 * 15)
        assert result["finance_charges"] == pytest.approx(result["prepaids"]["interest"])

    @pytest.mark.parametrize("options", [
        {"loan_type": "jumbo"},
        {"transaction": "assumption"},
        {"loan_amount": 600000},
        {"credits": -1},
    ])
    def test_rejected(self, options):
        base = {"home_price": 500000, "loan_amount": 360000, "annual_rate_percent": 6.5}
        with pytest.raises(InvalidInputError):
            loan_costs.loan_cost(**{**base, **options})


class TestCompareLoans:
    """Offers compared over hold periods."""

    BASE = {
        "home_price": 500000,
        "loan_amount": 360000,
        "prepaid_interest_days": 0,
    }

    def _offers(self):
        return [
            {**self.BASE, "name": "No points", "annual_rate_percent": 6.5},
            {**self.BASE, "name": "Two points", "annual_rate_percent": 6.0, "discount_points": 2},
        ]

    def test_points_pay_back_between_five_and_seven_years(self):
        result = loan_costs.compare_loans(self._offers())
        best = {h["years"]: h["best_total_cost"] for h in result["horizons"]}

        assert best == {1: 0, 3: 0, 5: 0, 7: 1, 10: 1}
        assert result["best_cash_to_close"] == 0
        assert result["best_monthly"] == 1
        assert [loan["name"] for loan in result["loans"]] == ["No points", "Two points"]

    def test_total_cost(self):
        result = loan_costs.compare_loans(self._offers(), hold_years=[5])
        costs = result["horizons"][0]["loans"]

        assert costs[0]["total_cost"] == pytest.approx(140000 + monthly_payment(360000, 6.5, 30) * 60)
        assert costs[1]["total_cost"] == pytest.approx(147200 + monthly_payment(360000, 6.0, 30) * 60)

    def test_interest_and_balance_match_schedule(self):
        result = loan_costs.compare_loans(self._offers(), hold_years=[5])
        periods = amortize(LoanTerms(360000, 6.5, 30), include_periods=True).periods
        first = result["horizons"][0]["loans"][0]

        assert first["interest_paid"] == pytest.approx(sum(p.interest_accrued for p in periods[:60]))
        assert first["balance_remaining"] == pytest.approx(periods[59].ending_balance, rel=1e-9)

    def test_hold_past_term(self):
        offers = [{**offer, "term_years": 15} for offer in self._offers()]
        result = loan_costs.compare_loans(offers, hold_years=[20])
        first = result["horizons"][0]["loans"][0]

        assert first["balance_remaining"] == 0
        assert first["monthly_payments"] == pytest.approx(monthly_payment(360000, 6.5, 15) * 180)

    def test_needs_two_loans(self):
        with pytest.raises(InvalidInputError):
            loan_costs.compare_loans(self._offers()[:1])

    def test_hold_period_must_be_positive(self):
        with pytest.raises(InvalidInputError):
            loan_costs.compare_loans(self._offers(), hold_years=[0])


class TestHECM:
    """Reverse mortgage sizing and projections."""

    def test_lump_sum(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, plf=52.4)

        assert result["max_claim"] == 500000
        assert result["principal_limit"] == pytest.approx(262000)
        assert result["initial_mip"] == pytest.approx(10000)
        assert result["origination_fee"] == pytest.approx(6000)
        assert result["closing_costs"] == pytest.approx(19625)
        assert result["net_principal_limit"] == pytest.approx(242375)
        assert result["cash_at_closing"] == pytest.approx(242375)
        assert result["initial_balance"] == pytest.approx(262000)

        year_five = result["projections"][0]
        assert year_five["year"] == 5
        assert year_five["balance"] == pytest.approx(262000 * 1.07 ** 5)
        assert year_five["home_value"] == pytest.approx(500000 * 1.03 ** 5)

    def test_line_of_credit_grows(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, plf=52.4, payment_type="line-of-credit")

        assert result["cash_at_closing"] == 0
        assert result["line_of_credit"] == pytest.approx(242375)
        assert result["projections"][0]["line_of_credit"] == pytest.approx(242375 * 1.07 ** 5)
        assert result["initial_balance"] == pytest.approx(19625)

    def test_modified_tenure_splits_proceeds(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, plf=52.4, payment_type="modified-tenure")

        assert result["line_of_credit"] == pytest.approx(121187.5)
        assert result["monthly_payment"] == pytest.approx(hecm.tenure_payment(121187.5, 6.5))

    def test_term_payment(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, plf=52.4, payment_type="term", term_months=120)
        assert result["monthly_payment"] == pytest.approx(hecm.term_payment(242375, 6.5, 120))
        assert result["monthly_payment"] > hecm.tenure_payment(242375, 6.5)

    def test_custom_draws_scaled_to_fit(self):
        result = hecm.hecm(
            home_value=500000,
            borrower_age=70,
            plf=52.4,
            desired_cash_draw=100000,
            desired_loc_amount=200000,
            use_max_available=False,
        )
        ratio = 242375 / 300000
        assert result["cash_at_closing"] == pytest.approx(100000 * ratio)
        assert result["line_of_credit"] == pytest.approx(200000 * ratio)

    def test_custom_draw_remainder_funds_payments(self):
        result = hecm.hecm(
            home_value=500000,
            borrower_age=70,
            plf=52.4,
            payment_type="tenure",
            desired_cash_draw=42375,
            use_max_available=False,
        )
        assert result["cash_at_closing"] == pytest.approx(42375)
        assert result["monthly_payment"] == pytest.approx(hecm.tenure_payment(200000, 6.5))

    def test_fha_limit_caps_max_claim(self):
        result = hecm.hecm(home_value=2000000, borrower_age=70, plf=52.4)
        assert result["max_claim"] == 1209750

    def test_proprietary(self):
        result = hecm.hecm(home_value=2000000, borrower_age=55, loan_program="proprietary", plf=40)

        assert result["max_claim"] == 2000000
        assert result["initial_mip"] == 0
        assert result["origination_fee"] == pytest.approx(6000)
        assert result["annual_mip"] == 0

    def test_adjustable_projects_at_initial_rate(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, plf=52.4, rate_type="adjustable", initial_rate=5.5)
        assert result["projections"][0]["balance"] == pytest.approx(262000 * 1.06 ** 5)

    def test_existing_mortgage_exhausts_proceeds(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, plf=52.4, existing_mortgage=300000)
        assert result["net_principal_limit"] == 0
        assert result["cash_at_closing"] == 0

    def test_default_plf_from_table(self):
        result = hecm.hecm(home_value=500000, borrower_age=70, interest_rate=6.5)
        assert result["plf"] == pytest.approx(49.3)

    @pytest.mark.parametrize("options", [
        {"borrower_age": 60},
        {"loan_program": "hecm-jumbo"},
        {"payment_type": "annuity"},
        {"home_value": 0},
    ])
    def test_rejected(self, options):
        with pytest.raises(InvalidInputError):
            hecm.hecm(**{"home_value": 500000, "borrower_age": 70, **options})

    @pytest.mark.parametrize("max_claim,fee", [
        (100000, 2500),
        (150000, 3000),
        (300000, 5000),
        (1000000, 6000),
    ])
    def test_origination_fee(self, max_claim, fee):
        assert hecm.origination_fee(max_claim) == pytest.approx(fee)

    @pytest.mark.parametrize("age,rate,plf", [
        (62, 5.0, 52.4),
        (75, 6.25, 54.8),
        (55, 9.0, 35.0),
        (105, 4.0, 80.0),
    ])
    def test_plf_lookup(self, age, rate, plf):
        assert hecm.plf_lookup(age, rate) == pytest.approx(plf)
