"""
Chart and table series built from engine results.

This is the only place money is rounded; the engine keeps full precision.
"""

from typing import Dict, List

from mortgage_tools.calculations.models import ScheduleSummary


def round_money(value: float) -> float:
    """Round to cents for display."""
    return round(value, 2)


def schedule_rows(summary: ScheduleSummary) -> List[Dict]:
    """Monthly schedule rows, rounded for display."""
    return [
        {
            "period": p.month_index,
            "payment": round_money(p.payment),
            "interest": round_money(p.interest_accrued),
            "principal": round_money(p.principal_applied),
            "extra": round_money(p.extra_applied),
            "ending_balance": round_money(p.ending_balance),
            "negative_amortization": p.negative_amortization,
        }
        for p in summary.periods
    ]


def yearly_rows(summary: ScheduleSummary) -> List[Dict]:
    """Yearly rollup rows, rounded for display."""
    return [
        {
            "year": r.year,
            "payment": round_money(r.payment_total),
            "principal": round_money(r.principal_total),
            "interest": round_money(r.interest_total),
            "ending_balance": round_money(r.ending_balance),
        }
        for r in summary.yearly_rollups
    ]


def principal_interest_chart(summary: ScheduleSummary) -> Dict:
    """Stacked bar data: principal and interest per year."""
    return {
        "type": "bar",
        "labels": [f"Yr {r.year}" for r in summary.yearly_rollups],
        "datasets": [
            {
                "label": "Principal",
                "data": [round_money(r.principal_total) for r in summary.yearly_rollups],
                "stack": "stack1",
            },
            {
                "label": "Interest",
                "data": [round_money(r.interest_total) for r in summary.yearly_rollups],
                "stack": "stack1",
            },
        ],
    }


def balance_chart(*summaries: ScheduleSummary, labels=None) -> Dict:
    """Line data: ending balance per year for one or more schedules."""
    labels = labels or [f"Schedule {i + 1}" for i in range(len(summaries))]
    years = max((len(s.yearly_rollups) for s in summaries), default=0)
    datasets = []
    for label, summary in zip(labels, summaries):
        balances = [round_money(r.ending_balance) for r in summary.yearly_rollups]
        # Paid-off schedules stay at zero for the rest of the axis
        balances += [0.0] * (years - len(balances)) if summary.paid_off else []
        datasets.append({"label": label, "data": balances})
    return {
        "type": "line",
        "labels": [f"Yr {year}" for year in range(1, years + 1)],
        "datasets": datasets,
    }
