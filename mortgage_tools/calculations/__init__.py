"""
Mortgage Calculation Engine

Amortization engine and the calculators built on it. Inputs are plain
numbers; outputs are plain numbers, records and series.
"""

from mortgage_tools.calculations import (
    affordability,
    aggregation,
    amortization,
    apr,
    comparisons,
    hecm,
    loan_costs,
    ownership,
    refinance,
    scenarios,
)

__all__ = [
    "affordability",
    "aggregation",
    "amortization",
    "apr",
    "comparisons",
    "hecm",
    "loan_costs",
    "ownership",
    "refinance",
    "scenarios",
]
