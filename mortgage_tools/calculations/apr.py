"""
APR Calculation

Solves for the annual percentage rate with Newton-Raphson: the rate at which
the present value of the level payments equals the amount financed (loan
amount less prepaid finance charges).
"""

from mortgage_tools.calculations.errors import APRConvergenceError, InvalidInputError

MAX_ITERATIONS = 100
TOLERANCE = 0.01  # dollars of present value
MIN_RATE = 0.001
MAX_RATE = 0.5


def present_value(monthly_payment: float, annual_rate: float, num_payments: int) -> float:
    """
    Present value of a level monthly annuity.

    Args:
        monthly_payment: Payment per month
        annual_rate: Annual rate as decimal (e.g., 0.065 for 6.5%)
        num_payments: Number of monthly payments

    Returns:
        Present value
    """
    monthly_rate = annual_rate / 12
    if monthly_rate == 0:
        return monthly_payment * num_payments
    return monthly_payment * (1 - (1 + monthly_rate) ** -num_payments) / monthly_rate


def _present_value_derivative(
    monthly_payment: float, annual_rate: float, num_payments: int
) -> float:
    """Derivative of present value with respect to the annual rate."""
    monthly_rate = annual_rate / 12
    discount = (1 + monthly_rate) ** -num_payments
    d_discount = -num_payments * (1 + monthly_rate) ** (-num_payments - 1) / 12
    return monthly_payment * (
        -d_discount / monthly_rate - (1 - discount) / (monthly_rate * monthly_rate * 12)
    )


def calculate_apr(
    loan_amount: float,
    monthly_payment: float,
    num_payments: int,
    finance_charges: float = 0.0,
) -> float:
    """
    Calculate APR.

    The rate is kept between 0.1% and 50% while iterating.

    Args:
        loan_amount: Note amount
        monthly_payment: Principal and interest payment
        num_payments: Number of monthly payments
        finance_charges: Prepaid finance charges (points, origination, MI premium)

    Returns:
        APR in percent (e.g., 6.72)

    Raises:
        InvalidInputError: Amount financed, payment or count is not positive
        APRConvergenceError: Solver did not converge
    """
    amount_financed = loan_amount - finance_charges
    if amount_financed <= 0 or monthly_payment <= 0 or num_payments <= 0:
        raise InvalidInputError("APR needs a positive amount financed, payment and term")

    if monthly_payment * num_payments - amount_financed <= TOLERANCE:
        return 0.0

    rate = monthly_payment * num_payments / amount_financed - 1
    rate = max(MIN_RATE, min(rate, MAX_RATE))

    for _ in range(MAX_ITERATIONS):
        diff = present_value(monthly_payment, rate, num_payments) - amount_financed

        if abs(diff) < TOLERANCE:
            return rate * 100

        derivative = _present_value_derivative(monthly_payment, rate, num_payments)
        if derivative == 0:
            raise APRConvergenceError("APR calculation failed: derivative is zero")

        new_rate = max(MIN_RATE, min(rate - diff / derivative, MAX_RATE))
        if new_rate == rate:
            raise APRConvergenceError("APR is outside the solvable range")
        rate = new_rate

    raise APRConvergenceError("APR calculation did not converge")
