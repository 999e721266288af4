"""IRR-based annual percentage rate using scipy.

Pure functions. No I/O.

Reporting figure only: ``ScheduleResult.effective_rate`` keeps the
half-balance approximation.
"""

from decimal import Decimal, ROUND_HALF_UP

from scipy.optimize import brentq

from loan_engine.models.loan import ScheduleEntry

TWO_PLACES = Decimal("0.01")


def annual_percentage_rate(
    principal: Decimal,
    schedule: list[ScheduleEntry],
    setup_fee: Decimal = Decimal("0"),
) -> Decimal:
    """Nominal annual rate (percent) at which the installments repay the cash received.

    The borrower receives ``principal`` less any upfront ``setup_fee`` at t=0
    and pays each installment's ``total_due`` at month t. Uses Brent's method
    on the NPV of those monthly cash flows.
    """
    received = principal - setup_fee
    if not schedule or received <= 0:
        return Decimal("0")

    # Convert to float for scipy
    cf_float = [float(received)]
    cf_float += [-float(e.total_due) for e in schedule]

    def npv(rate: float) -> float:
        return sum(cf / (1 + rate) ** t for t, cf in enumerate(cf_float))

    # Search between -50% and 100% monthly
    try:
        monthly = brentq(npv, -0.5, 1.0, xtol=1e-10, maxiter=1000)
    except ValueError:
        # No sign change in range (e.g., installments below the amount received)
        return Decimal("0")
    return Decimal(str(monthly * 12 * 100)).quantize(TWO_PLACES, ROUND_HALF_UP)
