"""Inverse problems: derive the rate or the term from a known payment.

Pure functions. No I/O.

Annuity rates are solved by a small state machine:

    NEWTON -> CONVERGED        residual < 1e-5
    NEWTON -> BISECTION        residual grew > 1.5x, |derivative| < 1e-4,
                               or the Newton iteration budget ran out
    BISECTION -> CONVERGED     residual < 0.01
    BISECTION -> EXHAUSTED     iteration budget ran out or bracket collapsed;
                               the bracket midpoint is returned

Non-convergence is never an error, but a payment that cannot repay the
loan at any non-negative rate is rejected before solving. Fixed-principal
and interest-only structures use half-balance approximations instead of
iteration. Graduated payments change over the term, so neither the rate nor
the term can be recovered from one payment.
"""

import logging
import math
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP

from loan_engine.exceptions import (
    InvalidPaymentError,
    UnsolvableRateError,
    UnsolvableTermError,
)
from loan_engine.models.loan import RepaymentStructure
from loan_engine.models.results import RateSolution, SolverState

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal("0.01")

NEWTON_TOLERANCE = 1e-5  # Payment units
NEWTON_MAX_ITERATIONS = 200
NEWTON_DAMPING = 0.5
DIVERGENCE_RATIO = 1.5
MIN_DERIVATIVE = 1e-4
DERIVATIVE_EPSILON = 1e-4

BISECTION_TOLERANCE = 0.01
BISECTION_MAX_ITERATIONS = 100
MIN_BRACKET_WIDTH = 1e-7

MIN_MONTHLY_RATE = 1e-6
MAX_MONTHLY_RATE = 0.5  # ~600% annual

ANNUITY_STRUCTURES = (RepaymentStructure.ANNUITY, RepaymentStructure.AUTO_LOAN)


def _payment(principal: float, monthly_rate: float, term_months: int) -> float:
    if monthly_rate < MIN_MONTHLY_RATE:
        return principal / term_months
    factor = (1 + monthly_rate) ** term_months
    return principal * (monthly_rate * factor) / (factor - 1)


def _derivative(principal: float, monthly_rate: float, term_months: int) -> float:
    """Central difference of the payment function, one-sided near zero."""
    h = DERIVATIVE_EPSILON
    if monthly_rate - h < MIN_MONTHLY_RATE:
        return (_payment(principal, monthly_rate + h, term_months)
                - _payment(principal, monthly_rate, term_months)) / h
    return (_payment(principal, monthly_rate + h, term_months)
            - _payment(principal, monthly_rate - h, term_months)) / (2 * h)


def _clamp(monthly_rate: float) -> float:
    return min(max(monthly_rate, MIN_MONTHLY_RATE), MAX_MONTHLY_RATE)


def _to_annual_percent(monthly_rate: float) -> Decimal:
    return Decimal(str(monthly_rate * 12 * 100)).quantize(TWO_PLACES, ROUND_HALF_UP)


@dataclass
class _SolverRun:
    principal: float
    target: float
    term_months: int
    state: SolverState
    rate: float
    last_residual: float = math.inf
    newton_iterations: int = 0
    bisection_iterations: int = 0
    low: float = 0.0
    high: float = MAX_MONTHLY_RATE
    fallback_reason: str | None = None

    def fall_back(self, reason: str) -> None:
        logger.debug("Newton-Raphson abandoned after %d iterations: %s",
                     self.newton_iterations, reason)
        self.fallback_reason = reason
        self.state = SolverState.BISECTION

    def newton_step(self) -> None:
        if self.newton_iterations >= NEWTON_MAX_ITERATIONS:
            self.fall_back("iteration budget exhausted")
            return
        self.newton_iterations += 1

        self.rate = _clamp(self.rate)
        residual = _payment(self.principal, self.rate, self.term_months) - self.target
        if abs(residual) < NEWTON_TOLERANCE:
            self.state = SolverState.CONVERGED
            return
        if abs(residual) > abs(self.last_residual) * DIVERGENCE_RATIO:
            self.fall_back("diverging")
            return
        self.last_residual = residual

        slope = _derivative(self.principal, self.rate, self.term_months)
        if abs(slope) < MIN_DERIVATIVE:
            self.fall_back("derivative too small")
            return
        self.rate = _clamp(self.rate - (residual / slope) * NEWTON_DAMPING)

    def bisection_step(self) -> None:
        if self.bisection_iterations >= BISECTION_MAX_ITERATIONS:
            self.rate = (self.low + self.high) / 2
            self.state = SolverState.EXHAUSTED
            return
        self.bisection_iterations += 1

        mid = (self.low + self.high) / 2
        try:
            payment = _payment(self.principal, mid, self.term_months)
        except OverflowError:
            self.high = mid
            return

        if abs(payment - self.target) < BISECTION_TOLERANCE:
            self.rate = mid
            self.state = SolverState.CONVERGED
            return
        if payment > self.target:
            self.high = mid
        else:
            self.low = mid

        if self.high - self.low < MIN_BRACKET_WIDTH:
            self.rate = (self.low + self.high) / 2
            self.state = SolverState.EXHAUSTED


def _seed_rate(principal: float, payment: float, term_months: int) -> float:
    """Simple-interest estimate: average monthly interest over the average balance."""
    avg_monthly_interest = (payment * term_months - principal) / term_months
    avg_balance = principal / 2
    return avg_monthly_interest / avg_balance if avg_balance > 0 else 0.004


def solve_annuity_rate(
    effective_principal: Decimal,
    net_payment: Decimal,
    term_months: int,
    initial_state: SolverState = SolverState.NEWTON,
) -> RateSolution:
    """Monthly rate at which the level annuity payment equals ``net_payment``.

    Always terminates within NEWTON_MAX_ITERATIONS + BISECTION_MAX_ITERATIONS
    steps and returns a best-effort estimate.
    """
    principal = float(effective_principal)
    target = float(net_payment)
    run = _SolverRun(
        principal=principal,
        target=target,
        term_months=term_months,
        state=initial_state,
        rate=_seed_rate(principal, target, term_months),
    )

    while run.state not in (SolverState.CONVERGED, SolverState.EXHAUSTED):
        if run.state is SolverState.NEWTON:
            run.newton_step()
        else:
            run.bisection_step()

    logger.debug(
        "Rate solver finished in state %s (newton=%d, bisection=%d, monthly_rate=%.8f)",
        run.state.value, run.newton_iterations, run.bisection_iterations, run.rate,
    )
    return RateSolution(
        monthly_rate=run.rate,
        annual_rate=_to_annual_percent(run.rate),
        state=run.state,
        newton_iterations=run.newton_iterations,
        bisection_iterations=run.bisection_iterations,
        fallback_reason=run.fallback_reason,
    )


def net_monthly_payment(
    monthly_payment: Decimal, monthly_fee: Decimal, insurance_monthly: Decimal
) -> Decimal:
    """Payment left for principal and interest once recurring fees are covered."""
    net = monthly_payment - monthly_fee - insurance_monthly
    if net <= 0:
        raise InvalidPaymentError(monthly_payment, monthly_fee + insurance_monthly)
    return net


def rate_from_payment(
    principal: Decimal,
    monthly_payment: Decimal,
    term_months: int,
    structure: RepaymentStructure = RepaymentStructure.ANNUITY,
    setup_fee: Decimal = Decimal("0"),
    monthly_fee: Decimal = Decimal("0"),
    insurance_monthly: Decimal = Decimal("0"),
) -> Decimal:
    """Annual nominal rate (percent, 2 places) implied by a monthly payment.

    Raises InvalidPaymentError when the payment does not cover the fees and
    UnsolvableRateError when it cannot repay the loan at a non-negative rate.
    """
    effective_principal = principal + setup_fee
    net = net_monthly_payment(monthly_payment, monthly_fee, insurance_monthly)

    if structure is RepaymentStructure.GRADUATED_PAYMENT:
        raise UnsolvableRateError(
            "Graduated payment loans require an explicit rate and term",
            {"structure": structure.value},
        )

    if structure in ANNUITY_STRUCTURES:
        if net * term_months < effective_principal:
            raise UnsolvableRateError(
                "Payment is too low to repay the loan at any non-negative rate",
                {
                    "monthly_payment": str(monthly_payment),
                    "total_repaid": str(net * term_months),
                    "effective_principal": str(effective_principal),
                },
            )
        return solve_annuity_rate(effective_principal, net, term_months).annual_rate

    if structure is RepaymentStructure.FIXED_PRINCIPAL:
        # Approximate: average interest is charged on half the principal
        principal_component = effective_principal / term_months
        avg_interest = net - principal_component
        if avg_interest < 0:
            raise UnsolvableRateError(
                "Payment is below the fixed principal installment",
                {
                    "monthly_payment": str(monthly_payment),
                    "principal_installment": str(
                        principal_component.quantize(TWO_PLACES, ROUND_HALF_UP)),
                },
            )
        monthly_rate = avg_interest / (effective_principal / 2)
    else:
        monthly_rate = net / effective_principal

    return (monthly_rate * 12 * 100).quantize(TWO_PLACES, ROUND_HALF_UP)


def term_from_payment(
    principal: Decimal,
    annual_rate: Decimal,
    monthly_payment: Decimal,
    structure: RepaymentStructure = RepaymentStructure.ANNUITY,
    setup_fee: Decimal = Decimal("0"),
    monthly_fee: Decimal = Decimal("0"),
    insurance_monthly: Decimal = Decimal("0"),
) -> int:
    """Whole months needed to repay the loan with the given payment.

    n = -ln(1 - P*r/M) / ln(1 + r), rounded up.

    Raises InvalidPaymentError when the payment does not cover the fees and
    UnsolvableTermError when no finite term amortizes the loan.
    """
    effective_principal = principal + setup_fee
    net = net_monthly_payment(monthly_payment, monthly_fee, insurance_monthly)
    monthly_rate = annual_rate / 100 / 12

    if structure is RepaymentStructure.INTEREST_ONLY:
        raise UnsolvableTermError(
            "Interest-only loans require an explicit term",
            {"structure": structure.value},
        )
    if structure is RepaymentStructure.GRADUATED_PAYMENT:
        raise UnsolvableTermError(
            "Graduated payment loans require an explicit term",
            {"structure": structure.value},
        )

    if structure is RepaymentStructure.FIXED_PRINCIPAL:
        # Approximate: payment net of the average (half-balance) interest
        avg_interest = effective_principal * monthly_rate / 2
        principal_per_month = net - avg_interest
        if principal_per_month <= 0:
            raise UnsolvableTermError(
                "Payment is too low to repay the loan",
                {"monthly_payment": str(monthly_payment), "average_interest": str(avg_interest)},
            )
        return math.ceil(effective_principal / principal_per_month)

    if monthly_rate == 0:
        return math.ceil(effective_principal / net)

    log_argument = 1 - float(effective_principal) * float(monthly_rate) / float(net)
    if log_argument <= 0:
        raise UnsolvableTermError(
            "Payment is too low to repay the loan",
            {"monthly_payment": str(monthly_payment), "monthly_interest": str(
                (effective_principal * monthly_rate).quantize(TWO_PLACES, ROUND_HALF_UP))},
        )
    n = -math.log(log_argument) / math.log(1 + float(monthly_rate))
    return math.ceil(n)
