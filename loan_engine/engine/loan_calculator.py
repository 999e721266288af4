"""Calculation modes: two of rate, term and payment are known, solve the third.

Entry point for form/preview callers. ``quote_loan`` reports failures as a
``Result`` value; ``schedule_for_mode`` raises.
"""

import logging
from decimal import Decimal

from loan_engine.engine.calculator import calculate_schedule
from loan_engine.engine.quick import quick_estimate
from loan_engine.engine.solver import (
    ANNUITY_STRUCTURES,
    net_monthly_payment,
    rate_from_payment,
    term_from_payment,
)
from loan_engine.engine.validation import validate_terms
from loan_engine.exceptions import LoanEngineError
from loan_engine.models.loan import LoanTerms, ScheduleResult
from loan_engine.models.requests import PaymentAndTerm, QuoteRequest, RateAndPayment, RateAndTerm
from loan_engine.models.results import LoanQuote
from loan_engine.result import Result

logger = logging.getLogger(__name__)


def _payment_override(request: QuoteRequest, monthly_payment: Decimal) -> Decimal | None:
    """Annuities keep the caller's payment; other structures derive their own."""
    if request.structure not in ANNUITY_STRUCTURES:
        return None
    return net_monthly_payment(monthly_payment, request.monthly_fee, request.insurance_monthly)


def resolve_terms(request: QuoteRequest) -> LoanTerms:
    """Solve the missing parameter and return validated loan terms.

    Raises InvalidLoanInputError, InvalidPaymentError, UnsolvableRateError or
    UnsolvableTermError.
    """
    mode = request.mode

    if isinstance(mode, RateAndTerm):
        terms = request.build_terms(mode.annual_rate, mode.term_months)

    elif isinstance(mode, PaymentAndTerm):
        annual_rate = rate_from_payment(
            request.principal,
            mode.monthly_payment,
            mode.term_months,
            structure=request.structure,
            setup_fee=request.setup_fee,
            monthly_fee=request.monthly_fee,
            insurance_monthly=request.insurance_monthly,
        )
        terms = request.build_terms(
            annual_rate, mode.term_months, _payment_override(request, mode.monthly_payment)
        )

    elif isinstance(mode, RateAndPayment):
        term_months = term_from_payment(
            request.principal,
            mode.annual_rate,
            mode.monthly_payment,
            structure=request.structure,
            setup_fee=request.setup_fee,
            monthly_fee=request.monthly_fee,
            insurance_monthly=request.insurance_monthly,
        )
        terms = request.build_terms(
            mode.annual_rate, term_months, _payment_override(request, mode.monthly_payment)
        )

    else:
        raise TypeError(f"Unsupported calculation mode: {type(mode).__name__}")

    return validate_terms(terms)


def quote_loan(request: QuoteRequest) -> Result[LoanQuote]:
    """Resolve the calculation mode and return a quick summary, or the failure."""
    try:
        terms = resolve_terms(request)
    except LoanEngineError as e:
        logger.info("Quote rejected (%s): %s", e.error_type, e)
        return Result.fail(e.message, e.error_type)

    estimate = quick_estimate(terms)
    mode = request.mode
    quote = LoanQuote(
        estimate=estimate,
        annual_rate=terms.annual_rate,
        term_months=terms.term_months,
        calculated_rate=terms.annual_rate if isinstance(mode, PaymentAndTerm) else None,
        calculated_payment=estimate.first_payment if isinstance(mode, RateAndTerm) else None,
        calculated_term=terms.term_months if isinstance(mode, RateAndPayment) else None,
    )
    return Result.ok(quote)


def schedule_for_mode(request: QuoteRequest) -> ScheduleResult:
    """Full schedule for a calculation mode. Raises on unsolvable input."""
    return calculate_schedule(resolve_terms(request))
