"""Boundary validation for loan terms.

The calculators assume valid input; callers run ``validate_terms`` first.
"""

import logging
from decimal import Decimal

from loan_engine.config import settings
from loan_engine.exceptions import InvalidLoanInputError
from loan_engine.models.loan import LoanTerms, RepaymentStructure

logger = logging.getLogger(__name__)


def validate_terms(terms: LoanTerms) -> LoanTerms:
    """Reject invalid loan terms; return them unchanged when valid."""
    if terms.principal <= 0:
        raise InvalidLoanInputError("Principal must be positive", {"principal": str(terms.principal)})

    if terms.annual_rate < 0:
        raise InvalidLoanInputError(
            "Annual rate cannot be negative", {"annual_rate": str(terms.annual_rate)}
        )
    if terms.annual_rate > Decimal(str(settings.high_rate_warning_pct)):
        logger.warning("Very high annual rate: %s%%", terms.annual_rate)

    if terms.term_months < 1:
        raise InvalidLoanInputError(
            "Term must be a positive number of months", {"term_months": terms.term_months}
        )
    if terms.term_months > settings.max_term_months:
        raise InvalidLoanInputError(
            f"Term cannot exceed {settings.max_term_months} months",
            {"term_months": terms.term_months},
        )

    fees = {
        "setup_fee": terms.setup_fee,
        "monthly_fee": terms.monthly_fee,
        "insurance_monthly": terms.insurance_monthly,
    }
    for name, value in fees.items():
        if value < 0:
            raise InvalidLoanInputError(f"{name} cannot be negative", {name: str(value)})

    if terms.balloon_amount is not None:
        if terms.structure is not RepaymentStructure.INTEREST_ONLY:
            raise InvalidLoanInputError(
                "Balloon amount applies only to interest-only loans",
                {"structure": terms.structure.value},
            )
        if terms.balloon_amount < 0:
            raise InvalidLoanInputError(
                "Balloon amount cannot be negative", {"balloon_amount": str(terms.balloon_amount)}
            )
        if terms.balloon_amount > terms.principal * Decimal(str(settings.balloon_warning_ratio)):
            logger.warning(
                "Balloon amount %s is larger than the principal %s",
                terms.balloon_amount, terms.principal,
            )

    if terms.payment_override is not None:
        if terms.structure not in (RepaymentStructure.ANNUITY, RepaymentStructure.AUTO_LOAN):
            raise InvalidLoanInputError(
                "Payment override applies only to annuity and auto loans",
                {"structure": terms.structure.value},
            )
        if terms.payment_override <= 0:
            raise InvalidLoanInputError(
                "Payment override must be positive",
                {"payment_override": str(terms.payment_override)},
            )

    if terms.principal_override is not None:
        if terms.structure is not RepaymentStructure.FIXED_PRINCIPAL:
            raise InvalidLoanInputError(
                "Principal override applies only to fixed-principal loans",
                {"structure": terms.structure.value},
            )
        if terms.principal_override <= 0:
            raise InvalidLoanInputError(
                "Principal override must be positive",
                {"principal_override": str(terms.principal_override)},
            )

    if terms.graduated is not None:
        _validate_graduated(terms)

    return terms


def _validate_graduated(terms: LoanTerms) -> None:
    config = terms.graduated
    if terms.structure is not RepaymentStructure.GRADUATED_PAYMENT:
        raise InvalidLoanInputError(
            "Graduation settings apply only to graduated payment loans",
            {"structure": terms.structure.value},
        )
    if not 0 < config.initial_payment_pct <= 100:
        raise InvalidLoanInputError(
            "Initial payment must be between 0 and 100 percent of the level payment",
            {"initial_payment_pct": str(config.initial_payment_pct)},
        )
    if config.graduation_period_months < 1 or config.graduation_steps < 1:
        raise InvalidLoanInputError(
            "Graduation period and steps must be at least 1",
            {
                "graduation_period_months": config.graduation_period_months,
                "graduation_steps": config.graduation_steps,
            },
        )
    if config.graduation_period_months >= terms.term_months:
        logger.warning(
            "Graduation period of %d months covers the whole %d-month term",
            config.graduation_period_months, terms.term_months,
        )
