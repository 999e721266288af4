"""Canonical test fixtures used across all engine tests.

Fixture: 10,000 annuity loan, 5% nominal, 12 months, starting 2024-01-01,
30E/360 accrual, no fees.
"""

import pytest
from dataclasses import replace
from datetime import date
from decimal import Decimal

from loan_engine.engine.calculator import calculate_schedule
from loan_engine.models.loan import (
    DayCountConvention,
    LoanTerms,
    RepaymentStructure,
    ScheduleResult,
)


@pytest.fixture
def canonical_terms() -> LoanTerms:
    """10,000 at 5% over 12 months."""
    return LoanTerms(
        structure=RepaymentStructure.ANNUITY,
        principal=Decimal("10000"),
        annual_rate=Decimal("5"),
        term_months=12,
        start_date=date(2024, 1, 1),
        day_count=DayCountConvention.THIRTY_E_360,
    )


@pytest.fixture
def canonical_schedule(canonical_terms) -> ScheduleResult:
    return calculate_schedule(canonical_terms)


@pytest.fixture
def terms_with_fees(canonical_terms) -> LoanTerms:
    """Canonical loan with a 200 setup fee, 5/month fee and 10/month insurance."""
    return replace(
        canonical_terms,
        setup_fee=Decimal("200"),
        monthly_fee=Decimal("5"),
        insurance_monthly=Decimal("10"),
    )


@pytest.fixture
def fixed_principal_terms(canonical_terms) -> LoanTerms:
    return replace(canonical_terms, structure=RepaymentStructure.FIXED_PRINCIPAL)


@pytest.fixture
def interest_only_terms(canonical_terms) -> LoanTerms:
    return replace(canonical_terms, structure=RepaymentStructure.INTEREST_ONLY)


@pytest.fixture
def auto_loan_terms(terms_with_fees) -> LoanTerms:
    """Fee-bearing loan where the setup fee is only financed."""
    return replace(terms_with_fees, structure=RepaymentStructure.AUTO_LOAN)


@pytest.fixture
def graduated_terms(canonical_terms) -> LoanTerms:
    """10,000 at 5% over 10 years; default graduation (75%, 5 yearly steps)."""
    return replace(
        canonical_terms, structure=RepaymentStructure.GRADUATED_PAYMENT, term_months=120
    )
