from dataclasses import replace
from datetime import date
from decimal import Decimal

import pytest

from loan_engine.engine.calculator import calculate_schedule
from loan_engine.engine.quick import quick_estimate, rpmn_approximation
from loan_engine.models.loan import GraduatedConfig, RepaymentStructure

TOLERANCE = Decimal("0.10")
LONG_TERM_TOLERANCE = Decimal("0.50")


class TestQuickEstimate:
    def test_canonical_annuity(self, canonical_terms):
        est = quick_estimate(canonical_terms)
        assert est.first_payment == Decimal("856.07")
        assert est.last_payment == est.first_payment
        assert est.end_date == date(2025, 1, 1)

    def test_no_fees_effective_rate_is_nominal(self, canonical_terms):
        assert quick_estimate(canonical_terms).effective_rate == Decimal("5.00")

    def test_fees_raise_effective_rate(self, terms_with_fees):
        assert quick_estimate(terms_with_fees).effective_rate > Decimal("5")

    def test_zero_rate(self, canonical_terms):
        est = quick_estimate(replace(canonical_terms, annual_rate=Decimal("0")))
        assert est.total_interest == Decimal("0")
        assert est.first_payment == Decimal("833.33")
        assert est.total_payment == Decimal("10000.00")

    def test_fixed_principal_payments(self, fixed_principal_terms):
        est = quick_estimate(fixed_principal_terms)
        assert est.first_payment == Decimal("875.00")
        assert est.last_payment < est.first_payment

    def test_interest_only_balloon_in_last_payment(self, interest_only_terms):
        est = quick_estimate(interest_only_terms)
        assert est.first_payment == Decimal("41.67")
        assert est.last_payment == Decimal("10041.67")


class TestAgreementWithSchedule:
    @pytest.mark.parametrize("structure", list(RepaymentStructure))
    def test_totals_within_rounding(self, terms_with_fees, structure):
        terms = replace(terms_with_fees, structure=structure, term_months=24)
        est = quick_estimate(terms)
        full = calculate_schedule(terms)
        assert abs(est.total_interest - full.total_interest) <= TOLERANCE
        assert est.total_fees == full.total_fees
        assert abs(est.total_payment - full.total_payment) <= TOLERANCE
        assert est.end_date == full.end_date

    def test_first_payment_matches(self, canonical_terms):
        est = quick_estimate(canonical_terms)
        full = calculate_schedule(canonical_terms)
        assert est.first_payment == full.schedule[0].total_due

    def test_balloon_above_principal(self, interest_only_terms):
        terms = replace(interest_only_terms, balloon_amount=Decimal("12000"))
        est = quick_estimate(terms)
        full = calculate_schedule(terms)
        assert est.last_payment == full.schedule[-1].total_due == Decimal("10041.67")
        assert abs(est.total_payment - full.total_payment) <= TOLERANCE
        assert full.total_payment < Decimal("10600")


class TestAutoLoanEstimate:
    def test_setup_fee_only_financed(self, auto_loan_terms):
        est = quick_estimate(auto_loan_terms)
        assert est.total_fees == Decimal("180.00")
        assert est.total_fees == calculate_schedule(auto_loan_terms).total_fees

    def test_payment_matches_annuity(self, auto_loan_terms, terms_with_fees):
        assert (quick_estimate(auto_loan_terms).first_payment
                == quick_estimate(terms_with_fees).first_payment)


class TestGraduatedEstimate:
    def test_agrees_with_schedule(self, graduated_terms):
        est = quick_estimate(graduated_terms)
        full = calculate_schedule(graduated_terms)
        assert est.first_payment == full.schedule[0].total_due
        assert abs(est.last_payment - full.schedule[-1].total_due) <= LONG_TERM_TOLERANCE
        assert abs(est.total_interest - full.total_interest) <= LONG_TERM_TOLERANCE
        assert abs(est.total_payment - full.total_payment) <= LONG_TERM_TOLERANCE

    def test_graduation_longer_than_term(self, graduated_terms):
        terms = replace(graduated_terms, term_months=36)
        est = quick_estimate(terms)
        full = calculate_schedule(terms)
        assert est.first_payment == full.schedule[0].total_due
        assert abs(est.last_payment - full.schedule[-1].total_due) <= LONG_TERM_TOLERANCE
        assert abs(est.total_interest - full.total_interest) <= TOLERANCE

    def test_custom_config(self, graduated_terms):
        terms = replace(graduated_terms, graduated=GraduatedConfig(
            initial_payment_pct=Decimal("60"), graduation_period_months=24, graduation_steps=4,
        ))
        est = quick_estimate(terms)
        full = calculate_schedule(terms)
        assert est.first_payment == full.schedule[0].total_due
        assert abs(est.total_interest - full.total_interest) <= LONG_TERM_TOLERANCE


class TestPrincipalOverrideEstimate:
    def test_agrees_with_schedule(self, terms_with_fees):
        terms = replace(
            terms_with_fees,
            structure=RepaymentStructure.FIXED_PRINCIPAL,
            principal_override=Decimal("1000"),
        )
        est = quick_estimate(terms)
        full = calculate_schedule(terms)
        assert est.first_payment == full.schedule[0].total_due == Decimal("1057.50")
        assert est.last_payment == full.schedule[-1].total_due == Decimal("15.00")
        assert abs(est.total_interest - full.total_interest) <= TOLERANCE

    def test_small_override_last_payment(self, fixed_principal_terms):
        terms = replace(fixed_principal_terms, principal_override=Decimal("500"))
        est = quick_estimate(terms)
        full = calculate_schedule(terms)
        assert est.last_payment == full.schedule[-1].total_due
        assert abs(est.total_payment - full.total_payment) <= TOLERANCE


class TestRpmnApproximation:
    def test_without_fees(self):
        rate = rpmn_approximation(
            Decimal("10000"), Decimal("5"), Decimal("272.90"), Decimal("0"), 12
        )
        assert rate == Decimal("5")

    def test_with_fees(self):
        # (300 interest + 100 fees) / 10000 over 1 year = 4%
        rate = rpmn_approximation(
            Decimal("10000"), Decimal("3"), Decimal("300"), Decimal("100"), 12
        )
        assert rate == Decimal("4")
