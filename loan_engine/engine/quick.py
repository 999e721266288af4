"""Closed-form loan summary for form previews.

Pure functions. No per-installment schedule is materialized; totals agree
with ``calculate_schedule`` to within rounding for monthly accrual.
"""

import math
from decimal import Decimal

from loan_engine.engine.calculator import annuity_payment, round_money
from loan_engine.engine.day_count import add_months
from loan_engine.models.loan import GraduatedConfig, LoanTerms, RepaymentStructure
from loan_engine.models.results import QuickEstimate

ZERO = Decimal("0")


def rpmn_approximation(
    principal: Decimal,
    annual_rate: Decimal,
    total_interest: Decimal,
    total_fees: Decimal,
    term_months: int,
) -> Decimal:
    """Simple RPMN: interest and fees per year over the principal.

    Without fees this is the nominal rate. Not an IRR.
    """
    if total_fees == 0:
        return annual_rate
    years = Decimal(term_months) / 12
    return (total_interest + total_fees) / principal / years * 100


def _level_balance(balance: Decimal, r: Decimal, payment: Decimal, months: int) -> Decimal:
    """Balance after ``months`` level payments: B(1+r)^m - M((1+r)^m - 1)/r."""
    if r == 0:
        return balance - payment * months
    growth = (1 + r) ** months
    return balance * growth - payment * (growth - 1) / r


def _graduated(
    principal: Decimal, r: Decimal, n: int, config: GraduatedConfig
) -> tuple[Decimal, Decimal, Decimal]:
    """First payment, last payment and total interest, one closed form per step."""
    standard = annuity_payment(principal, r, n)
    graduation_months = min(config.graduation_period_months, n)
    first_payment = standard * config.payment_pct(1) / 100

    balance = principal
    total_interest = ZERO
    month = 0
    payment = first_payment
    while month < graduation_months:
        payment = standard * config.payment_pct(month + 1) / 100
        months = min(config.months_per_step, graduation_months - month)
        end_balance = _level_balance(balance, r, payment, months)
        # Interest over a segment: payments made minus principal retired
        total_interest += payment * months - (balance - end_balance)
        balance = end_balance
        month += months

    remaining = n - graduation_months
    if remaining == 0:
        # Final installment clears whatever the last step left
        return first_payment, payment + balance, total_interest

    level = annuity_payment(balance, r, remaining)
    total_interest += level * remaining - balance
    return first_payment, level, total_interest


def quick_estimate(terms: LoanTerms) -> QuickEstimate:
    r = terms.monthly_rate
    n = terms.term_months
    principal = terms.effective_principal
    fees = terms.recurring_fees
    principal_repaid = principal

    if terms.structure in (RepaymentStructure.ANNUITY, RepaymentStructure.AUTO_LOAN):
        pmt = terms.payment_override
        if pmt is None:
            pmt = annuity_payment(principal, r, n)
        total_interest = ZERO if r == 0 else pmt * n - principal
        first_payment = pmt + fees
        last_payment = first_payment

    elif terms.structure is RepaymentStructure.FIXED_PRINCIPAL:
        principal_component = terms.principal_override or principal / n
        # Installments that still carry a balance; the last one trues up
        paying = min(n, math.ceil(principal / principal_component))
        balance_sum = paying * principal - principal_component * paying * (paying - 1) / 2
        total_interest = balance_sum * r

        final_balance = max(ZERO, principal - principal_component * (n - 1))
        first_principal = principal if n == 1 else min(principal_component, principal)
        first_payment = first_principal + principal * r + fees
        last_payment = final_balance * (1 + r) + fees

    elif terms.structure is RepaymentStructure.INTEREST_ONLY:
        balloon = terms.balloon_amount if terms.balloon_amount is not None else principal
        principal_repaid = min(balloon, principal)
        monthly_interest = principal * r
        first_payment = monthly_interest + fees
        last_payment = monthly_interest + fees + principal_repaid
        total_interest = monthly_interest * n

    else:
        first, last, total_interest = _graduated(principal, r, n, terms.graduated_config)
        first_payment = first + fees
        last_payment = last + fees

    total_fees = terms.upfront_fee + fees * n
    # Same accounting as the full schedule: financed principal + one-time fee
    total_payment = principal_repaid + total_interest + fees * n + terms.upfront_fee

    return QuickEstimate(
        first_payment=round_money(first_payment),
        last_payment=round_money(last_payment),
        total_interest=round_money(total_interest),
        total_fees=round_money(total_fees),
        total_payment=round_money(total_payment),
        effective_rate=round_money(rpmn_approximation(
            terms.principal, terms.annual_rate, total_interest, total_fees, n,
        )),
        end_date=add_months(terms.start_date, n),
    )
