"""Amortization schedule computation for all repayment structures.

Pure functions: Decimal in, dataclass out. No I/O.

Every monetary component is rounded to cents before it is summed into an
installment total; outputs depend on that ordering.
"""

from datetime import date
from decimal import Decimal, ROUND_HALF_UP

from loan_engine.engine.day_count import add_months, day_count_factor
from loan_engine.models.loan import (
    LoanTerms,
    PaymentStatus,
    RepaymentStructure,
    ScheduleEntry,
    ScheduleResult,
)
from loan_engine.models.results import YearlySummary

TWO_PLACES = Decimal("0.01")
ZERO = Decimal("0")


def round_money(amount: Decimal) -> Decimal:
    return amount.quantize(TWO_PLACES, ROUND_HALF_UP)


def annuity_payment(principal: Decimal, monthly_rate: Decimal, term_months: int) -> Decimal:
    """Level monthly payment (unrounded).

    M = P * [r(1+r)^n] / [(1+r)^n - 1], or P / n at a zero rate.
    """
    if monthly_rate == 0:
        return principal / term_months
    factor = (1 + monthly_rate) ** term_months
    return principal * (monthly_rate * factor) / (factor - 1)


def effective_rate(principal: Decimal, cost_of_credit: Decimal, term_months: int) -> Decimal:
    """Simplified cost-of-credit figure, annualized percent.

    Average monthly cost divided by half the principal (the average balance
    of a fully amortizing loan), times 12 * 100. This is an approximation,
    not a regulatory APR; see ``annual_percentage_rate`` for an IRR figure.
    """
    if principal <= 0 or term_months <= 0:
        return ZERO
    avg_monthly_cost = cost_of_credit / term_months
    return round_money(avg_monthly_cost / (principal / 2) * 12 * 100)


def period_interest(
    balance: Decimal, annual_rate: Decimal, terms: LoanTerms, installment_no: int
) -> Decimal:
    """Interest accrued on ``balance`` over installment ``installment_no``."""
    prev_date = add_months(terms.start_date, installment_no - 1)
    due_date = add_months(terms.start_date, installment_no)
    factor = day_count_factor(prev_date, due_date, terms.day_count)
    return round_money(balance * (annual_rate / 100) * factor)


def calculate_schedule(terms: LoanTerms) -> ScheduleResult:
    """Build the full installment schedule and aggregate totals.

    Inputs are assumed valid (see ``validate_terms``).
    """
    builders = {
        RepaymentStructure.ANNUITY: _annuity_schedule,
        RepaymentStructure.AUTO_LOAN: _annuity_schedule,
        RepaymentStructure.FIXED_PRINCIPAL: _fixed_principal_schedule,
        RepaymentStructure.INTEREST_ONLY: _interest_only_schedule,
        RepaymentStructure.GRADUATED_PAYMENT: _graduated_schedule,
    }
    schedule = builders[terms.structure](terms)
    return summarize(terms, schedule)


def summarize(terms: LoanTerms, schedule: list[ScheduleEntry]) -> ScheduleResult:
    """Aggregate totals. The setup fee counts once more unless it is only financed."""
    total_interest = sum((e.interest_due for e in schedule), ZERO)
    monthly_fees = sum((e.fees_due for e in schedule), ZERO)
    schedule_payments = sum((e.total_due for e in schedule), ZERO)

    return ScheduleResult(
        schedule=schedule,
        total_interest=round_money(total_interest),
        total_fees=round_money(monthly_fees + terms.upfront_fee),
        total_payment=round_money(schedule_payments + terms.upfront_fee),
        effective_rate=effective_rate(terms.principal, total_interest, terms.term_months),
    )


def _entry(
    installment_no: int,
    due_date: date,
    principal_due: Decimal,
    interest_due: Decimal,
    fees_due: Decimal,
    balance: Decimal,
) -> ScheduleEntry:
    return ScheduleEntry(
        installment_no=installment_no,
        due_date=due_date,
        principal_due=principal_due,
        interest_due=interest_due,
        fees_due=fees_due,
        total_due=round_money(principal_due + interest_due + fees_due),
        principal_balance_after=balance,
        status=PaymentStatus.PENDING,
    )


def _annuity_schedule(terms: LoanTerms) -> list[ScheduleEntry]:
    principal = terms.effective_principal
    n = terms.term_months
    pmt = terms.payment_override
    if pmt is None:
        pmt = annuity_payment(principal, terms.monthly_rate, n)
    fees_due = round_money(terms.recurring_fees)

    schedule: list[ScheduleEntry] = []
    balance = principal
    for i in range(1, n + 1):
        interest = period_interest(balance, terms.annual_rate, terms, i)

        # Final payment true-up: clear whatever rounding left behind
        if i == n:
            principal_due = round_money(balance)
        else:
            principal_due = min(round_money(max(ZERO, pmt - interest)), balance)

        balance = round_money(max(ZERO, balance - principal_due))
        schedule.append(_entry(
            i, add_months(terms.start_date, i), principal_due, interest, fees_due, balance,
        ))

    return schedule


def _fixed_principal_schedule(terms: LoanTerms) -> list[ScheduleEntry]:
    principal = terms.effective_principal
    n = terms.term_months
    principal_component = round_money(terms.principal_override or principal / n)
    fees_due = round_money(terms.recurring_fees)

    schedule: list[ScheduleEntry] = []
    balance = principal
    for i in range(1, n + 1):
        interest = period_interest(balance, terms.annual_rate, terms, i)
        if i == n:
            principal_due = round_money(balance)
        else:
            principal_due = min(principal_component, balance)

        balance = round_money(max(ZERO, balance - principal_due))
        schedule.append(_entry(
            i, add_months(terms.start_date, i), principal_due, interest, fees_due, balance,
        ))

    return schedule


def _interest_only_schedule(terms: LoanTerms) -> list[ScheduleEntry]:
    principal = terms.effective_principal
    n = terms.term_months
    balloon = terms.balloon_amount if terms.balloon_amount is not None else principal
    fees_due = round_money(terms.recurring_fees)

    schedule: list[ScheduleEntry] = []
    balance = principal
    for i in range(1, n + 1):
        interest = period_interest(balance, terms.annual_rate, terms, i)
        principal_due = ZERO
        if i == n:
            principal_due = round_money(min(balloon, balance))
            balance = round_money(balance - principal_due)

        schedule.append(_entry(
            i, add_months(terms.start_date, i), principal_due, interest, fees_due, balance,
        ))

    return schedule


def _graduated_schedule(terms: LoanTerms) -> list[ScheduleEntry]:
    """Stepped payments, then a level payment re-amortizing what is left.

    Early payments may not cover the interest; the shortfall is added to
    the balance (negative amortization).
    """
    principal = terms.effective_principal
    n = terms.term_months
    r = terms.monthly_rate
    config = terms.graduated_config
    standard = annuity_payment(principal, r, n)
    fees_due = round_money(terms.recurring_fees)

    schedule: list[ScheduleEntry] = []
    balance = principal
    for i in range(1, n + 1):
        interest = period_interest(balance, terms.annual_rate, terms, i)
        if i > config.graduation_period_months:
            payment = annuity_payment(balance, r, n - i + 1)
        else:
            payment = standard * config.payment_pct(i) / 100

        if i == n:
            principal_due = round_money(balance)
        else:
            principal_due = round_money(min(payment - interest, balance))

        balance = round_money(balance - principal_due)
        schedule.append(_entry(
            i, add_months(terms.start_date, i), principal_due, interest, fees_due, balance,
        ))

    return schedule


def yearly_summary(schedule: list[ScheduleEntry]) -> list[YearlySummary]:
    """Aggregate a schedule by loan year (12 installments per year)."""
    yearly: list[YearlySummary] = []
    year_principal = ZERO
    year_interest = ZERO
    year_fees = ZERO
    year_total = ZERO

    for e in schedule:
        year_principal += e.principal_due
        year_interest += e.interest_due
        year_fees += e.fees_due
        year_total += e.total_due

        if e.installment_no % 12 == 0 or e is schedule[-1]:
            yearly.append(YearlySummary(
                year=(e.installment_no - 1) // 12 + 1,
                principal=year_principal,
                interest=year_interest,
                fees=year_fees,
                total_paid=year_total,
                ending_balance=e.principal_balance_after,
            ))
            year_principal = ZERO
            year_interest = ZERO
            year_fees = ZERO
            year_total = ZERO

    return yearly
