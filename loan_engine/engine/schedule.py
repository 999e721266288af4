"""Schedule transforms and queries over persisted installments.

Pure functions. Every transform returns a new list; entries are frozen.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from loan_engine.engine.calculator import annuity_payment, round_money
from loan_engine.models.loan import PaymentStatus, ScheduleEntry
from loan_engine.models.results import ScheduleProgress

ZERO = Decimal("0")


def regenerate_after_early_repayment(
    original: list[ScheduleEntry],
    paid_count: int,
    new_balance: Decimal,
    monthly_rate: Decimal,
) -> list[ScheduleEntry]:
    """Re-amortize the unpaid remainder of a schedule as a level annuity.

    Due dates and fee components of the remaining entries are kept;
    principal, interest, balance and status are recomputed.
    """
    remaining = original[paid_count:]
    if new_balance <= 0 or not remaining:
        return []

    n = len(remaining)
    pmt = annuity_payment(new_balance, monthly_rate, n)

    regenerated: list[ScheduleEntry] = []
    balance = new_balance
    for i, entry in enumerate(remaining, start=1):
        interest = round_money(balance * monthly_rate)
        if i == n:
            principal_due = round_money(balance)
        else:
            principal_due = min(round_money(max(ZERO, pmt - interest)), balance)
        balance = round_money(max(ZERO, balance - principal_due))

        regenerated.append(replace(
            entry,
            principal_due=principal_due,
            interest_due=interest,
            total_due=round_money(principal_due + interest + entry.fees_due),
            principal_balance_after=balance,
            status=PaymentStatus.PENDING,
            paid_on=None,
        ))

    return regenerated


def mark_overdue(schedule: list[ScheduleEntry], as_of: date) -> list[ScheduleEntry]:
    """Pending entries due before ``as_of`` become overdue."""
    return [
        replace(e, status=PaymentStatus.OVERDUE)
        if e.status is PaymentStatus.PENDING and e.due_date < as_of
        else e
        for e in schedule
    ]


def mark_paid_until(
    schedule: list[ScheduleEntry], as_of: date, paid_on: date | None = None
) -> list[ScheduleEntry]:
    """Mark every unpaid entry due on or before ``as_of`` as paid.

    ``paid_on`` defaults to each entry's own due date.
    """
    return [
        replace(e, status=PaymentStatus.PAID, paid_on=paid_on or e.due_date)
        if e.is_unpaid and e.due_date <= as_of
        else e
        for e in schedule
    ]


def next_due_entry(schedule: list[ScheduleEntry]) -> ScheduleEntry | None:
    return next((e for e in schedule if e.is_unpaid), None)


def overdue_entries(schedule: list[ScheduleEntry]) -> list[ScheduleEntry]:
    return [e for e in schedule if e.status is PaymentStatus.OVERDUE]


def total_remaining_due(schedule: list[ScheduleEntry]) -> Decimal:
    return sum((e.total_due for e in schedule if e.is_unpaid), ZERO)


def principal_remaining_balance(schedule: list[ScheduleEntry]) -> Decimal:
    """Outstanding principal given the payment history.

    Balance after the last paid installment; the opening balance if nothing
    has been paid; zero once every installment is paid.
    """
    index = next((i for i, e in enumerate(schedule) if e.is_unpaid), None)
    if index is None:
        return ZERO
    if index == 0:
        return schedule[0].balance_before
    return schedule[index - 1].principal_balance_after


def schedule_progress(schedule: list[ScheduleEntry]) -> ScheduleProgress:
    paid = [e for e in schedule if e.status is PaymentStatus.PAID]
    principal_paid = sum((e.principal_due for e in paid), ZERO)
    opening_balance = schedule[0].balance_before if schedule else ZERO

    percent_repaid = ZERO
    if opening_balance > 0:
        percent_repaid = round_money(principal_paid / opening_balance * 100)

    next_entry = next_due_entry(schedule)
    return ScheduleProgress(
        installments_total=len(schedule),
        installments_paid=len(paid),
        installments_overdue=len(overdue_entries(schedule)),
        principal_paid=principal_paid,
        principal_remaining=principal_remaining_balance(schedule),
        total_remaining_due=total_remaining_due(schedule),
        percent_repaid=percent_repaid,
        next_due_date=next_entry.due_date if next_entry else None,
    )
