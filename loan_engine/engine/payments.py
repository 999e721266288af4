"""Applying cash payments and early repayments to a schedule.

Pure functions. Schedules are never mutated; a new list is returned.
"""

from dataclasses import replace
from datetime import date
from decimal import Decimal

from loan_engine.engine.calculator import round_money
from loan_engine.models.loan import PaymentStatus, ScheduleEntry
from loan_engine.models.results import EarlyRepayment, PaymentApplication, PaymentSplit

ZERO = Decimal("0")


def apply_payment(
    schedule: list[ScheduleEntry], amount: Decimal, payment_date: date
) -> PaymentApplication:
    """Apply a payment to the earliest pending or overdue installment.

    A payment that covers the installment marks it paid; any overpayment is
    reported back as ``remaining_amount`` and is not cascaded to the next
    installment. A payment short of the installment total changes nothing.
    """
    updated = list(schedule)
    index = next((i for i, e in enumerate(updated) if e.is_unpaid), None)
    if index is None:
        return PaymentApplication(updated, applied_amount=ZERO, remaining_amount=amount)

    installment = updated[index]
    if amount < installment.total_due:
        return PaymentApplication(updated, applied_amount=ZERO, remaining_amount=amount)

    updated[index] = replace(installment, status=PaymentStatus.PAID, paid_on=payment_date)
    return PaymentApplication(
        updated,
        applied_amount=installment.total_due,
        remaining_amount=amount - installment.total_due,
    )


def early_repayment_penalty(amount: Decimal, penalty_pct: Decimal) -> Decimal:
    """Penalty charged on an early repayment amount or balance."""
    return round_money(amount * (penalty_pct / 100))


def process_early_repayment(
    current_balance: Decimal,
    repayment_amount: Decimal,
    penalty_pct: Decimal = Decimal("0"),
) -> EarlyRepayment:
    """New balance after an early repayment; never negative.

    The penalty is charged on the repaid amount and paid on top of it.
    """
    penalty = early_repayment_penalty(repayment_amount, penalty_pct)
    new_balance = max(ZERO, current_balance - repayment_amount)
    return EarlyRepayment(
        new_balance=round_money(new_balance),
        penalty=penalty,
        applied_to_principal=round_money(repayment_amount),
    )


def split_payment(installment: ScheduleEntry) -> PaymentSplit:
    return PaymentSplit(
        principal=installment.principal_due,
        interest=installment.interest_due,
        fees=installment.fees_due,
    )
