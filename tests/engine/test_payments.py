from datetime import date
from decimal import Decimal

from loan_engine.engine.payments import (
    apply_payment,
    early_repayment_penalty,
    process_early_repayment,
    split_payment,
)
from loan_engine.models.loan import PaymentStatus, ScheduleEntry


def _entry(no: int, total: str, status: PaymentStatus = PaymentStatus.PENDING) -> ScheduleEntry:
    return ScheduleEntry(
        installment_no=no,
        due_date=date(2024, 1 + no, 1),
        principal_due=Decimal(total) - Decimal("40"),
        interest_due=Decimal("35"),
        fees_due=Decimal("5"),
        total_due=Decimal(total),
        principal_balance_after=Decimal("1000") * (3 - no),
        status=status,
    )


class TestApplyPayment:
    def test_overpayment_reported_not_cascaded(self):
        schedule = [_entry(1, "860"), _entry(2, "860")]
        result = apply_payment(schedule, Decimal("1000"), date(2024, 2, 1))
        assert result.updated_schedule[0].status is PaymentStatus.PAID
        assert result.updated_schedule[0].paid_on == date(2024, 2, 1)
        assert result.updated_schedule[1].status is PaymentStatus.PENDING
        assert result.applied_amount == Decimal("860")
        assert result.remaining_amount == Decimal("140")

    def test_underpayment_changes_nothing(self):
        schedule = [_entry(1, "860"), _entry(2, "860")]
        result = apply_payment(schedule, Decimal("500"), date(2024, 2, 1))
        assert result.updated_schedule == schedule
        assert result.updated_schedule[0].status is PaymentStatus.PENDING
        assert result.applied_amount == Decimal("0")
        assert result.remaining_amount == Decimal("500")

    def test_exact_payment(self):
        result = apply_payment([_entry(1, "860")], Decimal("860"), date(2024, 2, 1))
        assert result.updated_schedule[0].status is PaymentStatus.PAID
        assert result.remaining_amount == Decimal("0")

    def test_skips_paid_entries(self):
        schedule = [_entry(1, "860", PaymentStatus.PAID), _entry(2, "860")]
        result = apply_payment(schedule, Decimal("860"), date(2024, 3, 1))
        assert result.updated_schedule[1].status is PaymentStatus.PAID
        assert result.updated_schedule[0] is schedule[0]

    def test_overdue_entry_is_payable(self):
        schedule = [_entry(1, "860", PaymentStatus.OVERDUE), _entry(2, "860")]
        result = apply_payment(schedule, Decimal("900"), date(2024, 3, 5))
        assert result.updated_schedule[0].status is PaymentStatus.PAID
        assert result.remaining_amount == Decimal("40")

    def test_nothing_left_to_pay(self):
        schedule = [_entry(1, "860", PaymentStatus.PAID)]
        result = apply_payment(schedule, Decimal("100"), date(2024, 3, 1))
        assert result.applied_amount == Decimal("0")
        assert result.remaining_amount == Decimal("100")

    def test_input_not_mutated(self):
        schedule = [_entry(1, "860")]
        apply_payment(schedule, Decimal("860"), date(2024, 2, 1))
        assert schedule[0].status is PaymentStatus.PENDING

    def test_on_generated_schedule(self, canonical_schedule):
        result = apply_payment(canonical_schedule.schedule, Decimal("1000"), date(2024, 2, 1))
        assert result.applied_amount == Decimal("856.07")
        assert result.remaining_amount == Decimal("143.93")


class TestEarlyRepaymentPenalty:
    def test_two_percent(self):
        assert early_repayment_penalty(Decimal("10000"), Decimal("2")) == Decimal("200.00")

    def test_rounded_to_cents(self):
        assert early_repayment_penalty(Decimal("1234.56"), Decimal("1.5")) == Decimal("18.52")

    def test_zero(self):
        assert early_repayment_penalty(Decimal("10000"), Decimal("0")) == Decimal("0")


class TestProcessEarlyRepayment:
    def test_partial_repayment(self):
        result = process_early_repayment(Decimal("10000"), Decimal("3000"), Decimal("2"))
        assert result.new_balance == Decimal("7000")
        assert result.penalty == Decimal("60")
        assert result.applied_to_principal == Decimal("3000")

    def test_balance_never_negative(self):
        result = process_early_repayment(Decimal("1000"), Decimal("1500"))
        assert result.new_balance == Decimal("0")
        assert result.penalty == Decimal("0")


class TestSplitPayment:
    def test_components(self):
        split = split_payment(_entry(1, "860"))
        assert split.principal == Decimal("820")
        assert split.interest == Decimal("35")
        assert split.fees == Decimal("5")
