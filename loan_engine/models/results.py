from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from loan_engine.models.loan import ScheduleEntry


@dataclass(frozen=True)
class PaymentApplication:
    updated_schedule: list[ScheduleEntry]
    applied_amount: Decimal
    remaining_amount: Decimal  # Not cascaded to the next installment


@dataclass(frozen=True)
class PaymentSplit:
    principal: Decimal
    interest: Decimal
    fees: Decimal


@dataclass(frozen=True)
class EarlyRepayment:
    new_balance: Decimal
    penalty: Decimal
    applied_to_principal: Decimal


@dataclass(frozen=True)
class EarlyRepaymentOutcome:
    penalty_amount: Decimal
    remaining_balance: Decimal
    new_schedule: list[ScheduleEntry] = field(default_factory=list)
    total_saved: Decimal = Decimal("0")  # Interest + fees saved, net of penalty when re-amortized
    effective_rate: Decimal = Decimal("0")


@dataclass(frozen=True)
class QuickEstimate:
    first_payment: Decimal
    last_payment: Decimal
    total_interest: Decimal
    total_fees: Decimal
    total_payment: Decimal
    effective_rate: Decimal  # Simplified RPMN approximation
    end_date: date


@dataclass(frozen=True)
class LoanQuote:
    estimate: QuickEstimate
    annual_rate: Decimal
    term_months: int
    calculated_rate: Decimal | None = None
    calculated_payment: Decimal | None = None
    calculated_term: int | None = None


@dataclass(frozen=True)
class ScheduleProgress:
    installments_total: int
    installments_paid: int
    installments_overdue: int
    principal_paid: Decimal
    principal_remaining: Decimal
    total_remaining_due: Decimal
    percent_repaid: Decimal
    next_due_date: date | None = None


@dataclass(frozen=True)
class YearlySummary:
    year: int  # 1-indexed loan year
    principal: Decimal
    interest: Decimal
    fees: Decimal
    total_paid: Decimal
    ending_balance: Decimal


class SolverState(Enum):
    NEWTON = "newton"
    BISECTION = "bisection"
    CONVERGED = "converged"
    EXHAUSTED = "exhausted"


@dataclass(frozen=True)
class RateSolution:
    monthly_rate: float
    annual_rate: Decimal  # Percent, rounded to 2 places
    state: SolverState
    newton_iterations: int = 0
    bisection_iterations: int = 0
    fallback_reason: str | None = None
