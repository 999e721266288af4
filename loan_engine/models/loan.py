from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum


class RepaymentStructure(Enum):
    ANNUITY = "annuity"
    FIXED_PRINCIPAL = "fixed_principal"
    INTEREST_ONLY = "interest_only"
    AUTO_LOAN = "auto_loan"
    GRADUATED_PAYMENT = "graduated_payment"


class DayCountConvention(Enum):
    THIRTY_E_360 = "30E/360"
    ACT_360 = "ACT/360"
    ACT_365 = "ACT/365"


class PaymentStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    OVERDUE = "overdue"


@dataclass(frozen=True)
class GraduatedConfig:
    """Stepped payments for graduated-payment loans.

    Payments start at ``initial_payment_pct`` of the level annuity payment and
    rise in ``graduation_steps`` equal steps over ``graduation_period_months``.
    After the graduation period the remaining balance is re-amortized.
    """

    initial_payment_pct: Decimal = Decimal("75")
    graduation_period_months: int = 60
    graduation_steps: int = 5

    @property
    def months_per_step(self) -> int:
        return max(1, self.graduation_period_months // self.graduation_steps)

    @property
    def step_increase_pct(self) -> Decimal:
        return (100 - self.initial_payment_pct) / self.graduation_steps

    def payment_pct(self, installment_no: int) -> Decimal:
        step = (installment_no - 1) // self.months_per_step
        return self.initial_payment_pct + step * self.step_increase_pct


@dataclass(frozen=True)
class LoanTerms:
    structure: RepaymentStructure
    principal: Decimal
    annual_rate: Decimal  # Percent, e.g. Decimal("5") for 5%
    term_months: int
    start_date: date
    day_count: DayCountConvention = DayCountConvention.THIRTY_E_360
    setup_fee: Decimal = Decimal("0")  # One-time, financed into the principal
    monthly_fee: Decimal = Decimal("0")
    insurance_monthly: Decimal = Decimal("0")
    balloon_amount: Decimal | None = None  # Interest-only only
    payment_override: Decimal | None = None  # Annuity and auto loan only
    principal_override: Decimal | None = None  # Fixed-principal only
    graduated: GraduatedConfig | None = None  # Graduated-payment only; defaults apply

    @property
    def effective_principal(self) -> Decimal:
        return self.principal + self.setup_fee

    @property
    def monthly_rate(self) -> Decimal:
        return self.annual_rate / 100 / 12

    @property
    def recurring_fees(self) -> Decimal:
        return self.monthly_fee + self.insurance_monthly

    @property
    def upfront_fee(self) -> Decimal:
        """Setup fee paid on top of the installments; auto loans only finance it."""
        if self.structure is RepaymentStructure.AUTO_LOAN:
            return Decimal("0")
        return self.setup_fee

    @property
    def graduated_config(self) -> GraduatedConfig:
        return self.graduated or GraduatedConfig()


@dataclass(frozen=True)
class ScheduleEntry:
    installment_no: int
    due_date: date
    principal_due: Decimal
    interest_due: Decimal
    fees_due: Decimal
    total_due: Decimal
    principal_balance_after: Decimal
    status: PaymentStatus = PaymentStatus.PENDING
    paid_on: date | None = None

    @property
    def is_unpaid(self) -> bool:
        return self.status in (PaymentStatus.PENDING, PaymentStatus.OVERDUE)

    @property
    def balance_before(self) -> Decimal:
        return self.principal_balance_after + self.principal_due


@dataclass(frozen=True)
class ScheduleResult:
    schedule: list[ScheduleEntry] = field(default_factory=list)
    total_interest: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")  # Includes the setup fee unless only financed
    total_payment: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")  # Approximation, not a regulatory APR

    @property
    def term_months(self) -> int:
        return len(self.schedule)

    @property
    def end_date(self) -> date | None:
        return self.schedule[-1].due_date if self.schedule else None
