"""What-if scenario data types.

A scenario is a closed set of modifiers applied in a fixed order:
extra monthly principal, then one-time lump sums, then a rate change.
Lump sums and rate changes do not re-amortize the rest of the schedule.
"""

from dataclasses import dataclass, field
from decimal import Decimal

from loan_engine.models.loan import ScheduleEntry


@dataclass(frozen=True)
class ExtraMonthlyPayment:
    amount: Decimal  # Added to every installment's principal component


@dataclass(frozen=True)
class LumpSum:
    installment_no: int
    amount: Decimal


@dataclass(frozen=True)
class RateChange:
    from_installment: int
    new_rate: Decimal  # Annual percent


@dataclass(frozen=True)
class SimulationScenario:
    name: str
    extra_monthly: ExtraMonthlyPayment | None = None
    lump_sums: tuple[LumpSum, ...] = ()
    rate_change: RateChange | None = None


@dataclass(frozen=True)
class SimulationOutcome:
    scenario: str
    schedule: list[ScheduleEntry] = field(default_factory=list)
    total_interest: Decimal = Decimal("0")
    total_fees: Decimal = Decimal("0")
    total_payment: Decimal = Decimal("0")
    effective_rate: Decimal = Decimal("0")
    months_saved: int = 0
    total_saved: Decimal = Decimal("0")


@dataclass(frozen=True)
class ValueRange:
    min: Decimal | int
    max: Decimal | int


@dataclass(frozen=True)
class ScenarioComparison:
    outcomes: list[SimulationOutcome] = field(default_factory=list)
    best_scenario: str | None = None  # Lowest total payment
    total_interest_range: ValueRange | None = None
    total_payment_range: ValueRange | None = None
    months_saved_range: ValueRange | None = None
