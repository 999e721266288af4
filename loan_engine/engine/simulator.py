"""What-if scenario simulation against a baseline schedule.

Pure functions. No I/O.

Each scenario is evaluated independently through a fixed pipeline:

    1. extra monthly principal   rebuilds the schedule, stops at zero balance
    2. lump sums                 reduce one entry's balance; truncate at zero
    3. rate change               recomputes interest on already-fixed balances

Steps 2 and 3 do not re-amortize the entries that follow them, so interest
after a lump sum still reflects the pre-lump balance.
"""

import logging
from dataclasses import replace
from decimal import Decimal

from loan_engine.engine.calculator import (
    annuity_payment,
    calculate_schedule,
    effective_rate,
    period_interest,
    round_money,
)
from loan_engine.engine.day_count import add_months
from loan_engine.engine.payments import early_repayment_penalty
from loan_engine.exceptions import InstallmentOutOfRangeError
from loan_engine.models.loan import (
    LoanTerms,
    RepaymentStructure,
    ScheduleEntry,
)
from loan_engine.models.results import EarlyRepaymentOutcome
from loan_engine.models.simulation import (
    ExtraMonthlyPayment,
    LumpSum,
    RateChange,
    ScenarioComparison,
    SimulationOutcome,
    SimulationScenario,
    ValueRange,
)

logger = logging.getLogger(__name__)

ZERO = Decimal("0")

# Structures whose regular principal is re-amortized from the current balance
AMORTIZING_STRUCTURES = (
    RepaymentStructure.ANNUITY,
    RepaymentStructure.AUTO_LOAN,
    RepaymentStructure.GRADUATED_PAYMENT,
)


def simulate(terms: LoanTerms, scenarios: list[SimulationScenario]) -> ScenarioComparison:
    """Evaluate every scenario against the same baseline and compare them."""
    baseline = calculate_schedule(terms)

    outcomes = []
    for scenario in scenarios:
        schedule = _apply_scenario(terms, baseline.schedule, scenario)
        outcome = _outcome(terms, scenario.name, schedule, baseline.total_payment)
        logger.debug(
            "Scenario %r: %d installments, total payment %s, saved %s",
            scenario.name, len(schedule), outcome.total_payment, outcome.total_saved,
        )
        outcomes.append(outcome)

    if not outcomes:
        return ScenarioComparison(outcomes=[])

    best = min(outcomes, key=lambda o: o.total_payment)
    return ScenarioComparison(
        outcomes=outcomes,
        best_scenario=best.scenario,
        total_interest_range=_range([o.total_interest for o in outcomes]),
        total_payment_range=_range([o.total_payment for o in outcomes]),
        months_saved_range=_range([o.months_saved for o in outcomes]),
    )


def _range(values: list) -> ValueRange:
    return ValueRange(min=min(values), max=max(values))


def _apply_scenario(
    terms: LoanTerms, baseline: list[ScheduleEntry], scenario: SimulationScenario
) -> list[ScheduleEntry]:
    schedule = list(baseline)
    if scenario.extra_monthly is not None:
        schedule = apply_extra_monthly(terms, scenario.extra_monthly)
    if scenario.lump_sums:
        schedule = apply_lump_sums(schedule, scenario.lump_sums)
    if scenario.rate_change is not None:
        schedule = apply_rate_change(schedule, scenario.rate_change)
    return schedule


def apply_extra_monthly(terms: LoanTerms, extra: ExtraMonthlyPayment) -> list[ScheduleEntry]:
    """Rebuild the schedule paying ``extra.amount`` more principal each month.

    The regular principal component is recomputed from the current balance
    every period, so the loan ends early once the balance reaches zero.
    """
    n = terms.term_months
    fees_due = round_money(terms.recurring_fees)

    schedule: list[ScheduleEntry] = []
    balance = terms.effective_principal
    for i in range(1, n + 1):
        interest = period_interest(balance, terms.annual_rate, terms, i)
        remaining = n - i + 1

        if terms.structure in AMORTIZING_STRUCTURES:
            pmt = annuity_payment(balance, terms.monthly_rate, remaining)
            regular = round_money(max(ZERO, pmt - interest))
        elif terms.structure is RepaymentStructure.FIXED_PRINCIPAL:
            regular = round_money(terms.principal_override or balance / remaining)
        else:
            regular = ZERO

        if i == n:
            principal_due = round_money(balance)
        else:
            principal_due = min(balance, regular + extra.amount)

        balance = round_money(max(ZERO, balance - principal_due))
        schedule.append(ScheduleEntry(
            installment_no=i,
            due_date=add_months(terms.start_date, i),
            principal_due=principal_due,
            interest_due=interest,
            fees_due=fees_due,
            total_due=round_money(principal_due + interest + fees_due),
            principal_balance_after=balance,
        ))
        if balance == 0:
            break

    return schedule


def apply_lump_sums(
    schedule: list[ScheduleEntry], lump_sums: tuple[LumpSum, ...]
) -> list[ScheduleEntry]:
    """Add one-time principal payments to specific installments.

    Later entries keep their balances and interest; the schedule is cut
    off at the installment where the balance reaches zero.
    """
    updated = list(schedule)
    for lump in sorted(lump_sums, key=lambda ls: ls.installment_no):
        index = next(
            (i for i, e in enumerate(updated) if e.installment_no == lump.installment_no), None
        )
        if index is None:
            logger.debug("Lump sum for installment %d ignored: not in schedule",
                         lump.installment_no)
            continue

        entry = updated[index]
        amount = min(lump.amount, entry.principal_balance_after)
        principal_due = entry.principal_due + amount
        balance = entry.principal_balance_after - amount
        updated[index] = replace(
            entry,
            principal_due=principal_due,
            total_due=round_money(principal_due + entry.interest_due + entry.fees_due),
            principal_balance_after=balance,
        )
        if balance <= 0:
            updated = updated[:index + 1]
            break

    return updated


def apply_rate_change(schedule: list[ScheduleEntry], change: RateChange) -> list[ScheduleEntry]:
    """Reprice interest from ``change.from_installment`` on, balances unchanged."""
    monthly_rate = change.new_rate / 100 / 12
    updated = []
    for e in schedule:
        if e.installment_no >= change.from_installment:
            interest = round_money(e.principal_balance_after * monthly_rate)
            e = replace(
                e,
                interest_due=interest,
                total_due=round_money(e.principal_due + interest + e.fees_due),
            )
        updated.append(e)
    return updated


def _outcome(
    terms: LoanTerms,
    name: str,
    schedule: list[ScheduleEntry],
    baseline_total_payment: Decimal,
) -> SimulationOutcome:
    total_interest = sum((e.interest_due for e in schedule), ZERO)
    total_fees = sum((e.fees_due for e in schedule), ZERO) + terms.upfront_fee
    total_payment = sum((e.total_due for e in schedule), ZERO) + terms.upfront_fee

    return SimulationOutcome(
        scenario=name,
        schedule=schedule,
        total_interest=round_money(total_interest),
        total_fees=round_money(total_fees),
        total_payment=round_money(total_payment),
        effective_rate=effective_rate(
            terms.principal, total_payment - terms.principal, len(schedule)
        ),
        months_saved=terms.term_months - len(schedule),
        total_saved=round_money(baseline_total_payment - total_payment),
    )


def calculate_early_repayment_scenario(
    terms: LoanTerms,
    current_installment: int,
    repayment_amount: Decimal,
    penalty_pct: Decimal = Decimal("0"),
) -> EarlyRepaymentOutcome:
    """Outcome of repaying ``repayment_amount`` right after ``current_installment``.

    The penalty is charged on the outstanding balance and added to it. A
    remaining balance is re-amortized over the rest of the original term
    with no setup fee. A graduated remainder is repaid as a level annuity.

    Raises InstallmentOutOfRangeError for an installment outside the term.
    """
    if not 1 <= current_installment <= terms.term_months:
        raise InstallmentOutOfRangeError(current_installment, terms.term_months)

    original = calculate_schedule(terms).schedule
    balance = original[current_installment - 1].principal_balance_after
    remainder = original[current_installment:]

    penalty = early_repayment_penalty(balance, penalty_pct)
    new_balance = round_money(balance - repayment_amount + penalty)
    original_cost = sum((e.interest_due + e.fees_due for e in remainder), ZERO)

    if new_balance <= 0 or not remainder:
        return EarlyRepaymentOutcome(
            penalty_amount=penalty,
            remaining_balance=ZERO,
            new_schedule=[],
            total_saved=round_money(original_cost),
            effective_rate=ZERO,
        )

    structure = terms.structure
    if structure is RepaymentStructure.GRADUATED_PAYMENT:
        structure = RepaymentStructure.ANNUITY
    new_terms = replace(
        terms,
        structure=structure,
        principal=new_balance,
        term_months=terms.term_months - current_installment,
        start_date=add_months(terms.start_date, current_installment),
        setup_fee=ZERO,
        balloon_amount=new_balance if terms.structure is RepaymentStructure.INTEREST_ONLY else None,
        payment_override=None,
        principal_override=None,
        graduated=None,
    )
    recalculated = calculate_schedule(new_terms)
    new_cost = sum((e.interest_due + e.fees_due for e in recalculated.schedule), ZERO)

    return EarlyRepaymentOutcome(
        penalty_amount=penalty,
        remaining_balance=new_balance,
        new_schedule=recalculated.schedule,
        total_saved=round_money(original_cost - new_cost - penalty),
        effective_rate=recalculated.effective_rate,
    )
