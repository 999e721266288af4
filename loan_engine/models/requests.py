"""Pydantic models for untyped boundary input (forms, JSON payloads)."""

from datetime import date
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, Field, model_validator

from loan_engine.config import settings
from loan_engine.engine.validation import validate_terms
from loan_engine.exceptions import InvalidLoanInputError
from loan_engine.models.loan import (
    DayCountConvention,
    GraduatedConfig,
    LoanTerms,
    RepaymentStructure,
)


def _default_day_count() -> DayCountConvention:
    return DayCountConvention(settings.default_day_count)


class GraduatedInput(BaseModel):
    model_config = {"frozen": True}

    initial_payment_pct: Decimal = Field(Decimal("75"), gt=0, le=100)
    graduation_period_months: int = Field(60, ge=1)
    graduation_steps: int = Field(5, ge=1)

    def to_config(self) -> GraduatedConfig:
        return GraduatedConfig(
            initial_payment_pct=self.initial_payment_pct,
            graduation_period_months=self.graduation_period_months,
            graduation_steps=self.graduation_steps,
        )


class LoanBaseInput(BaseModel):
    model_config = {"frozen": True}

    structure: RepaymentStructure = RepaymentStructure.ANNUITY
    principal: Decimal = Field(..., gt=0)
    start_date: date
    day_count: DayCountConvention = Field(default_factory=_default_day_count)
    setup_fee: Decimal = Field(Decimal("0"), ge=0)
    monthly_fee: Decimal = Field(Decimal("0"), ge=0)
    insurance_monthly: Decimal = Field(Decimal("0"), ge=0)
    balloon_amount: Decimal | None = Field(None, ge=0)
    principal_override: Decimal | None = Field(None, gt=0)
    graduated: GraduatedInput | None = None

    def build_terms(
        self,
        annual_rate: Decimal,
        term_months: int,
        payment_override: Decimal | None = None,
    ) -> LoanTerms:
        return LoanTerms(
            structure=self.structure,
            principal=self.principal,
            annual_rate=annual_rate,
            term_months=term_months,
            start_date=self.start_date,
            day_count=self.day_count,
            setup_fee=self.setup_fee,
            monthly_fee=self.monthly_fee,
            insurance_monthly=self.insurance_monthly,
            balloon_amount=self.balloon_amount,
            payment_override=payment_override,
            principal_override=self.principal_override,
            graduated=self.graduated.to_config() if self.graduated else None,
        )


class LoanTermsInput(LoanBaseInput):
    """Complete loan terms; validated with the same rules as ``validate_terms``."""

    annual_rate: Decimal = Field(..., ge=0)
    term_months: int = Field(..., ge=1)
    payment_override: Decimal | None = Field(None, gt=0)

    @model_validator(mode="after")
    def check_terms(self) -> "LoanTermsInput":
        try:
            validate_terms(self.to_terms())
        except InvalidLoanInputError as e:
            raise ValueError(e.message) from e
        return self

    def to_terms(self) -> LoanTerms:
        return self.build_terms(self.annual_rate, self.term_months, self.payment_override)


# ---- Calculation modes: two of {rate, term, payment} known, solve the third ----

class RateAndTerm(BaseModel):
    """Known rate and term; solve the payment."""
    model_config = {"frozen": True}

    kind: Literal["rate_term"] = "rate_term"
    annual_rate: Decimal = Field(..., ge=0)
    term_months: int = Field(..., ge=1)


class PaymentAndTerm(BaseModel):
    """Known payment and term; solve the rate."""
    model_config = {"frozen": True}

    kind: Literal["payment_term"] = "payment_term"
    monthly_payment: Decimal = Field(..., gt=0)
    term_months: int = Field(..., ge=1)


class RateAndPayment(BaseModel):
    """Known rate and payment; solve the term."""
    model_config = {"frozen": True}

    kind: Literal["rate_payment"] = "rate_payment"
    annual_rate: Decimal = Field(..., ge=0)
    monthly_payment: Decimal = Field(..., gt=0)


CalculationMode = Annotated[
    Union[RateAndTerm, PaymentAndTerm, RateAndPayment],
    Field(discriminator="kind"),
]


class QuoteRequest(LoanBaseInput):
    mode: CalculationMode
