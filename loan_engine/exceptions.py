"""Exceptions raised by the loan engine."""


class LoanEngineError(Exception):
    """Base exception for all loan engine errors."""

    error_type = "ERROR"

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class InvalidLoanInputError(LoanEngineError):
    """Raised when loan terms violate the input constraints."""

    error_type = "VALIDATION"


class InstallmentOutOfRangeError(InvalidLoanInputError):
    """Raised when an installment number does not exist in the schedule."""

    def __init__(self, installment_no: int, term_months: int):
        super().__init__(
            f"Installment {installment_no} is outside the schedule",
            {"installment_no": installment_no, "term_months": term_months},
        )


class InvalidPaymentError(LoanEngineError):
    """Raised when the monthly payment does not cover the recurring fees."""

    error_type = "INVALID_PAYMENT"

    def __init__(self, monthly_payment, recurring_fees):
        super().__init__(
            "Monthly payment must be greater than the recurring fees",
            {"monthly_payment": str(monthly_payment), "recurring_fees": str(recurring_fees)},
        )


class UnsolvableTermError(LoanEngineError):
    """Raised when no finite term amortizes the loan with the given payment."""

    error_type = "UNSOLVABLE"


class UnsolvableRateError(LoanEngineError):
    """Raised when no non-negative rate makes the payment repay the loan."""

    error_type = "UNSOLVABLE"
