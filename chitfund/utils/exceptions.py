"""
Domain exceptions.

Every caller-facing failure carries a stable machine-readable ``kind``
and a human message. None of them is retried by the service itself.
"""

from typing import Any


class ChitFundError(Exception):
    """Base class for all domain errors."""

    kind: str = "ChitFundError"
    default_message: str = "Operation failed"

    def __init__(self, message: str | None = None, **context: Any) -> None:
        self.message = message or self.default_message
        # Logged, never returned to the caller
        self.context = context
        super().__init__(self.message)

    def to_dict(self) -> dict[str, str]:
        """Serialize for an API layer."""
        return {"kind": self.kind, "message": self.message}

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.message!r})"


class InvalidScheme(ChitFundError):
    kind = "InvalidScheme"
    default_message = "Scheme is not open for this operation"


class SchemeNotFound(ChitFundError):
    kind = "SchemeNotFound"
    default_message = "Scheme not found"


class DuplicateEnrollment(ChitFundError):
    kind = "DuplicateEnrollment"
    default_message = "User already holds an open card for this scheme"


class ReferrerNotFound(ChitFundError):
    kind = "ReferrerNotFound"
    default_message = "Referrer card not found"


class CardNotFound(ChitFundError):
    kind = "CardNotFound"
    default_message = "Card not found"


class CardNotPayable(ChitFundError):
    kind = "CardNotPayable"
    default_message = "Card does not accept payments in its current status"


class PeriodAlreadyPaid(ChitFundError):
    kind = "PeriodAlreadyPaid"
    default_message = "This period has already been paid"


class PeriodOutOfRange(ChitFundError):
    kind = "PeriodOutOfRange"
    default_message = "Period is outside the scheme duration"


class AmountMismatch(ChitFundError):
    kind = "AmountMismatch"
    default_message = "Amount must equal the scheme subscription amount"


class InvalidTransition(ChitFundError):
    kind = "InvalidTransition"
    default_message = "Status transition is not allowed"


class ReasonRequired(ChitFundError):
    kind = "ReasonRequired"
    default_message = "A reason is required for this status change"


class NotEligible(ChitFundError):
    kind = "NotEligible"
    default_message = "Card is not eligible for this prize draw"


class TooManyWinners(ChitFundError):
    kind = "TooManyWinners"
    default_message = "Selection exceeds the scheme's number of winners"


class DuplicateWinner(ChitFundError):
    kind = "DuplicateWinner"
    default_message = "Card is repeated or has already won this scheme"


class WinnerNotFound(ChitFundError):
    kind = "WinnerNotFound"
    default_message = "Winner not found"


class InvoiceNotFound(ChitFundError):
    kind = "InvoiceNotFound"
    default_message = "Invoice not found"


class PaymentInitiationFailed(ChitFundError):
    kind = "PaymentInitiationFailed"
    default_message = "Payment could not be started"
