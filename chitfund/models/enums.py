"""
Enumerations shared by models and services.

Values are persisted as plain strings.
"""

from enum import StrEnum


class SchemeStatus(StrEnum):
    """Scheme lifecycle status."""

    DRAFT = "draft"
    ACTIVE = "active"
    PAUSED = "paused"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class SubscriptionCycle(StrEnum):
    """Billing cycle of a scheme."""

    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class PrizeType(StrEnum):
    """Kind of prize attached to a scheme rank."""

    PRODUCT = "product"
    MONEY = "money"
    BOTH = "both"


class PaymentMethod(StrEnum):
    """How a card pays its periods."""

    UPI_ONETIME = "upi_onetime"
    UPI_MANDATE = "upi_mandate"


class SubscriptionStatus(StrEnum):
    """Card subscription status."""

    ACTIVE = "active"
    PAUSED = "paused"
    CANCELLED = "cancelled"
    EXPIRED = "expired"
    COMPLETED = "completed"


class KycStatus(StrEnum):
    """Cardholder KYC status."""

    PENDING = "pending"
    VERIFIED = "verified"
    REJECTED = "rejected"
    INCOMPLETE = "incomplete"


class CardPaymentStatus(StrEnum):
    """Card-level payment status, derived from payment records."""

    PAID = "paid"
    PENDING = "pending"
    PARTIAL = "partial"  # reporting only, never derived by the ledger
    OVERDUE = "overdue"
    FAILED = "failed"


class PaymentRecordStatus(StrEnum):
    """Outcome of a single period payment attempt."""

    COMPLETED = "completed"
    FAILED = "failed"


class CommissionLevel(StrEnum):
    """Referral level a commission is paid for."""

    DIRECT = "direct"
    INDIRECT = "indirect"


class WinnerStatus(StrEnum):
    """Prize winner status."""

    PENDING = "pending"
    CLAIMED = "claimed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class InvoiceStatus(StrEnum):
    """Payment initiation (gateway invoice) status."""

    PENDING = "pending"
    PAID = "paid"
    FAILED = "failed"
    # Gateway took the money but the card or scheme no longer accepts it
    REJECTED = "rejected"
