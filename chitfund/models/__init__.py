"""
Database models.

Exports all SQLAlchemy models for easy imports.
"""

from chitfund.models.base import Base
from chitfund.models.card import Card
from chitfund.models.commission_entry import CommissionEntry
from chitfund.models.enums import (
    CardPaymentStatus,
    CommissionLevel,
    InvoiceStatus,
    KycStatus,
    PaymentMethod,
    PaymentRecordStatus,
    PrizeType,
    SchemeStatus,
    SubscriptionCycle,
    SubscriptionStatus,
    WinnerStatus,
)
from chitfund.models.invoice import Invoice
from chitfund.models.payment_record import PaymentRecord
from chitfund.models.prize import Prize
from chitfund.models.referral_level import ReferralLevel
from chitfund.models.scheme import Scheme
from chitfund.models.scheme_period import PeriodReward, SchemePeriod
from chitfund.models.winner import Winner

__all__ = [
    # Base
    "Base",
    # Enums
    "CardPaymentStatus",
    "CommissionLevel",
    "InvoiceStatus",
    "KycStatus",
    "PaymentMethod",
    "PaymentRecordStatus",
    "PrizeType",
    "SchemeStatus",
    "SubscriptionCycle",
    "SubscriptionStatus",
    "WinnerStatus",
    # Catalog
    "Scheme",
    "Prize",
    "SchemePeriod",
    "PeriodReward",
    "ReferralLevel",
    # Ledger
    "Card",
    "PaymentRecord",
    "CommissionEntry",
    "Invoice",
    # Prize draw
    "Winner",
]
