"""
Card model.

A card is one user's enrollment into one scheme. It is the unit of
subscription, payment tracking, wallet balances and referral linkage.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chitfund.models.base import Base
from chitfund.models.enums import (
    CardPaymentStatus,
    KycStatus,
    PaymentMethod,
    SubscriptionStatus,
)
from chitfund.models.types import MoneyType


if TYPE_CHECKING:
    from chitfund.models.payment_record import PaymentRecord
    from chitfund.models.scheme import Scheme


# Only one open (active or paused) card per user and scheme
_OPEN_ENROLLMENT = text("subscription_status IN ('active', 'paused')")


class Card(Base):
    """
    Card entity.

    Lifecycle:
    - Issued in active status with zero payments
    - Mutated by payment completion (counter, wallet, payment status)
      or by admin status override
    - Never deleted; cancelled/expired/completed are terminal

    Referral linkage (ref_l1_*, ref_l2_*) is resolved once at issuance
    and never changes afterwards. Commissions always follow the snapshot.

    Attributes:
        id: Primary key
        user_id: Owning user (external auth id)
        scheme_id: Scheme the card is enrolled into (immutable)
        cardholder_name: Name printed on the card
        phone_number: Cardholder phone
        payment_method: upi_onetime / upi_mandate
        mandate_id: UPI mandate reference for upi_mandate cards
        subscription_status: active / paused / cancelled / expired / completed
        kyc_status: pending / verified / rejected / incomplete
        payment_status: Derived from payment records, never set directly
        total_wallet_balance: Sum of completed period payments (minor units)
        commission_wallet_balance: Referral commission credited (minor units)
        total_payments_made: Count of completed periods
        ref_l1_user_id: Direct referrer user
        ref_l1_card_id: Card the direct referrer referred with
        ref_l2_user_id: Indirect referrer user (referrer's own L1)
        ref_l2_card_id: Card of the indirect referrer
        status_reason: Reason given for the last status override
    """

    __tablename__ = "cards"
    __table_args__ = (
        CheckConstraint(
            "total_payments_made >= 0",
            name="check_card_payments_non_negative",
        ),
        CheckConstraint(
            "total_wallet_balance >= 0",
            name="check_card_wallet_non_negative",
        ),
        CheckConstraint(
            "commission_wallet_balance >= 0",
            name="check_card_commission_wallet_non_negative",
        ),
        CheckConstraint(
            "ref_l1_user_id IS NULL OR ref_l1_user_id <> user_id",
            name="check_card_no_self_referral_l1",
        ),
        CheckConstraint(
            "ref_l2_user_id IS NULL OR ref_l2_user_id <> user_id",
            name="check_card_no_self_referral_l2",
        ),
        Index(
            "uq_cards_open_enrollment",
            "user_id",
            "scheme_id",
            unique=True,
            postgresql_where=_OPEN_ENROLLMENT,
            sqlite_where=_OPEN_ENROLLMENT,
        ),
        Index("idx_cards_scheme_status", "scheme_id", "subscription_status"),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    # Ownership
    user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    scheme_id: Mapped[int] = mapped_column(
        ForeignKey("schemes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    # Cardholder
    cardholder_name: Mapped[str] = mapped_column(String(255), nullable=False)
    phone_number: Mapped[str | None] = mapped_column(
        String(20), nullable=True
    )

    # Payment setup
    payment_method: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentMethod.UPI_ONETIME.value,
    )
    mandate_id: Mapped[str | None] = mapped_column(
        String(100), nullable=True
    )

    # Status
    subscription_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubscriptionStatus.ACTIVE.value,
        index=True,
    )
    kyc_status: Mapped[str] = mapped_column(
        String(20), nullable=False, default=KycStatus.PENDING.value
    )
    payment_status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=CardPaymentStatus.PENDING.value,
        index=True,
    )
    status_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    status_changed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Balances (minor units)
    total_wallet_balance: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )
    commission_wallet_balance: Mapped[int] = mapped_column(
        MoneyType, default=0, nullable=False
    )

    # Payment tracking
    total_payments_made: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False
    )
    last_payment_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    # Referral snapshot, frozen at issuance
    ref_l1_user_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    ref_l1_card_id: Mapped[int | None] = mapped_column(
        ForeignKey("cards.id", ondelete="SET NULL"), nullable=True
    )
    ref_l2_user_id: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    ref_l2_card_id: Mapped[int | None] = mapped_column(
        ForeignKey("cards.id", ondelete="SET NULL"), nullable=True
    )

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        onupdate=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    scheme: Mapped["Scheme"] = relationship(
        "Scheme", back_populates="cards", lazy="joined", innerjoin=True
    )
    payment_records: Mapped[list["PaymentRecord"]] = relationship(
        "PaymentRecord",
        back_populates="card",
        order_by="PaymentRecord.period_index",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Card(id={self.id}, user_id={self.user_id}, "
            f"scheme_id={self.scheme_id}, "
            f"status={self.subscription_status}, "
            f"payments={self.total_payments_made})>"
        )

    @property
    def is_open(self) -> bool:
        """Check if the card still counts as an enrollment."""
        return self.subscription_status in (
            SubscriptionStatus.ACTIVE.value,
            SubscriptionStatus.PAUSED.value,
        )

    @property
    def has_referrer(self) -> bool:
        """Check if the card was issued under a referrer."""
        return self.ref_l1_user_id is not None
