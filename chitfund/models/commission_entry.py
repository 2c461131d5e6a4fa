"""
CommissionEntry model.

Immutable record of one referral payout triggered by one payment.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chitfund.models.base import Base
from chitfund.models.types import MoneyType, RateBpsType


if TYPE_CHECKING:
    from chitfund.models.payment_record import PaymentRecord


class CommissionEntry(Base):
    """
    CommissionEntry entity.

    Created exactly once per (source payment, level); never updated or
    deleted. The unique constraint backs the no-double-payout rule.

    Attributes:
        id: Primary key
        beneficiary_user_id: Referrer receiving the commission
        beneficiary_card_id: Card whose commission wallet was credited
        source_payment_id: Payment record that triggered the payout
        source_card_id: Card that made the payment
        level: direct / indirect
        rate_bps: Rate applied, in basis points
        amount: Commission amount, in minor units
    """

    __tablename__ = "commission_entries"
    __table_args__ = (
        UniqueConstraint(
            "source_payment_id",
            "level",
            name="uq_commission_entries_payment_level",
        ),
        CheckConstraint("amount > 0", name="check_commission_amount_positive"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    beneficiary_user_id: Mapped[str] = mapped_column(
        String(64), nullable=False, index=True
    )
    beneficiary_card_id: Mapped[int | None] = mapped_column(
        ForeignKey("cards.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )
    source_payment_id: Mapped[int] = mapped_column(
        ForeignKey("payment_records.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    source_card_id: Mapped[int] = mapped_column(
        ForeignKey("cards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    level: Mapped[str] = mapped_column(String(20), nullable=False)
    rate_bps: Mapped[int] = mapped_column(RateBpsType, nullable=False)
    amount: Mapped[int] = mapped_column(MoneyType, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    source_payment: Mapped["PaymentRecord"] = relationship(
        "PaymentRecord", back_populates="commissions"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<CommissionEntry(id={self.id}, "
            f"beneficiary={self.beneficiary_user_id}, level={self.level}, "
            f"amount={self.amount})>"
        )
