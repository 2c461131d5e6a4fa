"""
PaymentRecord model.

One payment attempt against one scheme period of a card.
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
from chitfund.models.enums import PaymentRecordStatus
from chitfund.models.types import MoneyType


if TYPE_CHECKING:
    from chitfund.models.card import Card
    from chitfund.models.commission_entry import CommissionEntry


_COMPLETED = text("status = 'completed'")


class PaymentRecord(Base):
    """
    PaymentRecord entity.

    At most one completed record exists per (card, period). The partial
    unique index is the guard that serializes concurrent payment
    recording for the same period. Failed attempts are kept for
    reporting and never count towards total_payments_made.

    Attributes:
        id: Primary key
        card_id: Card the period belongs to
        scheme_id: Scheme of the card (denormalized for reporting)
        period_index: 1..scheme.duration
        amount: Amount paid, in minor units
        payment_method: Method used for this payment
        status: completed / failed
        gateway_txid: Gateway transaction id, when paid through a gateway
        failure_reason: Why a failed attempt failed
        completed_at: When the payment completed
    """

    __tablename__ = "payment_records"
    __table_args__ = (
        CheckConstraint(
            "period_index >= 1", name="check_payment_period_positive"
        ),
        CheckConstraint("amount > 0", name="check_payment_amount_positive"),
        Index(
            "uq_payment_records_completed_period",
            "card_id",
            "period_index",
            unique=True,
            postgresql_where=_COMPLETED,
            sqlite_where=_COMPLETED,
        ),
        Index(
            "idx_payment_records_scheme_period",
            "scheme_id",
            "period_index",
        ),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    card_id: Mapped[int] = mapped_column(
        ForeignKey("cards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    scheme_id: Mapped[int] = mapped_column(
        ForeignKey("schemes.id", ondelete="RESTRICT"),
        nullable=False,
    )
    period_index: Mapped[int] = mapped_column(Integer, nullable=False)

    amount: Mapped[int] = mapped_column(MoneyType, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=PaymentRecordStatus.COMPLETED.value,
        index=True,
    )
    gateway_txid: Mapped[str | None] = mapped_column(
        String(64), nullable=True, index=True
    )
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    completed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    # Relationships
    card: Mapped["Card"] = relationship(
        "Card", back_populates="payment_records"
    )
    commissions: Mapped[list["CommissionEntry"]] = relationship(
        "CommissionEntry",
        back_populates="source_payment",
        order_by="CommissionEntry.id",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PaymentRecord(id={self.id}, card_id={self.card_id}, "
            f"period={self.period_index}, amount={self.amount}, "
            f"status={self.status})>"
        )

    @property
    def is_completed(self) -> bool:
        """Check if this record completed its period."""
        return self.status == PaymentRecordStatus.COMPLETED.value
