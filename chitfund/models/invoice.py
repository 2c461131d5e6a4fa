"""
Invoice model.

Tracks a period payment handed to the payment gateway until the
gateway reports back.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column

from chitfund.models.base import Base
from chitfund.models.enums import InvoiceStatus
from chitfund.models.types import MoneyType


class Invoice(Base):
    """Invoice model - one gateway payment session for one card period."""

    __tablename__ = "invoices"
    __table_args__ = (
        CheckConstraint("amount > 0", name="check_invoice_amount_positive"),
        CheckConstraint(
            "period_index >= 1", name="check_invoice_period_positive"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    card_id: Mapped[int] = mapped_column(
        ForeignKey("cards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    period_index: Mapped[int] = mapped_column(Integer, nullable=False)
    amount: Mapped[int] = mapped_column(MoneyType, nullable=False)
    payment_method: Mapped[str] = mapped_column(String(20), nullable=False)

    gateway_txid: Mapped[str] = mapped_column(
        String(64), nullable=False, unique=True
    )
    redirect_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=InvoiceStatus.PENDING.value,
        index=True,
    )
    failure_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    payment_record_id: Mapped[int | None] = mapped_column(
        ForeignKey("payment_records.id", ondelete="SET NULL"),
        nullable=True,
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    settled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Invoice(id={self.id}, card_id={self.card_id}, "
            f"period={self.period_index}, txid={self.gateway_txid}, "
            f"status={self.status})>"
        )
