"""
Winner model.

A card selected by admin as a prize recipient for a scheme.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING, Optional

from sqlalchemy import (
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chitfund.models.base import Base
from chitfund.models.enums import WinnerStatus


if TYPE_CHECKING:
    from chitfund.models.card import Card
    from chitfund.models.prize import Prize
    from chitfund.models.scheme import Scheme


class Winner(Base):
    """
    Winner entity.

    Ranks within a scheme are unique and handed out contiguously from 1.
    A card wins a given scheme at most once. Cancelling a winner keeps
    the row (and its rank); the slot is forfeited, not reused.

    Attributes:
        id: Primary key
        scheme_id: Scheme the prize belongs to
        card_id: Winning card
        user_id: Owner of the winning card
        prize_id: Prize of the same rank, when one is configured
        rank: 1..scheme.number_of_winners
        status: pending / claimed / delivered / cancelled
        win_date: When the winner was selected
        claimed_at: When the prize was claimed
        delivered_at: When the prize was delivered
        delivery_address: Where a product prize is shipped
        notes: Admin notes
        created_by: Admin who selected the winner
    """

    __tablename__ = "winners"
    __table_args__ = (
        UniqueConstraint("scheme_id", "rank", name="uq_winners_scheme_rank"),
        UniqueConstraint("scheme_id", "card_id", name="uq_winners_scheme_card"),
        CheckConstraint("rank > 0", name="check_winner_rank_positive"),
    )

    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    scheme_id: Mapped[int] = mapped_column(
        ForeignKey("schemes.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    card_id: Mapped[int] = mapped_column(
        ForeignKey("cards.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[str] = mapped_column(String(64), nullable=False)
    prize_id: Mapped[int | None] = mapped_column(
        ForeignKey("prizes.id", ondelete="SET NULL"), nullable=True
    )

    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=WinnerStatus.PENDING.value,
        index=True,
    )

    win_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )
    claimed_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivered_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    delivery_address: Mapped[str | None] = mapped_column(Text, nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

    # Relationships
    scheme: Mapped["Scheme"] = relationship(
        "Scheme", back_populates="winners"
    )
    card: Mapped["Card"] = relationship("Card")
    prize: Mapped[Optional["Prize"]] = relationship("Prize")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Winner(id={self.id}, scheme_id={self.scheme_id}, "
            f"card_id={self.card_id}, rank={self.rank}, "
            f"status={self.status})>"
        )
