"""
Prize model.

Ranked prize offered by a scheme.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    Boolean,
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
from chitfund.models.enums import PrizeType
from chitfund.models.types import MoneyType


if TYPE_CHECKING:
    from chitfund.models.scheme import Scheme


class Prize(Base):
    """Prize model - what the winner of a given rank receives."""

    __tablename__ = "prizes"
    __table_args__ = (
        UniqueConstraint("scheme_id", "rank", name="uq_prizes_scheme_rank"),
        CheckConstraint("rank > 0", name="check_prize_rank_positive"),
        CheckConstraint(
            "cash_amount IS NULL OR cash_amount > 0",
            name="check_prize_cash_amount_positive",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    scheme_id: Mapped[int] = mapped_column(
        ForeignKey("schemes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    rank: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    prize_type: Mapped[str] = mapped_column(
        String(20), nullable=False, default=PrizeType.PRODUCT.value
    )
    cash_amount: Mapped[int | None] = mapped_column(
        MoneyType, nullable=True
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    scheme: Mapped["Scheme"] = relationship("Scheme", back_populates="prizes")

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Prize(id={self.id}, scheme_id={self.scheme_id}, "
            f"rank={self.rank}, name={self.name!r})>"
        )
