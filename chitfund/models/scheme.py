"""
Scheme model.

Represents a subscription product users enroll into with a card.
"""

from datetime import UTC, date, datetime
from typing import TYPE_CHECKING

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chitfund.models.base import Base
from chitfund.models.enums import SchemeStatus, SubscriptionCycle
from chitfund.models.types import MoneyType, RateBpsType


if TYPE_CHECKING:
    from chitfund.models.card import Card
    from chitfund.models.prize import Prize
    from chitfund.models.winner import Winner


class Scheme(Base):
    """
    Scheme entity.

    A scheme defines the subscription amount, billing cycle, number of
    periods and the prize structure:
    - Created by admin in draft status
    - Cards can only be issued while the scheme is active
    - Status only moves forward (see SCHEME_TRANSITIONS)

    Attributes:
        id: Primary key
        name: Display name
        description: Optional long description
        subscription_amount: Amount due per period, in minor units
        subscription_cycle: monthly / quarterly / yearly
        duration: Number of periods
        number_of_winners: Prize slots available (>= 1)
        max_participants: Optional enrollment cap
        status: Lifecycle status
        start_date: First day of period 1
        end_date: Optional planned end date
        direct_commission_bps: Optional scheme-level L1 rate override
        indirect_commission_bps: Optional scheme-level L2 rate override
    """

    __tablename__ = "schemes"
    __table_args__ = (
        CheckConstraint(
            "subscription_amount > 0",
            name="check_scheme_amount_positive",
        ),
        CheckConstraint("duration >= 1", name="check_scheme_duration_positive"),
        CheckConstraint(
            "number_of_winners >= 1",
            name="check_scheme_winners_positive",
        ),
        CheckConstraint(
            "direct_commission_bps IS NULL OR "
            "(direct_commission_bps >= 0 AND direct_commission_bps <= 10000)",
            name="check_scheme_direct_bps_range",
        ),
        CheckConstraint(
            "indirect_commission_bps IS NULL OR "
            "(indirect_commission_bps >= 0 AND indirect_commission_bps <= 10000)",
            name="check_scheme_indirect_bps_range",
        ),
    )

    # Primary key
    id: Mapped[int] = mapped_column(
        Integer, primary_key=True, autoincrement=True
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Subscription terms
    subscription_amount: Mapped[int] = mapped_column(
        MoneyType, nullable=False
    )
    subscription_cycle: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SubscriptionCycle.MONTHLY.value,
    )
    duration: Mapped[int] = mapped_column(Integer, nullable=False)
    number_of_winners: Mapped[int] = mapped_column(
        Integer, nullable=False, default=1
    )
    max_participants: Mapped[int | None] = mapped_column(
        Integer, nullable=True
    )

    # Status
    status: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        default=SchemeStatus.DRAFT.value,
        index=True,
    )
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date | None] = mapped_column(Date, nullable=True)

    # Commission overrides (basis points)
    direct_commission_bps: Mapped[int | None] = mapped_column(
        RateBpsType, nullable=True
    )
    indirect_commission_bps: Mapped[int | None] = mapped_column(
        RateBpsType, nullable=True
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
    cards: Mapped[list["Card"]] = relationship(
        "Card", back_populates="scheme"
    )
    prizes: Mapped[list["Prize"]] = relationship(
        "Prize",
        back_populates="scheme",
        order_by="Prize.rank",
        cascade="all, delete-orphan",
    )
    winners: Mapped[list["Winner"]] = relationship(
        "Winner",
        back_populates="scheme",
        order_by="Winner.rank",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<Scheme(id={self.id}, name={self.name!r}, "
            f"status={self.status}, duration={self.duration})>"
        )

    @property
    def is_active(self) -> bool:
        """Check if cards can be issued against this scheme."""
        return self.status == SchemeStatus.ACTIVE.value

    @property
    def total_amount(self) -> int:
        """Full subscription value over all periods, in minor units."""
        return self.subscription_amount * self.duration
