"""
Scheme period models.

Per-period catalog entries of a scheme and the rewards shown for each
period.
"""

from datetime import UTC, date, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from chitfund.models.base import Base


class SchemePeriod(Base):
    """
    SchemePeriod model - one billing period of a scheme.

    Bounds are derived from the scheme's start date and cycle and kept
    in sync by the catalog when periods are ensured.
    """

    __tablename__ = "scheme_periods"
    __table_args__ = (
        UniqueConstraint(
            "scheme_id", "period_index", name="uq_scheme_periods_index"
        ),
        CheckConstraint(
            "period_index >= 1", name="check_scheme_period_index_positive"
        ),
        CheckConstraint(
            "end_date > start_date", name="check_scheme_period_bounds"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    scheme_id: Mapped[int] = mapped_column(
        ForeignKey("schemes.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    period_index: Mapped[int] = mapped_column(Integer, nullable=False)
    # First day of the period and first day of the next one
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    rewards: Mapped[list["PeriodReward"]] = relationship(
        "PeriodReward",
        back_populates="period",
        order_by="PeriodReward.sort_order",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<SchemePeriod(id={self.id}, scheme_id={self.scheme_id}, "
            f"period={self.period_index}, start={self.start_date})>"
        )


class PeriodReward(Base):
    """PeriodReward model - a reward advertised for one scheme period."""

    __tablename__ = "period_rewards"
    __table_args__ = (
        CheckConstraint("quantity >= 1", name="check_period_reward_quantity"),
        CheckConstraint(
            "sort_order >= 0", name="check_period_reward_sort_order"
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    period_id: Mapped[int] = mapped_column(
        ForeignKey("scheme_periods.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    image_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    # Only the first reward of a period is its cover
    is_cover: Mapped[bool] = mapped_column(
        Boolean, default=False, nullable=False
    )
    sort_order: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(UTC),
        nullable=False,
    )

    period: Mapped["SchemePeriod"] = relationship(
        "SchemePeriod", back_populates="rewards"
    )

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<PeriodReward(id={self.id}, period_id={self.period_id}, "
            f"title={self.title!r}, sort_order={self.sort_order})>"
        )
