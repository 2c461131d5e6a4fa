"""
ReferralLevel model.

System-wide commission rate for each tracked referral level.
"""

from datetime import UTC, datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from chitfund.models.base import Base
from chitfund.models.types import RateBpsType


class ReferralLevel(Base):
    """ReferralLevel model - admin-maintained commission rates."""

    __tablename__ = "referral_levels"
    __table_args__ = (
        CheckConstraint(
            "level IN (1, 2)", name="check_referral_level_range"
        ),
        CheckConstraint(
            "commission_bps >= 0 AND commission_bps <= 10000",
            name="check_referral_level_bps_range",
        ),
    )

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)

    # 1 = direct, 2 = indirect
    level: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True
    )
    commission_bps: Mapped[int] = mapped_column(RateBpsType, nullable=False)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, nullable=False
    )
    created_by: Mapped[str | None] = mapped_column(String(64), nullable=True)

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

    def __repr__(self) -> str:
        """String representation."""
        return (
            f"<ReferralLevel(level={self.level}, "
            f"bps={self.commission_bps}, active={self.is_active})>"
        )
