"""
Commission repository.

Data access layer for CommissionEntry and ReferralLevel models.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.commission_entry import CommissionEntry
from chitfund.models.enums import CommissionLevel
from chitfund.models.payment_record import PaymentRecord
from chitfund.models.referral_level import ReferralLevel
from chitfund.repositories.base import BaseRepository


class CommissionRepository(BaseRepository[CommissionEntry]):
    """Commission entry repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize commission repository."""
        super().__init__(CommissionEntry, session)

    async def get_by_source_payment(
        self, payment_id: int
    ) -> list[CommissionEntry]:
        """
        Get entries created for a payment, direct first.

        Args:
            payment_id: Source payment record ID

        Returns:
            List of commission entries (0..2)
        """
        return await self.find_by(source_payment_id=payment_id)

    async def get_by_beneficiary(
        self,
        user_id: str,
        level: str | None = None,
        limit: int | None = None,
    ) -> list[CommissionEntry]:
        """Get entries paid to a user, newest first."""
        stmt = (
            select(CommissionEntry)
            .where(CommissionEntry.beneficiary_user_id == user_id)
            .order_by(CommissionEntry.created_at.desc(), CommissionEntry.id.desc())
        )
        if level:
            stmt = stmt.where(CommissionEntry.level == level)
        if limit:
            stmt = stmt.limit(limit)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_income_totals(self, user_id: str) -> dict[str, int]:
        """
        Sum commission income per level for a user.

        Args:
            user_id: Beneficiary user ID

        Returns:
            Dict mapping level value to total in minor units
        """
        stmt = (
            select(
                CommissionEntry.level,
                func.coalesce(func.sum(CommissionEntry.amount), 0),
            )
            .where(CommissionEntry.beneficiary_user_id == user_id)
            .group_by(CommissionEntry.level)
        )
        result = await self.session.execute(stmt)

        totals = {level.value: 0 for level in CommissionLevel}
        for level, total in result.all():
            totals[level] = int(total)
        return totals

    async def get_scheme_total(self, scheme_id: int) -> int:
        """Total commission paid out on a scheme's payments."""
        stmt = (
            select(func.coalesce(func.sum(CommissionEntry.amount), 0))
            .join(
                PaymentRecord,
                PaymentRecord.id == CommissionEntry.source_payment_id,
            )
            .where(PaymentRecord.scheme_id == scheme_id)
        )
        result = await self.session.execute(stmt)
        return int(result.scalar() or 0)


class ReferralLevelRepository(BaseRepository[ReferralLevel]):
    """Referral level configuration repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize referral level repository."""
        super().__init__(ReferralLevel, session)

    async def get_active_rates(self) -> dict[int, int]:
        """
        Get active commission rates.

        Returns:
            Dict mapping level (1, 2) to basis points
        """
        stmt = select(ReferralLevel.level, ReferralLevel.commission_bps).where(
            ReferralLevel.is_active == True  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return {level: bps for level, bps in result.all()}

    async def list_levels(self) -> list[ReferralLevel]:
        """List configured levels in level order."""
        stmt = select(ReferralLevel).order_by(ReferralLevel.level)
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
