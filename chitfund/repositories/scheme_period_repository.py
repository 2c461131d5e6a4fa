"""
Scheme period repository.

Data access layer for SchemePeriod and PeriodReward models.
"""

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.scheme_period import PeriodReward, SchemePeriod
from chitfund.repositories.base import BaseRepository


class SchemePeriodRepository(BaseRepository[SchemePeriod]):
    """Scheme period repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize scheme period repository."""
        super().__init__(SchemePeriod, session)

    async def get_by_scheme(self, scheme_id: int) -> list[SchemePeriod]:
        """
        Get periods of a scheme in order, rewards freshly loaded.

        Args:
            scheme_id: Scheme ID

        Returns:
            Periods ordered by index
        """
        stmt = (
            select(SchemePeriod)
            .where(SchemePeriod.scheme_id == scheme_id)
            .order_by(SchemePeriod.period_index)
            .execution_options(populate_existing=True)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_period(
        self, scheme_id: int, period_index: int
    ) -> SchemePeriod | None:
        """Get one period of a scheme by index."""
        return await self.get_by(scheme_id=scheme_id, period_index=period_index)

    async def delete_beyond(self, scheme_id: int, duration: int) -> int:
        """
        Delete periods past the scheme duration, with their rewards.

        Returns:
            Number of periods deleted
        """
        stale = select(SchemePeriod.id).where(
            SchemePeriod.scheme_id == scheme_id,
            SchemePeriod.period_index > duration,
        )
        await self.session.execute(
            delete(PeriodReward)
            .where(PeriodReward.period_id.in_(stale))
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(
            delete(SchemePeriod)
            .where(
                SchemePeriod.scheme_id == scheme_id,
                SchemePeriod.period_index > duration,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_rewards_beyond(self, scheme_id: int, duration: int) -> int:
        """Count rewards attached to periods past ``duration``."""
        stmt = (
            select(func.count(PeriodReward.id))
            .join(SchemePeriod, PeriodReward.period_id == SchemePeriod.id)
            .where(
                SchemePeriod.scheme_id == scheme_id,
                SchemePeriod.period_index > duration,
            )
        )
        result = await self.session.execute(stmt)
        return result.scalar() or 0


class PeriodRewardRepository(BaseRepository[PeriodReward]):
    """Period reward repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize period reward repository."""
        super().__init__(PeriodReward, session)

    async def get_by_period(self, period_id: int) -> list[PeriodReward]:
        """Get rewards of a period in display order."""
        stmt = (
            select(PeriodReward)
            .where(PeriodReward.period_id == period_id)
            .order_by(PeriodReward.sort_order, PeriodReward.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
