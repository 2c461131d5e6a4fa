"""
Scheme period rewards.

Keeps one catalog row per scheme period and the ordered rewards shown
for each period. The first reward of a period is its cover.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.enums import SchemeStatus
from chitfund.models.scheme import Scheme
from chitfund.models.scheme_period import PeriodReward, SchemePeriod
from chitfund.repositories.scheme_period_repository import (
    PeriodRewardRepository,
    SchemePeriodRepository,
)
from chitfund.repositories.scheme_repository import SchemeRepository
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.scheme.periods import period_bounds
from chitfund.services.scheme.schemas import PeriodRewardCreate
from chitfund.utils.exceptions import (
    InvalidScheme,
    PeriodOutOfRange,
    SchemeNotFound,
)


_FINISHED_STATUSES = frozenset({
    SchemeStatus.COMPLETED.value,
    SchemeStatus.CANCELLED.value,
})


class SchemePeriodService(BaseService):
    """Per-period catalog of a scheme: period rows and their rewards."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.scheme_repo = SchemeRepository(session)
        self.period_repo = SchemePeriodRepository(session)
        self.reward_repo = PeriodRewardRepository(session)

    @transaction
    async def ensure_scheme_periods(self, scheme_id: int) -> list[SchemePeriod]:
        """
        Create the missing period rows of a scheme and refresh their bounds.

        Safe to call repeatedly. Rows past the scheme duration are removed.

        Args:
            scheme_id: Scheme ID

        Returns:
            Periods 1..duration in order

        Raises:
            SchemeNotFound: Unknown scheme
        """
        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        return await self._ensure(scheme)

    async def list_periods(self, scheme_id: int) -> list[SchemePeriod]:
        """
        Periods of a scheme with their rewards, without creating any.

        Raises:
            SchemeNotFound: Unknown scheme
        """
        if not await self.scheme_repo.exists(id=scheme_id):
            raise SchemeNotFound(scheme_id=scheme_id)
        return await self.period_repo.get_by_scheme(scheme_id)

    async def list_period_rewards(
        self, scheme_id: int, period_index: int
    ) -> list[PeriodReward]:
        """
        Rewards of one period in display order.

        Raises:
            SchemeNotFound: Unknown scheme
            PeriodOutOfRange: Period outside 1..duration
        """
        scheme = await self.scheme_repo.get_by_id(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        _check_index(scheme, period_index)

        period = await self.period_repo.get_period(scheme_id, period_index)
        if period is None:
            return []
        return await self.reward_repo.get_by_period(period.id)

    @transaction
    async def add_period_reward(
        self,
        scheme_id: int,
        period_index: int,
        reward: PeriodRewardCreate | dict[str, Any],
    ) -> PeriodReward:
        """
        Add a reward to one period, as its cover or after the others.

        Period rows are created on demand.

        Args:
            scheme_id: Scheme ID
            period_index: 1-based period
            reward: Reward definition (validated with pydantic)

        Returns:
            Created reward

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidScheme: Scheme is finished
            PeriodOutOfRange: Period outside 1..duration
        """
        if not isinstance(reward, PeriodRewardCreate):
            reward = PeriodRewardCreate.model_validate(reward)

        scheme = await self._lock_open_scheme(scheme_id)
        _check_index(scheme, period_index)

        period = await self.period_repo.get_period(scheme_id, period_index)
        if period is None:
            await self._ensure(scheme)
            period = await self.period_repo.get_period(scheme_id, period_index)

        current = await self.reward_repo.get_by_period(period.id)
        created = await self.reward_repo.create(
            period_id=period.id,
            sort_order=len(current),
            **reward.model_dump(exclude={"set_cover"}),
        )
        if reward.set_cover:
            await self._renumber([created, *current])
        else:
            await self._renumber([*current, created])

        self.logger.info(
            "Period reward added",
            extra={
                "scheme_id": scheme_id,
                "period": period_index,
                "reward_id": created.id,
                "cover": created.is_cover,
            },
        )
        return created

    @transaction
    async def reorder_period_rewards(
        self,
        scheme_id: int,
        period_index: int,
        reward_ids: list[int],
    ) -> list[PeriodReward]:
        """
        Put the rewards of one period in the given order.

        ``reward_ids`` must name every reward of the period exactly once.
        The first one becomes the cover.

        Returns:
            Rewards in their new order

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidScheme: Scheme is finished, or ``reward_ids`` does not
                match the period's rewards
            PeriodOutOfRange: Period outside 1..duration
        """
        scheme = await self._lock_open_scheme(scheme_id)
        _check_index(scheme, period_index)

        period = await self.period_repo.get_period(scheme_id, period_index)
        current = (
            await self.reward_repo.get_by_period(period.id) if period else []
        )
        by_id = {r.id: r for r in current}
        if (
            not reward_ids
            or len(set(reward_ids)) != len(reward_ids)
            or set(reward_ids) != set(by_id)
        ):
            raise InvalidScheme(
                "Reorder must list every reward of the period exactly once",
                scheme_id=scheme_id,
                period_index=period_index,
            )

        ordered = [by_id[reward_id] for reward_id in reward_ids]
        await self._renumber(ordered)
        self.logger.info(
            "Period rewards reordered",
            extra={
                "scheme_id": scheme_id,
                "period": period_index,
                "order": reward_ids,
            },
        )
        return ordered

    async def _lock_open_scheme(self, scheme_id: int) -> Scheme:
        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        if scheme.status in _FINISHED_STATUSES:
            raise InvalidScheme(
                "Rewards of a finished scheme cannot change",
                scheme_id=scheme_id,
                status=scheme.status,
            )
        return scheme

    async def _ensure(self, scheme: Scheme) -> list[SchemePeriod]:
        removed = await self.period_repo.delete_beyond(
            scheme.id, scheme.duration
        )
        existing = {
            p.period_index: p
            for p in await self.period_repo.get_by_scheme(scheme.id)
        }

        created = 0
        for index in range(1, scheme.duration + 1):
            start, end = period_bounds(scheme, index)
            period = existing.get(index)
            if period is None:
                await self.period_repo.create(
                    scheme_id=scheme.id,
                    period_index=index,
                    start_date=start,
                    end_date=end,
                )
                created += 1
            elif (period.start_date, period.end_date) != (start, end):
                await self.period_repo.update(
                    period, start_date=start, end_date=end
                )

        if created or removed:
            self.logger.info(
                "Scheme periods ensured",
                extra={
                    "scheme_id": scheme.id,
                    "created": created,
                    "removed": removed,
                },
            )
        return await self.period_repo.get_by_scheme(scheme.id)

    async def _renumber(self, ordered: list[PeriodReward]) -> None:
        for position, reward in enumerate(ordered):
            if reward.sort_order != position or reward.is_cover != (
                position == 0
            ):
                await self.reward_repo.update(
                    reward, sort_order=position, is_cover=position == 0
                )


def _check_index(scheme: Scheme, period_index: int) -> None:
    if not 1 <= period_index <= scheme.duration:
        raise PeriodOutOfRange(
            f"Period must be between 1 and {scheme.duration}",
            scheme_id=scheme.id,
            period_index=period_index,
        )
