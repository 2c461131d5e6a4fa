"""
Referral level configuration.

System-wide commission rates per referral level, maintained by admins.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.referral_level import ReferralLevel
from chitfund.repositories.commission_repository import ReferralLevelRepository
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.scheme.schemas import ReferralLevelUpdate


class ReferralLevelService(BaseService):
    """Admin management of level 1 (direct) and level 2 (indirect) rates."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.level_repo = ReferralLevelRepository(session)

    async def list_levels(self) -> list[ReferralLevel]:
        return await self.level_repo.list_levels()

    async def get_active_rates(self) -> dict[int, int]:
        """Active rates as ``{level: bps}``."""
        return await self.level_repo.get_active_rates()

    @transaction
    async def set_level(
        self,
        config: ReferralLevelUpdate | dict[str, Any],
        created_by: str | None = None,
    ) -> ReferralLevel:
        """
        Create or replace the rate of one referral level.

        Args:
            config: Level, rate in basis points and active flag
            created_by: Admin user ID

        Returns:
            Stored level row
        """
        if not isinstance(config, ReferralLevelUpdate):
            config = ReferralLevelUpdate.model_validate(config)

        existing = await self.level_repo.get_by(level=config.level)
        if existing:
            level = await self.level_repo.update(
                existing,
                commission_bps=config.commission_bps,
                is_active=config.is_active,
            )
        else:
            level = await self.level_repo.create(
                level=config.level,
                commission_bps=config.commission_bps,
                is_active=config.is_active,
                created_by=created_by,
            )

        self.logger.info(
            "Referral level configured",
            extra={
                "level": level.level,
                "commission_bps": level.commission_bps,
                "is_active": level.is_active,
                "admin": created_by,
            },
        )
        return level
