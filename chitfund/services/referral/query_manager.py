"""
Referral query module.

Read-only views over the referral snapshot stored on cards.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.commission_entry import CommissionEntry
from chitfund.models.enums import CommissionLevel
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.commission_repository import CommissionRepository


@dataclass
class ReferralCounts:
    """Downline card counts of a user."""

    l1_total: int = 0
    l1_active: int = 0
    l2_total: int = 0
    l2_active: int = 0


class ReferralQueryManager:
    """Handles referral queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize query manager."""
        self.session = session
        self.card_repo = CardRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def get_downline(
        self, user_id: str, scheme_id: int | None = None
    ) -> list[Card]:
        """Cards whose L1 or L2 referrer is ``user_id``."""
        return await self.card_repo.get_downline(user_id, scheme_id)

    async def get_direct_referrals(self, user_id: str) -> list[Card]:
        """Cards directly referred by ``user_id`` (L1 only)."""
        return [
            card
            for card in await self.card_repo.get_downline(user_id)
            if card.ref_l1_user_id == user_id
        ]

    async def get_referral_counts(self, user_id: str) -> ReferralCounts:
        counts = await self.card_repo.get_referral_counts(user_id)
        return ReferralCounts(**counts)

    async def get_income_totals(self, user_id: str) -> dict[str, int]:
        """Commission income per level, ``{"direct": ..., "indirect": ...}``."""
        return await self.commission_repo.get_income_totals(user_id)

    async def get_commission_history(
        self,
        user_id: str,
        level: CommissionLevel | str | None = None,
        limit: int | None = None,
    ) -> list[CommissionEntry]:
        """Commission entries paid to ``user_id``, newest first."""
        return await self.commission_repo.get_by_beneficiary(
            user_id,
            level=CommissionLevel(level).value if level else None,
            limit=limit,
        )
