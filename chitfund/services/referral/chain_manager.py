"""
Referral chain management module.

Resolves the two-hop referral snapshot frozen onto a card at issuance.
"""

from dataclasses import dataclass

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.repositories.card_repository import CardRepository
from chitfund.utils.exceptions import ReferrerNotFound


@dataclass(frozen=True)
class ReferralSnapshot:
    """L1/L2 linkage written onto a new card and never changed."""

    l1_user_id: str | None = None
    l1_card_id: int | None = None
    l2_user_id: str | None = None
    l2_card_id: int | None = None

    def as_card_fields(self) -> dict[str, str | int | None]:
        """Column values for the Card model."""
        return {
            "ref_l1_user_id": self.l1_user_id,
            "ref_l1_card_id": self.l1_card_id,
            "ref_l2_user_id": self.l2_user_id,
            "ref_l2_card_id": self.l2_card_id,
        }


class ReferralChainManager:
    """Manages referral chain operations."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize chain manager."""
        self.session = session
        self.card_repo = CardRepository(session)

    async def resolve_snapshot(
        self, new_user_id: str, referrer_card_id: int | None
    ) -> ReferralSnapshot:
        """
        Resolve L1 and L2 for a card about to be issued.

        L1 is the owner of the referrer card. L2 is the referrer card's own
        L1. Nothing deeper is looked at. A level that would point back at
        the new card's owner is left empty.

        Args:
            new_user_id: Owner of the card being issued
            referrer_card_id: Card the user signed up with, if any

        Returns:
            Snapshot (empty for organic signups)

        Raises:
            ReferrerNotFound: referrer_card_id does not exist
        """
        if referrer_card_id is None:
            return ReferralSnapshot()

        referrer_card = await self.card_repo.get_by_id(referrer_card_id)
        if not referrer_card:
            raise ReferrerNotFound(referrer_card_id=referrer_card_id)

        l1_user_id: str | None = referrer_card.user_id
        l1_card_id: int | None = referrer_card.id
        l2_user_id = referrer_card.ref_l1_user_id
        l2_card_id = referrer_card.ref_l1_card_id

        if l1_user_id == new_user_id:
            logger.warning(
                "Self-referral ignored at L1",
                extra={"user_id": new_user_id},
            )
            l1_user_id = l1_card_id = None

        if l2_user_id == new_user_id:
            logger.warning(
                "Referral loop ignored at L2",
                extra={"user_id": new_user_id},
            )
            l2_user_id = l2_card_id = None

        snapshot = ReferralSnapshot(
            l1_user_id=l1_user_id,
            l1_card_id=l1_card_id,
            l2_user_id=l2_user_id,
            l2_card_id=l2_card_id,
        )

        logger.debug(
            "Referral snapshot resolved",
            extra={
                "user_id": new_user_id,
                "l1": snapshot.l1_user_id,
                "l2": snapshot.l2_user_id,
            },
        )
        return snapshot
