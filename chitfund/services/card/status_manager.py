"""
Card status management.

Admin overrides of subscription and KYC status, checked against the
transition tables.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.config.business_constants import (
    KYC_TRANSITIONS,
    SUBSCRIPTION_TRANSITIONS,
)
from chitfund.models.card import Card
from chitfund.models.enums import KycStatus, SubscriptionStatus
from chitfund.repositories.card_repository import CardRepository
from chitfund.utils.datetime_utils import utc_now
from chitfund.utils.exceptions import (
    CardNotFound,
    InvalidTransition,
    ReasonRequired,
)


def reason_required(
    current: SubscriptionStatus, target: SubscriptionStatus
) -> bool:
    """A reason is needed to cancel, or to leave active or paused."""
    return target == SubscriptionStatus.CANCELLED or current in (
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.PAUSED,
    )


class CardStatusManager:
    """Applies status transitions. Does not commit."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.card_repo = CardRepository(session)

    async def set_status(
        self,
        card_id: int,
        new_status: SubscriptionStatus | str,
        reason: str | None = None,
    ) -> Card:
        """
        Change a card's subscription status.

        Args:
            card_id: Card ID
            new_status: Target status
            reason: Why the status changes

        Returns:
            Updated card

        Raises:
            CardNotFound: Unknown card
            InvalidTransition: Not allowed from the current status
            ReasonRequired: Reason missing where needed
        """
        try:
            target = SubscriptionStatus(new_status)
        except ValueError:
            raise InvalidTransition(
                f"Unknown subscription status: {new_status}"
            ) from None

        card = await self.card_repo.get_for_update(card_id)
        if not card:
            raise CardNotFound(card_id=card_id)

        current = SubscriptionStatus(card.subscription_status)
        if target not in SUBSCRIPTION_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Card cannot move from {current.value} to {target.value}",
                card_id=card_id,
            )

        reason = reason.strip() if reason else None
        if reason_required(current, target) and not reason:
            raise ReasonRequired(card_id=card_id, target=target.value)

        card = await self.card_repo.update(
            card,
            subscription_status=target.value,
            status_reason=reason,
            status_changed_at=utc_now(),
        )
        logger.info(
            "Card status changed",
            extra={
                "card_id": card_id,
                "from": current.value,
                "to": target.value,
                "reason": reason,
            },
        )
        return card

    async def set_kyc_status(
        self, card_id: int, new_status: KycStatus | str
    ) -> Card:
        """
        Change a card's KYC status.

        Raises:
            CardNotFound: Unknown card
            InvalidTransition: Not allowed from the current status
        """
        try:
            target = KycStatus(new_status)
        except ValueError:
            raise InvalidTransition(
                f"Unknown KYC status: {new_status}"
            ) from None

        card = await self.card_repo.get_for_update(card_id)
        if not card:
            raise CardNotFound(card_id=card_id)

        current = KycStatus(card.kyc_status)
        if target not in KYC_TRANSITIONS[current]:
            raise InvalidTransition(
                f"KYC cannot move from {current.value} to {target.value}",
                card_id=card_id,
            )

        card = await self.card_repo.update(card, kyc_status=target.value)
        logger.info(
            "Card KYC status changed",
            extra={"card_id": card_id, "from": current.value, "to": target.value},
        )
        return card
