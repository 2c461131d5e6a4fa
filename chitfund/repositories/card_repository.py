"""
Card repository.

Data access layer for Card model.
"""

from datetime import datetime

from sqlalchemy import and_, case, exists, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.config.business_constants import (
    NON_TERMINAL_SUBSCRIPTION_STATUSES,
    WINNER_ELIGIBLE_STATUSES,
)
from chitfund.models.card import Card
from chitfund.models.enums import SubscriptionStatus
from chitfund.models.scheme import Scheme
from chitfund.models.winner import Winner
from chitfund.repositories.base import BaseRepository


class CardRepository(BaseRepository[Card]):
    """Card repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize card repository."""
        super().__init__(Card, session)

    async def get_open_card(
        self, user_id: str, scheme_id: int
    ) -> Card | None:
        """
        Get the user's active or paused card for a scheme.

        Args:
            user_id: Owning user ID
            scheme_id: Scheme ID

        Returns:
            Open card or None
        """
        stmt = select(Card).where(
            Card.user_id == user_id,
            Card.scheme_id == scheme_id,
            Card.subscription_status.in_(
                [s.value for s in NON_TERMINAL_SUBSCRIPTION_STATUSES]
            ),
        )
        result = await self.session.execute(stmt)
        return result.scalars().first()

    async def get_by_user(
        self, user_id: str, scheme_id: int | None = None
    ) -> list[Card]:
        """
        Get cards owned by a user, oldest first.

        Args:
            user_id: Owning user ID
            scheme_id: Optional scheme filter

        Returns:
            List of cards
        """
        stmt = (
            select(Card)
            .where(Card.user_id == user_id)
            .order_by(Card.created_at, Card.id)
        )
        if scheme_id is not None:
            stmt = stmt.where(Card.scheme_id == scheme_id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_user_card(self, card_id: int, user_id: str) -> Card | None:
        """Get a card only if it belongs to ``user_id``."""
        return await self.get_by(id=card_id, user_id=user_id)

    async def get_downline(
        self, user_id: str, scheme_id: int | None = None
    ) -> list[Card]:
        """
        Get cards whose L1 or L2 referrer is ``user_id``.

        Args:
            user_id: Referrer user ID
            scheme_id: Optional scheme filter

        Returns:
            List of downline cards in creation order
        """
        stmt = (
            select(Card)
            .where(
                or_(
                    Card.ref_l1_user_id == user_id,
                    Card.ref_l2_user_id == user_id,
                )
            )
            .order_by(Card.created_at, Card.id)
        )
        if scheme_id is not None:
            stmt = stmt.where(Card.scheme_id == scheme_id)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def record_completed_payment(
        self,
        card_id: int,
        amount: int,
        paid_at: datetime,
        payment_status: str,
    ) -> None:
        """
        Apply a completed period payment to the card row.

        Uses relative updates so concurrent writers never overwrite each
        other's wallet changes.

        Args:
            card_id: Card ID
            amount: Amount paid, in minor units
            paid_at: Completion timestamp
            payment_status: Derived card payment status
        """
        stmt = (
            update(Card)
            .where(Card.id == card_id)
            .values(
                total_payments_made=Card.total_payments_made + 1,
                total_wallet_balance=Card.total_wallet_balance + amount,
                last_payment_at=paid_at,
                payment_status=payment_status,
                updated_at=paid_at,
            )
            .execution_options(synchronize_session=False)
        )
        await self.session.execute(stmt)

    async def credit_commission(self, card_id: int, amount: int) -> bool:
        """
        Credit a card's commission wallet.

        Args:
            card_id: Beneficiary card ID
            amount: Commission in minor units

        Returns:
            True if the card exists and was credited
        """
        stmt = (
            update(Card)
            .where(Card.id == card_id)
            .values(
                commission_wallet_balance=(
                    Card.commission_wallet_balance + amount
                ),
            )
            .execution_options(synchronize_session=False)
        )
        result = await self.session.execute(stmt)
        return result.rowcount > 0

    async def get_eligible_for_draw(self, scheme_id: int) -> list[Card]:
        """
        Get cards eligible for a scheme's prize draw.

        Eligible: status active or completed, every period paid, and no
        winner record (of any status) for this scheme. Ordered by payments
        made (desc), then enrollment time (asc), then ID.

        Args:
            scheme_id: Scheme ID

        Returns:
            Ordered list of eligible cards
        """
        has_won = exists().where(
            and_(
                Winner.scheme_id == Card.scheme_id,
                Winner.card_id == Card.id,
            )
        )
        stmt = (
            select(Card)
            .join(Scheme, Scheme.id == Card.scheme_id)
            .where(
                Card.scheme_id == scheme_id,
                Card.subscription_status.in_(
                    [s.value for s in WINNER_ELIGIBLE_STATUSES]
                ),
                Card.total_payments_made == Scheme.duration,
                ~has_won,
            )
            .order_by(
                Card.total_payments_made.desc(),
                Card.created_at.asc(),
                Card.id.asc(),
            )
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().unique().all())

    async def count_by_subscription_status(
        self, scheme_id: int | None = None
    ) -> dict[str, int]:
        """Count cards grouped by subscription status."""
        stmt = select(
            Card.subscription_status, func.count(Card.id)
        ).group_by(Card.subscription_status)
        if scheme_id is not None:
            stmt = stmt.where(Card.scheme_id == scheme_id)

        result = await self.session.execute(stmt)
        counts = {status.value: 0 for status in SubscriptionStatus}
        for status, count in result.all():
            counts[status] = count
        return counts

    async def get_totals(self, scheme_id: int | None = None) -> dict[str, int]:
        """
        Aggregate wallet balances and payments across cards.

        Returns:
            Dict with total_wallet, total_commission, total_payments
        """
        stmt = select(
            func.coalesce(func.sum(Card.total_wallet_balance), 0),
            func.coalesce(func.sum(Card.commission_wallet_balance), 0),
            func.coalesce(func.sum(Card.total_payments_made), 0),
        )
        if scheme_id is not None:
            stmt = stmt.where(Card.scheme_id == scheme_id)

        row = (await self.session.execute(stmt)).one()
        return {
            "total_wallet": int(row[0]),
            "total_commission": int(row[1]),
            "total_payments": int(row[2]),
        }

    async def get_referral_counts(self, user_id: str) -> dict[str, int]:
        """
        Count L1 and L2 downline cards, total and active, in one query.

        Args:
            user_id: Referrer user ID

        Returns:
            Dict with l1_total, l1_active, l2_total, l2_active
        """
        active = Card.subscription_status == SubscriptionStatus.ACTIVE.value
        is_l1 = Card.ref_l1_user_id == user_id
        is_l2 = Card.ref_l2_user_id == user_id

        stmt = select(
            func.coalesce(func.sum(case((is_l1, 1), else_=0)), 0),
            func.coalesce(func.sum(case((and_(is_l1, active), 1), else_=0)), 0),
            func.coalesce(func.sum(case((is_l2, 1), else_=0)), 0),
            func.coalesce(func.sum(case((and_(is_l2, active), 1), else_=0)), 0),
        ).where(or_(is_l1, is_l2))

        row = (await self.session.execute(stmt)).one()
        return {
            "l1_total": int(row[0]),
            "l1_active": int(row[1]),
            "l2_total": int(row[2]),
            "l2_active": int(row[3]),
        }
