"""
Payment record repository.

Data access layer for PaymentRecord model.
"""

from sqlalchemy import and_, func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased

from chitfund.models.card import Card
from chitfund.models.enums import PaymentRecordStatus
from chitfund.models.payment_record import PaymentRecord
from chitfund.repositories.base import BaseRepository


class PaymentRecordRepository(BaseRepository[PaymentRecord]):
    """Payment record repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize payment record repository."""
        super().__init__(PaymentRecord, session)

    async def get_completed(
        self, card_id: int, period_index: int
    ) -> PaymentRecord | None:
        """
        Get the completed record for a card period.

        Args:
            card_id: Card ID
            period_index: Period index

        Returns:
            Completed record or None
        """
        return await self.get_by(
            card_id=card_id,
            period_index=period_index,
            status=PaymentRecordStatus.COMPLETED.value,
        )

    async def get_completed_periods(self, card_id: int) -> set[int]:
        """
        Get period indices with a completed payment.

        Args:
            card_id: Card ID

        Returns:
            Set of paid period indices
        """
        stmt = select(PaymentRecord.period_index).where(
            PaymentRecord.card_id == card_id,
            PaymentRecord.status == PaymentRecordStatus.COMPLETED.value,
        )
        result = await self.session.execute(stmt)
        return {row[0] for row in result.all()}

    async def get_latest_attempt(
        self, card_id: int, period_index: int
    ) -> PaymentRecord | None:
        """Get the most recent attempt (any status) for a card period."""
        stmt = (
            select(PaymentRecord)
            .where(
                PaymentRecord.card_id == card_id,
                PaymentRecord.period_index == period_index,
            )
            .order_by(PaymentRecord.created_at.desc(), PaymentRecord.id.desc())
            .limit(1)
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_card(self, card_id: int) -> list[PaymentRecord]:
        """Get all records of a card, by period then attempt order."""
        stmt = (
            select(PaymentRecord)
            .where(PaymentRecord.card_id == card_id)
            .order_by(PaymentRecord.period_index, PaymentRecord.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_downline_period_rows(
        self,
        user_id: str,
        scheme_id: int,
        period_index: int,
    ) -> list[tuple[Card, PaymentRecord | None, PaymentRecord | None]]:
        """
        Get downline cards with their completed and failed records for a period.

        Ordered most recently paid first (unpaid last), then by card
        creation order.

        Args:
            user_id: Referrer user ID (L1 or L2)
            scheme_id: Scheme ID
            period_index: Period index

        Returns:
            List of (card, completed_record, latest_failed_record)
        """
        completed = aliased(PaymentRecord)
        failed = aliased(PaymentRecord)

        latest_failed_id = (
            select(func.max(PaymentRecord.id))
            .where(
                PaymentRecord.card_id == Card.id,
                PaymentRecord.period_index == period_index,
                PaymentRecord.status == PaymentRecordStatus.FAILED.value,
            )
            .correlate(Card)
            .scalar_subquery()
        )

        stmt = (
            select(Card, completed, failed)
            .outerjoin(
                completed,
                and_(
                    completed.card_id == Card.id,
                    completed.period_index == period_index,
                    completed.status == PaymentRecordStatus.COMPLETED.value,
                ),
            )
            .outerjoin(failed, failed.id == latest_failed_id)
            .where(
                Card.scheme_id == scheme_id,
                (Card.ref_l1_user_id == user_id)
                | (Card.ref_l2_user_id == user_id),
            )
            .order_by(
                completed.completed_at.desc().nulls_last(),
                Card.created_at.asc(),
                Card.id.asc(),
            )
        )
        result = await self.session.execute(stmt)
        return [(row[0], row[1], row[2]) for row in result.all()]

    async def get_scheme_totals(self, scheme_id: int) -> dict[str, int]:
        """Count and sum completed payments of a scheme."""
        stmt = select(
            func.count(PaymentRecord.id),
            func.coalesce(func.sum(PaymentRecord.amount), 0),
        ).where(
            PaymentRecord.scheme_id == scheme_id,
            PaymentRecord.status == PaymentRecordStatus.COMPLETED.value,
        )
        row = (await self.session.execute(stmt)).one()
        return {"payments": int(row[0]), "collected": int(row[1])}
