"""
Payment/period tracker.

Read-only period views over payment records.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.enums import CardPaymentStatus, CommissionLevel
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.payment_record_repository import (
    PaymentRecordRepository,
)
from chitfund.repositories.scheme_repository import SchemeRepository
from chitfund.services.scheme.periods import current_period as scheme_period
from chitfund.utils.datetime_utils import ensure_utc
from chitfund.utils.exceptions import (
    CardNotFound,
    PeriodOutOfRange,
    SchemeNotFound,
)


@dataclass
class DownlinePayment:
    """One downline card's payment state for a period."""

    child_card_id: int
    child_name: str
    level: CommissionLevel
    payment_method: str
    payment_status: CardPaymentStatus
    payment_date: datetime | None


class PaymentTracker:
    """Answers which periods are paid, per card and per downline."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.card_repo = CardRepository(session)
        self.record_repo = PaymentRecordRepository(session)
        self.scheme_repo = SchemeRepository(session)

    async def get_completed_periods(self, card_id: int) -> set[int]:
        """
        Period indices of a card with a completed payment.

        Raises:
            CardNotFound: Unknown card
        """
        if not await self.card_repo.exists(id=card_id):
            raise CardNotFound(card_id=card_id)
        return await self.record_repo.get_completed_periods(card_id)

    async def get_unpaid_periods(self, card_id: int) -> list[int]:
        """Period indices of a card still to be paid, in order."""
        card = await self.card_repo.get_by_id(card_id)
        if not card:
            raise CardNotFound(card_id=card_id)
        paid = await self.record_repo.get_completed_periods(card_id)
        return [
            p for p in range(1, card.scheme.duration + 1) if p not in paid
        ]

    async def list_downline_payments(
        self,
        user_id: str,
        scheme_id: int,
        current_period: int | None = None,
    ) -> list[DownlinePayment]:
        """
        Payment state of the user's L1/L2 downline for one scheme period.

        Most recently paid first, unpaid cards after, ties by enrollment
        order.

        Args:
            user_id: Referrer user ID
            scheme_id: Scheme ID
            current_period: Period to report (defaults to the scheme's
                current period)

        Returns:
            Ordered downline payment entries

        Raises:
            SchemeNotFound: Unknown scheme
            PeriodOutOfRange: Period outside 1..duration
        """
        scheme = await self.scheme_repo.get_by_id(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)

        period = (
            current_period
            if current_period is not None
            else scheme_period(scheme)
        )
        if not 1 <= period <= scheme.duration:
            raise PeriodOutOfRange(scheme_id=scheme_id, period_index=period)

        rows = await self.record_repo.get_downline_period_rows(
            user_id, scheme_id, period
        )

        entries = []
        for card, completed, failed in rows:
            if completed is not None:
                status = CardPaymentStatus.PAID
                paid_at = ensure_utc(completed.completed_at)
                method = completed.payment_method
            elif failed is not None:
                status = CardPaymentStatus.FAILED
                paid_at = None
                method = failed.payment_method
            else:
                status = CardPaymentStatus.PENDING
                paid_at = None
                method = card.payment_method

            level = (
                CommissionLevel.DIRECT
                if card.ref_l1_user_id == user_id
                else CommissionLevel.INDIRECT
            )
            entries.append(DownlinePayment(
                child_card_id=card.id,
                child_name=card.cardholder_name,
                level=level,
                payment_method=method,
                payment_status=status,
                payment_date=paid_at,
            ))
        return entries
