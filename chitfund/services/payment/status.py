"""
Card payment status derivation.

The card-level payment status is never set directly; it is recomputed
from the card's payment records whenever one is written.
"""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.enums import CardPaymentStatus, PaymentRecordStatus
from chitfund.models.scheme import Scheme
from chitfund.repositories.payment_record_repository import (
    PaymentRecordRepository,
)
from chitfund.services.scheme.periods import current_period


def derive_payment_status(
    completed_periods: set[int],
    current: int,
    duration: int,
    current_attempt_failed: bool = False,
) -> CardPaymentStatus:
    """
    Derive the card payment status from its paid periods.

    - paid: every period up to ``current`` is paid, or all periods are
    - overdue: an earlier period is still unpaid
    - failed: only the current period is unpaid and its last attempt failed
    - pending: only the current period is unpaid

    ``partial`` is never derived.

    Args:
        completed_periods: Period indices with a completed payment
        current: Current period index (1..duration)
        duration: Scheme duration
        current_attempt_failed: Latest attempt for ``current`` failed

    Returns:
        Derived status
    """
    paid = {p for p in completed_periods if 1 <= p <= duration}
    if len(paid) == duration:
        return CardPaymentStatus.PAID

    if any(p not in paid for p in range(1, current)):
        return CardPaymentStatus.OVERDUE

    if current in paid:
        return CardPaymentStatus.PAID

    if current_attempt_failed:
        return CardPaymentStatus.FAILED
    return CardPaymentStatus.PENDING


class PaymentStatusCalculator:
    """Computes a card's payment status from stored records."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.record_repo = PaymentRecordRepository(session)

    async def compute(
        self,
        card: Card,
        scheme: Scheme,
        on_date: date | None = None,
    ) -> CardPaymentStatus:
        """
        Compute the status of ``card`` as of ``on_date`` (today by default).

        Args:
            card: Card
            scheme: Card's scheme
            on_date: Reference date for the current period

        Returns:
            Derived status
        """
        completed = await self.record_repo.get_completed_periods(card.id)
        current = current_period(scheme, on_date)

        failed = False
        if current not in completed:
            latest = await self.record_repo.get_latest_attempt(card.id, current)
            failed = (
                latest is not None
                and latest.status == PaymentRecordStatus.FAILED.value
            )

        return derive_payment_status(
            completed, current, scheme.duration, failed
        )
