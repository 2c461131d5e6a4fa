"""
Payment recorder.

Applies period payments to the card ledger and triggers the commission
engine inside the same transaction.
"""

from dataclasses import dataclass, field
from datetime import date

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.commission_entry import CommissionEntry
from chitfund.models.enums import (
    PaymentMethod,
    PaymentRecordStatus,
    SchemeStatus,
    SubscriptionStatus,
)
from chitfund.models.payment_record import PaymentRecord
from chitfund.models.scheme import Scheme
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.commission_repository import CommissionRepository
from chitfund.repositories.payment_record_repository import (
    PaymentRecordRepository,
)
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.commission.engine import CommissionEngine
from chitfund.services.payment.status import PaymentStatusCalculator
from chitfund.utils.datetime_utils import utc_now
from chitfund.utils.exceptions import (
    AmountMismatch,
    CardNotFound,
    CardNotPayable,
    InvalidScheme,
    PeriodAlreadyPaid,
    PeriodOutOfRange,
)


# Schemes that no longer (or not yet) accept payments
_CLOSED_SCHEME_STATUSES = frozenset({
    SchemeStatus.DRAFT.value,
    SchemeStatus.CANCELLED.value,
})


def check_period(scheme: Scheme, card_id: int, period_index: int) -> None:
    """Raise PeriodOutOfRange unless 1 <= period_index <= duration."""
    if not 1 <= period_index <= scheme.duration:
        raise PeriodOutOfRange(
            f"Period must be between 1 and {scheme.duration}",
            card_id=card_id,
            period_index=period_index,
        )


def check_payable(card: Card, scheme: Scheme) -> None:
    """Raise unless the scheme is open and the card is active."""
    if scheme.status in _CLOSED_SCHEME_STATUSES:
        raise InvalidScheme(
            "Scheme does not accept payments",
            scheme_id=scheme.id,
            status=scheme.status,
        )
    if card.subscription_status != SubscriptionStatus.ACTIVE.value:
        raise CardNotPayable(card_id=card.id, status=card.subscription_status)


@dataclass
class PaymentResult:
    """Outcome of recording one period payment."""

    payment: PaymentRecord
    commissions: list[CommissionEntry] = field(default_factory=list)
    # False when an earlier completed record was returned instead
    created: bool = True

    @property
    def payment_id(self) -> int:
        return self.payment.id


class PaymentRecorder(BaseService):
    """
    Records completed and failed period payments.

    ``record_payment`` and ``record_failed_payment`` own their transaction.
    ``apply_payment`` and ``apply_failed_payment`` do the same work without
    committing, for callers that already run a transaction.
    """

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.card_repo = CardRepository(session)
        self.record_repo = PaymentRecordRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.commission_engine = CommissionEngine(session)
        self.status_calculator = PaymentStatusCalculator(session)

    async def record_payment(
        self,
        card_id: int,
        period_index: int,
        amount: int,
        method: PaymentMethod | str | None = None,
        *,
        idempotent: bool = False,
        gateway_txid: str | None = None,
        on_date: date | None = None,
    ) -> PaymentResult:
        """
        Record a completed payment for one period of a card.

        With ``idempotent=True`` (payment webhooks, delivered at least
        once) a period that is already paid returns the existing result;
        otherwise it raises ``PeriodAlreadyPaid``.

        Args:
            card_id: Card ID
            period_index: 1-based period
            amount: Amount in minor units, must equal the subscription amount
            method: Payment method used (defaults to the card's method)
            idempotent: Treat an already-paid period as a replay
            gateway_txid: Gateway transaction reference
            on_date: Reference date for the derived payment status

        Returns:
            PaymentResult with the record and its commission entries

        Raises:
            CardNotFound, PeriodOutOfRange, AmountMismatch,
            PeriodAlreadyPaid, InvalidScheme, CardNotPayable
        """
        try:
            return await self._record_payment(
                card_id,
                period_index,
                amount,
                method,
                idempotent=idempotent,
                gateway_txid=gateway_txid,
                on_date=on_date,
            )
        except IntegrityError:
            # A concurrent call completed the same period first
            existing = await self.record_repo.get_completed(
                card_id, period_index
            )
            if existing is None:
                raise
            if not idempotent:
                raise PeriodAlreadyPaid(
                    card_id=card_id, period_index=period_index
                ) from None
            return await self._existing_result(existing)

    @transaction
    async def _record_payment(self, *args, **kwargs) -> PaymentResult:
        return await self.apply_payment(*args, **kwargs)

    async def apply_payment(
        self,
        card_id: int,
        period_index: int,
        amount: int,
        method: PaymentMethod | str | None = None,
        *,
        idempotent: bool = False,
        gateway_txid: str | None = None,
        on_date: date | None = None,
    ) -> PaymentResult:
        """Record a completed payment without committing."""
        card = await self.card_repo.get_for_update(card_id)
        if not card:
            raise CardNotFound(card_id=card_id)
        scheme = card.scheme

        check_period(scheme, card_id, period_index)
        if amount != scheme.subscription_amount:
            raise AmountMismatch(
                card_id=card_id,
                amount=amount,
                expected=scheme.subscription_amount,
            )

        existing = await self.record_repo.get_completed(card_id, period_index)
        if existing:
            if idempotent:
                self.logger.info(
                    "Duplicate payment delivery, returning existing record",
                    extra={"card_id": card_id, "period": period_index},
                )
                return await self._existing_result(existing)
            raise PeriodAlreadyPaid(card_id=card_id, period_index=period_index)

        check_payable(card, scheme)

        now = utc_now()
        payment = await self.record_repo.create(
            card_id=card.id,
            scheme_id=scheme.id,
            period_index=period_index,
            amount=amount,
            payment_method=PaymentMethod(method or card.payment_method).value,
            status=PaymentRecordStatus.COMPLETED.value,
            gateway_txid=gateway_txid,
            completed_at=now,
        )

        payment_status = await self.status_calculator.compute(
            card, scheme, on_date
        )
        await self.card_repo.record_completed_payment(
            card.id, amount, now, payment_status.value
        )
        await self.session.refresh(card)

        commissions = await self.commission_engine.pay_for_payment(
            card, scheme, payment
        )

        self.logger.info(
            "Payment recorded",
            extra={
                "card_id": card.id,
                "period": period_index,
                "amount": amount,
                "payments_made": card.total_payments_made,
                "payment_status": payment_status.value,
                "commissions": len(commissions),
            },
        )
        return PaymentResult(payment=payment, commissions=commissions)

    @transaction
    async def record_failed_payment(
        self,
        card_id: int,
        period_index: int,
        amount: int,
        method: PaymentMethod | str | None = None,
        reason: str | None = None,
        *,
        gateway_txid: str | None = None,
        on_date: date | None = None,
    ) -> PaymentRecord:
        """
        Store a failed payment attempt.

        Failed attempts never count towards the payments made and never
        pay commission. They only feed the derived payment status.

        Raises:
            CardNotFound, PeriodOutOfRange, AmountMismatch, PeriodAlreadyPaid
        """
        return await self.apply_failed_payment(
            card_id,
            period_index,
            amount,
            method,
            reason,
            gateway_txid=gateway_txid,
            on_date=on_date,
        )

    async def apply_failed_payment(
        self,
        card_id: int,
        period_index: int,
        amount: int,
        method: PaymentMethod | str | None = None,
        reason: str | None = None,
        *,
        gateway_txid: str | None = None,
        on_date: date | None = None,
    ) -> PaymentRecord:
        """Store a failed payment attempt without committing."""
        card = await self.card_repo.get_for_update(card_id)
        if not card:
            raise CardNotFound(card_id=card_id)
        scheme = card.scheme

        check_period(scheme, card_id, period_index)
        if amount <= 0:
            raise AmountMismatch(card_id=card_id, amount=amount)
        if await self.record_repo.get_completed(card_id, period_index):
            raise PeriodAlreadyPaid(card_id=card_id, period_index=period_index)

        record = await self.record_repo.create(
            card_id=card.id,
            scheme_id=scheme.id,
            period_index=period_index,
            amount=amount,
            payment_method=PaymentMethod(method or card.payment_method).value,
            status=PaymentRecordStatus.FAILED.value,
            gateway_txid=gateway_txid,
            failure_reason=reason,
        )

        payment_status = await self.status_calculator.compute(
            card, scheme, on_date
        )
        await self.card_repo.update(card, payment_status=payment_status.value)

        self.logger.info(
            "Failed payment recorded",
            extra={
                "card_id": card.id,
                "period": period_index,
                "reason": reason,
                "payment_status": payment_status.value,
            },
        )
        return record

    async def _existing_result(self, payment: PaymentRecord) -> PaymentResult:
        commissions = await self.commission_repo.get_by_source_payment(
            payment.id
        )
        return PaymentResult(
            payment=payment, commissions=commissions, created=False
        )
