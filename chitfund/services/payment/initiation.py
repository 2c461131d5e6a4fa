"""
Payment initiation.

Starts a period payment through an external gateway and settles it when
the gateway calls back.
"""

import secrets
from dataclasses import dataclass
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.enums import InvoiceStatus, PaymentRecordStatus
from chitfund.models.invoice import Invoice
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.invoice_repository import InvoiceRepository
from chitfund.repositories.payment_record_repository import (
    PaymentRecordRepository,
)
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.payment.recorder import (
    PaymentRecorder,
    check_payable,
    check_period,
)
from chitfund.utils.datetime_utils import utc_now
from chitfund.utils.exceptions import (
    CardNotFound,
    CardNotPayable,
    ChitFundError,
    InvalidScheme,
    InvoiceNotFound,
    PaymentInitiationFailed,
    PeriodAlreadyPaid,
)


@dataclass
class GatewayResponse:
    """Answer of the gateway to a payment start request."""

    success: bool
    redirect_url: str | None = None
    error: str | None = None


class PaymentGateway(Protocol):
    """Consumed payment gateway contract."""

    async def start_payment(
        self,
        *,
        txid: str,
        amount: int,
        card_id: int,
        period_index: int,
        method: str,
    ) -> GatewayResponse:
        ...


def generate_txid() -> str:
    """Unique gateway transaction reference."""
    return f"cf_{secrets.token_hex(12)}"


class PaymentInitiationService(BaseService):
    """Creates invoices, calls the gateway and settles callbacks."""

    def __init__(self, session: AsyncSession, gateway: PaymentGateway) -> None:
        super().__init__(session)
        self.gateway = gateway
        self.card_repo = CardRepository(session)
        self.invoice_repo = InvoiceRepository(session)
        self.record_repo = PaymentRecordRepository(session)
        self.recorder = PaymentRecorder(session)

    async def start_period_payment(
        self,
        user_id: str,
        card_id: int,
        period_index: int | None = None,
    ) -> Invoice:
        """
        Start paying one period of the user's own card.

        The invoice is stored before the gateway is called so a fast
        callback can always find it.

        Args:
            user_id: Current user
            card_id: Card to pay (must belong to ``user_id``)
            period_index: Period to pay, defaults to the first unpaid one

        Returns:
            Pending invoice carrying the gateway redirect URL

        Raises:
            CardNotFound: Unknown card or a card of another user
            PeriodOutOfRange, PeriodAlreadyPaid, InvalidScheme,
            CardNotPayable: Period cannot be paid
            PaymentInitiationFailed: Gateway refused or errored
        """
        invoice = await self._create_invoice(user_id, card_id, period_index)

        try:
            response = await self.gateway.start_payment(
                txid=invoice.gateway_txid,
                amount=invoice.amount,
                card_id=invoice.card_id,
                period_index=invoice.period_index,
                method=invoice.payment_method,
            )
        except Exception as e:
            await self._fail_invoice(invoice.id, str(e))
            raise PaymentInitiationFailed(
                txid=invoice.gateway_txid, error=str(e)
            ) from e

        if not response.success or not response.redirect_url:
            error = response.error or "Gateway returned no redirect URL"
            await self._fail_invoice(invoice.id, error)
            raise PaymentInitiationFailed(
                txid=invoice.gateway_txid, error=error
            )

        return await self._attach_redirect(invoice.id, response.redirect_url)

    async def handle_gateway_callback(
        self,
        gateway_txid: str,
        succeeded: bool,
        failure_reason: str | None = None,
    ) -> Invoice:
        """
        Settle an invoice from the gateway callback.

        Callbacks may arrive more than once; a settled invoice is returned
        unchanged and a paid period is never paid twice.
        A successful payment for a card or scheme that stopped accepting
        payments after the invoice was created is not booked; the invoice
        is marked ``rejected`` so the amount can be refunded.

        Args:
            gateway_txid: Transaction reference from ``start_period_payment``
            succeeded: Gateway outcome
            failure_reason: Gateway message for failures

        Returns:
            Settled invoice

        Raises:
            InvoiceNotFound: Unknown transaction reference
        """
        try:
            return await self._settle(gateway_txid, succeeded, failure_reason)
        except IntegrityError:
            # A concurrent delivery settled the same period first
            return await self._settle(gateway_txid, succeeded, failure_reason)

    async def get_invoice(self, gateway_txid: str) -> Invoice:
        """
        Look up an invoice by its gateway transaction reference.

        Raises:
            InvoiceNotFound: Unknown transaction reference
        """
        invoice = await self.invoice_repo.get_by_txid(gateway_txid)
        if not invoice:
            raise InvoiceNotFound(txid=gateway_txid)
        return invoice

    @transaction
    async def _create_invoice(
        self, user_id: str, card_id: int, period_index: int | None
    ) -> Invoice:
        card = await self.card_repo.get_user_card(card_id, user_id)
        if not card:
            raise CardNotFound(card_id=card_id)
        scheme = card.scheme

        paid = await self.record_repo.get_completed_periods(card.id)
        if period_index is None:
            period_index = next(
                (p for p in range(1, scheme.duration + 1) if p not in paid),
                scheme.duration,
            )

        check_period(scheme, card.id, period_index)
        if period_index in paid:
            raise PeriodAlreadyPaid(card_id=card.id, period_index=period_index)
        check_payable(card, scheme)

        invoice = await self.invoice_repo.create(
            user_id=user_id,
            card_id=card.id,
            period_index=period_index,
            amount=scheme.subscription_amount,
            payment_method=card.payment_method,
            gateway_txid=generate_txid(),
            status=InvoiceStatus.PENDING.value,
        )
        self.logger.info(
            "Invoice created",
            extra={
                "invoice_id": invoice.id,
                "card_id": card.id,
                "period": period_index,
                "amount": invoice.amount,
            },
        )
        return invoice

    @transaction
    async def _attach_redirect(self, invoice_id: int, url: str) -> Invoice:
        invoice = await self.invoice_repo.get_for_update(invoice_id)
        return await self.invoice_repo.update(invoice, redirect_url=url)

    @transaction
    async def _fail_invoice(self, invoice_id: int, error: str) -> None:
        invoice = await self.invoice_repo.get_for_update(invoice_id)
        await self.invoice_repo.update(
            invoice,
            status=InvoiceStatus.FAILED.value,
            failure_reason=error,
            settled_at=utc_now(),
        )
        self.logger.warning(
            "Payment initiation failed",
            extra={"invoice_id": invoice_id, "error": error},
        )

    @transaction
    async def _settle(
        self,
        gateway_txid: str,
        succeeded: bool,
        failure_reason: str | None,
    ) -> Invoice:
        invoice = await self.invoice_repo.get_by_txid_for_update(gateway_txid)
        if not invoice:
            raise InvoiceNotFound(txid=gateway_txid)

        if invoice.status != InvoiceStatus.PENDING.value:
            self.logger.info(
                "Callback for settled invoice ignored",
                extra={"invoice_id": invoice.id, "status": invoice.status},
            )
            return invoice

        now = utc_now()
        if succeeded:
            try:
                result = await self.recorder.apply_payment(
                    invoice.card_id,
                    invoice.period_index,
                    invoice.amount,
                    invoice.payment_method,
                    idempotent=True,
                    gateway_txid=gateway_txid,
                )
            except (CardNotPayable, InvalidScheme) as e:
                return await self._reject(invoice, e)
            invoice = await self.invoice_repo.update(
                invoice,
                status=InvoiceStatus.PAID.value,
                payment_record_id=result.payment_id,
                settled_at=now,
            )
        else:
            already_paid = await self.record_repo.get_completed(
                invoice.card_id, invoice.period_index
            )
            if already_paid is None:
                await self.recorder.apply_failed_payment(
                    invoice.card_id,
                    invoice.period_index,
                    invoice.amount,
                    invoice.payment_method,
                    failure_reason,
                    gateway_txid=gateway_txid,
                )
            invoice = await self.invoice_repo.update(
                invoice,
                status=InvoiceStatus.FAILED.value,
                failure_reason=failure_reason,
                settled_at=now,
            )

        self.logger.info(
            "Invoice settled",
            extra={
                "invoice_id": invoice.id,
                "status": invoice.status,
                "payment_status": (
                    PaymentRecordStatus.COMPLETED.value
                    if succeeded
                    else PaymentRecordStatus.FAILED.value
                ),
            },
        )
        return invoice

    async def _reject(self, invoice: Invoice, error: ChitFundError) -> Invoice:
        invoice = await self.invoice_repo.update(
            invoice,
            status=InvoiceStatus.REJECTED.value,
            failure_reason=error.message,
            settled_at=utc_now(),
        )
        self.logger.warning(
            "Paid invoice rejected, refund required",
            extra={
                "invoice_id": invoice.id,
                "card_id": invoice.card_id,
                "period": invoice.period_index,
                "amount": invoice.amount,
                "kind": error.kind,
                **error.context,
            },
        )
        return invoice
