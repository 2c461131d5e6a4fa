"""
Card ledger service.

Entry point for card operations: issuance, payments and status changes.
Delegates to the issuer, status manager and payment recorder.
"""

from datetime import date

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.enums import KycStatus, PaymentMethod, SubscriptionStatus
from chitfund.models.payment_record import PaymentRecord
from chitfund.repositories.card_repository import CardRepository
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.card.issuer import CardIssuer
from chitfund.services.card.status_manager import CardStatusManager
from chitfund.services.payment.recorder import PaymentRecorder, PaymentResult
from chitfund.utils.exceptions import CardNotFound


class CardLedgerService(BaseService):
    """
    Card (subscription) ledger.

    One card per user per scheme enrollment. Payments, wallet balances and
    referral commissions all hang off the card.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize card ledger service.

        Args:
            session: Async database session
        """
        super().__init__(session)
        self.card_repo = CardRepository(session)
        self.issuer = CardIssuer(session)
        self.status_manager = CardStatusManager(session)
        self.recorder = PaymentRecorder(session)

    async def get_card(self, card_id: int) -> Card:
        """
        Get card by ID.

        Raises:
            CardNotFound: Unknown card
        """
        card = await self.card_repo.get_by_id(card_id)
        if not card:
            raise CardNotFound(card_id=card_id)
        return card

    async def get_user_card(self, card_id: int, user_id: str) -> Card:
        """Get a card of ``user_id``; other users' cards are not found."""
        card = await self.card_repo.get_user_card(card_id, user_id)
        if not card:
            raise CardNotFound(card_id=card_id)
        return card

    async def list_user_cards(
        self, user_id: str, scheme_id: int | None = None
    ) -> list[Card]:
        return await self.card_repo.get_by_user(user_id, scheme_id)

    @transaction
    async def issue_card(
        self,
        user_id: str,
        scheme_id: int,
        payment_method: PaymentMethod | str,
        referrer_card_id: int | None = None,
        *,
        cardholder_name: str | None = None,
        phone_number: str | None = None,
        mandate_id: str | None = None,
    ) -> Card:
        """Issue a card. See ``CardIssuer.issue``."""
        return await self.issuer.issue(
            user_id,
            scheme_id,
            payment_method,
            referrer_card_id,
            cardholder_name=cardholder_name,
            phone_number=phone_number,
            mandate_id=mandate_id,
        )

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
        """Record a completed period payment. See ``PaymentRecorder``."""
        return await self.recorder.record_payment(
            card_id,
            period_index,
            amount,
            method,
            idempotent=idempotent,
            gateway_txid=gateway_txid,
            on_date=on_date,
        )

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
        """Store a failed payment attempt. See ``PaymentRecorder``."""
        return await self.recorder.record_failed_payment(
            card_id,
            period_index,
            amount,
            method,
            reason,
            gateway_txid=gateway_txid,
            on_date=on_date,
        )

    @transaction
    async def set_status(
        self,
        card_id: int,
        new_status: SubscriptionStatus | str,
        reason: str | None = None,
    ) -> Card:
        """Admin subscription status override."""
        return await self.status_manager.set_status(
            card_id, new_status, reason
        )

    @transaction
    async def set_kyc_status(
        self, card_id: int, new_status: KycStatus | str
    ) -> Card:
        return await self.status_manager.set_kyc_status(card_id, new_status)
