"""
Commission engine.

Pays the frozen referral chain of a card once per completed payment.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.commission_entry import CommissionEntry
from chitfund.models.enums import CommissionLevel, PaymentRecordStatus
from chitfund.models.payment_record import PaymentRecord
from chitfund.models.scheme import Scheme
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.commission_repository import CommissionRepository
from chitfund.services.commission.rates import load_rates
from chitfund.utils.money import apply_bps


class CommissionEngine:
    """
    Creates direct and indirect commission entries for a payment.

    Does not commit: it runs inside the payment recorder's transaction so
    the ledger update and the payout land together or not at all.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize commission engine.

        Args:
            session: Async database session
        """
        self.session = session
        self.card_repo = CardRepository(session)
        self.commission_repo = CommissionRepository(session)

    async def pay_for_payment(
        self,
        card: Card,
        scheme: Scheme,
        payment: PaymentRecord,
    ) -> list[CommissionEntry]:
        """
        Pay L1 and L2 for one completed payment.

        Uses the referral snapshot stored on the card, never the current
        chain. A payment that already has entries gets those entries back
        and nothing new is written.

        Args:
            card: Paying card
            scheme: Card's scheme
            payment: Completed payment record

        Returns:
            Commission entries of this payment (0, 1 or 2)
        """
        if payment.status != PaymentRecordStatus.COMPLETED.value:
            return []

        existing = await self.commission_repo.get_by_source_payment(payment.id)
        if existing:
            logger.info(
                "Commission already paid for payment",
                extra={"payment_id": payment.id, "entries": len(existing)},
            )
            return existing

        if not card.has_referrer and card.ref_l2_user_id is None:
            return []

        rates = await load_rates(self.session, scheme)
        chain = (
            (
                CommissionLevel.DIRECT,
                card.ref_l1_user_id,
                card.ref_l1_card_id,
                rates.direct_bps,
            ),
            (
                CommissionLevel.INDIRECT,
                card.ref_l2_user_id,
                card.ref_l2_card_id,
                rates.indirect_bps,
            ),
        )

        entries: list[CommissionEntry] = []
        for level, user_id, beneficiary_card_id, rate_bps in chain:
            if user_id is None:
                continue

            amount = apply_bps(scheme.subscription_amount, rate_bps)
            if amount <= 0:
                continue

            entry = await self.commission_repo.create(
                beneficiary_user_id=user_id,
                beneficiary_card_id=beneficiary_card_id,
                source_payment_id=payment.id,
                source_card_id=card.id,
                level=level.value,
                rate_bps=rate_bps,
                amount=amount,
            )
            entries.append(entry)

            credited = False
            if beneficiary_card_id is not None:
                credited = await self.card_repo.credit_commission(
                    beneficiary_card_id, amount
                )
            if not credited:
                logger.warning(
                    "Commission recorded without wallet credit",
                    extra={
                        "entry_id": entry.id,
                        "beneficiary": user_id,
                        "level": level.value,
                    },
                )

        logger.info(
            "Commission paid",
            extra={
                "payment_id": payment.id,
                "card_id": card.id,
                "entries": len(entries),
                "total": sum(e.amount for e in entries),
            },
        )
        return entries
