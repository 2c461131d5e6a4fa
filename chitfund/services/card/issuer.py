"""
Card issuance.

Enrolls a user into an active scheme and freezes the referral snapshot.
"""

from loguru import logger
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.enums import (
    CardPaymentStatus,
    KycStatus,
    PaymentMethod,
    SchemeStatus,
    SubscriptionStatus,
)
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.scheme_repository import SchemeRepository
from chitfund.services.referral.chain_manager import ReferralChainManager
from chitfund.utils.exceptions import (
    DuplicateEnrollment,
    InvalidScheme,
    SchemeNotFound,
)


class CardIssuer:
    """Issues cards. Does not commit."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.card_repo = CardRepository(session)
        self.scheme_repo = SchemeRepository(session)
        self.chain_manager = ReferralChainManager(session)

    async def issue(
        self,
        user_id: str,
        scheme_id: int,
        payment_method: PaymentMethod | str,
        referrer_card_id: int | None = None,
        cardholder_name: str | None = None,
        phone_number: str | None = None,
        mandate_id: str | None = None,
    ) -> Card:
        """
        Issue a new card.

        Args:
            user_id: Owning user
            scheme_id: Scheme to enroll into
            payment_method: upi_onetime or upi_mandate
            referrer_card_id: Card the user signed up with, if any
            cardholder_name: Name on the card (defaults to the user ID)
            phone_number: Cardholder phone
            mandate_id: UPI mandate reference

        Returns:
            The new card, active with nothing paid

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidScheme: Scheme is not active or is full
            DuplicateEnrollment: User already holds an open card here
            ReferrerNotFound: Referrer card does not exist
        """
        method = PaymentMethod(payment_method)

        # Row lock serializes issuance per scheme for the participant cap
        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        if scheme.status != SchemeStatus.ACTIVE.value:
            raise InvalidScheme(
                "Cards can only be issued for active schemes",
                scheme_id=scheme_id,
                status=scheme.status,
            )

        if await self.card_repo.get_open_card(user_id, scheme_id):
            raise DuplicateEnrollment(user_id=user_id, scheme_id=scheme_id)

        if scheme.max_participants is not None:
            counts = await self.card_repo.count_by_subscription_status(
                scheme_id
            )
            enrolled = sum(
                counts[status.value]
                for status in (
                    SubscriptionStatus.ACTIVE,
                    SubscriptionStatus.PAUSED,
                    SubscriptionStatus.COMPLETED,
                )
            )
            if enrolled >= scheme.max_participants:
                raise InvalidScheme(
                    "Scheme is full",
                    scheme_id=scheme_id,
                    max_participants=scheme.max_participants,
                )

        snapshot = await self.chain_manager.resolve_snapshot(
            user_id, referrer_card_id
        )

        try:
            card = await self.card_repo.create(
                user_id=user_id,
                scheme_id=scheme_id,
                cardholder_name=cardholder_name or user_id,
                phone_number=phone_number,
                payment_method=method.value,
                mandate_id=mandate_id,
                subscription_status=SubscriptionStatus.ACTIVE.value,
                kyc_status=KycStatus.PENDING.value,
                payment_status=CardPaymentStatus.PENDING.value,
                total_payments_made=0,
                total_wallet_balance=0,
                commission_wallet_balance=0,
                **snapshot.as_card_fields(),
            )
        except IntegrityError:
            # Open-enrollment index caught a concurrent issuance
            raise DuplicateEnrollment(
                user_id=user_id, scheme_id=scheme_id
            ) from None

        logger.info(
            "Card issued",
            extra={
                "card_id": card.id,
                "user_id": user_id,
                "scheme_id": scheme_id,
                "method": method.value,
                "l1": snapshot.l1_user_id,
                "l2": snapshot.l2_user_id,
            },
        )
        return card
