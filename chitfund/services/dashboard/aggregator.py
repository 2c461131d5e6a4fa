"""
Dashboard aggregator.

Read-only rollups for user and admin dashboards. Nothing here writes.
"""

from dataclasses import dataclass, field

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.models.enums import CommissionLevel, SubscriptionStatus
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.commission_repository import CommissionRepository
from chitfund.repositories.payment_record_repository import (
    PaymentRecordRepository,
)
from chitfund.repositories.scheme_repository import SchemeRepository
from chitfund.repositories.winner_repository import WinnerRepository
from chitfund.services.payment.status import PaymentStatusCalculator
from chitfund.services.referral.query_manager import (
    ReferralCounts,
    ReferralQueryManager,
)
from chitfund.services.scheme.periods import current_period
from chitfund.utils.exceptions import SchemeNotFound


@dataclass
class CardSummary:
    """One card line on the user dashboard."""

    card_id: int
    scheme_id: int
    scheme_name: str
    subscription_status: str
    payment_status: str
    payments_made: int
    duration: int
    wallet_balance: int
    commission_balance: int


@dataclass
class UserDashboard:
    """Totals shown to a user. Amounts in minor units."""

    user_id: str
    total_wallet_balance: int = 0
    commission_wallet_balance: int = 0
    total_cards: int = 0
    active_cards: int = 0
    referrals: ReferralCounts = field(default_factory=ReferralCounts)
    direct_income: int = 0
    indirect_income: int = 0
    cards: list[CardSummary] = field(default_factory=list)

    @property
    def total_income(self) -> int:
        return self.direct_income + self.indirect_income


@dataclass
class CardStats:
    """Admin card statistics across all schemes."""

    total_cards: int
    by_subscription_status: dict[str, int]
    by_payment_status: dict[str, int]
    total_wallet_balance: int
    total_commission_balance: int
    total_payments_made: int


@dataclass
class SchemeStats:
    """Admin statistics of one scheme."""

    scheme_id: int
    status: str
    current_period: int
    enrolled_cards: int
    active_cards: int
    completed_payments: int
    collected_amount: int
    commission_paid: int
    winners_selected: int
    winners_remaining: int


class DashboardAggregator:
    """Builds dashboard projections."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.card_repo = CardRepository(session)
        self.commission_repo = CommissionRepository(session)
        self.record_repo = PaymentRecordRepository(session)
        self.scheme_repo = SchemeRepository(session)
        self.winner_repo = WinnerRepository(session)
        self.referral_queries = ReferralQueryManager(session)
        self.status_calculator = PaymentStatusCalculator(session)

    async def user_dashboard(self, user_id: str) -> UserDashboard:
        """
        Dashboard of one user.

        Args:
            user_id: Current user

        Returns:
            Wallet totals, card list, referral counts and income
        """
        cards = await self.card_repo.get_by_user(user_id)
        income = await self.commission_repo.get_income_totals(user_id)
        statuses = [await self._payment_status(c) for c in cards]

        return UserDashboard(
            user_id=user_id,
            total_wallet_balance=sum(c.total_wallet_balance for c in cards),
            commission_wallet_balance=sum(
                c.commission_wallet_balance for c in cards
            ),
            total_cards=len(cards),
            active_cards=sum(
                1
                for c in cards
                if c.subscription_status == SubscriptionStatus.ACTIVE.value
            ),
            referrals=await self.referral_queries.get_referral_counts(user_id),
            direct_income=income[CommissionLevel.DIRECT.value],
            indirect_income=income[CommissionLevel.INDIRECT.value],
            cards=[
                CardSummary(
                    card_id=c.id,
                    scheme_id=c.scheme_id,
                    scheme_name=c.scheme.name,
                    subscription_status=c.subscription_status,
                    payment_status=status,
                    payments_made=c.total_payments_made,
                    duration=c.scheme.duration,
                    wallet_balance=c.total_wallet_balance,
                    commission_balance=c.commission_wallet_balance,
                )
                for c, status in zip(cards, statuses)
            ],
        )

    async def card_stats(self) -> CardStats:
        """Card statistics for the admin console."""
        by_status = await self.card_repo.count_by_subscription_status()
        totals = await self.card_repo.get_totals()

        by_payment: dict[str, int] = {}
        for card in await self.card_repo.find_by():
            status = await self._payment_status(card)
            by_payment[status] = by_payment.get(status, 0) + 1

        return CardStats(
            total_cards=sum(by_status.values()),
            by_subscription_status=by_status,
            by_payment_status=by_payment,
            total_wallet_balance=totals["total_wallet"],
            total_commission_balance=totals["total_commission"],
            total_payments_made=totals["total_payments"],
        )

    async def scheme_stats(self, scheme_id: int) -> SchemeStats:
        """
        Statistics of one scheme.

        Raises:
            SchemeNotFound: Unknown scheme
        """
        scheme = await self.scheme_repo.get_by_id(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)

        by_status = await self.card_repo.count_by_subscription_status(
            scheme_id
        )
        payments = await self.record_repo.get_scheme_totals(scheme_id)
        winners, _ = await self.winner_repo.get_slot_usage(scheme_id)

        return SchemeStats(
            scheme_id=scheme.id,
            status=scheme.status,
            current_period=current_period(scheme),
            enrolled_cards=sum(by_status.values()),
            active_cards=by_status[SubscriptionStatus.ACTIVE.value],
            completed_payments=payments["payments"],
            collected_amount=payments["collected"],
            commission_paid=await self.commission_repo.get_scheme_total(
                scheme_id
            ),
            winners_selected=winners,
            winners_remaining=max(scheme.number_of_winners - winners, 0),
        )

    async def _payment_status(self, card: Card) -> str:
        # The stored value is only refreshed when a payment is written
        status = await self.status_calculator.compute(card, card.scheme)
        return status.value
