"""
Winner service.

Records admin-selected prize winners and moves them through delivery.
"""

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.config.business_constants import WINNER_TRANSITIONS
from chitfund.models.enums import SchemeStatus, WinnerStatus
from chitfund.models.winner import Winner
from chitfund.repositories.scheme_repository import (
    PrizeRepository,
    SchemeRepository,
)
from chitfund.repositories.winner_repository import WinnerRepository
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.winner.eligibility import WinnerEligibility
from chitfund.utils.datetime_utils import utc_now
from chitfund.utils.exceptions import (
    DuplicateWinner,
    InvalidScheme,
    InvalidTransition,
    NotEligible,
    SchemeNotFound,
    TooManyWinners,
    WinnerNotFound,
)


class WinnerService(BaseService):
    """Winner eligibility, selection and status progression."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.scheme_repo = SchemeRepository(session)
        self.prize_repo = PrizeRepository(session)
        self.winner_repo = WinnerRepository(session)
        self.eligibility = WinnerEligibility(session)

    async def list_eligible_cards(self, scheme_id: int) -> list[int]:
        """Card IDs eligible for the scheme's draw, in draw order."""
        return await self.eligibility.list_eligible_cards(scheme_id)

    async def list_winners(
        self,
        scheme_id: int,
        status: WinnerStatus | str | None = None,
    ) -> list[Winner]:
        """Winners of a scheme by rank, optionally filtered by status."""
        return await self.winner_repo.get_by_scheme(
            scheme_id, WinnerStatus(status).value if status else None
        )

    @transaction
    async def select_winners(
        self,
        scheme_id: int,
        card_ids: list[int],
        created_by: str | None = None,
    ) -> list[Winner]:
        """
        Record a batch of winners, all or nothing.

        Ranks continue after the highest rank already assigned. Cancelled
        winners keep their rank and slot.

        Args:
            scheme_id: Scheme ID
            card_ids: Cards chosen by the admin, in rank order
            created_by: Admin user ID

        Returns:
            Created winners in rank order

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidScheme: Scheme is a draft or cancelled
            DuplicateWinner: Card repeated or already a winner
            NotEligible: Card not in the eligible pool
            TooManyWinners: Batch exceeds the remaining slots
        """
        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        if scheme.status in (
            SchemeStatus.DRAFT.value,
            SchemeStatus.CANCELLED.value,
        ):
            raise InvalidScheme(
                "Winners cannot be selected for this scheme",
                scheme_id=scheme_id,
                status=scheme.status,
            )

        if not card_ids:
            return []

        if len(set(card_ids)) != len(card_ids):
            raise DuplicateWinner(
                "A card appears more than once in the selection",
                scheme_id=scheme_id,
            )
        if await self.winner_repo.get_card_ids(scheme_id) & set(card_ids):
            raise DuplicateWinner(scheme_id=scheme_id)

        eligible = {
            card.id: card
            for card in await self.eligibility.list_eligible(scheme_id)
        }
        not_eligible = [cid for cid in card_ids if cid not in eligible]
        if not_eligible:
            raise NotEligible(
                scheme_id=scheme_id, card_ids=not_eligible
            )

        existing_count, max_rank = await self.winner_repo.get_slot_usage(
            scheme_id
        )
        if existing_count + len(card_ids) > scheme.number_of_winners:
            raise TooManyWinners(
                f"Only {scheme.number_of_winners - existing_count} "
                f"winner slot(s) left",
                scheme_id=scheme_id,
                requested=len(card_ids),
            )

        ranks = list(range(max_rank + 1, max_rank + 1 + len(card_ids)))
        prizes = await self.prize_repo.get_by_ranks(scheme_id, ranks)
        now = utc_now()

        winners = []
        try:
            for rank, card_id in zip(ranks, card_ids):
                prize = prizes.get(rank)
                winners.append(await self.winner_repo.create(
                    scheme_id=scheme_id,
                    card_id=card_id,
                    user_id=eligible[card_id].user_id,
                    prize_id=prize.id if prize else None,
                    rank=rank,
                    status=WinnerStatus.PENDING.value,
                    win_date=now,
                    created_by=created_by,
                ))
        except IntegrityError:
            raise DuplicateWinner(scheme_id=scheme_id) from None

        self.logger.info(
            "Winners selected",
            extra={
                "scheme_id": scheme_id,
                "ranks": ranks,
                "admin": created_by,
            },
        )
        return winners

    @transaction
    async def set_winner_status(
        self,
        winner_id: int,
        new_status: WinnerStatus | str,
        notes: str | None = None,
        delivery_address: str | None = None,
    ) -> Winner:
        """
        Move a winner along pending -> claimed -> delivered, or cancel.

        Raises:
            WinnerNotFound: Unknown winner
            InvalidTransition: Not allowed from the current status
        """
        try:
            target = WinnerStatus(new_status)
        except ValueError:
            raise InvalidTransition(
                f"Unknown winner status: {new_status}"
            ) from None

        winner = await self.winner_repo.get_for_update(winner_id)
        if not winner:
            raise WinnerNotFound(winner_id=winner_id)

        current = WinnerStatus(winner.status)
        if target not in WINNER_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Winner cannot move from {current.value} to {target.value}",
                winner_id=winner_id,
            )

        changes: dict = {"status": target.value}
        if target == WinnerStatus.CLAIMED:
            changes["claimed_at"] = utc_now()
        elif target == WinnerStatus.DELIVERED:
            changes["delivered_at"] = utc_now()
        if notes is not None:
            changes["notes"] = notes
        if delivery_address is not None:
            changes["delivery_address"] = delivery_address

        winner = await self.winner_repo.update(winner, **changes)
        self.logger.info(
            "Winner status changed",
            extra={
                "winner_id": winner_id,
                "from": current.value,
                "to": target.value,
            },
        )
        return winner
