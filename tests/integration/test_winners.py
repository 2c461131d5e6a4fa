"""
Integration tests for winner eligibility and selection.

Tests cover:
- Eligible pool and its ordering
- Selection errors (duplicate, not eligible, over capacity)
- Rank assignment and prize linking
- Winner status progression
"""

import random

import pytest

from chitfund.models import WinnerStatus
from chitfund.services.card import CardLedgerService
from chitfund.services.winner import WinnerService
from chitfund.utils.exceptions import (
    DuplicateWinner,
    InvalidScheme,
    InvalidTransition,
    NotEligible,
    SchemeNotFound,
    TooManyWinners,
)


PRIZES = [
    {"rank": 1, "name": "Car"},
    {"rank": 2, "name": "Scooter"},
]


@pytest.fixture
def paid_card(card_factory, pay_periods):
    """Issue a card that has paid every period of a 3-period scheme."""

    async def _issue(user_id, scheme):
        card = await card_factory(user_id, scheme)
        await pay_periods(card.id, [1, 2, 3])
        return card

    return _issue


class TestEligibility:
    """Test the eligible pool."""

    @pytest.mark.asyncio
    async def test_pool_rules(
        self, session, scheme_factory, card_factory, pay_periods, paid_card
    ):
        scheme = await scheme_factory(number_of_winners=2)
        a = await paid_card("alice", scheme)
        b = await paid_card("bob", scheme)
        c = await card_factory("carol", scheme)
        await pay_periods(c.id, [1, 2])
        d = await paid_card("dave", scheme)
        ledger = CardLedgerService(session)
        await ledger.set_status(d.id, "paused", reason="dispute")
        await ledger.set_status(b.id, "completed", reason="all periods paid")

        eligible = await WinnerService(session).list_eligible_cards(scheme.id)

        assert eligible == [a.id, b.id]

    @pytest.mark.asyncio
    async def test_unknown_scheme(self, session):
        with pytest.raises(SchemeNotFound):
            await WinnerService(session).list_eligible_cards(404)


class TestSelectWinners:
    """Test winner selection."""

    @pytest.mark.asyncio
    async def test_ranks_and_prizes(self, session, scheme_factory, paid_card):
        scheme = await scheme_factory(number_of_winners=2, prizes=PRIZES)
        a = await paid_card("alice", scheme)
        b = await paid_card("bob", scheme)
        service = WinnerService(session)

        winners = await service.select_winners(
            scheme.id, [b.id, a.id], created_by="admin"
        )

        assert [(w.card_id, w.rank) for w in winners] == [(b.id, 1), (a.id, 2)]
        assert all(w.status == WinnerStatus.PENDING for w in winners)
        assert winners[0].user_id == "bob"
        assert winners[0].prize_id is not None
        assert winners[0].prize_id != winners[1].prize_id
        assert await service.list_eligible_cards(scheme.id) == []

    @pytest.mark.asyncio
    async def test_empty_selection(self, session, scheme_factory):
        scheme = await scheme_factory()

        assert await WinnerService(session).select_winners(scheme.id, []) == []

    @pytest.mark.asyncio
    async def test_repeated_card(self, session, scheme_factory, paid_card):
        scheme = await scheme_factory(number_of_winners=2)
        a = await paid_card("alice", scheme)
        scheme_id, card_id = scheme.id, a.id
        service = WinnerService(session)

        with pytest.raises(DuplicateWinner):
            await service.select_winners(scheme_id, [card_id, card_id])

        assert await service.list_winners(scheme_id) == []

    @pytest.mark.asyncio
    async def test_already_won(self, session, scheme_factory, paid_card):
        scheme = await scheme_factory(number_of_winners=2)
        a = await paid_card("alice", scheme)
        scheme_id, card_id = scheme.id, a.id
        service = WinnerService(session)
        await service.select_winners(scheme_id, [card_id])

        with pytest.raises(DuplicateWinner):
            await service.select_winners(scheme_id, [card_id])

    @pytest.mark.asyncio
    async def test_not_eligible(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        c = await card_factory("carol", scheme)
        await pay_periods(c.id, [1, 2])

        with pytest.raises(NotEligible):
            await WinnerService(session).select_winners(scheme.id, [c.id])

    @pytest.mark.asyncio
    async def test_too_many(self, session, scheme_factory, paid_card):
        scheme = await scheme_factory(number_of_winners=2)
        cards = [await paid_card(user, scheme) for user in ("a", "b", "c")]
        scheme_id = scheme.id
        card_ids = [card.id for card in cards]
        service = WinnerService(session)

        with pytest.raises(TooManyWinners):
            await service.select_winners(scheme_id, card_ids)

        assert await service.list_winners(scheme_id) == []

    @pytest.mark.asyncio
    async def test_draft_scheme(self, session, scheme_factory):
        scheme = await scheme_factory(status="draft")

        with pytest.raises(InvalidScheme):
            await WinnerService(session).select_winners(scheme.id, [1])

    @pytest.mark.asyncio
    async def test_cancelled_winner_keeps_slot(
        self, session, scheme_factory, paid_card
    ):
        scheme = await scheme_factory(number_of_winners=2, prizes=PRIZES)
        a = await paid_card("alice", scheme)
        b = await paid_card("bob", scheme)
        c = await paid_card("carol", scheme)
        scheme_id, b_id, c_id = scheme.id, b.id, c.id
        service = WinnerService(session)

        [first] = await service.select_winners(scheme_id, [a.id])
        await service.set_winner_status(first.id, WinnerStatus.CANCELLED)
        [second] = await service.select_winners(scheme_id, [b_id])

        assert second.rank == 2
        with pytest.raises(TooManyWinners):
            await service.select_winners(scheme_id, [c_id])

        winners = await service.list_winners(scheme_id)
        assert [(w.rank, w.status) for w in winners] == [
            (1, "cancelled"),
            (2, "pending"),
        ]
        assert await service.list_winners(scheme_id, "pending") == [winners[1]]

    @pytest.mark.slow
    @pytest.mark.asyncio
    @pytest.mark.parametrize("seed", [3, 17, 2024])
    async def test_random_batches_respect_capacity(
        self, session, scheme_factory, paid_card, seed
    ):
        rng = random.Random(seed)
        scheme = await scheme_factory(number_of_winners=3)
        scheme_id = scheme.id
        card_ids = [
            (await paid_card(f"user-{i}", scheme)).id for i in range(6)
        ]
        service = WinnerService(session)

        for _ in range(5):
            batch = rng.sample(card_ids, rng.randint(1, 3))
            try:
                await service.select_winners(scheme_id, batch)
            except (DuplicateWinner, TooManyWinners):
                pass

        winners = await service.list_winners(scheme_id)
        assert len(winners) <= 3
        assert [w.rank for w in winners] == list(range(1, len(winners) + 1))
        assert len({w.card_id for w in winners}) == len(winners)


class TestWinnerStatus:
    """Test winner status progression."""

    @pytest.mark.asyncio
    async def test_claim_and_deliver(self, session, scheme_factory, paid_card):
        scheme = await scheme_factory()
        a = await paid_card("alice", scheme)
        service = WinnerService(session)
        [winner] = await service.select_winners(scheme.id, [a.id])
        winner_id = winner.id

        winner = await service.set_winner_status(winner_id, "claimed")
        assert winner.claimed_at is not None

        winner = await service.set_winner_status(
            winner_id, "delivered", delivery_address="12 MG Road, Pune"
        )
        assert winner.delivered_at is not None
        assert winner.delivery_address == "12 MG Road, Pune"

        with pytest.raises(InvalidTransition):
            await service.set_winner_status(winner_id, "cancelled")
