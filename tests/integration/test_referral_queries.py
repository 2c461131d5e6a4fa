"""
Integration tests for referral queries and level configuration.

Tests cover:
- Downline and direct referrals
- Commission history
- Level rows (upsert)
"""

import pytest

from chitfund.services.card import CardLedgerService
from chitfund.services.referral import ReferralLevelService, ReferralQueryManager


@pytest.fixture
async def tree(scheme_factory, card_factory):
    """alice -> bob -> carol, alice -> dave."""
    scheme = await scheme_factory()
    a = await card_factory("alice", scheme)
    b = await card_factory("bob", scheme, referrer=a)
    c = await card_factory("carol", scheme, referrer=b)
    d = await card_factory("dave", scheme, referrer=a)
    return scheme, a, b, c, d


class TestReferralQueries:
    """Test ReferralQueryManager."""

    @pytest.mark.asyncio
    async def test_downline(self, session, tree):
        scheme, _, b, c, d = tree
        queries = ReferralQueryManager(session)

        downline = await queries.get_downline("alice", scheme.id)
        direct = await queries.get_direct_referrals("alice")

        assert [card.id for card in downline] == [b.id, c.id, d.id]
        assert [card.id for card in direct] == [b.id, d.id]

    @pytest.mark.asyncio
    async def test_counts(self, session, tree):
        _, _, _, c, _ = tree
        await CardLedgerService(session).set_status(
            c.id, "paused", reason="on leave"
        )

        counts = await ReferralQueryManager(session).get_referral_counts(
            "alice"
        )

        assert (counts.l1_total, counts.l1_active) == (2, 2)
        assert (counts.l2_total, counts.l2_active) == (1, 0)

    @pytest.mark.asyncio
    async def test_commission_history(self, session, tree, pay_periods):
        _, _, b, c, _ = tree
        await pay_periods(b.id, [1])
        await pay_periods(c.id, [1, 2])
        queries = ReferralQueryManager(session)

        history = await queries.get_commission_history("alice")
        indirect = await queries.get_commission_history(
            "alice", level="indirect"
        )
        latest = await queries.get_commission_history("alice", limit=1)

        assert [e.amount for e in history] == [50, 50, 100]
        assert [e.source_card_id for e in indirect] == [c.id, c.id]
        assert latest == history[:1]
        assert await queries.get_income_totals("alice") == {
            "direct": 100,
            "indirect": 100,
        }


class TestUserCards:
    """Test card listing per user."""

    @pytest.mark.asyncio
    async def test_list_user_cards(self, session, scheme_factory, card_factory):
        gold = await scheme_factory(name="Gold")
        silver = await scheme_factory(name="Silver")
        first = await card_factory("alice", gold)
        second = await card_factory("alice", silver)
        ledger = CardLedgerService(session)

        assert [c.id for c in await ledger.list_user_cards("alice")] == [
            first.id,
            second.id,
        ]
        assert [
            c.id for c in await ledger.list_user_cards("alice", silver.id)
        ] == [second.id]


class TestReferralLevels:
    """Test ReferralLevelService."""

    @pytest.mark.asyncio
    async def test_upsert(self, session):
        service = ReferralLevelService(session)

        await service.set_level({"level": 2, "commission_bps": 400})
        await service.set_level({"level": 1, "commission_bps": 800})
        updated = await service.set_level(
            {"level": 1, "commission_bps": 900}, created_by="admin"
        )

        levels = await service.list_levels()
        assert [(lvl.level, lvl.commission_bps) for lvl in levels] == [
            (1, 900),
            (2, 400),
        ]
        assert updated.id == levels[0].id
