"""
Integration tests for the scheme catalog.

Tests cover:
- Draft creation with prizes
- Draft-only edits
- Lifecycle transitions
- Prize rank rules
"""

from datetime import timedelta

import pytest

from chitfund.models import SchemeStatus
from chitfund.services.scheme import SchemeCatalogService
from chitfund.utils.datetime_utils import utc_now
from chitfund.utils.exceptions import (
    InvalidScheme,
    InvalidTransition,
    SchemeNotFound,
)


def definition(**overrides) -> dict:
    data = {
        "name": "Diwali Gold",
        "subscription_amount": 250000,
        "subscription_cycle": "monthly",
        "duration": 11,
        "number_of_winners": 2,
        "start_date": utc_now().date(),
        "prizes": [
            {"rank": 1, "name": "Gold coin 10g"},
            {"rank": 2, "name": "Cash", "prize_type": "money", "cash_amount": 500000},
        ],
    }
    data.update(overrides)
    return data


class TestCreateScheme:
    """Test scheme creation and lookup."""

    @pytest.mark.asyncio
    async def test_created_as_draft_with_prizes(self, session):
        catalog = SchemeCatalogService(session)

        scheme = await catalog.create_scheme(definition())
        prizes = await catalog.list_prizes(scheme.id)

        assert scheme.status == SchemeStatus.DRAFT
        assert scheme.subscription_amount == 250000
        assert [p.rank for p in prizes] == [1, 2]
        assert prizes[1].cash_amount == 500000

    @pytest.mark.asyncio
    async def test_unknown_scheme(self, session):
        with pytest.raises(SchemeNotFound):
            await SchemeCatalogService(session).get_scheme(999)

    @pytest.mark.asyncio
    async def test_list_by_status(self, session, scheme_factory):
        draft = await scheme_factory(status=SchemeStatus.DRAFT, name="Draft")
        active = await scheme_factory(name="Live")
        catalog = SchemeCatalogService(session)

        listed = await catalog.list_schemes(SchemeStatus.ACTIVE)

        assert [s.id for s in listed] == [active.id]
        assert draft.id not in {s.id for s in listed}


class TestUpdateScheme:
    """Test draft edits."""

    @pytest.mark.asyncio
    async def test_edit_draft(self, session):
        catalog = SchemeCatalogService(session)
        scheme = await catalog.create_scheme(
            definition(end_date=utc_now().date() + timedelta(days=400))
        )

        updated = await catalog.update_scheme(
            scheme.id,
            {"subscription_amount": 300000, "end_date": None},
        )

        assert updated.subscription_amount == 300000
        assert updated.end_date is None
        assert updated.duration == 11

    @pytest.mark.asyncio
    async def test_active_scheme_is_frozen(self, session, scheme_factory):
        scheme = await scheme_factory()
        scheme_id = scheme.id
        catalog = SchemeCatalogService(session)

        with pytest.raises(InvalidScheme):
            await catalog.update_scheme(scheme_id, {"duration": 6})

        reloaded = await catalog.get_scheme(scheme_id)
        assert reloaded.duration == 3

    @pytest.mark.asyncio
    async def test_winners_below_prize_rank(self, session):
        catalog = SchemeCatalogService(session)
        scheme = await catalog.create_scheme(definition())

        with pytest.raises(InvalidScheme):
            await catalog.update_scheme(scheme.id, {"number_of_winners": 1})


class TestSchemeLifecycle:
    """Test status transitions."""

    @pytest.mark.asyncio
    async def test_activate_pause_resume(self, session, scheme_factory):
        scheme = await scheme_factory(status=SchemeStatus.DRAFT)
        catalog = SchemeCatalogService(session)

        for status in ("active", "paused", "active", "completed"):
            scheme = await catalog.set_scheme_status(scheme.id, status)
            assert scheme.status == status

    @pytest.mark.asyncio
    async def test_draft_cannot_complete(self, session, scheme_factory):
        scheme = await scheme_factory(status=SchemeStatus.DRAFT)

        with pytest.raises(InvalidTransition):
            await SchemeCatalogService(session).set_scheme_status(
                scheme.id, SchemeStatus.COMPLETED
            )

    @pytest.mark.asyncio
    async def test_cancelled_is_terminal(self, session, scheme_factory):
        scheme = await scheme_factory(status=SchemeStatus.CANCELLED)

        with pytest.raises(InvalidTransition):
            await SchemeCatalogService(session).set_scheme_status(
                scheme.id, SchemeStatus.ACTIVE
            )

    @pytest.mark.asyncio
    async def test_unknown_status(self, session, scheme_factory):
        scheme = await scheme_factory()

        with pytest.raises(InvalidTransition):
            await SchemeCatalogService(session).set_scheme_status(
                scheme.id, "archived"
            )


class TestPrizes:
    """Test prize attachment."""

    @pytest.mark.asyncio
    async def test_add_prize_to_active_scheme(self, session, scheme_factory):
        scheme = await scheme_factory(number_of_winners=2)
        catalog = SchemeCatalogService(session)

        prize = await catalog.add_prize(scheme.id, {"rank": 2, "name": "Bike"})

        assert prize.scheme_id == scheme.id
        assert prize.rank == 2

    @pytest.mark.asyncio
    async def test_rank_above_winners(self, session, scheme_factory):
        scheme = await scheme_factory(number_of_winners=1)

        with pytest.raises(InvalidScheme):
            await SchemeCatalogService(session).add_prize(
                scheme.id, {"rank": 2, "name": "Bike"}
            )

    @pytest.mark.asyncio
    async def test_rank_taken(self, session, scheme_factory):
        scheme = await scheme_factory(
            number_of_winners=1, prizes=[{"rank": 1, "name": "Car"}]
        )

        with pytest.raises(InvalidScheme):
            await SchemeCatalogService(session).add_prize(
                scheme.id, {"rank": 1, "name": "Bike"}
            )

    @pytest.mark.asyncio
    async def test_finished_scheme(self, session, scheme_factory):
        scheme = await scheme_factory(status=SchemeStatus.COMPLETED)

        with pytest.raises(InvalidScheme):
            await SchemeCatalogService(session).add_prize(
                scheme.id, {"rank": 1, "name": "Car"}
            )
