"""
Integration tests for the downline period report.

Tests cover:
- Ordering (latest paid first, unpaid last)
- Level labels and per-card status
- Period validation
"""

import pytest

from chitfund.models import CardPaymentStatus, CommissionLevel
from chitfund.services.card import CardLedgerService
from chitfund.services.payment import PaymentTracker
from chitfund.utils.exceptions import PeriodOutOfRange, SchemeNotFound


class TestDownlinePayments:
    """Test PaymentTracker.list_downline_payments."""

    @pytest.mark.asyncio
    async def test_report(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        c = await card_factory("carol", scheme, referrer=a)
        d = await card_factory("dave", scheme, referrer=b)
        e = await card_factory("erin", scheme, referrer=a)

        await pay_periods(b.id, [1])
        await pay_periods(c.id, [1])
        await CardLedgerService(session).record_failed_payment(
            d.id, 1, 1000, reason="mandate revoked"
        )

        report = await PaymentTracker(session).list_downline_payments(
            "alice", scheme.id
        )

        assert [row.child_card_id for row in report] == [c.id, b.id, d.id, e.id]
        assert [row.payment_status for row in report] == [
            CardPaymentStatus.PAID,
            CardPaymentStatus.PAID,
            CardPaymentStatus.FAILED,
            CardPaymentStatus.PENDING,
        ]
        assert [row.level for row in report] == [
            CommissionLevel.DIRECT,
            CommissionLevel.DIRECT,
            CommissionLevel.INDIRECT,
            CommissionLevel.DIRECT,
        ]
        assert report[0].child_name == "Holder carol"
        assert report[0].payment_date is not None
        assert report[0].payment_date.tzinfo is not None
        assert report[2].payment_date is None

    @pytest.mark.asyncio
    async def test_other_period(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        await pay_periods(b.id, [1])

        report = await PaymentTracker(session).list_downline_payments(
            "alice", scheme.id, current_period=2
        )

        assert [row.payment_status for row in report] == [
            CardPaymentStatus.PENDING
        ]

    @pytest.mark.asyncio
    async def test_only_the_users_downline(
        self, session, scheme_factory, card_factory
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        await card_factory("bob", scheme, referrer=a)
        await card_factory("zoe", scheme)

        report = await PaymentTracker(session).list_downline_payments(
            "zoe", scheme.id
        )

        assert report == []

    @pytest.mark.asyncio
    async def test_invalid_period(self, session, scheme_factory):
        scheme = await scheme_factory()

        with pytest.raises(PeriodOutOfRange):
            await PaymentTracker(session).list_downline_payments(
                "alice", scheme.id, current_period=4
            )

    @pytest.mark.asyncio
    async def test_period_zero_is_rejected(self, session, scheme_factory):
        scheme = await scheme_factory()

        with pytest.raises(PeriodOutOfRange):
            await PaymentTracker(session).list_downline_payments(
                "alice", scheme.id, current_period=0
            )

    @pytest.mark.asyncio
    async def test_unknown_scheme(self, session):
        with pytest.raises(SchemeNotFound):
            await PaymentTracker(session).list_downline_payments("alice", 404)
