"""
Integration tests for period payments and referral commissions.

Tests cover:
- Recording payments and ledger counters
- Validation (period range, amount, duplicates)
- Idempotent webhook replays
- Direct and indirect commissions and rate resolution
- Failed attempts and the derived payment status
- Rollback of the whole payment when commission writes fail
"""

from unittest.mock import patch

import pytest
from sqlalchemy import select

from chitfund.models import (
    CardPaymentStatus,
    CommissionEntry,
    CommissionLevel,
    PaymentRecord,
    SchemeStatus,
)
from chitfund.repositories.commission_repository import CommissionRepository
from chitfund.services.card import CardLedgerService
from chitfund.services.commission.engine import CommissionEngine
from chitfund.services.payment import PaymentTracker
from chitfund.services.referral import ReferralLevelService
from chitfund.services.scheme import SchemeCatalogService
from chitfund.services.winner import WinnerService
from chitfund.utils.datetime_utils import add_months, utc_now
from chitfund.utils.exceptions import (
    AmountMismatch,
    InvalidScheme,
    PeriodAlreadyPaid,
    PeriodOutOfRange,
)


async def commission_entries(session) -> list[CommissionEntry]:
    result = await session.execute(
        select(CommissionEntry).order_by(CommissionEntry.id)
    )
    return list(result.scalars().all())


class TestRecordPayment:
    """Test completed payments on a single card."""

    @pytest.mark.asyncio
    async def test_organic_card_pays_all_periods(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)

        await pay_periods(a.id, [1, 2, 3])
        await session.refresh(a)

        assert a.total_payments_made == 3
        assert a.total_wallet_balance == 3000
        assert a.commission_wallet_balance == 0
        assert a.payment_status == CardPaymentStatus.PAID
        assert a.last_payment_at is not None
        assert await commission_entries(session) == []
        assert await WinnerService(session).list_eligible_cards(
            scheme.id
        ) == [a.id]

    @pytest.mark.asyncio
    async def test_result_carries_record(
        self, session, scheme_factory, card_factory
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme, payment_method="upi_mandate")

        result = await CardLedgerService(session).record_payment(
            a.id, 1, 1000, gateway_txid="tx-1"
        )

        assert result.created is True
        assert result.commissions == []
        assert result.payment.period_index == 1
        assert result.payment.amount == 1000
        assert result.payment.payment_method == "upi_mandate"
        assert result.payment.gateway_txid == "tx-1"

    @pytest.mark.asyncio
    async def test_period_out_of_range(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        card_id = a.id

        for period in (0, 4):
            with pytest.raises(PeriodOutOfRange):
                await pay_periods(card_id, [period])

        assert await PaymentTracker(session).get_completed_periods(
            card_id
        ) == set()

    @pytest.mark.asyncio
    async def test_amount_mismatch(
        self, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)

        with pytest.raises(AmountMismatch):
            await pay_periods(a.id, [1], amount=999)

    @pytest.mark.asyncio
    async def test_period_already_paid(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        card_id = a.id
        await pay_periods(card_id, [1])

        with pytest.raises(PeriodAlreadyPaid):
            await pay_periods(card_id, [1])

        card = await CardLedgerService(session).get_card(card_id)
        await session.refresh(card)
        assert card.total_payments_made == 1

    @pytest.mark.asyncio
    async def test_cancelled_scheme_rejects_payments(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        await SchemeCatalogService(session).set_scheme_status(
            scheme.id, SchemeStatus.CANCELLED
        )

        with pytest.raises(InvalidScheme):
            await pay_periods(a.id, [1])

    @pytest.mark.asyncio
    async def test_paused_scheme_still_collects(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        await SchemeCatalogService(session).set_scheme_status(
            scheme.id, SchemeStatus.PAUSED
        )

        await pay_periods(a.id, [1])
        await session.refresh(a)

        assert a.total_payments_made == 1

    @pytest.mark.asyncio
    async def test_unpaid_periods(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory(duration=5)
        a = await card_factory("alice", scheme)
        await pay_periods(a.id, [1, 3], amount=1000)

        assert await PaymentTracker(session).get_unpaid_periods(a.id) == [
            2,
            4,
            5,
        ]


class TestIdempotentReplay:
    """Test at-least-once webhook delivery."""

    @pytest.mark.asyncio
    async def test_replay_returns_existing(
        self, session, scheme_factory, card_factory
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        ledger = CardLedgerService(session)

        first = await ledger.record_payment(b.id, 1, 1000, idempotent=True)
        replay = await ledger.record_payment(b.id, 1, 1000, idempotent=True)
        await session.refresh(a)
        await session.refresh(b)

        assert replay.created is False
        assert replay.payment_id == first.payment_id
        assert [e.id for e in replay.commissions] == [
            e.id for e in first.commissions
        ]
        assert b.total_payments_made == 1
        assert a.commission_wallet_balance == 100
        assert len(await commission_entries(session)) == 1


class TestCommissions:
    """Test referral commission payouts."""

    @pytest.mark.asyncio
    async def test_direct_commission(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        await pay_periods(a.id, [1, 2, 3])
        b = await card_factory("bob", scheme, referrer=a)

        await pay_periods(b.id, [1])
        await session.refresh(a)

        assert a.commission_wallet_balance == 100
        entries = await commission_entries(session)
        assert len(entries) == 1
        entry = entries[0]
        assert entry.beneficiary_user_id == "alice"
        assert entry.beneficiary_card_id == a.id
        assert entry.source_card_id == b.id
        assert entry.level == CommissionLevel.DIRECT
        assert entry.rate_bps == 1000
        assert entry.amount == 100

    @pytest.mark.asyncio
    async def test_two_level_chain(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        c = await card_factory("carol", scheme, referrer=b)

        await pay_periods(c.id, [1])
        await session.refresh(a)
        await session.refresh(b)

        assert b.commission_wallet_balance == 100
        assert a.commission_wallet_balance == 50
        entries = await commission_entries(session)
        assert [(e.beneficiary_user_id, e.level, e.amount) for e in entries] == [
            ("bob", "direct", 100),
            ("alice", "indirect", 50),
        ]

    @pytest.mark.asyncio
    async def test_commission_per_payment(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)

        await pay_periods(b.id, [1, 2, 3])
        await session.refresh(a)

        assert a.commission_wallet_balance == 300
        assert len(await commission_entries(session)) == 3

    @pytest.mark.asyncio
    async def test_scheme_override(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory(
            direct_commission_bps=2000, indirect_commission_bps=0
        )
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        c = await card_factory("carol", scheme, referrer=b)

        await pay_periods(c.id, [1])

        entries = await commission_entries(session)
        assert [(e.beneficiary_user_id, e.amount) for e in entries] == [
            ("bob", 200),
        ]

    @pytest.mark.asyncio
    async def test_level_configuration(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        levels = ReferralLevelService(session)
        await levels.set_level({"level": 1, "commission_bps": 700})
        await levels.set_level(
            {"level": 2, "commission_bps": 300, "is_active": False}
        )
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        c = await card_factory("carol", scheme, referrer=b)

        await pay_periods(c.id, [1])

        assert await levels.get_active_rates() == {1: 700}
        entries = await commission_entries(session)
        # Inactive level 2 row falls back to the default rate
        assert [(e.level, e.rate_bps, e.amount) for e in entries] == [
            ("direct", 700, 70),
            ("indirect", 500, 50),
        ]

    @pytest.mark.asyncio
    async def test_snapshot_is_frozen(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        """A referrer's later status change does not re-route commission."""
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        await CardLedgerService(session).set_status(
            a.id, "cancelled", reason="left"
        )

        await pay_periods(b.id, [1])

        entries = await commission_entries(session)
        assert [(e.beneficiary_card_id, e.amount) for e in entries] == [
            (a.id, 100)
        ]


class TestAtomicity:
    """A failure anywhere in recordPayment leaves no trace."""

    @staticmethod
    async def ledger_state(session, card_ids):
        ledger = CardLedgerService(session)
        state = []
        for card_id in card_ids:
            card = await ledger.get_card(card_id)
            await session.refresh(card)
            state.append((
                card.total_payments_made,
                card.total_wallet_balance,
                card.commission_wallet_balance,
            ))
        return state

    @staticmethod
    async def payment_records(session) -> list[PaymentRecord]:
        result = await session.execute(select(PaymentRecord))
        return list(result.scalars().all())

    @pytest.mark.asyncio
    async def test_commission_failure_rolls_back_payment(
        self, session, scheme_factory, card_factory
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        ids = [a.id, b.id]

        with patch.object(
            CommissionEngine,
            "pay_for_payment",
            side_effect=RuntimeError("commission ledger unavailable"),
        ):
            with pytest.raises(RuntimeError):
                await CardLedgerService(session).record_payment(
                    ids[1], 1, 1000
                )

        assert await self.payment_records(session) == []
        assert await commission_entries(session) == []
        assert await self.ledger_state(session, ids) == [(0, 0, 0), (0, 0, 0)]

    @pytest.mark.asyncio
    async def test_second_level_failure_rolls_back_first_level(
        self, session, scheme_factory, card_factory
    ):
        """The direct commission already credited is undone too."""
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        c = await card_factory("carol", scheme, referrer=b)
        ids = [a.id, b.id, c.id]
        real_create = CommissionRepository.create

        async def create_direct_only(self, **data):
            if data["level"] == CommissionLevel.INDIRECT.value:
                raise RuntimeError("commission ledger unavailable")
            return await real_create(self, **data)

        with patch.object(CommissionRepository, "create", create_direct_only):
            with pytest.raises(RuntimeError):
                await CardLedgerService(session).record_payment(
                    ids[2], 1, 1000
                )

        assert await self.payment_records(session) == []
        assert await commission_entries(session) == []
        assert await self.ledger_state(session, ids) == [(0, 0, 0)] * 3

    @pytest.mark.asyncio
    async def test_retry_after_failure_succeeds(
        self, session, scheme_factory, card_factory
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        ids = [a.id, b.id]
        ledger = CardLedgerService(session)

        with patch.object(
            CommissionEngine,
            "pay_for_payment",
            side_effect=RuntimeError("commission ledger unavailable"),
        ):
            with pytest.raises(RuntimeError):
                await ledger.record_payment(ids[1], 1, 1000)

        result = await ledger.record_payment(ids[1], 1, 1000)

        assert result.created
        assert [e.amount for e in result.commissions] == [100]
        assert await self.ledger_state(session, ids) == [
            (0, 0, 100),
            (1, 1000, 0),
        ]


class TestFailedPayments:
    """Test failed attempts and derived status."""

    @pytest.mark.asyncio
    async def test_failed_then_paid(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        b = await card_factory("bob", scheme, referrer=a)
        ledger = CardLedgerService(session)

        record = await ledger.record_failed_payment(
            b.id, 1, 1000, reason="insufficient funds"
        )
        await session.refresh(b)

        assert record.status == "failed"
        assert record.failure_reason == "insufficient funds"
        assert b.payment_status == CardPaymentStatus.FAILED
        assert b.total_payments_made == 0
        assert await commission_entries(session) == []

        await pay_periods(b.id, [1])
        await session.refresh(b)

        assert b.payment_status == CardPaymentStatus.PAID
        assert b.total_payments_made == 1

    @pytest.mark.asyncio
    async def test_failure_after_success(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        await pay_periods(a.id, [1])

        with pytest.raises(PeriodAlreadyPaid):
            await CardLedgerService(session).record_failed_payment(
                a.id, 1, 1000
            )

    @pytest.mark.asyncio
    async def test_overdue(self, session, scheme_factory, card_factory):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        later = add_months(utc_now().date(), 2)

        await CardLedgerService(session).record_payment(
            a.id, 3, 1000, on_date=later
        )
        await session.refresh(a)

        assert a.payment_status == CardPaymentStatus.OVERDUE

    @pytest.mark.asyncio
    async def test_counter_matches_records(
        self, session, scheme_factory, card_factory, pay_periods
    ):
        scheme = await scheme_factory()
        a = await card_factory("alice", scheme)
        card_id = a.id
        ledger = CardLedgerService(session)
        await ledger.record_failed_payment(card_id, 1, 1000)
        await pay_periods(card_id, [1, 2])
        with pytest.raises(PeriodAlreadyPaid):
            await pay_periods(card_id, [2])

        card = await ledger.get_card(card_id)
        await session.refresh(card)
        records = (
            await session.execute(
                select(PaymentRecord).where(
                    PaymentRecord.card_id == card_id,
                    PaymentRecord.status == "completed",
                )
            )
        ).scalars().all()

        assert card.total_payments_made == len(records) == 2
        assert card.total_wallet_balance == 2000
