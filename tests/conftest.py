"""Pytest configuration and shared fixtures for all tests."""

import os

# Minimal environment for settings validation; must run before any
# chitfund import
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("ENVIRONMENT", "test")

from collections.abc import AsyncIterator, Awaitable, Callable
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from chitfund.models import Base, Card, Scheme, SchemeStatus
from chitfund.services.card import CardLedgerService
from chitfund.services.scheme import SchemeCatalogService
from chitfund.utils.datetime_utils import utc_now


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock()
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest.fixture
async def engine() -> AsyncIterator[AsyncEngine]:
    """In-memory SQLite engine with all tables created."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
async def session(engine: AsyncEngine) -> AsyncIterator[AsyncSession]:
    """Database session; services commit on it like in production."""
    session_maker = async_sessionmaker(
        bind=engine, class_=AsyncSession, expire_on_commit=False
    )
    async with session_maker() as session:
        yield session


@pytest.fixture
def scheme_factory(
    session: AsyncSession,
) -> Callable[..., Awaitable[Scheme]]:
    """
    Create a scheme and move it to the requested status.

    Defaults: 1000 per period, monthly, 3 periods, 1 winner, starting
    today, active.
    """
    catalog = SchemeCatalogService(session)

    async def _create(
        status: SchemeStatus = SchemeStatus.ACTIVE, **overrides
    ) -> Scheme:
        definition = {
            "name": "Gold Savings",
            "subscription_amount": 1000,
            "subscription_cycle": "monthly",
            "duration": 3,
            "number_of_winners": 1,
            "start_date": utc_now().date(),
        }
        definition.update(overrides)
        scheme = await catalog.create_scheme(definition)

        path = {
            SchemeStatus.DRAFT: [],
            SchemeStatus.ACTIVE: [SchemeStatus.ACTIVE],
            SchemeStatus.PAUSED: [SchemeStatus.ACTIVE, SchemeStatus.PAUSED],
            SchemeStatus.COMPLETED: [
                SchemeStatus.ACTIVE,
                SchemeStatus.COMPLETED,
            ],
            SchemeStatus.CANCELLED: [
                SchemeStatus.ACTIVE,
                SchemeStatus.CANCELLED,
            ],
        }[status]
        for step in path:
            scheme = await catalog.set_scheme_status(scheme.id, step)
        return scheme

    return _create


@pytest.fixture
def card_factory(session: AsyncSession) -> Callable[..., Awaitable[Card]]:
    """Issue a card for a user, optionally under a referrer card."""
    ledger = CardLedgerService(session)

    async def _issue(
        user_id: str,
        scheme: Scheme | int,
        referrer: Card | int | None = None,
        payment_method: str = "upi_onetime",
    ) -> Card:
        scheme_id = scheme if isinstance(scheme, int) else scheme.id
        referrer_id = referrer.id if isinstance(referrer, Card) else referrer
        return await ledger.issue_card(
            user_id,
            scheme_id,
            payment_method,
            referrer_id,
            cardholder_name=f"Holder {user_id}",
        )

    return _issue


@pytest.fixture
def pay_periods(session: AsyncSession) -> Callable[..., Awaitable[None]]:
    """Pay the given periods of a card at the scheme amount."""
    ledger = CardLedgerService(session)

    async def _pay(card_id: int, periods, amount: int = 1000) -> None:
        for period in periods:
            await ledger.record_payment(card_id, period, amount)

    return _pay
