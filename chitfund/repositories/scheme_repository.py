"""
Scheme repository.

Data access layer for Scheme and Prize models.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.prize import Prize
from chitfund.models.scheme import Scheme
from chitfund.repositories.base import BaseRepository


class SchemeRepository(BaseRepository[Scheme]):
    """Scheme repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize scheme repository."""
        super().__init__(Scheme, session)

    async def list_schemes(self, status: str | None = None) -> list[Scheme]:
        """
        List schemes, newest first.

        Args:
            status: Optional status filter

        Returns:
            List of schemes
        """
        stmt = select(Scheme).order_by(Scheme.created_at.desc(), Scheme.id.desc())
        if status:
            stmt = stmt.where(Scheme.status == status)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())


class PrizeRepository(BaseRepository[Prize]):
    """Prize repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize prize repository."""
        super().__init__(Prize, session)

    async def get_by_scheme(
        self, scheme_id: int, active_only: bool = True
    ) -> list[Prize]:
        """Get prizes of a scheme ordered by rank."""
        stmt = (
            select(Prize)
            .where(Prize.scheme_id == scheme_id)
            .order_by(Prize.rank)
        )
        if active_only:
            stmt = stmt.where(Prize.is_active == True)  # noqa: E712

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_by_ranks(
        self, scheme_id: int, ranks: list[int]
    ) -> dict[int, Prize]:
        """Map rank -> active prize for the given ranks."""
        if not ranks:
            return {}

        stmt = select(Prize).where(
            Prize.scheme_id == scheme_id,
            Prize.rank.in_(ranks),
            Prize.is_active == True,  # noqa: E712
        )
        result = await self.session.execute(stmt)
        return {prize.rank: prize for prize in result.scalars().all()}
