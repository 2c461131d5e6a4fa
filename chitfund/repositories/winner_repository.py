"""
Winner repository.

Data access layer for Winner model.
"""

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.winner import Winner
from chitfund.repositories.base import BaseRepository


class WinnerRepository(BaseRepository[Winner]):
    """Winner repository with specific queries."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize winner repository."""
        super().__init__(Winner, session)

    async def get_by_scheme(
        self, scheme_id: int, status: str | None = None
    ) -> list[Winner]:
        """
        Get winners of a scheme in rank order.

        Args:
            scheme_id: Scheme ID
            status: Optional status filter

        Returns:
            List of winners
        """
        stmt = (
            select(Winner)
            .where(Winner.scheme_id == scheme_id)
            .order_by(Winner.rank)
        )
        if status:
            stmt = stmt.where(Winner.status == status)

        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def get_card_ids(self, scheme_id: int) -> set[int]:
        """Card IDs holding any winner record for the scheme."""
        stmt = select(Winner.card_id).where(Winner.scheme_id == scheme_id)
        result = await self.session.execute(stmt)
        return {row[0] for row in result.all()}

    async def get_slot_usage(self, scheme_id: int) -> tuple[int, int]:
        """
        Get (winner count, highest rank) for a scheme.

        Cancelled winners keep their slot and rank.
        """
        stmt = select(
            func.count(Winner.id),
            func.coalesce(func.max(Winner.rank), 0),
        ).where(Winner.scheme_id == scheme_id)
        row = (await self.session.execute(stmt)).one()
        return int(row[0]), int(row[1])
