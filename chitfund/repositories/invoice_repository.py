"""
Invoice repository.

Data access layer for Invoice model.
"""

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.invoice import Invoice
from chitfund.repositories.base import BaseRepository


class InvoiceRepository(BaseRepository[Invoice]):
    """Invoice repository."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize invoice repository."""
        super().__init__(Invoice, session)

    async def get_by_txid(self, gateway_txid: str) -> Invoice | None:
        """Get invoice by gateway transaction ID."""
        return await self.get_by(gateway_txid=gateway_txid)

    async def get_by_txid_for_update(self, gateway_txid: str) -> Invoice | None:
        """Get and lock an invoice by gateway transaction ID."""
        stmt = (
            select(Invoice)
            .where(Invoice.gateway_txid == gateway_txid)
            .with_for_update()
        )
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()
