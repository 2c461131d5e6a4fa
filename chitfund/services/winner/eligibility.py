"""
Winner eligibility.

A card may enter a scheme's draw when it is active or completed, has
paid every period and has never been recorded as a winner of the scheme.
"""

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.models.card import Card
from chitfund.repositories.card_repository import CardRepository
from chitfund.repositories.scheme_repository import SchemeRepository
from chitfund.utils.exceptions import SchemeNotFound


class WinnerEligibility:
    """Computes the ordered draw pool of a scheme."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session
        self.card_repo = CardRepository(session)
        self.scheme_repo = SchemeRepository(session)

    async def list_eligible(self, scheme_id: int) -> list[Card]:
        """
        Eligible cards of a scheme.

        Ordering policy: most payments made first, then earliest
        enrollment, then card ID.

        Raises:
            SchemeNotFound: Unknown scheme
        """
        if not await self.scheme_repo.exists(id=scheme_id):
            raise SchemeNotFound(scheme_id=scheme_id)
        return await self.card_repo.get_eligible_for_draw(scheme_id)

    async def list_eligible_cards(self, scheme_id: int) -> list[int]:
        """IDs of eligible cards, in draw order."""
        return [card.id for card in await self.list_eligible(scheme_id)]
