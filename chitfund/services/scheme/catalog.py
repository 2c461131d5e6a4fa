"""
Scheme catalog service.

Admin-side management of schemes and their prizes.
"""

from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.config.business_constants import SCHEME_TRANSITIONS
from chitfund.models.enums import SchemeStatus
from chitfund.models.prize import Prize
from chitfund.models.scheme import Scheme
from chitfund.repositories.scheme_period_repository import (
    SchemePeriodRepository,
)
from chitfund.repositories.scheme_repository import (
    PrizeRepository,
    SchemeRepository,
)
from chitfund.services.base_service import BaseService, transaction
from chitfund.services.scheme.schemas import (
    PrizeCreate,
    SchemeCreate,
    SchemeUpdate,
)
from chitfund.utils.datetime_utils import utc_now
from chitfund.utils.exceptions import (
    InvalidScheme,
    InvalidTransition,
    SchemeNotFound,
)


# Columns an update may explicitly clear
_NULLABLE_FIELDS = frozenset({
    "description",
    "max_participants",
    "end_date",
    "direct_commission_bps",
    "indirect_commission_bps",
})


class SchemeCatalogService(BaseService):
    """Create, edit, activate and look up schemes."""

    def __init__(self, session: AsyncSession) -> None:
        super().__init__(session)
        self.scheme_repo = SchemeRepository(session)
        self.prize_repo = PrizeRepository(session)
        self.period_repo = SchemePeriodRepository(session)

    async def get_scheme(self, scheme_id: int) -> Scheme:
        """
        Get scheme by ID.

        Raises:
            SchemeNotFound: Unknown scheme
        """
        scheme = await self.scheme_repo.get_by_id(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        return scheme

    async def list_schemes(
        self, status: SchemeStatus | str | None = None
    ) -> list[Scheme]:
        """List schemes, newest first, optionally filtered by status."""
        return await self.scheme_repo.list_schemes(
            status=SchemeStatus(status).value if status else None
        )

    async def list_prizes(
        self, scheme_id: int, active_only: bool = True
    ) -> list[Prize]:
        """List prizes of a scheme by rank."""
        return await self.prize_repo.get_by_scheme(scheme_id, active_only)

    @transaction
    async def create_scheme(
        self, definition: SchemeCreate | dict[str, Any]
    ) -> Scheme:
        """
        Create a scheme in draft status, with its prizes.

        Args:
            definition: Scheme definition (validated with pydantic)

        Returns:
            Created scheme
        """
        if not isinstance(definition, SchemeCreate):
            definition = SchemeCreate.model_validate(definition)

        data = definition.model_dump(exclude={"prizes"})
        data["subscription_cycle"] = definition.subscription_cycle.value
        scheme = await self.scheme_repo.create(
            status=SchemeStatus.DRAFT.value, **data
        )

        for prize in definition.prizes:
            await self._add_prize(scheme, prize)

        self.logger.info(
            "Scheme created",
            extra={
                "scheme_id": scheme.id,
                "amount": scheme.subscription_amount,
                "duration": scheme.duration,
                "winners": scheme.number_of_winners,
            },
        )
        return scheme

    @transaction
    async def update_scheme(
        self, scheme_id: int, changes: SchemeUpdate | dict[str, Any]
    ) -> Scheme:
        """
        Edit a scheme's terms. Only drafts can be edited.

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidScheme: Scheme is no longer a draft, or the merged
                terms are inconsistent
        """
        if not isinstance(changes, SchemeUpdate):
            changes = SchemeUpdate.model_validate(changes)

        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        if scheme.status != SchemeStatus.DRAFT.value:
            raise InvalidScheme(
                "Only draft schemes can be edited",
                scheme_id=scheme_id,
                status=scheme.status,
            )

        data = {
            key: value
            for key, value in changes.model_dump(exclude_unset=True).items()
            if value is not None or key in _NULLABLE_FIELDS
        }
        if changes.subscription_cycle is not None:
            data["subscription_cycle"] = changes.subscription_cycle.value

        start = data.get("start_date") or scheme.start_date
        end = data.get("end_date", scheme.end_date)
        if end is not None and end < start:
            raise InvalidScheme(
                "end_date must not be before start_date", scheme_id=scheme_id
            )

        winners = data.get("number_of_winners") or scheme.number_of_winners
        prizes = await self.prize_repo.get_by_scheme(scheme_id, active_only=False)
        if any(prize.rank > winners for prize in prizes):
            raise InvalidScheme(
                "number_of_winners is below an existing prize rank",
                scheme_id=scheme_id,
            )

        duration = data.get("duration") or scheme.duration
        if await self.period_repo.count_rewards_beyond(scheme_id, duration):
            raise InvalidScheme(
                "duration is below a period that has rewards",
                scheme_id=scheme_id,
            )

        scheme = await self.scheme_repo.update(scheme, **data)
        self.logger.info(
            "Scheme updated",
            extra={"scheme_id": scheme_id, "fields": sorted(data)},
        )
        return scheme

    @transaction
    async def add_prize(
        self, scheme_id: int, prize: PrizeCreate | dict[str, Any]
    ) -> Prize:
        """
        Attach a ranked prize to a scheme that is not finished.

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidScheme: Scheme is finished, rank is taken or above
                the number of winners
        """
        if not isinstance(prize, PrizeCreate):
            prize = PrizeCreate.model_validate(prize)

        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)
        if scheme.status in (
            SchemeStatus.COMPLETED.value,
            SchemeStatus.CANCELLED.value,
        ):
            raise InvalidScheme(
                "Prizes cannot be added to a finished scheme",
                scheme_id=scheme_id,
            )
        return await self._add_prize(scheme, prize)

    @transaction
    async def set_scheme_status(
        self, scheme_id: int, new_status: SchemeStatus | str
    ) -> Scheme:
        """
        Move a scheme through its lifecycle.

        draft -> active -> (paused <-> active) -> completed | cancelled.

        Raises:
            SchemeNotFound: Unknown scheme
            InvalidTransition: Move not allowed from the current status
        """
        target = _parse_status(new_status)

        scheme = await self.scheme_repo.get_for_update(scheme_id)
        if not scheme:
            raise SchemeNotFound(scheme_id=scheme_id)

        current = SchemeStatus(scheme.status)
        if target not in SCHEME_TRANSITIONS[current]:
            raise InvalidTransition(
                f"Scheme cannot move from {current.value} to {target.value}",
                scheme_id=scheme_id,
            )

        scheme = await self.scheme_repo.update(
            scheme, status=target.value, updated_at=utc_now()
        )
        self.logger.info(
            "Scheme status changed",
            extra={
                "scheme_id": scheme_id,
                "from": current.value,
                "to": target.value,
            },
        )
        return scheme

    async def _add_prize(self, scheme: Scheme, prize: PrizeCreate) -> Prize:
        if prize.rank > scheme.number_of_winners:
            raise InvalidScheme(
                "Prize rank exceeds number_of_winners",
                scheme_id=scheme.id,
                rank=prize.rank,
            )
        if await self.prize_repo.exists(scheme_id=scheme.id, rank=prize.rank):
            raise InvalidScheme(
                f"Prize rank {prize.rank} already exists",
                scheme_id=scheme.id,
            )

        data = prize.model_dump()
        data["prize_type"] = prize.prize_type.value
        return await self.prize_repo.create(scheme_id=scheme.id, **data)


def _parse_status(value: SchemeStatus | str) -> SchemeStatus:
    try:
        return SchemeStatus(value)
    except ValueError:
        raise InvalidTransition(f"Unknown scheme status: {value}") from None
