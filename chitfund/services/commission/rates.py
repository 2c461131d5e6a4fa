"""
Commission rate resolution.

Rates come from, in order: the scheme's own override, the active
system-level referral level row, the settings default.
"""

from dataclasses import dataclass

from sqlalchemy.ext.asyncio import AsyncSession

from chitfund.config.settings import settings
from chitfund.models.scheme import Scheme
from chitfund.repositories.commission_repository import ReferralLevelRepository


DIRECT_LEVEL = 1
INDIRECT_LEVEL = 2


@dataclass(frozen=True)
class CommissionRates:
    """Direct (L1) and indirect (L2) rates in basis points."""

    direct_bps: int
    indirect_bps: int


def resolve_rates(
    scheme: Scheme,
    level_rates: dict[int, int] | None = None,
) -> CommissionRates:
    """
    Pick the effective rates for a scheme.

    Args:
        scheme: Scheme the paying card belongs to
        level_rates: Active system-level rates, ``{level: bps}``

    Returns:
        Effective rates
    """
    level_rates = level_rates or {}

    direct = scheme.direct_commission_bps
    if direct is None:
        direct = level_rates.get(
            DIRECT_LEVEL, settings.default_direct_commission_bps
        )

    indirect = scheme.indirect_commission_bps
    if indirect is None:
        indirect = level_rates.get(
            INDIRECT_LEVEL, settings.default_indirect_commission_bps
        )

    return CommissionRates(direct_bps=direct, indirect_bps=indirect)


async def load_rates(session: AsyncSession, scheme: Scheme) -> CommissionRates:
    """Resolve rates for ``scheme`` using the stored level configuration."""
    level_rates = await ReferralLevelRepository(session).get_active_rates()
    return resolve_rates(scheme, level_rates)
