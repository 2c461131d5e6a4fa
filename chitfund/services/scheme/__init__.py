"""
Scheme catalog package.

- catalog: SchemeCatalogService (create, edit, lifecycle, prizes)
- periods: period arithmetic (current_period)
- period_rewards: SchemePeriodService (period rows and their rewards)
- schemas: pydantic definitions for admin input
"""

from chitfund.services.scheme.catalog import SchemeCatalogService
from chitfund.services.scheme.period_rewards import SchemePeriodService
from chitfund.services.scheme.periods import (
    current_period,
    months_per_period,
    period_bounds,
    scheme_end_date,
)
from chitfund.services.scheme.schemas import (
    PeriodRewardCreate,
    PrizeCreate,
    ReferralLevelUpdate,
    SchemeCreate,
    SchemeUpdate,
)


__all__ = [
    "SchemeCatalogService",
    "SchemePeriodService",
    "current_period",
    "months_per_period",
    "period_bounds",
    "scheme_end_date",
    "PeriodRewardCreate",
    "PrizeCreate",
    "ReferralLevelUpdate",
    "SchemeCreate",
    "SchemeUpdate",
]
