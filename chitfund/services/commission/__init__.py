"""
Commission package.

- engine: CommissionEngine (payout per completed payment)
- rates: rate resolution (scheme override, level config, default)
"""

from chitfund.services.commission.engine import CommissionEngine
from chitfund.services.commission.rates import (
    CommissionRates,
    load_rates,
    resolve_rates,
)


__all__ = [
    "CommissionEngine",
    "CommissionRates",
    "load_rates",
    "resolve_rates",
]
