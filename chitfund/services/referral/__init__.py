"""
Referral services package.

Contains modular services for the two-level referral chain:
- chain_manager: Resolves the L1/L2 snapshot at card issuance
- level_config: Admin-maintained level rates
- query_manager: Downline and income queries
"""

from chitfund.services.referral.chain_manager import (
    ReferralChainManager,
    ReferralSnapshot,
)
from chitfund.services.referral.level_config import ReferralLevelService
from chitfund.services.referral.query_manager import (
    ReferralCounts,
    ReferralQueryManager,
)


__all__ = [
    "ReferralChainManager",
    "ReferralSnapshot",
    "ReferralLevelService",
    "ReferralCounts",
    "ReferralQueryManager",
]
