"""
Services.

Business logic layer.
"""

from chitfund.services.base_service import BaseService, transaction
from chitfund.services.card import CardLedgerService
from chitfund.services.commission import CommissionEngine
from chitfund.services.dashboard import DashboardAggregator
from chitfund.services.payment import (
    PaymentGateway,
    PaymentInitiationService,
    PaymentRecorder,
    PaymentTracker,
)
from chitfund.services.referral import (
    ReferralChainManager,
    ReferralLevelService,
    ReferralQueryManager,
)
from chitfund.services.scheme import SchemeCatalogService
from chitfund.services.winner import WinnerService


__all__ = [
    # Base
    "BaseService",
    "transaction",
    # Catalog
    "SchemeCatalogService",
    # Ledger
    "CardLedgerService",
    "PaymentRecorder",
    "PaymentTracker",
    "PaymentInitiationService",
    "PaymentGateway",
    # Referral and commission
    "ReferralChainManager",
    "ReferralLevelService",
    "ReferralQueryManager",
    "CommissionEngine",
    # Prize draw
    "WinnerService",
    # Read models
    "DashboardAggregator",
]
