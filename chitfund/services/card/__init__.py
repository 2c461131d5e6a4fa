"""
Card ledger package.

- service: CardLedgerService facade
- issuer: card issuance with referral snapshot
- status_manager: subscription and KYC transitions
"""

from chitfund.services.card.issuer import CardIssuer
from chitfund.services.card.service import CardLedgerService
from chitfund.services.card.status_manager import (
    CardStatusManager,
    reason_required,
)


__all__ = [
    "CardIssuer",
    "CardLedgerService",
    "CardStatusManager",
    "reason_required",
]
