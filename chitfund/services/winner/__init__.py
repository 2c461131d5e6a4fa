"""
Winner package.

- eligibility: draw pool of a scheme
- service: WinnerService (selection, status progression, listing)
"""

from chitfund.services.winner.eligibility import WinnerEligibility
from chitfund.services.winner.service import WinnerService


__all__ = [
    "WinnerEligibility",
    "WinnerService",
]
