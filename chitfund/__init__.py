"""Chit-fund scheme, card ledger, referral commission and prize draw core."""

__version__ = "1.0.0"
