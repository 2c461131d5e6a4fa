"""
Standard type definitions for database models.

Provides consistent types for monetary and rate fields across all models.
"""

from sqlalchemy import BigInteger, Integer

# Money is stored as integer minor units (paise for INR)
# Range: up to 9,223,372,036,854,775,807 minor units
MoneyType = BigInteger

# Rates are stored as basis points (1 bps = 0.01%)
# Range: 0 to 10000
RateBpsType = Integer
