"""Dashboard projections."""

from chitfund.services.dashboard.aggregator import (
    CardStats,
    CardSummary,
    DashboardAggregator,
    SchemeStats,
    UserDashboard,
)


__all__ = [
    "CardStats",
    "CardSummary",
    "DashboardAggregator",
    "SchemeStats",
    "UserDashboard",
]
