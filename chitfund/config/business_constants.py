"""
Business constants.

Single source of truth for state machines, cycle lengths and
fixed-point conventions. Other modules import from here.
"""

from chitfund.models.enums import (
    KycStatus,
    SchemeStatus,
    SubscriptionCycle,
    SubscriptionStatus,
    WinnerStatus,
)

# Rates are basis points: 10000 bps == 100%
BPS_DENOMINATOR = 10_000

# Only two referral hops are ever materialized on a card
REFERRAL_DEPTH = 2

# Months per billing period
CYCLE_MONTHS: dict[SubscriptionCycle, int] = {
    SubscriptionCycle.MONTHLY: 1,
    SubscriptionCycle.QUARTERLY: 3,
    SubscriptionCycle.YEARLY: 12,
}

SCHEME_TRANSITIONS: dict[SchemeStatus, frozenset[SchemeStatus]] = {
    SchemeStatus.DRAFT: frozenset({SchemeStatus.ACTIVE}),
    SchemeStatus.ACTIVE: frozenset({
        SchemeStatus.PAUSED,
        SchemeStatus.COMPLETED,
        SchemeStatus.CANCELLED,
    }),
    SchemeStatus.PAUSED: frozenset({
        SchemeStatus.ACTIVE,
        SchemeStatus.COMPLETED,
        SchemeStatus.CANCELLED,
    }),
    SchemeStatus.COMPLETED: frozenset(),
    SchemeStatus.CANCELLED: frozenset(),
}

SUBSCRIPTION_TRANSITIONS: dict[
    SubscriptionStatus, frozenset[SubscriptionStatus]
] = {
    SubscriptionStatus.ACTIVE: frozenset({
        SubscriptionStatus.PAUSED,
        SubscriptionStatus.CANCELLED,
        SubscriptionStatus.COMPLETED,
        SubscriptionStatus.EXPIRED,
    }),
    SubscriptionStatus.PAUSED: frozenset({
        SubscriptionStatus.ACTIVE,
        SubscriptionStatus.CANCELLED,
    }),
    SubscriptionStatus.CANCELLED: frozenset(),
    SubscriptionStatus.EXPIRED: frozenset(),
    SubscriptionStatus.COMPLETED: frozenset(),
}

# Statuses that still count as an enrollment in the scheme
NON_TERMINAL_SUBSCRIPTION_STATUSES = frozenset({
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.PAUSED,
})

# Statuses a card may hold and still enter the prize draw
WINNER_ELIGIBLE_STATUSES = frozenset({
    SubscriptionStatus.ACTIVE,
    SubscriptionStatus.COMPLETED,
})

KYC_TRANSITIONS: dict[KycStatus, frozenset[KycStatus]] = {
    KycStatus.PENDING: frozenset({
        KycStatus.VERIFIED,
        KycStatus.REJECTED,
        KycStatus.INCOMPLETE,
    }),
    KycStatus.INCOMPLETE: frozenset({
        KycStatus.VERIFIED,
        KycStatus.REJECTED,
        KycStatus.PENDING,
    }),
    KycStatus.REJECTED: frozenset({KycStatus.PENDING}),
    KycStatus.VERIFIED: frozenset(),
}

WINNER_TRANSITIONS: dict[WinnerStatus, frozenset[WinnerStatus]] = {
    WinnerStatus.PENDING: frozenset({
        WinnerStatus.CLAIMED,
        WinnerStatus.CANCELLED,
    }),
    WinnerStatus.CLAIMED: frozenset({
        WinnerStatus.DELIVERED,
        WinnerStatus.CANCELLED,
    }),
    WinnerStatus.DELIVERED: frozenset(),
    WinnerStatus.CANCELLED: frozenset(),
}
