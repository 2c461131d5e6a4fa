"""
Unit tests for card payment status derivation.

Tests cover:
- Paid, pending, overdue and failed outcomes
- Clamping of periods outside the duration
"""

import pytest

from chitfund.models import CardPaymentStatus
from chitfund.services.payment import derive_payment_status


class TestDerivePaymentStatus:
    """Test derive_payment_status."""

    def test_nothing_paid_in_first_period(self):
        assert derive_payment_status(set(), 1, 3) == CardPaymentStatus.PENDING

    def test_current_period_paid(self):
        assert derive_payment_status({1, 2}, 2, 3) == CardPaymentStatus.PAID

    def test_earlier_period_missing(self):
        assert derive_payment_status({2}, 2, 3) == CardPaymentStatus.OVERDUE

    def test_overdue_wins_over_failed(self):
        status = derive_payment_status({1}, 3, 3, current_attempt_failed=True)
        assert status == CardPaymentStatus.OVERDUE

    def test_current_attempt_failed(self):
        status = derive_payment_status({1}, 2, 3, current_attempt_failed=True)
        assert status == CardPaymentStatus.FAILED

    def test_all_periods_paid_ahead(self):
        """Paying every period is paid, whatever the current period."""
        assert derive_payment_status({1, 2, 3}, 1, 3) == CardPaymentStatus.PAID

    def test_ignores_periods_outside_duration(self):
        assert derive_payment_status({0, 4}, 1, 3) == CardPaymentStatus.PENDING

    @pytest.mark.parametrize("completed", [set(), {1}, {1, 2}, {1, 2, 3}])
    def test_partial_is_never_derived(self, completed):
        for current in (1, 2, 3):
            for failed in (False, True):
                status = derive_payment_status(completed, current, 3, failed)
                assert status != CardPaymentStatus.PARTIAL
