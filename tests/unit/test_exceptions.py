"""Unit tests for domain error payloads."""

import pytest

from chitfund.utils import exceptions
from chitfund.utils.exceptions import ChitFundError, PeriodOutOfRange


CALLER_KINDS = [
    "InvalidScheme",
    "DuplicateEnrollment",
    "ReferrerNotFound",
    "PeriodAlreadyPaid",
    "PeriodOutOfRange",
    "AmountMismatch",
    "InvalidTransition",
    "NotEligible",
    "TooManyWinners",
    "DuplicateWinner",
]


@pytest.mark.parametrize("kind", CALLER_KINDS)
def test_kind_matches_class_name(kind):
    error_class = getattr(exceptions, kind)
    assert issubclass(error_class, ChitFundError)
    assert error_class.kind == kind


def test_default_message():
    error = PeriodOutOfRange()
    assert error.message == "Period is outside the scheme duration"
    assert str(error) == error.message


def test_to_dict_hides_context():
    """Context (ids of cards) is for logs, never for the caller."""
    error = PeriodOutOfRange("Period must be between 1 and 3", card_id=42)

    assert error.to_dict() == {
        "kind": "PeriodOutOfRange",
        "message": "Period must be between 1 and 3",
    }
    assert error.context == {"card_id": 42}
