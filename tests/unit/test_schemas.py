"""Unit tests for admin input models."""

from datetime import date

import pytest
from pydantic import ValidationError

from chitfund.models import PrizeType, SubscriptionCycle
from chitfund.services.scheme import PrizeCreate, ReferralLevelUpdate, SchemeCreate


def scheme_data(**overrides) -> dict:
    data = {
        "name": "Silver",
        "subscription_amount": 50000,
        "duration": 12,
        "number_of_winners": 2,
        "start_date": date(2026, 1, 1),
    }
    data.update(overrides)
    return data


class TestSchemeCreate:
    """Test SchemeCreate validation."""

    def test_defaults(self):
        scheme = SchemeCreate.model_validate(scheme_data())
        assert scheme.subscription_cycle == SubscriptionCycle.MONTHLY
        assert scheme.prizes == []

    @pytest.mark.parametrize(
        "field,value",
        [
            ("subscription_amount", 0),
            ("duration", 0),
            ("number_of_winners", 0),
            ("direct_commission_bps", 10_001),
            ("indirect_commission_bps", -1),
            ("subscription_cycle", "weekly"),
        ],
    )
    def test_rejects_invalid_fields(self, field, value):
        with pytest.raises(ValidationError):
            SchemeCreate.model_validate(scheme_data(**{field: value}))

    def test_end_before_start(self):
        with pytest.raises(ValidationError):
            SchemeCreate.model_validate(
                scheme_data(end_date=date(2025, 12, 31))
            )

    def test_prize_rank_above_winners(self):
        with pytest.raises(ValidationError):
            SchemeCreate.model_validate(
                scheme_data(prizes=[{"rank": 3, "name": "Bike"}])
            )

    def test_duplicate_prize_ranks(self):
        prizes = [{"rank": 1, "name": "Car"}, {"rank": 1, "name": "Bike"}]
        with pytest.raises(ValidationError):
            SchemeCreate.model_validate(scheme_data(prizes=prizes))

    def test_unknown_field(self):
        with pytest.raises(ValidationError):
            SchemeCreate.model_validate(scheme_data(colour="gold"))


class TestPrizeAndLevel:
    """Test PrizeCreate and ReferralLevelUpdate validation."""

    def test_money_prize_needs_cash(self):
        with pytest.raises(ValidationError):
            PrizeCreate(rank=1, name="Cash", prize_type=PrizeType.MONEY)

    def test_money_prize(self):
        prize = PrizeCreate(
            rank=1, name="Cash", prize_type="money", cash_amount=100000
        )
        assert prize.prize_type == PrizeType.MONEY

    def test_only_two_levels(self):
        with pytest.raises(ValidationError):
            ReferralLevelUpdate(level=3, commission_bps=100)

    def test_level_rate_range(self):
        with pytest.raises(ValidationError):
            ReferralLevelUpdate(level=1, commission_bps=20_000)
