"""Pydantic models for admin-authored catalog definitions."""

from datetime import date

from pydantic import BaseModel, ConfigDict, Field, model_validator

from chitfund.config.business_constants import BPS_DENOMINATOR, REFERRAL_DEPTH
from chitfund.models.enums import PrizeType, SubscriptionCycle


class PrizeCreate(BaseModel):
    """Model for a ranked prize of a scheme."""

    model_config = ConfigDict(extra="forbid")

    rank: int = Field(..., ge=1, description="Prize rank (1 = first prize)")
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    prize_type: PrizeType = Field(default=PrizeType.PRODUCT)
    cash_amount: int | None = Field(
        default=None, gt=0, description="Cash part in minor units"
    )
    is_active: bool = True

    @model_validator(mode="after")
    def check_cash_amount(self) -> "PrizeCreate":
        if self.prize_type != PrizeType.PRODUCT and not self.cash_amount:
            raise ValueError(
                f"{self.prize_type.value} prizes need a positive cash_amount"
            )
        return self


class SchemeCreate(BaseModel):
    """Model for a new scheme definition.

    Amounts are integer minor units, commission overrides are basis points.
    """

    model_config = ConfigDict(extra="forbid")

    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    subscription_amount: int = Field(..., gt=0)
    subscription_cycle: SubscriptionCycle = SubscriptionCycle.MONTHLY
    duration: int = Field(..., ge=1, description="Number of periods")
    number_of_winners: int = Field(default=1, ge=1)
    max_participants: int | None = Field(default=None, ge=1)
    start_date: date
    end_date: date | None = None
    direct_commission_bps: int | None = Field(
        default=None, ge=0, le=BPS_DENOMINATOR
    )
    indirect_commission_bps: int | None = Field(
        default=None, ge=0, le=BPS_DENOMINATOR
    )
    prizes: list[PrizeCreate] = Field(default_factory=list)

    @model_validator(mode="after")
    def check_consistency(self) -> "SchemeCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")

        ranks = [prize.rank for prize in self.prizes]
        if len(ranks) != len(set(ranks)):
            raise ValueError("prize ranks must be unique")
        if ranks and max(ranks) > self.number_of_winners:
            raise ValueError("prize rank exceeds number_of_winners")
        return self


class SchemeUpdate(BaseModel):
    """Partial update of a draft scheme. Unset fields are left unchanged."""

    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    subscription_amount: int | None = Field(default=None, gt=0)
    subscription_cycle: SubscriptionCycle | None = None
    duration: int | None = Field(default=None, ge=1)
    number_of_winners: int | None = Field(default=None, ge=1)
    max_participants: int | None = Field(default=None, ge=1)
    start_date: date | None = None
    end_date: date | None = None
    direct_commission_bps: int | None = Field(
        default=None, ge=0, le=BPS_DENOMINATOR
    )
    indirect_commission_bps: int | None = Field(
        default=None, ge=0, le=BPS_DENOMINATOR
    )


class ReferralLevelUpdate(BaseModel):
    """System-level commission rate for one referral level."""

    model_config = ConfigDict(extra="forbid")

    level: int = Field(..., ge=1, le=REFERRAL_DEPTH)
    commission_bps: int = Field(..., ge=0, le=BPS_DENOMINATOR)
    is_active: bool = True


class PeriodRewardCreate(BaseModel):
    """Reward advertised for one scheme period."""

    model_config = ConfigDict(extra="forbid")

    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    quantity: int = Field(default=1, ge=1)
    image_url: str | None = Field(
        default=None, description="Already uploaded image location"
    )
    set_cover: bool = Field(
        default=False, description="Show first, as the period cover"
    )
