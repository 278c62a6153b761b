"""Round context: the per-render description of a funding round.

A RoundContext is supplied fresh by the surrounding application every time
derived state is computed. It is never persisted by this package.
"""

from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Optional
from pydantic import ConfigDict, Field, field_validator, model_validator

from .base import DomainModel, GoalType, FundingRule, MoneyAmount, Fraction, SlotCount
from ..exceptions import InvalidConfiguration
from ..settings import get_settings


# =============================================================================
# Round Context
# =============================================================================

class RoundContext(DomainModel):
    """Immutable description of a round as reported by the backend.

    Progress is measured either in money (``goal_type="amount"``) or in
    reserved slots (``goal_type="reservations"``). The participant's own
    reservation is layered on top of the externally reported baseline by
    the progress engine.

    Example:
        ctx = RoundContext(
            goal_type="amount",
            goal_value=Decimal("1000"),
            raised_amount=Decimal("750"),
            deposit_amount=Decimal("50"),
            deadline=datetime(2025, 3, 1, tzinfo=timezone.utc),
        )

    Raises:
        InvalidConfiguration: goal_value or deposit_amount is not positive
    """

    model_config = ConfigDict(frozen=True)

    goal_type: GoalType = Field(
        default="amount",
        description="Whether the goal is a money amount or a reservation count"
    )

    goal_value: Decimal = Field(
        description="Goal in currency units or in slots (must be > 0)"
    )

    raised_amount: MoneyAmount = Field(
        default=Decimal("0"),
        description="Externally reported amount raised, excluding this participant"
    )

    deposit_amount: Decimal = Field(
        description="Deposit per slot (must be > 0)"
    )

    deadline: datetime = Field(
        description="Instant at which the round closes"
    )

    funding_rule: FundingRule = Field(
        default="all_or_nothing",
        description="all_or_nothing refunds on a missed goal; partial proceeds above the threshold"
    )

    partial_threshold: Fraction = Field(
        default_factory=lambda: get_settings().default_partial_threshold,
        description="Fraction of the goal that counts as partial success"
    )

    current_slots: Optional[SlotCount] = Field(
        default=None,
        description="Externally reported slot count (reservation-count goals)"
    )

    currency: str = Field(
        default="USD",
        description="ISO 4217 currency code used by the UI formatter"
    )

    max_slots_per_person: Optional[int] = Field(
        default=None,
        gt=0,
        description="Upper bound the UI shell enforces on slot edits"
    )

    @field_validator("deadline", mode="before")
    @classmethod
    def accept_calendar_dates(cls, v):
        """Calendar dates (date objects or 'YYYY-MM-DD') mean midnight of that day."""
        if isinstance(v, str) and len(v) == 10:
            v = date.fromisoformat(v)
        if isinstance(v, date) and not isinstance(v, datetime):
            return datetime.combine(v, time.min)
        return v

    @field_validator("deadline")
    @classmethod
    def assume_utc(cls, v: datetime) -> datetime:
        """Naive deadlines (e.g. parsed from '2024-12-20') are taken as UTC."""
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @field_validator("currency")
    @classmethod
    def validate_currency_code(cls, v: str) -> str:
        if not v.isupper() or len(v) != 3:
            raise ValueError(f"Currency must be 3-letter uppercase ISO 4217 code, got: {v}")
        return v

    @model_validator(mode="after")
    def validate_positive_amounts(self):
        # InvalidConfiguration is not a ValueError, so pydantic lets it propagate as-is.
        self.ensure_valid()
        return self

    def ensure_valid(self) -> None:
        """Fail fast on a context the engine cannot compute against."""
        if self.goal_value <= 0:
            raise InvalidConfiguration("goal_value", self.goal_value)
        if self.deposit_amount <= 0:
            raise InvalidConfiguration("deposit_amount", self.deposit_amount)
