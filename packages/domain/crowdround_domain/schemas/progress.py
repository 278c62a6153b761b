"""Derived round progress.

RoundProgress is the output of the progress engine. It is recomputed on
every read and never stored.
"""

from decimal import Decimal
from pydantic import ConfigDict, Field

from .base import DomainModel, SlotCount, MoneyAmount, Percent, RoundStatus


class RoundProgress(DomainModel):
    """Progress of a round including the participant's own contribution.

    Example:
        goal 1000, raised 750, deposit 50, 5 slots held:
            contribution_slots=5, contribution_amount=250,
            progress_value=1000, progress_percent=100, round_status="goal_met"
    """

    model_config = ConfigDict(frozen=True)

    contribution_slots: SlotCount = Field(
        description="Slots counted toward progress (0 once refunded)"
    )

    contribution_amount: MoneyAmount = Field(
        description="contribution_slots x deposit_amount"
    )

    progress_value: Decimal = Field(
        ge=0,
        description="Amount raised or slots reserved, baseline plus contribution"
    )

    progress_percent: Percent = Field(
        description="progress_value / goal_value as a rounded, clamped percentage"
    )

    round_status: RoundStatus = Field(
        description="Round status decided from progress, funding rule and deadline"
    )

    @property
    def is_closed(self) -> bool:
        return self.round_status in ("goal_met", "goal_missed")
