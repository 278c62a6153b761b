"""Checkout-facing snapshots handed to the UI shell."""

from decimal import Decimal
from typing import Dict
from pydantic import ConfigDict, Field

from .base import DomainModel, MoneyAmount, PaymentMethod, RoundId
from .progress import RoundProgress
from .reservation import ReservationRecord


class PaymentDraft(DomainModel):
    """State of an open payment step.

    Fresh references are generated for both methods each time the step
    is opened; nothing here is persisted until the payment is submitted.
    """

    references: Dict[PaymentMethod, str] = Field(
        description="Mock transaction reference per payment method"
    )

    selected_method: PaymentMethod = Field(
        default="card",
        description="Method currently selected in the payment step"
    )

    @property
    def selected_reference(self) -> str:
        return self.references[self.selected_method]


class CheckoutView(DomainModel):
    """Everything the checkout widget renders for one tick."""

    model_config = ConfigDict(frozen=True)

    round_id: RoundId
    progress: RoundProgress
    reservation: ReservationRecord
    total_deposit: MoneyAmount = Field(
        description="Slots held x deposit per slot"
    )
    countdown: str = Field(
        description="Time to deadline formatted as '{d}d HH:MM:SS'"
    )
    seconds_to_deadline: int = Field(
        description="Signed seconds left until the deadline"
    )
    refund_window_open: bool = Field(
        description="Whether a manual refund would currently be accepted"
    )

    @property
    def round_status(self) -> str:
        return self.progress.round_status

    @property
    def progress_percent(self) -> int:
        return self.progress.progress_percent

    @property
    def progress_value(self) -> Decimal:
        return self.progress.progress_value
