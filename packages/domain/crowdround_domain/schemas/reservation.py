"""Reservation records for a single participant.

A ReservationRecord is what the ReservationStore persists per round:
slots held, reservation status and the (simulated) payment attached to it.
"""

from typing import Optional
from pydantic import Field

from .base import (
    DomainModel,
    SlotCount,
    EpochMillis,
    ReservationStatus,
    PaymentMethod,
    PaymentStatus,
)


# =============================================================================
# Payment
# =============================================================================

class ReservationPayment(DomainModel):
    """Payment sub-record attached to a reservation.

    Card payments are confirmed on submission. Transfers stay pending until
    they are reconciled manually.

    Persisted as ``{"method": ..., "txId": ..., "status": ...}``.
    """

    method: PaymentMethod = Field(
        description="Payment channel chosen by the participant"
    )

    tx_id: str = Field(
        min_length=1,
        description="Mock transaction reference (payment intent id or transfer reference)"
    )

    status: PaymentStatus = Field(
        default="pending",
        description="Reconciliation state of the payment"
    )


# =============================================================================
# Reservation
# =============================================================================

class ReservationRecord(DomainModel):
    """One participant's reservation in one round.

    Status lifecycle:
        pending -> confirmed -> refunded
        pending -> refunded            (missed goal, or manual refund)
        * -> assigned                  (external allocation only)

    Example:
        ReservationRecord(slots=2, status="pending", timestamp=1718000000000)
    """

    slots: SlotCount = Field(
        default=0,
        description="Slots held by the participant"
    )

    status: ReservationStatus = Field(
        default="pending",
        description="Reservation lifecycle status"
    )

    payment: Optional[ReservationPayment] = Field(
        default=None,
        description="Payment attached to the reservation, if any"
    )

    timestamp: EpochMillis = Field(
        default=0,
        description="Instant of the last mutation (epoch milliseconds)"
    )

    @property
    def is_refunded(self) -> bool:
        return self.status == "refunded"

    @property
    def has_pending_payment(self) -> bool:
        return self.payment is not None and self.payment.status == "pending"
