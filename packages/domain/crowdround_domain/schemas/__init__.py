"""Crowdfunding round domain schemas.

This package contains all Pydantic models for the round domain layer:
- Base types and vocabularies
- Round context (per-render input)
- Reservation records and payments
- Milestone events and their templates
- Derived round progress

Usage:
    from crowdround_domain.schemas import (
        RoundContext, ReservationRecord, ReservationPayment,
        EventRecord, RoundProgress
    )
"""

# Base types
from .base import (
    DomainModel,
    SlotCount,
    MoneyAmount,
    Fraction,
    Percent,
    EpochMillis,
    RoundId,
    GoalType,
    FundingRule,
    RoundStatus,
    ReservationStatus,
    PaymentMethod,
    PaymentStatus,
    EventType,
    EventAudience,
)

# Round
from .round import RoundContext

# Reservations
from .reservation import (
    ReservationRecord,
    ReservationPayment,
)

# Events
from .events import (
    EventRecord,
    EventTemplate,
    EventOverrides,
    MILESTONE_TEMPLATES,
)

# Progress
from .progress import RoundProgress

# Checkout
from .checkout import (
    PaymentDraft,
    CheckoutView,
)

__all__ = [
    # Base types
    "DomainModel",
    "SlotCount",
    "MoneyAmount",
    "Fraction",
    "Percent",
    "EpochMillis",
    "RoundId",
    "GoalType",
    "FundingRule",
    "RoundStatus",
    "ReservationStatus",
    "PaymentMethod",
    "PaymentStatus",
    "EventType",
    "EventAudience",
    # Round
    "RoundContext",
    # Reservations
    "ReservationRecord",
    "ReservationPayment",
    # Events
    "EventRecord",
    "EventTemplate",
    "EventOverrides",
    "MILESTONE_TEMPLATES",
    # Progress
    "RoundProgress",
    # Checkout
    "PaymentDraft",
    "CheckoutView",
]
