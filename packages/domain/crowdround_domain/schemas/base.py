"""Base classes and type system for crowdfunding round models.

This module provides the foundational types, literal vocabularies and base
class used throughout the round/reservation schema system.
"""

from decimal import Decimal
from typing import Annotated, Literal
from pydantic import BaseModel, Field, ConfigDict
from pydantic.alias_generators import to_camel

# =============================================================================
# Base Model
# =============================================================================

class DomainModel(BaseModel):
    """Base class for all domain models.

    Provides common configuration for all Pydantic models in the domain layer:
    - Validation on assignment for runtime safety
    - camelCase JSON aliases matching the persisted documents
    - Enum value serialization
    """

    model_config = ConfigDict(
        frozen=False,
        validate_assignment=True,
        use_enum_values=True,
        arbitrary_types_allowed=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    def to_document(self) -> dict:
        """Serialize to the JSON-compatible persisted shape (camelCase keys)."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


# =============================================================================
# Type Aliases - Numeric
# =============================================================================

SlotCount = Annotated[
    int,
    Field(ge=0, description="Number of reserved slots (non-negative)")
]

MoneyAmount = Annotated[
    Decimal,
    Field(ge=0, description="Currency amount (non-negative)")
]

Fraction = Annotated[
    Decimal,
    Field(ge=0, le=1, description="Fraction as decimal (0.0 to 1.0)")
]

Percent = Annotated[
    int,
    Field(ge=0, le=100, description="Whole percentage (0 to 100)")
]

EpochMillis = Annotated[
    int,
    Field(ge=0, description="Instant as milliseconds since the Unix epoch")
]

RoundId = Annotated[
    str,
    Field(min_length=1, description="Identifier of a funding round")
]


# =============================================================================
# Vocabularies
# =============================================================================

GoalType = Literal["amount", "reservations"]

FundingRule = Literal["all_or_nothing", "partial"]

RoundStatus = Literal["in_progress", "partial_met", "goal_met", "goal_missed"]

ReservationStatus = Literal["pending", "confirmed", "refunded", "assigned"]

PaymentMethod = Literal["card", "transfer"]

PaymentStatus = Literal["pending", "confirmed"]

EventType = Literal[
    "progress_80",
    "deadline_72h",
    "goal_failed",
    "reservation_confirmed",
    "reservation_refunded",
]

EventAudience = Literal["buyer", "admin", "both"]
