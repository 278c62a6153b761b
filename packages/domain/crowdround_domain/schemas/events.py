"""Milestone events for the round ledger.

Events are immutable records of one-time milestones reached by a round.
Each (round_id, type) pair occurs at most once in the ledger; the EventLog
enforces that on append.

The five milestone kinds and their canonical copy live in MILESTONE_TEMPLATES.
Callers may override the title, description or audience of a single append,
never its round or type.
"""

from typing import Dict, Optional
from pydantic import ConfigDict, Field

from .base import DomainModel, EventType, EventAudience, EpochMillis, RoundId


# =============================================================================
# Templates
# =============================================================================

class EventTemplate(DomainModel):
    """Canonical copy for a milestone kind."""

    model_config = ConfigDict(frozen=True)

    title: str
    description: str
    audience: EventAudience = "both"


MILESTONE_TEMPLATES: Dict[str, EventTemplate] = {
    "progress_80": EventTemplate(
        title="80% of the goal reached",
        description="The round passed 80% of its goal and moves on to the next phase.",
    ),
    "deadline_72h": EventTemplate(
        title="Closing in 72h",
        description="72 hours left to confirm deposits before reservations are locked.",
    ),
    "goal_failed": EventTemplate(
        title="Goal not reached",
        description="The round closed without meeting its goal and reservations were marked for refund.",
    ),
    "reservation_confirmed": EventTemplate(
        title="Reservation confirmed",
        description="Your deposit was confirmed and assigned to the round.",
    ),
    "reservation_refunded": EventTemplate(
        title="Reservation refunded",
        description="A refund or cancellation of the reservation was processed.",
    ),
}


class EventOverrides(DomainModel):
    """Per-append replacement of template copy.

    Only presentation fields can be overridden; the dedup key is not part
    of this model on purpose.
    """

    title: Optional[str] = None
    description: Optional[str] = None
    audience: Optional[EventAudience] = None


# =============================================================================
# Event Record
# =============================================================================

class EventRecord(DomainModel):
    """A milestone that fired for a round.

    Persisted as ``{"id", "roundId", "type", "title", "description",
    "audience", "timestamp"}`` inside the event log document.
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(
        description="Unique event identifier (UUID)"
    )

    round_id: RoundId = Field(
        description="Round the milestone belongs to"
    )

    type: EventType = Field(
        description="Milestone kind (part of the dedup key)"
    )

    title: str = Field(
        description="Short human-readable headline"
    )

    description: str = Field(
        description="Longer human-readable explanation"
    )

    audience: EventAudience = Field(
        default="both",
        description="Who should see the event: buyer, admin or both"
    )

    timestamp: EpochMillis = Field(
        description="Instant the milestone fired (epoch milliseconds)"
    )

    @property
    def dedup_key(self) -> tuple:
        return (self.round_id, self.type)

    def visible_to(self, audience: Optional[str]) -> bool:
        """True when the event should be shown to the given audience.

        No audience means no filtering; events addressed to ``both`` are
        visible to every audience.
        """
        return audience is None or self.audience == "both" or self.audience == audience
