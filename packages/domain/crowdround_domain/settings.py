"""Engine settings.

Values can be overridden through ``CROWDROUND_*`` environment variables or a
``.env`` file, e.g. ``CROWDROUND_REFUND_WINDOW_HOURS=72``.
"""

from decimal import Decimal
from functools import lru_cache
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseSettings):
    """Tunable thresholds, storage keys and tick cadence."""

    model_config = SettingsConfigDict(
        env_prefix="CROWDROUND_",
        env_file=".env",
        extra="ignore",
    )

    refund_window_hours: int = Field(
        default=48,
        ge=0,
        description="Hours after the deadline during which a manual refund is still accepted"
    )

    progress_milestone_percent: int = Field(
        default=80,
        ge=0,
        le=100,
        description="Progress percentage that fires the progress_80 milestone"
    )

    deadline_warning_hours: int = Field(
        default=72,
        ge=0,
        description="Hours before the deadline at which the deadline_72h milestone fires"
    )

    default_partial_threshold: Decimal = Field(
        default=Decimal("0.7"),
        ge=0,
        le=1,
        description="Partial-completion threshold used when a round does not specify one"
    )

    default_slots: int = Field(
        default=1,
        ge=0,
        description="Slots seeded into a reservation created by the checkout flow"
    )

    reservations_key: str = Field(
        default="sps_reservations",
        description="Storage key of the reservation document"
    )

    event_log_key: str = Field(
        default="sps_event_log",
        description="Storage key of the milestone ledger document"
    )

    tick_interval_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Period of the checkout refresh tick"
    )


@lru_cache()
def get_settings() -> EngineSettings:
    return EngineSettings()
