"""Crowdfunding Round Engine - reservation state machine and milestone ledger.

This package provides the client-side core of a real-estate crowdfunding round:
- Round progress and status decision (goal met, partial, missed)
- Per-round reservation store with payment sub-state
- Deduplicated milestone event log
- Checkout controller with refund window and auto-refund on a missed goal

The domain layer is designed to be:
- Framework-agnostic (persistence is an injected key-value port)
- Testable (pure Python with Pydantic validation, injectable clock)
"""

from .schemas import *  # noqa: F403, F401
from .exceptions import (  # noqa: F401
    CrowdRoundError,
    InvalidConfiguration,
    CorruptPersistedState,
    GuardRejected,
)
from .clock import Clock, SystemClock, ManualClock, PeriodicTicker  # noqa: F401
from .storage import KeyValueStorage, InMemoryStorage, JsonFileStorage  # noqa: F401
from .settings import EngineSettings, get_settings  # noqa: F401
from .progress import compute_progress, decide_round_status  # noqa: F401
from .reservations import ReservationStore  # noqa: F401
from .event_log import EventLog  # noqa: F401
from .checkout import CheckoutController  # noqa: F401

__version__ = "0.1.0"
